"""Dashboard monitor: polling, aggregation and speed history in one object.

The presentation layer reads the current tasks, snapshot and speed series
from here and may ask for a manual refresh; everything else is driven by
the scheduler.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Protocol

from . import aggregator, sortfilter
from .api import SnapshotFetchError
from .models import AggregateSnapshot, AggregationResult, PollingCadence, Task
from .sample_store import SampleStore
from .scheduler import CallLater, PollingScheduler
from .storage import KeyValueStorage
from .visibility import Visibility

logger = logging.getLogger(__name__)

UpdateListener = Callable[["DashboardMonitor"], None]


class SnapshotSource(Protocol):
    async def fetch_snapshot(self) -> Any: ...

    async def fetch_cadence(self, defaults: PollingCadence) -> PollingCadence: ...


class DashboardMonitor:
    def __init__(
        self,
        source: SnapshotSource,
        *,
        storage: KeyValueStorage | None = None,
        visibility: Visibility | None = None,
        default_cadence: PollingCadence | None = None,
        restart_debounce_s: float = 1.0,
        call_later: CallLater | None = None,
    ) -> None:
        self._source = source
        self._default_cadence = default_cadence or PollingCadence()
        self.visibility = visibility or Visibility()
        self.samples = SampleStore(storage)
        self.scheduler = PollingScheduler(
            self._poll,
            self._default_cadence,
            visibility=self.visibility,
            restart_debounce_s=restart_debounce_s,
            on_error=self._record_error,
            call_later=call_later,
        )

        self._result = AggregationResult()
        self._listeners: list[UpdateListener] = []
        self._closed = False
        self._request_seq = 0
        self._committed_seq = 0

        self.last_error: Exception | None = None
        self.consecutive_failures = 0
        self.last_success_at: float | None = None
        self.has_data = False

    @property
    def tasks(self) -> tuple[Task, ...]:
        return self._result.tasks

    @property
    def snapshot(self) -> AggregateSnapshot:
        return self._result.snapshot

    @property
    def history(self) -> tuple[dict[str, object], ...]:
        return self._result.history

    @property
    def today_downloads(self) -> tuple[dict[str, object], ...]:
        return self._result.today_downloads

    def subscribe(self, listener: UpdateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return _unsubscribe

    async def start(self) -> None:
        """Restore the speed series, load the cadence and begin polling."""
        self.samples.restore()
        cadence = await self._load_cadence()
        self.scheduler.set_cadence(cadence)
        await self.scheduler.start()

    async def refresh(self) -> None:
        await self.scheduler.refresh()

    async def reload_cadence(self) -> PollingCadence:
        """Re-read cadence settings after the user edits them."""
        cadence = await self._load_cadence()
        self.set_cadence(cadence)
        return cadence

    def set_cadence(self, cadence: PollingCadence) -> None:
        self.scheduler.set_cadence(cadence)

    def clear_samples(self) -> None:
        self.samples.clear()
        self._notify()

    def view(
        self, mode: str = "active", key: str | None = "name", direction: str = "asc"
    ) -> list[Task]:
        sort = sortfilter.SortConfig(key, direction) if key else None
        return sortfilter.view(self.tasks, mode, sort)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.scheduler.close()
        self._listeners.clear()
        logger.info("Dashboard monitor closed")

    async def wait_closed(self) -> None:
        await self.scheduler.wait_inflight()

    async def _load_cadence(self) -> PollingCadence:
        try:
            return await self._source.fetch_cadence(self._default_cadence)
        except Exception:
            logger.exception("Failed to load cadence settings; using defaults")
            return self._default_cadence

    async def _poll(self) -> None:
        self._request_seq += 1
        seq = self._request_seq
        payload = await self._source.fetch_snapshot()
        if self._closed:
            logger.debug("Dropping snapshot #%d received after close", seq)
            return
        result = aggregator.aggregate(payload)
        if result is None:
            raise SnapshotFetchError("snapshot response is malformed")
        if seq < self._committed_seq:
            logger.debug(
                "Dropping stale snapshot #%d (have #%d)", seq, self._committed_seq
            )
            return
        self._commit(seq, result)

    def _commit(self, seq: int, result: AggregationResult) -> None:
        self._committed_seq = seq
        self._result = result
        self.has_data = True
        self.last_error = None
        self.consecutive_failures = 0
        self.last_success_at = time.monotonic()
        self.samples.append(
            result.snapshot.total_download_speed, result.snapshot.total_upload_speed
        )
        self.scheduler.notify_tasks(result.tasks)
        logger.debug(
            "Snapshot #%d: %d tasks, %d active, dl=%.0f B/s up=%.0f B/s",
            seq,
            result.snapshot.total_tasks,
            result.snapshot.active_tasks,
            result.snapshot.total_download_speed,
            result.snapshot.total_upload_speed,
        )
        self._notify()

    def _record_error(self, exc: Exception) -> None:
        if self._closed:
            return
        self.last_error = exc
        self.consecutive_failures += 1
        if self.consecutive_failures in (1, 10) or self.consecutive_failures % 100 == 0:
            logger.warning(
                "Dashboard data is stale after %d failed polls", self.consecutive_failures
            )

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Dashboard update listener failed")


__all__ = ["DashboardMonitor", "SnapshotSource"]
