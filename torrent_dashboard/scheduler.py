"""Adaptive polling scheduler.

The scheduler decides when to fetch. After every fetch, successful or not,
it re-arms a single timer whose delay depends on whether the last known
task list had any throughput. Activity and cadence changes restart the
schedule after a short debounce, and a hidden page suspends polling until
it becomes visible again.

Timers come from an injectable ``call_later`` (``loop.call_later`` by
default) so the state machine can be driven by hand in tests.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Awaitable, Callable, Iterable, Mapping, Protocol

from .activity import activity_key
from .models import PollingCadence, Task
from .visibility import Visibility

logger = logging.getLogger(__name__)

DEFAULT_RESTART_DEBOUNCE_S = 1.0


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


CallLater = Callable[[float, Callable[[], None]], TimerHandle]
FetchFn = Callable[[], Awaitable[None]]
ErrorObserver = Callable[[Exception], None]


class SchedulerState(str, enum.Enum):
    IDLE = "idle"
    SCHEDULED = "scheduled"
    FETCHING = "fetching"
    SUSPENDED = "suspended"
    CLOSED = "closed"


def _loop_call_later(delay: float, callback: Callable[[], None]) -> TimerHandle:
    return asyncio.get_running_loop().call_later(delay, callback)


class PollingScheduler:
    def __init__(
        self,
        fetch: FetchFn,
        cadence: PollingCadence | None = None,
        *,
        visibility: Visibility | None = None,
        restart_debounce_s: float = DEFAULT_RESTART_DEBOUNCE_S,
        on_error: ErrorObserver | None = None,
        call_later: CallLater | None = None,
    ) -> None:
        self._fetch = fetch
        self._cadence = cadence or PollingCadence()
        self._visibility = visibility or Visibility()
        self._restart_debounce_s = restart_debounce_s
        self._on_error = on_error
        self._call_later = call_later or _loop_call_later

        self._state = SchedulerState.IDLE
        self._started = False
        self._closed = False
        self._timer: TimerHandle | None = None
        self._debounce: TimerHandle | None = None
        self._activity: tuple[bool, bool] = (False, False)
        self._armed_key: tuple[PollingCadence, tuple[bool, bool]] | None = None
        self._inflight: set[asyncio.Task] = set()
        self.current_interval_s: float | None = None
        self.fetch_count = 0

        self._unsubscribe = self._visibility.subscribe(self._on_visibility)

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def cadence(self) -> PollingCadence:
        return self._cadence

    @property
    def active(self) -> bool:
        return self._activity[1]

    @property
    def inflight(self) -> tuple[asyncio.Task, ...]:
        return tuple(self._inflight)

    def next_interval(self) -> float:
        return self._cadence.interval_for(self.active)

    async def start(self) -> None:
        """Fetch immediately, then keep polling at the adaptive cadence."""
        if self._started or self._closed:
            return
        self._started = True
        if not self._visibility.visible:
            logger.info("Page hidden at start; polling suspended")
            self._state = SchedulerState.SUSPENDED
            return
        logger.info(
            "Starting polling (active=%ss idle=%ss)",
            self._cadence.active_interval_s,
            self._cadence.idle_interval_s,
        )
        await self._cycle()

    async def refresh(self) -> None:
        """Fetch now outside the timer and re-arm afterwards.

        Does nothing before ``start()``; the first fetch belongs to it.
        """
        if self._closed or not self._started:
            return
        self._cancel_timer()
        await self._cycle()

    def notify_tasks(self, tasks: Iterable[Task | Mapping[str, object]]) -> None:
        """Feed the latest task list; a change in activity restarts the schedule."""
        key = activity_key(tasks)
        if key == self._activity:
            return
        logger.debug("Activity changed %s -> %s", self._activity, key)
        self._activity = key
        self._schedule_restart()

    def set_cadence(self, cadence: PollingCadence) -> None:
        if cadence == self._cadence:
            return
        logger.info(
            "Polling cadence changed: active=%ss idle=%ss",
            cadence.active_interval_s,
            cadence.idle_interval_s,
        )
        self._cadence = cadence
        self._schedule_restart()

    def close(self) -> None:
        """Cancel pending timers. In-flight fetches are left to finish."""
        if self._closed:
            return
        self._closed = True
        self._cancel_timer()
        self._cancel_debounce()
        self._unsubscribe()
        self._state = SchedulerState.CLOSED
        logger.debug("Scheduler closed")

    async def wait_inflight(self) -> None:
        """Wait for fetches already started; their errors were handled in the cycle."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    async def _cycle(self) -> None:
        if self._closed:
            return
        self._state = SchedulerState.FETCHING
        self.fetch_count += 1
        try:
            await self._fetch()
        except asyncio.CancelledError:
            # Torn down mid-fetch; whoever cancelled owns the schedule now.
            logger.debug("Fetch cancelled")
            raise
        except Exception as exc:
            logger.warning("Metrics fetch failed: %s", exc)
            logger.debug("Fetch failure details", exc_info=True)
            if self._on_error is not None:
                try:
                    self._on_error(exc)
                except Exception:
                    logger.exception("Fetch error observer failed")
        self._after_fetch()

    def _after_fetch(self) -> None:
        if self._closed:
            return
        if not self._visibility.visible:
            self._state = SchedulerState.SUSPENDED
            return
        self._arm()

    def _arm(self) -> None:
        self._cancel_timer()
        interval = self.next_interval()
        self._timer = self._call_later(interval, self._on_timer)
        self._armed_key = (self._cadence, self._activity)
        self.current_interval_s = interval
        self._state = SchedulerState.SCHEDULED
        logger.debug("Next fetch in %ss (active=%s)", interval, self.active)

    def _on_timer(self) -> None:
        self._timer = None
        if self._closed or not self._visibility.visible:
            return
        self._spawn_cycle()

    def _spawn_cycle(self) -> None:
        task = asyncio.get_running_loop().create_task(self._cycle())
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    def _schedule_restart(self) -> None:
        if self._closed or not self._started:
            return
        if self._state == SchedulerState.SUSPENDED:
            return
        self._cancel_debounce()
        self._debounce = self._call_later(self._restart_debounce_s, self._restart)

    def _restart(self) -> None:
        self._debounce = None
        if self._closed or not self._visibility.visible:
            return
        if self._state != SchedulerState.SCHEDULED:
            # A fetch in flight re-arms with the latest inputs when it completes.
            return
        if self._timer is not None and self._armed_key == (
            self._cadence,
            self._activity,
        ):
            return
        logger.debug("Restarting schedule")
        self._arm()

    def _on_visibility(self, visible: bool) -> None:
        if self._closed:
            return
        if not visible:
            self._cancel_timer()
            self._cancel_debounce()
            if self._started:
                self._state = SchedulerState.SUSPENDED
                logger.info("Page hidden; polling suspended")
            return
        if self._started and self._state == SchedulerState.SUSPENDED:
            logger.info("Page visible; resuming polling")
            self._state = SchedulerState.FETCHING
            self._spawn_cycle()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _cancel_debounce(self) -> None:
        if self._debounce is not None:
            self._debounce.cancel()
            self._debounce = None
