"""Shared test fixtures and dummy classes."""

from __future__ import annotations

import asyncio
from typing import Any, Callable

from torrent_dashboard.models import PollingCadence


class FakeTimer:
    """Handle returned by FakeTimers.call_later."""

    def __init__(self, owner: "FakeTimers", delay: float, callback: Callable[[], None]):
        self.owner = owner
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        assert not self.cancelled, "cannot fire a cancelled timer"
        self.cancelled = True
        self.callback()


class FakeTimers:
    """Records armed timers instead of handing them to the event loop."""

    def __init__(self) -> None:
        self.armed: list[FakeTimer] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(self, delay, callback)
        self.armed.append(timer)
        return timer

    @property
    def pending(self) -> list[FakeTimer]:
        return [t for t in self.armed if not t.cancelled]


async def settle(scheduler) -> None:
    """Let spawned fetch cycles run to completion."""
    await asyncio.sleep(0)
    await scheduler.wait_inflight()


def make_payload(*clients: dict[str, Any], **extra: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {"success": True, "clients": list(clients), "stats": {}}
    payload.update(extra)
    return payload


class DummySource:
    """Snapshot source returning queued payloads (or raising queued errors)."""

    def __init__(
        self,
        payloads: list[object] | None = None,
        cadence: PollingCadence | Exception | None = None,
    ) -> None:
        self.payloads = list(payloads or [])
        self.cadence = cadence
        self.calls = 0
        self.last: object = make_payload()

    async def fetch_snapshot(self) -> object:
        self.calls += 1
        if self.payloads:
            self.last = self.payloads.pop(0)
        if isinstance(self.last, Exception):
            raise self.last
        return self.last

    async def fetch_cadence(self, defaults: PollingCadence) -> PollingCadence:
        if isinstance(self.cadence, Exception):
            raise self.cadence
        return self.cadence or defaults
