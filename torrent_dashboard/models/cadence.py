"""Polling cadence dataclass."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_ACTIVE_INTERVAL_S = 10.0
DEFAULT_IDLE_INTERVAL_S = 30.0


@dataclass(frozen=True)
class PollingCadence:
    active_interval_s: float = DEFAULT_ACTIVE_INTERVAL_S
    idle_interval_s: float = DEFAULT_IDLE_INTERVAL_S

    def interval_for(self, active: bool) -> float:
        return self.active_interval_s if active else self.idle_interval_s
