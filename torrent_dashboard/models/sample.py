"""Speed sample dataclass."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SpeedSample:
    download_bps: float
    upload_bps: float
