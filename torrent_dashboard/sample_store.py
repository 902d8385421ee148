"""Bounded download/upload speed series with a durable mirror.

The two series always have the same length and never exceed
``MAX_SAMPLES``. Every append is written through to storage as a single
JSON blob holding both series, so a reload restores them together.
"""

from __future__ import annotations

import json
import logging
from collections import deque

from .models import SpeedSample
from .storage import KeyValueStorage, MemoryStorage
from .utils import to_number

logger = logging.getLogger(__name__)

MAX_SAMPLES = 60
STORAGE_KEY = "dashboard_speed_samples"


class SampleStore:
    def __init__(
        self,
        storage: KeyValueStorage | None = None,
        key: str = STORAGE_KEY,
        max_samples: int = MAX_SAMPLES,
    ) -> None:
        if max_samples <= 0:
            raise ValueError("max_samples must be positive")
        self._storage = storage if storage is not None else MemoryStorage()
        self._key = key
        self.max_samples = max_samples
        self._downloads: deque[float] = deque(maxlen=max_samples)
        self._uploads: deque[float] = deque(maxlen=max_samples)

    def __len__(self) -> int:
        return len(self._downloads)

    @property
    def downloads(self) -> list[float]:
        return list(self._downloads)

    @property
    def uploads(self) -> list[float]:
        return list(self._uploads)

    def samples(self) -> list[SpeedSample]:
        """Return the series as pairs, oldest first."""
        return [SpeedSample(d, u) for d, u in zip(self._downloads, self._uploads)]

    def latest(self) -> SpeedSample | None:
        if not self._downloads:
            return None
        return SpeedSample(self._downloads[-1], self._uploads[-1])

    def append(self, download_bps: float, upload_bps: float) -> None:
        """Record one sample; the oldest pair is evicted once full."""
        self._downloads.append(to_number(download_bps))
        self._uploads.append(to_number(upload_bps))
        self.persist()

    def clear(self) -> None:
        self._downloads.clear()
        self._uploads.clear()
        self.persist()

    def restore(self) -> None:
        """Load the series from storage, or start empty if that is not possible."""
        self._downloads.clear()
        self._uploads.clear()
        try:
            raw = self._storage.get(self._key)
        except Exception:
            logger.exception("Failed to read speed samples from storage")
            return
        if not raw:
            return
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Discarding malformed speed samples blob")
            return
        if not isinstance(data, dict):
            logger.warning("Discarding speed samples blob of type %s", type(data).__name__)
            return
        downloads = data.get("downloads")
        uploads = data.get("uploads")
        if not isinstance(downloads, list) or not isinstance(uploads, list):
            logger.warning("Speed samples blob is missing a series; starting empty")
            return

        # Keep the newest common suffix so the pairs stay aligned.
        common = min(len(downloads), len(uploads), self.max_samples)
        if common:
            self._downloads.extend(to_number(v) for v in downloads[-common:])
            self._uploads.extend(to_number(v) for v in uploads[-common:])
        logger.debug("Restored %d speed samples", common)

    def persist(self) -> None:
        """Write both series to storage together; failures are logged only."""
        blob = json.dumps({"downloads": self.downloads, "uploads": self.uploads})
        try:
            self._storage.set(self._key, blob)
        except Exception:
            logger.exception("Failed to persist speed samples")
