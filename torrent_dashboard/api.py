"""HTTP client for the dashboard backend.

The backend owns the download clients; this module only asks it for
snapshots and for the cadence settings. Requests carry a bearer token
when one is configured.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from .config import Settings, cadence_from_settings
from .models import PollingCadence

logger = logging.getLogger(__name__)

STATS_PATH = "/api/stats"
HISTORY_PATH = "/api/stats/history"
TODAY_PATH = "/api/stats/today-downloads"
SETTINGS_PATH = "/api/settings"


class SnapshotFetchError(RuntimeError):
    """Transport failure, non-success status or undecodable body."""


class DashboardApi:
    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout_s: float = 10.0,
        history_days: int = 7,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.history_days = history_days
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"), timeout=timeout_s, headers=headers
        )
        if client is not None:
            self._client.headers.update(headers)

    @classmethod
    def from_settings(cls, settings: Settings) -> "DashboardApi":
        return cls(
            settings.BASE_URL,
            token=settings.API_TOKEN,
            timeout_s=settings.TIMEOUT_S,
            history_days=settings.HISTORY_DAYS,
        )

    async def __aenter__(self) -> "DashboardApi":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        try:
            resp = await self._client.get(path, params=params)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise SnapshotFetchError(f"GET {path} failed: {exc}") from exc
        try:
            return resp.json()
        except ValueError as exc:
            raise SnapshotFetchError(f"GET {path} returned invalid JSON") from exc

    async def fetch_snapshot(self) -> dict[str, Any]:
        """Fetch stats, history and today's downloads as one payload.

        Raises:
            SnapshotFetchError: if any of the three requests fails.
        """
        stats, history, today = await asyncio.gather(
            self._get_json(STATS_PATH),
            self._get_json(HISTORY_PATH, params={"days": self.history_days}),
            self._get_json(TODAY_PATH),
        )
        if not isinstance(stats, dict):
            raise SnapshotFetchError("stats response is not an object")

        payload: dict[str, Any] = {
            "success": stats.get("success"),
            "clients": stats.get("clients"),
            "stats": stats.get("stats"),
            "history": None,
            "downloads": None,
        }
        if isinstance(history, dict) and history.get("success"):
            payload["history"] = history.get("history")
        if isinstance(today, dict) and today.get("success"):
            payload["downloads"] = today.get("downloads")
        return payload

    async def fetch_cadence(self, defaults: PollingCadence) -> PollingCadence:
        """Read the cadence settings; any failure falls back to ``defaults``."""
        try:
            data = await self._get_json(SETTINGS_PATH)
        except SnapshotFetchError as exc:
            logger.warning("Cadence settings unavailable, using defaults: %s", exc)
            return defaults
        return cadence_from_settings(data, defaults)
