"""Central configuration for torrent_dashboard."""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass
from typing import Mapping

from .models.cadence import (
    DEFAULT_ACTIVE_INTERVAL_S,
    DEFAULT_IDLE_INTERVAL_S,
    PollingCadence,
)
from .utils import to_number

logger = logging.getLogger(__name__)

ACTIVE_INTERVAL_KEY = "dashboard_active_interval"
IDLE_INTERVAL_KEY = "dashboard_idle_interval"


def _float_env(name: str, default: float) -> float:
    """Read a float from the environment, falling back to ``default``."""
    raw = (os.environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except Exception:
        return default


def _int_env(name: str, default: int) -> int:
    raw = (os.environ.get(name) or "").strip()
    try:
        return int(raw) if raw else default
    except Exception:
        return default


def _positive_interval(value: object, default: float) -> float:
    """Return ``value`` as seconds if usable as an interval, else ``default``."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, str) and not value.strip():
        return default
    seconds = to_number(value, default=math.nan)
    if math.isnan(seconds) or math.isinf(seconds) or seconds <= 0:
        return default
    return seconds


@dataclass
class Settings:
    """Configuration settings for torrent_dashboard.

    All settings are loaded from environment variables with sensible defaults.
    """

    BASE_URL: str
    API_TOKEN: str | None
    TIMEOUT_S: float
    ACTIVE_INTERVAL_S: float
    IDLE_INTERVAL_S: float
    RESTART_DEBOUNCE_S: float
    STATE_DIR: str
    HISTORY_DAYS: int

    @property
    def default_cadence(self) -> PollingCadence:
        return PollingCadence(
            active_interval_s=self.ACTIVE_INTERVAL_S,
            idle_interval_s=self.IDLE_INTERVAL_S,
        )


def _read_settings() -> Settings:
    """Read all configuration from environment variables.

    Returns:
        Settings object with all configuration values.

    Note:
        Invalid numeric values fall back to defaults; intervals must be
        positive to be accepted.
    """
    base_url = (os.environ.get("DASH_BASE_URL") or "http://localhost:3000").rstrip("/")
    token = os.environ.get("DASH_API_TOKEN") or None
    timeout = _float_env("DASH_TIMEOUT_S", 10.0)
    if timeout <= 0:
        timeout = 10.0

    active = _positive_interval(
        os.environ.get("DASH_ACTIVE_INTERVAL_S"), DEFAULT_ACTIVE_INTERVAL_S
    )
    idle = _positive_interval(
        os.environ.get("DASH_IDLE_INTERVAL_S"), DEFAULT_IDLE_INTERVAL_S
    )

    debounce = _float_env("DASH_RESTART_DEBOUNCE_S", 1.0)
    if debounce < 0:
        debounce = 1.0

    state_dir = os.environ.get("DASH_STATE_DIR") or "./data"
    history_days = _int_env("DASH_HISTORY_DAYS", 7)
    if history_days <= 0:
        history_days = 7

    return Settings(
        BASE_URL=base_url,
        API_TOKEN=token,
        TIMEOUT_S=timeout,
        ACTIVE_INTERVAL_S=active,
        IDLE_INTERVAL_S=idle,
        RESTART_DEBOUNCE_S=debounce,
        STATE_DIR=state_dir,
        HISTORY_DAYS=history_days,
    )


def cadence_from_settings(
    payload: object, defaults: PollingCadence | None = None
) -> PollingCadence:
    """Build a cadence from a settings endpoint payload.

    Both interval keys are optional; a missing or unusable value is
    replaced by the matching field of ``defaults``. The payload may carry
    the values at the top level or under a ``settings`` object.
    """
    defaults = defaults or PollingCadence()
    if not isinstance(payload, Mapping):
        return defaults
    source = payload.get("settings")
    if not isinstance(source, Mapping):
        source = payload
    return PollingCadence(
        active_interval_s=_positive_interval(
            source.get(ACTIVE_INTERVAL_KEY), defaults.active_interval_s
        ),
        idle_interval_s=_positive_interval(
            source.get(IDLE_INTERVAL_KEY), defaults.idle_interval_s
        ),
    )


settings = _read_settings()


def validate_settings(current: Settings | None = None) -> None:
    """Log warnings for configuration that is valid but probably unintended."""
    current = current or settings
    if current.API_TOKEN is None:
        logger.warning("DASH_API_TOKEN is not set; requests will be unauthenticated")
    if current.ACTIVE_INTERVAL_S > current.IDLE_INTERVAL_S:
        logger.warning(
            "Active interval (%ss) is longer than idle interval (%ss)",
            current.ACTIVE_INTERVAL_S,
            current.IDLE_INTERVAL_S,
        )
    if not current.BASE_URL.startswith(("http://", "https://")):
        logger.warning("DASH_BASE_URL has no http(s) scheme: %s", current.BASE_URL)
