"""Entrypoint for running the dashboard monitor from the package.

Signals stand in for page visibility when there is no browser:
SIGUSR1 hides, SIGUSR2 shows, SIGHUP reloads the cadence settings and
SIGINT/SIGTERM stop the monitor.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys

from . import config
from .api import DashboardApi
from .logger import setup_logging
from .monitor import DashboardMonitor
from .storage import FileStorage
from .utils import fmt_bytes, fmt_eta, fmt_speed

logger = logging.getLogger(__name__)


def build_monitor(api: DashboardApi, settings: config.Settings) -> DashboardMonitor:
    return DashboardMonitor(
        api,
        storage=FileStorage(settings.STATE_DIR),
        default_cadence=settings.default_cadence,
        restart_debounce_s=settings.RESTART_DEBOUNCE_S,
    )


def log_summary(monitor: DashboardMonitor) -> None:
    snap = monitor.snapshot
    logger.info(
        "%d/%d active | down %s | up %s | today %s down, %s up | total %s down, %s up",
        snap.active_tasks,
        snap.total_tasks,
        fmt_speed(snap.total_download_speed),
        fmt_speed(snap.total_upload_speed),
        fmt_bytes(snap.session_downloaded),
        fmt_bytes(snap.session_uploaded),
        fmt_bytes(snap.total_downloaded),
        fmt_bytes(snap.total_uploaded),
    )
    if not logger.isEnabledFor(logging.DEBUG):
        return
    for task in monitor.view("active", "dlspeed", "desc"):
        logger.debug(
            "  [%s] %s %.1f%% down %s up %s eta %s",
            task.client_name,
            task.name,
            task.progress * 100,
            fmt_speed(task.dlspeed),
            fmt_speed(task.upspeed),
            fmt_eta(task.eta_s),
        )


def _install_signal_handlers(
    loop: asyncio.AbstractEventLoop, monitor: DashboardMonitor, stop: asyncio.Event
) -> None:
    if sys.platform == "win32":
        return

    def _reload() -> None:
        asyncio.ensure_future(monitor.reload_cadence())

    loop.add_signal_handler(signal.SIGINT, stop.set)
    loop.add_signal_handler(signal.SIGTERM, stop.set)
    loop.add_signal_handler(signal.SIGUSR1, monitor.visibility.hide)
    loop.add_signal_handler(signal.SIGUSR2, monitor.visibility.show)
    loop.add_signal_handler(signal.SIGHUP, _reload)


async def serve(settings: config.Settings) -> None:
    stop = asyncio.Event()
    async with DashboardApi.from_settings(settings) as api:
        monitor = build_monitor(api, settings)
        monitor.subscribe(log_summary)
        _install_signal_handlers(asyncio.get_running_loop(), monitor, stop)
        try:
            await monitor.start()
            await stop.wait()
        finally:
            logger.info("Shutting down")
            monitor.close()
            await monitor.wait_closed()


def run() -> None:
    setup_logging()
    config.validate_settings()
    logger.info("Starting torrent_dashboard against %s", config.settings.BASE_URL)
    try:
        asyncio.run(serve(config.settings))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
