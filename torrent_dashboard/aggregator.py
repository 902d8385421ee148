"""Merge a multi-backend snapshot response into one task list.

A snapshot payload looks like::

    {
        "success": true,
        "stats": {"totalDownloaded": ..., "totalUploaded": ...,
                  "sessionDownloaded": ..., "sessionUploaded": ...},
        "clients": [
            {"clientName": "qb-1", "clientType": "qBittorrent",
             "torrents": [{"hash": ..., "name": ..., "dlspeed": ...}, ...]},
            ...
        ],
        "history": [...],
        "downloads": [...],
    }

Malformed backend blocks are skipped; a payload without a truthy
``success`` yields ``None`` so callers keep showing the previous state.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from .activity import has_throughput
from .models import AggregateSnapshot, AggregationResult, Task
from .utils import to_number

logger = logging.getLogger(__name__)

# States the backend itself counts as active
ACTIVE_STATES = frozenset({"downloading", "uploading", "stalledDL", "stalledUP"})

# qBittorrent reports 8640000 (100 days) for "no estimate"
_ETA_INFINITY_S = 8640000
_UNKNOWN = "Unknown"


def _first(record: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        val = record.get(key)
        if val is not None and val != "":
            return val
    return None


def _normalize_eta(value: object) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    eta = to_number(value, default=-1.0)
    if eta < 0 or eta >= _ETA_INFINITY_S:
        return None
    return eta


def _as_records(value: object) -> tuple[dict[str, object], ...]:
    if not isinstance(value, list):
        return ()
    return tuple(item for item in value if isinstance(item, dict))


def normalize_task(
    raw: Mapping[str, Any], client_name: str, client_type: str, index: int
) -> Task:
    """Build a Task from one backend record, degrading bad fields to defaults."""
    ident = _first(raw, "hash", "id", "info_hash", "hashString")
    name = _first(raw, "name")
    return Task(
        id=str(ident) if ident is not None else f"{client_name}:{index}",
        name=str(name) if name is not None else "",
        size=to_number(_first(raw, "size", "total_size")),
        progress=to_number(raw.get("progress")),
        dlspeed=to_number(raw.get("dlspeed")),
        upspeed=to_number(raw.get("upspeed")),
        ratio=to_number(raw.get("ratio")),
        state=str(raw.get("state") or "unknown"),
        client_name=client_name,
        client_type=client_type,
        eta_s=_normalize_eta(raw.get("eta")),
        downloaded=to_number(raw.get("downloaded")),
        uploaded=to_number(raw.get("uploaded")),
        raw=dict(raw),
    )


def merge_clients(clients: object) -> list[Task]:
    """Flatten backend blocks into tasks, in backend order then record order."""
    tasks: list[Task] = []
    if not isinstance(clients, list):
        if clients is not None:
            logger.warning("Snapshot clients is %s, not a list", type(clients).__name__)
        return tasks
    for pos, block in enumerate(clients):
        if not isinstance(block, Mapping):
            logger.debug("Skipping backend block %d: not an object", pos)
            continue
        records = block.get("torrents")
        if not isinstance(records, list):
            logger.debug("Skipping backend block %d: torrents is not a list", pos)
            continue
        client_name = str(_first(block, "clientName", "name") or _UNKNOWN)
        client_type = str(_first(block, "clientType", "kind", "type") or _UNKNOWN)
        for index, record in enumerate(records):
            if not isinstance(record, Mapping):
                continue
            tasks.append(normalize_task(record, client_name, client_type, index))
    return tasks


def _session_totals(
    stats: Mapping[str, Any], history: tuple[dict[str, object], ...]
) -> tuple[float, float]:
    """Return today's (downloaded, uploaded) bytes.

    The backend may report them in ``stats``; otherwise the newest history
    record (history is ordered oldest first, ending with today) is used.
    """
    down = _first(stats, "sessionDownloaded", "todayDownloaded")
    up = _first(stats, "sessionUploaded", "todayUploaded")
    if down is not None or up is not None:
        return to_number(down), to_number(up)
    if not history:
        return 0.0, 0.0
    today = history[-1]
    return (
        to_number(today.get("downloaded_bytes")),
        to_number(today.get("uploaded_bytes")),
    )


def summarize(
    tasks: list[Task],
    stats: object = None,
    history: tuple[dict[str, object], ...] = (),
) -> AggregateSnapshot:
    """Compute totals for ``tasks``; byte totals come from ``stats`` and ``history``."""
    stats = stats if isinstance(stats, Mapping) else {}
    session_down, session_up = _session_totals(stats, history)
    return AggregateSnapshot(
        total_download_speed=sum(t.dlspeed for t in tasks),
        total_upload_speed=sum(t.upspeed for t in tasks),
        total_downloaded=to_number(stats.get("totalDownloaded")),
        total_uploaded=to_number(stats.get("totalUploaded")),
        session_downloaded=session_down,
        session_uploaded=session_up,
        active_tasks=sum(
            1 for t in tasks if t.state in ACTIVE_STATES or has_throughput(t)
        ),
        total_tasks=len(tasks),
    )


def aggregate(payload: object) -> AggregationResult | None:
    """Merge one snapshot payload, or return None if it is unusable."""
    if not isinstance(payload, Mapping) or not payload.get("success"):
        logger.warning("Ignoring snapshot without success flag")
        return None
    tasks = merge_clients(payload.get("clients"))
    history = _as_records(payload.get("history"))
    return AggregationResult(
        tasks=tuple(tasks),
        snapshot=summarize(tasks, payload.get("stats"), history),
        history=history,
        today_downloads=_as_records(payload.get("downloads")),
    )
