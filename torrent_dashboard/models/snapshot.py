"""Aggregate snapshot dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field

from .task import Task


@dataclass(frozen=True)
class AggregateSnapshot:
    total_download_speed: float = 0.0
    total_upload_speed: float = 0.0
    total_downloaded: float = 0.0
    total_uploaded: float = 0.0
    session_downloaded: float = 0.0
    session_uploaded: float = 0.0
    active_tasks: int = 0
    total_tasks: int = 0


@dataclass(frozen=True)
class AggregationResult:
    """Output of one successful merge of a snapshot response."""

    tasks: tuple[Task, ...] = ()
    snapshot: AggregateSnapshot = field(default_factory=AggregateSnapshot)
    history: tuple[dict[str, object], ...] = ()
    today_downloads: tuple[dict[str, object], ...] = ()
