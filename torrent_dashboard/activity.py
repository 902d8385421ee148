"""Activity classification used to pick the polling cadence."""

from __future__ import annotations

from typing import Iterable, Mapping

from .models import Task
from .utils import to_number


def _speed(task: Task | Mapping[str, object], key: str) -> float:
    if isinstance(task, Task):
        return to_number(getattr(task, key))
    if isinstance(task, Mapping):
        return to_number(task.get(key))
    return 0.0


def has_throughput(task: Task | Mapping[str, object]) -> bool:
    return _speed(task, "dlspeed") != 0 or _speed(task, "upspeed") != 0


def is_active(tasks: Iterable[Task | Mapping[str, object]]) -> bool:
    """Return True if any task reports nonzero download or upload speed."""
    return any(has_throughput(t) for t in tasks)


def activity_key(tasks: Iterable[Task | Mapping[str, object]]) -> tuple[bool, bool]:
    """Return (has_tasks, active): the inputs that decide the cadence."""
    items = list(tasks)
    return bool(items), is_active(items)
