"""Display ordering for the aggregated task list.

Nothing here mutates its input; each call returns a new list.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence

from .activity import has_throughput
from .utils import to_number

NUMERIC_KEYS = frozenset({"progress", "dlspeed", "upspeed", "ratio", "size"})
FILTER_MODES = ("active", "all")
ASC = "asc"
DESC = "desc"


def _field(task: Any, key: str) -> Any:
    if isinstance(task, Mapping):
        return task.get(key)
    getter = getattr(task, "get", None)
    if callable(getter):
        return getter(key)
    return getattr(task, key, None)


def filter_tasks(tasks: Iterable[Any], mode: str = "active") -> list[Any]:
    """Keep tasks with throughput for ``active``; any other mode keeps all."""
    if mode != "active":
        return list(tasks)
    return [t for t in tasks if has_throughput(t)]


def _sort_value(task: Any, key: str) -> float | str:
    value = _field(task, key)
    if key in NUMERIC_KEYS:
        return to_number(value)
    if value is None or value == "":
        return ""
    return str(value).lower()


def sort_tasks(tasks: Iterable[Any], key: str, direction: str = ASC) -> list[Any]:
    """Order tasks by ``key``; numeric keys compare as numbers, others as text.

    Any direction other than ``asc`` sorts descending.
    """
    return sorted(
        tasks, key=lambda t: _sort_value(t, key), reverse=direction != ASC
    )


@dataclass(frozen=True)
class SortConfig:
    key: str = "name"
    direction: str = ASC

    def request(self, key: str) -> "SortConfig":
        """Toggle direction on the same key; a new key starts ascending."""
        if key == self.key and self.direction == ASC:
            return SortConfig(key=key, direction=DESC)
        return SortConfig(key=key, direction=ASC)

    def apply(self, tasks: Sequence[Any]) -> list[Any]:
        return sort_tasks(tasks, self.key, self.direction)


def view(
    tasks: Sequence[Any], mode: str = "active", sort: SortConfig | None = None
) -> list[Any]:
    """Filter then sort, the order the dashboard table uses."""
    selected = filter_tasks(tasks, mode)
    if sort is None:
        return selected
    return sort.apply(selected)
