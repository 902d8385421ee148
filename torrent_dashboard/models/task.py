"""Unified task record produced by the aggregator."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Task:
    """One download item reported by a backend.

    ``eta_s`` is ``None`` when the backend reports no bounded estimate.
    ``raw`` keeps the backend record so presentation code can reach fields
    this model does not name.
    """

    id: str
    name: str
    size: float
    progress: float
    dlspeed: float
    upspeed: float
    ratio: float
    state: str
    client_name: str
    client_type: str
    eta_s: float | None = None
    downloaded: float = 0.0
    uploaded: float = 0.0
    raw: dict[str, object] = field(default_factory=dict, compare=False, repr=False)

    def get(self, key: str, default: object = None) -> object:
        """Look up a field by model name or by backend record key."""
        if key in _FIELD_ALIASES:
            return getattr(self, _FIELD_ALIASES[key])
        if key in self.raw:
            return self.raw[key]
        return default


_FIELD_ALIASES: dict[str, str] = {
    "id": "id",
    "hash": "id",
    "name": "name",
    "size": "size",
    "progress": "progress",
    "dlspeed": "dlspeed",
    "upspeed": "upspeed",
    "ratio": "ratio",
    "state": "state",
    "eta": "eta_s",
    "eta_s": "eta_s",
    "downloaded": "downloaded",
    "uploaded": "uploaded",
    "clientName": "client_name",
    "client_name": "client_name",
    "clientType": "client_type",
    "client_type": "client_type",
}
