"""Dataclasses shared across the engine."""

from .cadence import PollingCadence
from .snapshot import AggregateSnapshot, AggregationResult
from .sample import SpeedSample
from .task import Task

__all__ = [
    "AggregateSnapshot",
    "AggregationResult",
    "PollingCadence",
    "SpeedSample",
    "Task",
]
