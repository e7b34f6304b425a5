"""
Engine module.

Pure planning and matching logic: no I/O.
"""

from minter.engine.matcher import (
    ChainEvent,
    EventDescriptor,
    EventNotFoundError,
    find_event,
    find_event_or_raise,
)
from minter.engine.planner import BatchPlanEntry, plan_batches

__all__ = [
    "ChainEvent",
    "EventDescriptor",
    "EventNotFoundError",
    "find_event",
    "find_event_or_raise",
    "BatchPlanEntry",
    "plan_batches",
]
