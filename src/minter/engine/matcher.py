"""
Event Matcher - picks typed events out of an extrinsic's result.

Events emitted by a runtime are identified by their pallet (module) and
event name; the matcher finds the first one fitting a descriptor.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Optional, Tuple


class EventNotFoundError(Exception):
    """Raised when an expected event is missing from an extrinsic's events."""

    def __init__(self, descriptor: "EventDescriptor"):
        super().__init__(f"unable to find event {descriptor}")
        self.descriptor = descriptor


@dataclass(frozen=True)
class ChainEvent:
    """
    An event emitted while executing an extrinsic.

    Attributes:
        module: Pallet that emitted the event (e.g. "MultiTokens")
        name: Event name (e.g. "CollectionCreated")
        data: Event fields, in declaration order
        extrinsic_index: Index of the extrinsic in its block, if known
    """

    module: str
    name: str
    data: Tuple[Any, ...] = ()
    extrinsic_index: Optional[int] = None

    def __str__(self) -> str:
        return f"{self.module}.{self.name}"


@dataclass(frozen=True)
class EventDescriptor:
    """Which (module, name) pair to look for."""

    module: str
    name: str

    def matches(self, event: ChainEvent) -> bool:
        return event.module == self.module and event.name == self.name

    def __str__(self) -> str:
        return f"{self.module}.{self.name}"


COLLECTION_CREATED = EventDescriptor("MultiTokens", "CollectionCreated")
TOKEN_CREATED = EventDescriptor("MultiTokens", "TokenCreated")
EXTRINSIC_SUCCESS = EventDescriptor("System", "ExtrinsicSuccess")
EXTRINSIC_FAILED = EventDescriptor("System", "ExtrinsicFailed")


def find_event(
    events: Iterable[ChainEvent],
    descriptor: EventDescriptor,
) -> Optional[ChainEvent]:
    """
    Return the first event matching the descriptor.

    Args:
        events: Events in emission order
        descriptor: Event to look for

    Returns:
        The matching event, or None if there is none
    """
    return next((event for event in events if descriptor.matches(event)), None)


def find_event_or_raise(
    events: Iterable[ChainEvent],
    descriptor: EventDescriptor,
) -> ChainEvent:
    """
    Return the first event matching the descriptor.

    Raises:
        EventNotFoundError: If no event matches
    """
    event = find_event(events, descriptor)
    if event is None:
        raise EventNotFoundError(descriptor)
    return event
