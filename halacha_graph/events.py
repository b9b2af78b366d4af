"""
Structural events and time slices.

Each time slice holds an ordered list of events. The position of an event is
an ``EventRef`` (slice index, event index); refs are totally ordered first by
slice and then by event index, which is the notion of "instant" used by
every event-precision query.

Core classes:
    - EventRef: Totally ordered (slice_index, event_index) pair.
    - EventKind: The five structural event kinds.
    - PersonIntroduced, PersonDied, RelationshipAdded, RelationshipUpdated,
      RelationshipRemoved: The event variants.
    - EventIdentifier: Looks an event up by kind and subject.
    - TimeSlice: A labelled list of events.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Union


class EventKind(str, Enum):
    ADD_NODE = "addNode"
    DEATH = "death"
    ADD_EDGE = "addEdge"
    UPDATE_EDGE = "updateEdge"
    REMOVE_EDGE = "removeEdge"


@dataclass(frozen=True, order=True)
class EventRef:
    """A single instant on the timeline."""
    slice_index: int
    event_index: int

    def __str__(self) -> str:
        return f"{self.slice_index}:{self.event_index}"


@dataclass(frozen=True)
class PersonIntroduced:
    person_id: str
    kind: ClassVar[EventKind] = EventKind.ADD_NODE


@dataclass(frozen=True)
class PersonDied:
    person_id: str
    kind: ClassVar[EventKind] = EventKind.DEATH


@dataclass(frozen=True)
class RelationshipAdded:
    edge_id: str
    kind: ClassVar[EventKind] = EventKind.ADD_EDGE


@dataclass(frozen=True)
class RelationshipUpdated:
    edge_id: str
    changes: Dict[str, Any] = field(default_factory=dict, hash=False, compare=False)
    kind: ClassVar[EventKind] = EventKind.UPDATE_EDGE


@dataclass(frozen=True)
class RelationshipRemoved:
    edge_id: str
    kind: ClassVar[EventKind] = EventKind.REMOVE_EDGE


GraphEvent = Union[PersonIntroduced, PersonDied, RelationshipAdded, RelationshipUpdated, RelationshipRemoved]


def event_subject(event: GraphEvent) -> str:
    """Return the person id or edge id the event is about."""
    if isinstance(event, (PersonIntroduced, PersonDied)):
        return event.person_id
    return event.edge_id


def event_from_dict(data: Dict[str, Any]) -> GraphEvent:
    """
    Build an event from an authored mapping such as
    ``{"type": "addEdge", "edgeId": "e1"}``.
    """
    kind = EventKind(data["type"])
    if kind == EventKind.ADD_NODE:
        return PersonIntroduced(data["nodeId"])
    if kind == EventKind.DEATH:
        return PersonDied(data["nodeId"])
    if kind == EventKind.ADD_EDGE:
        return RelationshipAdded(data["edgeId"])
    if kind == EventKind.UPDATE_EDGE:
        return RelationshipUpdated(data["edgeId"], dict(data.get("changes") or {}))
    return RelationshipRemoved(data["edgeId"])


@dataclass(frozen=True)
class EventIdentifier:
    """
    Identifies an event by kind and subject.

    ``person_id`` is matched against node events and ``edge_id`` against edge
    events; an unset field matches anything.
    """
    kind: EventKind
    person_id: Optional[str] = None
    edge_id: Optional[str] = None

    def matches(self, event: GraphEvent) -> bool:
        if event.kind != self.kind:
            return False
        if isinstance(event, (PersonIntroduced, PersonDied)):
            return self.person_id is None or event.person_id == self.person_id
        return self.edge_id is None or event.edge_id == self.edge_id


@dataclass
class TimeSlice:
    label: str
    events: List[GraphEvent] = field(default_factory=list)
    id: str = ""
