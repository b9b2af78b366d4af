"""
The temporal genealogical graph.

Holds the global definitions of people and relationships together with the
ordered time slices whose events build the graph up. The per-slice view of
who exists and which edges hold is produced by a state resolver (see
``halacha_graph.resolver``).
"""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Dict, Iterator, List, Literal, Optional, Tuple

from halacha_graph.events import (
    EventRef,
    GraphEvent,
    PersonDied,
    PersonIntroduced,
    RelationshipUpdated,
    TimeSlice,
)
from halacha_graph.person import Person
from halacha_graph.relationship import Relationship, RelationshipType

logger = logging.getLogger(__name__)

_TYPE_VALUES = frozenset(t.value for t in RelationshipType)


@dataclass(frozen=True)
class GraphIssue:
    issue_type: str
    severity: Literal["info", "warning", "error"]
    message: str
    person_id: Optional[str] = None
    edge_id: Optional[str] = None


@dataclass
class TemporalGraph:
    """
    People, relationships and the time slices that order them.

    Attributes:
        nodes: Person definitions by id.
        edges: Relationship definitions by id (their state when first added).
        slices: Ordered time slices.
        title: Optional title.
    """
    nodes: Dict[str, Person] = field(default_factory=dict)
    edges: Dict[str, Relationship] = field(default_factory=dict)
    slices: List[TimeSlice] = field(default_factory=list)
    title: str = ""

    @property
    def slice_count(self) -> int:
        return len(self.slices)

    def person(self, person_id: str) -> Optional[Person]:
        return self.nodes.get(person_id)

    def relationship(self, edge_id: str) -> Optional[Relationship]:
        return self.edges.get(edge_id)

    def timeline(self) -> Iterator[Tuple[EventRef, GraphEvent]]:
        """Yield every event with its position, in timeline order."""
        for slice_index, time_slice in enumerate(self.slices):
            for event_index, event in enumerate(time_slice.events):
                yield EventRef(slice_index, event_index), event

    def events_for_person(self, person_id: str) -> List[Tuple[EventRef, GraphEvent]]:
        return [
            (ref, event) for ref, event in self.timeline()
            if isinstance(event, (PersonIntroduced, PersonDied)) and event.person_id == person_id
        ]

    def events_for_edge(self, edge_id: str) -> List[Tuple[EventRef, GraphEvent]]:
        return [
            (ref, event) for ref, event in self.timeline()
            if getattr(event, "edge_id", None) == edge_id
        ]

    def validate(self) -> List[GraphIssue]:
        """
        Check the structural invariants of the graph.

        Returns:
            List of issues found; an empty list means the graph is consistent.
        """
        issues: List[GraphIssue] = []

        for person in self.nodes.values():
            if person.death_index is not None and person.death_index < person.introduced_index:
                issues.append(GraphIssue(
                    issue_type="death_before_introduction",
                    severity="error",
                    message=f"{person} dies at slice {person.death_index} before being introduced at {person.introduced_index}",
                    person_id=person.id,
                ))

        for edge in self.edges.values():
            for endpoint in (edge.source_id, edge.target_id):
                person = self.nodes.get(endpoint)
                if person is None:
                    issues.append(GraphIssue(
                        issue_type="missing_endpoint",
                        severity="error",
                        message=f"Edge {edge.id} references unknown person {endpoint}",
                        person_id=endpoint,
                        edge_id=edge.id,
                    ))
                elif edge.introduced_index < person.introduced_index:
                    issues.append(GraphIssue(
                        issue_type="edge_before_endpoint",
                        severity="error",
                        message=f"Edge {edge.id} is introduced at {edge.introduced_index} before {person} at {person.introduced_index}",
                        person_id=endpoint,
                        edge_id=edge.id,
                    ))

        for ref, event in self.timeline():
            if isinstance(event, (PersonIntroduced, PersonDied)):
                if event.person_id not in self.nodes:
                    issues.append(GraphIssue(
                        issue_type="unknown_person_event",
                        severity="warning",
                        message=f"Event {event.kind.value} at {ref} references unknown person {event.person_id}",
                        person_id=event.person_id,
                    ))
            elif event.edge_id not in self.edges:
                issues.append(GraphIssue(
                    issue_type="unknown_edge_event",
                    severity="warning",
                    message=f"Event {event.kind.value} at {ref} references unknown edge {event.edge_id}",
                    edge_id=event.edge_id,
                ))
            elif isinstance(event, RelationshipUpdated) and "type" in event.changes:
                if event.changes["type"] not in _TYPE_VALUES:
                    issues.append(GraphIssue(
                        issue_type="unknown_relationship_type",
                        severity="warning",
                        message=f"Update at {ref} sets edge {event.edge_id} to unknown type '{event.changes['type']}'",
                        edge_id=event.edge_id,
                    ))

        if issues:
            logger.debug(f"Graph validation found {len(issues)} issue(s)")
        return issues
