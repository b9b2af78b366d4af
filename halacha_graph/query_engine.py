"""
Read-only queries over a temporal genealogical graph.

Two granularities are offered:

    - Slice level: questions about the resolved state at the end of a slice
      (who are X's parents, spouses, siblings at slice i).
    - Event level: questions about the instant of a single event, where two
      events in the same slice are ordered by their event index (was X alive
      when Y died, was X married when E happened).

Core classes:
    - GraphQueryEngine: All relationship, liveness and ordering queries.
    - RelationshipTiming: Start and end events of an edge.

Example:
    engine = GraphQueryEngine(graph)
    death = engine.find_death_event("reuven")
    engine.was_alive_when("shimon", death)
"""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass
import logging
from typing import Dict, Iterable, List, Literal, Optional, Set, Tuple

from halacha_graph.events import (
    EventIdentifier,
    EventKind,
    EventRef,
    GraphEvent,
    PersonDied,
    PersonIntroduced,
    RelationshipAdded,
    RelationshipRemoved,
    RelationshipUpdated,
    event_subject,
)
from halacha_graph.paths import PathStep, RelationshipPath, StepKind
from halacha_graph.person import Person
from halacha_graph.relationship import (
    ENDING_TYPES,
    Relationship,
    RelationshipType,
    SPOUSAL_TYPES,
    parse_relationship_type,
)
from halacha_graph.resolver import ResolvedState, StateResolver, resolve_all_slices
from halacha_graph.temporal_graph import TemporalGraph

logger = logging.getLogger(__name__)

EventOrder = Literal["before", "after", "same"]

# Conceptual event names accepted by find_person_event
PERSON_EVENT_TYPES = ("death", "birth", "marriage", "divorce", "yibum", "chalitzah")

_EDGE_EVENT_TYPES: Dict[str, Tuple[RelationshipType, ...]] = {
    "marriage": (RelationshipType.ERUSIN, RelationshipType.NISUIN),
    "divorce": (RelationshipType.DIVORCE,),
    "yibum": (RelationshipType.YIBUM,),
    "chalitzah": (RelationshipType.CHALITZAH,),
}

Neighbor = Tuple[Person, Optional[str]]


@dataclass(frozen=True)
class RelationshipTiming:
    started: EventRef
    ended: Optional[EventRef] = None


class GraphQueryEngine:
    """
    Query engine over a temporal graph and its resolved per-slice states.

    Attributes:
        graph: The temporal graph.
        states: Resolved state for each slice, index aligned with graph.slices.
    """

    def __init__(
        self,
        graph: TemporalGraph,
        states: Optional[List[ResolvedState]] = None,
        resolver: Optional[StateResolver] = None,
    ):
        self.graph = graph
        if states is None:
            states = (resolver or resolve_all_slices)(graph)
        self.states: List[ResolvedState] = states

        self._first_event: Dict[Tuple[EventKind, str], EventRef] = {}
        self._edge_history: Dict[str, List[Tuple[EventRef, GraphEvent]]] = {}
        for ref, event in graph.timeline():
            self._first_event.setdefault((event.kind, event_subject(event)), ref)
            if not isinstance(event, (PersonIntroduced, PersonDied)):
                self._edge_history.setdefault(event.edge_id, []).append((ref, event))
        for edge_id in graph.edges:
            self._edge_history.setdefault(edge_id, [])

        self._historical_spouses: Dict[Tuple[str, int], List[Neighbor]] = {}

    # ------------------------------------------------------------------
    # Slice-level queries
    # ------------------------------------------------------------------

    def state_at(self, index: int) -> Optional[ResolvedState]:
        """Resolved state at a slice, or None when the index is out of range."""
        if 0 <= index < len(self.states):
            return self.states[index]
        return None

    def relationships_of(self, person_id: str, index: int) -> List[Relationship]:
        state = self.state_at(index)
        if state is None:
            return []
        return [edge for edge in state.edges.values() if edge.involves(person_id)]

    def relationships_between(self, a: str, b: str, index: int) -> List[Relationship]:
        state = self.state_at(index)
        if state is None:
            return []
        return [edge for edge in state.edges.values() if edge.connects(a, b)]

    def parent_links(self, person_id: str, index: int) -> List[Neighbor]:
        state = self.state_at(index)
        if state is None:
            return []
        return self._unique([
            (state.nodes[edge.source_id], edge.id)
            for edge in state.edges.values()
            if edge.type == RelationshipType.PARENT_CHILD
            and edge.target_id == person_id
            and edge.source_id in state.nodes
        ])

    def child_links(self, person_id: str, index: int) -> List[Neighbor]:
        state = self.state_at(index)
        if state is None:
            return []
        return self._unique([
            (state.nodes[edge.target_id], edge.id)
            for edge in state.edges.values()
            if edge.type == RelationshipType.PARENT_CHILD
            and edge.source_id == person_id
            and edge.target_id in state.nodes
        ])

    def sibling_links(self, person_id: str, index: int) -> List[Neighbor]:
        """Siblings share at least one parent; the person is never their own sibling."""
        siblings = []
        for parent, _ in self.parent_links(person_id, index):
            for child, _ in self.child_links(parent.id, index):
                if child.id != person_id:
                    siblings.append((child, None))
        return self._unique(siblings)

    def spouse_links(self, person_id: str, index: int) -> List[Neighbor]:
        """Active spouses: a spousal edge in the state and both parties alive."""
        state = self.state_at(index)
        if state is None or not self.is_alive(person_id, index):
            return []
        spouses = []
        for edge in state.edges.values():
            if edge.type not in SPOUSAL_TYPES or not edge.involves(person_id):
                continue
            other_id = edge.other_party(person_id)
            if other_id in state.nodes and self.is_alive(other_id, index):
                spouses.append((state.nodes[other_id], edge.id))
        return self._unique(spouses)

    def historical_spouse_links(self, person_id: str, index: int) -> List[Neighbor]:
        """
        Everyone who was ever a spouse of the person up to ``index``.

        Includes spouses who have since died and marriages since ended by
        divorce, in order of first appearance.
        """
        last = min(index, len(self.states) - 1)
        if last < 0:
            return []
        key = (person_id, last)
        if key in self._historical_spouses:
            return self._historical_spouses[key]

        seen: Dict[str, Optional[str]] = {}
        for state in self.states[:last + 1]:
            for edge in state.edges.values():
                if edge.type in SPOUSAL_TYPES and edge.involves(person_id):
                    seen.setdefault(edge.other_party(person_id), edge.id)
        links = [
            (self.graph.nodes[other_id], edge_id)
            for other_id, edge_id in seen.items()
            if other_id in self.graph.nodes
        ]
        self._historical_spouses[key] = links
        return links

    def neighbors(self, person_id: str, kind: StepKind, index: int, historical_spouse: bool = False) -> List[Neighbor]:
        """People one step of ``kind`` away from the person, with the edge traversed."""
        kind = StepKind(kind)
        if kind == StepKind.PARENT:
            return self.parent_links(person_id, index)
        if kind == StepKind.CHILD:
            return self.child_links(person_id, index)
        if kind == StepKind.SIBLING:
            return self.sibling_links(person_id, index)
        if historical_spouse:
            return self.historical_spouse_links(person_id, index)
        return self.spouse_links(person_id, index)

    def parents_of(self, person_id: str, index: int) -> List[Person]:
        return [person for person, _ in self.parent_links(person_id, index)]

    def children_of(self, person_id: str, index: int) -> List[Person]:
        return [person for person, _ in self.child_links(person_id, index)]

    def siblings_of(self, person_id: str, index: int) -> List[Person]:
        return [person for person, _ in self.sibling_links(person_id, index)]

    def brothers_of(self, person_id: str, index: int) -> List[Person]:
        return [person for person in self.siblings_of(person_id, index) if person.is_male]

    def spouses_of(self, person_id: str, index: int) -> List[Person]:
        return [person for person, _ in self.spouse_links(person_id, index)]

    def historical_spouses_of(self, person_id: str, index: int) -> List[Person]:
        return [person for person, _ in self.historical_spouse_links(person_id, index)]

    def is_married(self, person_id: str, index: int) -> bool:
        return bool(self.spouse_links(person_id, index))

    def has_children(self, person_id: str, index: int) -> bool:
        return bool(self.child_links(person_id, index))

    def has_living_children(self, person_id: str, index: int) -> bool:
        return any(self.is_alive(child.id, index) for child in self.children_of(person_id, index))

    def is_alive(self, person_id: str, index: int) -> bool:
        """False before introduction, and from the death slice onwards."""
        person = self.graph.nodes.get(person_id)
        if person is None:
            return False
        return person.is_alive_at(index)

    # ------------------------------------------------------------------
    # Event-level queries
    # ------------------------------------------------------------------

    def find_event(self, identifier: EventIdentifier) -> Optional[EventRef]:
        """First event matching the identifier, scanning the timeline in order."""
        subject = identifier.person_id if identifier.kind in (EventKind.ADD_NODE, EventKind.DEATH) else identifier.edge_id
        if subject is not None:
            return self._first_event.get((identifier.kind, subject))
        for ref, event in self.graph.timeline():
            if identifier.matches(event):
                return ref
        return None

    def find_death_event(self, person_id: str) -> Optional[EventRef]:
        return self._first_event.get((EventKind.DEATH, person_id))

    def find_introduction_event(self, person_id: str) -> Optional[EventRef]:
        return self._first_event.get((EventKind.ADD_NODE, person_id))

    def find_person_event(self, event_type: str, person_id: str) -> Optional[EventRef]:
        """
        Locate a conceptual event in a person's life.

        ``death`` and ``birth`` map to the death and introduction events.
        ``marriage``, ``divorce``, ``yibum`` and ``chalitzah`` map to the first
        edge event that adds an edge of that type involving the person, or
        updates such an edge into that type.

        Returns:
            The event position, or None for unknown types and absent events.
        """
        if event_type == "death":
            return self.find_death_event(person_id)
        if event_type == "birth":
            return self.find_introduction_event(person_id)
        edge_types = _EDGE_EVENT_TYPES.get(event_type)
        if edge_types is None:
            logger.debug(f"Unsupported person event type '{event_type}'")
            return None

        for ref, event in self.graph.timeline():
            if isinstance(event, RelationshipAdded):
                edge = self.graph.edges.get(event.edge_id)
                if edge is not None and edge.involves(person_id) and edge.type in edge_types:
                    return ref
            elif isinstance(event, RelationshipUpdated):
                edge = self.graph.edges.get(event.edge_id)
                if "type" not in event.changes or edge is None or not edge.involves(person_id):
                    continue
                if parse_relationship_type(event.changes["type"], f"update of edge {edge.id}") in edge_types:
                    return ref
        return None

    def was_alive_when(self, person_id: str, ref: EventRef) -> bool:
        """
        Event-precision liveness.

        The person must be introduced by the event (a same-slice introduction
        must come first) and must not have died before it. A death in the
        event's own slice only counts if its event comes strictly later.
        """
        person = self.graph.nodes.get(person_id)
        if person is None:
            return False
        if person.introduced_index > ref.slice_index:
            return False
        if person.introduced_index == ref.slice_index:
            introduced = self.find_introduction_event(person_id)
            if introduced is not None and introduced.slice_index == ref.slice_index and introduced.event_index > ref.event_index:
                return False

        if person.death_index is None or person.death_index > ref.slice_index:
            return True
        if person.death_index < ref.slice_index:
            return False

        death = self.find_death_event(person_id)
        if death is None:
            return True
        return ref.event_index < death.event_index

    def was_alive_when_person_died(self, person_id: str, deceased_id: str) -> bool:
        death = self.find_death_event(deceased_id)
        if death is None:
            return False
        return self.was_alive_when(person_id, death)

    def relationship_state_when(self, edge_id: str, ref: EventRef) -> Optional[Relationship]:
        """
        The edge as it stood immediately before the event at ``ref``.

        Replays the edge's own events strictly earlier than ``ref``. An edge
        with no add event in the timeline counts from its introduced slice.
        """
        history = self._edge_history.get(edge_id)
        if history is None:
            return None

        current: Optional[Relationship] = None
        definition = self.graph.edges.get(edge_id)
        has_add = any(isinstance(event, RelationshipAdded) for _, event in history)
        if not has_add and definition is not None and definition.introduced_index < ref.slice_index:
            current = definition.copy()

        for event_ref, event in history:
            if event_ref >= ref:
                break
            if isinstance(event, RelationshipAdded):
                current = definition.copy() if definition is not None else None
            elif isinstance(event, RelationshipUpdated) and current is not None:
                current = current.with_changes(event.changes)
            elif isinstance(event, RelationshipRemoved):
                current = None
        return current

    def relationships_when(self, person_id: str, ref: EventRef) -> List[Relationship]:
        relationships = []
        for edge_id in self._edge_history:
            edge = self.relationship_state_when(edge_id, ref)
            if edge is not None and edge.involves(person_id):
                relationships.append(edge)
        return relationships

    def marriages_when(self, person_id: str, ref: EventRef) -> List[Relationship]:
        """Spousal edges in force at the event whose other party was alive at it."""
        return [
            edge for edge in self.relationships_when(person_id, ref)
            if edge.type in SPOUSAL_TYPES and self.was_alive_when(edge.other_party(person_id), ref)
        ]

    def spouses_when(self, person_id: str, ref: EventRef) -> List[Person]:
        spouses = []
        for edge in self.marriages_when(person_id, ref):
            spouse = self.graph.nodes.get(edge.other_party(person_id))
            if spouse is not None and spouse not in spouses:
                spouses.append(spouse)
        return spouses

    def was_married_when(self, person_id: str, ref: EventRef) -> bool:
        return bool(self.marriages_when(person_id, ref))

    def living_children_when(self, person_id: str, ref: EventRef) -> List[Person]:
        children = []
        for edge in self.relationships_when(person_id, ref):
            if edge.type != RelationshipType.PARENT_CHILD or edge.source_id != person_id:
                continue
            child = self.graph.nodes.get(edge.target_id)
            if child is not None and child not in children and self.was_alive_when(child.id, ref):
                children.append(child)
        return children

    def had_living_children_when(self, person_id: str, ref: EventRef) -> bool:
        return bool(self.living_children_when(person_id, ref))

    def relationship_when(self, a: str, b: str, ref: EventRef) -> Optional[Relationship]:
        for edge in self.relationships_when(a, ref):
            if edge.connects(a, b):
                return edge
        return None

    def relationship_existed_when(
        self, a: str, b: str, ref: EventRef, relationship_type: Optional[RelationshipType] = None
    ) -> bool:
        for edge in self.relationships_when(a, ref):
            if edge.connects(a, b) and (relationship_type is None or edge.type == RelationshipType(relationship_type)):
                return True
        return False

    # ------------------------------------------------------------------
    # Lifetimes and ordering
    # ------------------------------------------------------------------

    def lifetimes_overlap(self, a: str, b: str) -> bool:
        """True iff [introduction, death) of A intersects that of B."""
        person_a = self.graph.nodes.get(a)
        person_b = self.graph.nodes.get(b)
        if person_a is None or person_b is None:
            return False
        start = max(person_a.introduced_index, person_b.introduced_index)
        ends = [p.death_index for p in (person_a, person_b) if p.death_index is not None]
        if not ends:
            return True
        return start < min(ends)

    def was_alive_during(self, person_id: str, start_index: int, end_index: int) -> bool:
        person = self.graph.nodes.get(person_id)
        if person is None:
            return False
        if person.introduced_index > end_index:
            return False
        return person.death_index is None or person.death_index > start_index

    @staticmethod
    def event_order(first: EventRef, second: EventRef) -> EventOrder:
        if first < second:
            return "before"
        if first > second:
            return "after"
        return "same"

    def happened_before(self, first: EventIdentifier, second: EventIdentifier) -> Optional[bool]:
        """None when either event cannot be found."""
        first_ref = self.find_event(first)
        second_ref = self.find_event(second)
        if first_ref is None or second_ref is None:
            return None
        return first_ref < second_ref

    def relationship_timing(self, edge_id: str) -> Optional[RelationshipTiming]:
        """
        Start and end events of an edge.

        The edge ends at its removal or at an update turning it into a
        divorce or release; None if the edge was never added.
        """
        started: Optional[EventRef] = None
        for ref, event in self._edge_history.get(edge_id, []):
            if isinstance(event, RelationshipAdded):
                if started is None:
                    started = ref
            elif started is None:
                continue
            elif isinstance(event, RelationshipRemoved):
                return RelationshipTiming(started, ref)
            elif isinstance(event, RelationshipUpdated):
                if "type" not in event.changes:
                    continue
                if parse_relationship_type(event.changes["type"], f"update of edge {edge_id}") in ENDING_TYPES:
                    return RelationshipTiming(started, ref)
        if started is None:
            return None
        return RelationshipTiming(started)

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def find_relationship_path(self, a: str, b: str, index: int, max_depth: int = 6) -> Optional[RelationshipPath]:
        """
        Shortest path of parent/child/sibling/spouse steps from A to B.

        Returns:
            RelationshipPath, an empty path when a == b, or None if B is not
            reachable within ``max_depth`` steps.
        """
        if a == b:
            return RelationshipPath.from_steps([])
        state = self.state_at(index)
        if state is None or a not in state.nodes or b not in state.nodes:
            return None

        queue = deque([(a, [])])
        visited: Set[str] = {a}
        while queue:
            current, steps = queue.popleft()
            if len(steps) >= max_depth:
                continue
            for kind in (StepKind.SPOUSE, StepKind.PARENT, StepKind.CHILD, StepKind.SIBLING):
                for person, edge_id in self.neighbors(current, kind, index):
                    if person.id in visited:
                        continue
                    path = steps + [PathStep(kind, person.id, edge_id, person.gender)]
                    if person.id == b:
                        return RelationshipPath.from_steps(path)
                    visited.add(person.id)
                    queue.append((person.id, path))
        return None

    @staticmethod
    def _unique(links: Iterable[Neighbor]) -> List[Neighbor]:
        seen: Set[str] = set()
        unique = []
        for person, edge_id in links:
            if person.id not in seen:
                seen.add(person.id)
                unique.append((person, edge_id))
        return unique
