"""
Fluent builder for temporal graphs.

Builds a graph slice by slice by naming people instead of wiring events by
hand. Every call appends the matching event to the current slice.

Example:
    builder = ScenarioBuilder("Childless death")
    builder.add_person("Reuven", "male")
    builder.add_sibling("Reuven", "Shimon", "male")
    builder.add_person("Rochel", "female")
    builder.marry("Reuven", "Rochel")
    builder.next_slice("Reuven dies")
    builder.die("Reuven")
    graph = builder.build()
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional

from halacha_graph.events import (
    PersonDied,
    PersonIntroduced,
    RelationshipAdded,
    RelationshipRemoved,
    RelationshipUpdated,
    TimeSlice,
)
from halacha_graph.person import Gender, Person
from halacha_graph.relationship import Relationship, RelationshipType, SPOUSAL_TYPES
from halacha_graph.temporal_graph import TemporalGraph

logger = logging.getLogger(__name__)


class ScenarioBuilder:
    """
    Builds a TemporalGraph from named people and family events.

    People are referred to by name; ids are derived from the names.
    """

    def __init__(self, title: str = "", first_slice_label: str = "Initial"):
        self.title = title
        self._nodes: Dict[str, Person] = {}
        self._edges: Dict[str, Relationship] = {}
        self._current_types: Dict[str, RelationshipType] = {}
        self._slices: List[TimeSlice] = [TimeSlice(label=first_slice_label, id="slice-0")]
        self._ids_by_name: Dict[str, str] = {}
        self._edge_counter = 0

    @property
    def current_index(self) -> int:
        return len(self._slices) - 1

    def person_id(self, name: str) -> str:
        """Return the id for a named person; raises ValueError if unknown."""
        if name not in self._ids_by_name:
            raise ValueError(f"Unknown person '{name}'")
        return self._ids_by_name[name]

    def person_ids(self) -> Dict[str, str]:
        return dict(self._ids_by_name)

    def _emit(self, event) -> None:
        self._slices[-1].events.append(event)

    def add_person(self, name: str, gender: str) -> str:
        if name in self._ids_by_name:
            raise ValueError(f"Person '{name}' already exists")
        person_id = name.lower().replace(" ", "-")
        while person_id in self._nodes:
            person_id = f"{person_id}-{len(self._nodes)}"
        self._nodes[person_id] = Person(person_id, Gender.coerce(gender), self.current_index, name=name)
        self._ids_by_name[name] = person_id
        self._emit(PersonIntroduced(person_id))
        return person_id

    def _add_edge(self, edge_type: RelationshipType, source_id: str, target_id: str, hidden: bool = False) -> str:
        self._edge_counter += 1
        edge_id = f"e{self._edge_counter}"
        self._edges[edge_id] = Relationship(
            id=edge_id,
            type=edge_type,
            source_id=source_id,
            target_id=target_id,
            introduced_index=self.current_index,
            hidden=hidden,
        )
        self._current_types[edge_id] = edge_type
        self._emit(RelationshipAdded(edge_id))
        return edge_id

    def _parents_of(self, person_id: str) -> List[str]:
        return [
            edge.source_id for edge_id, edge in self._edges.items()
            if self._current_types[edge_id] == RelationshipType.PARENT_CHILD and edge.target_id == person_id
        ]

    def add_sibling(self, existing: str, name: str, gender: str) -> str:
        """
        Add a sibling of an existing person.

        The new person is linked to every parent of the existing one. When
        the existing person has no parents, an implicit father is created so
        the two share a parent.
        """
        existing_id = self.person_id(existing)
        parent_ids = self._parents_of(existing_id)
        if not parent_ids:
            parent_name = f"_parent_of_{existing}"
            parent_id = self.add_person(parent_name, Gender.MALE)
            self._add_edge(RelationshipType.PARENT_CHILD, parent_id, existing_id, hidden=True)
            parent_ids = [parent_id]

        sibling_id = self.add_person(name, gender)
        for parent_id in parent_ids:
            self._add_edge(RelationshipType.PARENT_CHILD, parent_id, sibling_id, hidden=True)
        return sibling_id

    def add_child(self, parent1: str, parent2: Optional[str], name: str, gender: str) -> str:
        """Add a child of one or two parents; a marriage edge between them records the child."""
        parent_ids = [self.person_id(parent1)]
        if parent2 is not None:
            parent_ids.append(self.person_id(parent2))

        child_id = self.add_person(name, gender)
        for parent_id in parent_ids:
            self._add_edge(RelationshipType.PARENT_CHILD, parent_id, child_id, hidden=True)

        if len(parent_ids) == 2:
            marriage_id = self._latest_edge_between(*parent_ids, types=SPOUSAL_TYPES)
            if marriage_id is not None:
                self._edges[marriage_id].child_ids.append(child_id)
        return child_id

    def marry(self, person1: str, person2: str) -> str:
        return self._add_edge(RelationshipType.NISUIN, self.person_id(person1), self.person_id(person2))

    def erusin(self, person1: str, person2: str) -> str:
        return self._add_edge(RelationshipType.ERUSIN, self.person_id(person1), self.person_id(person2))

    def yibum(self, yavam: str, yevama: str) -> str:
        return self._add_edge(RelationshipType.YIBUM, self.person_id(yavam), self.person_id(yevama))

    def chalitzah(self, yavam: str, yevama: str) -> str:
        return self._add_edge(RelationshipType.CHALITZAH, self.person_id(yavam), self.person_id(yevama))

    def update_relationship(self, edge_id: str, **changes) -> None:
        if edge_id not in self._edges:
            raise ValueError(f"Unknown relationship '{edge_id}'")
        if "type" in changes:
            changes["type"] = RelationshipType(changes["type"])
            self._current_types[edge_id] = changes["type"]
        self._emit(RelationshipUpdated(edge_id, changes))

    def divorce(self, person1: str, person2: str) -> str:
        """Turn the couple's current marriage edge into a divorce."""
        edge_id = self._latest_edge_between(self.person_id(person1), self.person_id(person2), types=SPOUSAL_TYPES)
        if edge_id is None:
            raise ValueError(f"No marriage between '{person1}' and '{person2}' to dissolve")
        self.update_relationship(edge_id, type=RelationshipType.DIVORCE)
        return edge_id

    def remove_relationship(self, edge_id: str) -> None:
        if edge_id not in self._edges:
            raise ValueError(f"Unknown relationship '{edge_id}'")
        self._emit(RelationshipRemoved(edge_id))

    def die(self, name: str) -> None:
        person = self._nodes[self.person_id(name)]
        person.death_index = self.current_index
        self._emit(PersonDied(person.id))

    def next_slice(self, label: str = "") -> int:
        index = len(self._slices)
        self._slices.append(TimeSlice(label=label or f"Slice {index}", id=f"slice-{index}"))
        return index

    def _latest_edge_between(self, a: str, b: str, types) -> Optional[str]:
        for edge_id in reversed(list(self._edges)):
            edge = self._edges[edge_id]
            if edge.connects(a, b) and self._current_types[edge_id] in types:
                return edge_id
        return None

    def build(self) -> TemporalGraph:
        graph = TemporalGraph(
            nodes=dict(self._nodes),
            edges=dict(self._edges),
            slices=[TimeSlice(s.label, list(s.events), s.id) for s in self._slices],
            title=self.title,
        )
        logger.debug(f"Built scenario '{self.title}': {len(graph.nodes)} people, {len(graph.edges)} edges, {graph.slice_count} slices")
        return graph
