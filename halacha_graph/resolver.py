"""
Reference state resolver.

Replays the events of every slice up to a given index to produce the
resolved state (the people and edges that exist) at that slice.
Introducing a person adds their node; a death leaves the node in place,
since the death itself is carried by ``Person.death_index``. Edge events add,
patch and remove entries of the edge map.

Any callable ``TemporalGraph -> List[ResolvedState]`` can stand in for
``resolve_all_slices`` when constructing the query engine.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Callable, Dict, List

from halacha_graph.events import (
    PersonDied,
    PersonIntroduced,
    RelationshipAdded,
    RelationshipRemoved,
    RelationshipUpdated,
)
from halacha_graph.person import Person
from halacha_graph.relationship import Relationship
from halacha_graph.temporal_graph import TemporalGraph

logger = logging.getLogger(__name__)


@dataclass
class ResolvedState:
    """People and edges existing at the end of one slice."""
    nodes: Dict[str, Person] = field(default_factory=dict)
    edges: Dict[str, Relationship] = field(default_factory=dict)

    def copy(self) -> ResolvedState:
        return ResolvedState(
            nodes=dict(self.nodes),
            edges={edge_id: edge.copy() for edge_id, edge in self.edges.items()},
        )


StateResolver = Callable[[TemporalGraph], List[ResolvedState]]


def _apply_slice(graph: TemporalGraph, state: ResolvedState, slice_index: int) -> None:
    for event in graph.slices[slice_index].events:
        if isinstance(event, PersonIntroduced):
            person = graph.nodes.get(event.person_id)
            if person is None:
                logger.debug(f"Slice {slice_index}: skipping introduction of unknown person {event.person_id}")
                continue
            state.nodes[person.id] = person
        elif isinstance(event, PersonDied):
            continue
        elif isinstance(event, RelationshipAdded):
            edge = graph.edges.get(event.edge_id)
            if edge is None:
                logger.debug(f"Slice {slice_index}: skipping unknown edge {event.edge_id}")
                continue
            state.edges[edge.id] = edge.copy()
        elif isinstance(event, RelationshipUpdated):
            edge = state.edges.get(event.edge_id)
            if edge is None:
                logger.debug(f"Slice {slice_index}: update of absent edge {event.edge_id} ignored")
                continue
            state.edges[edge.id] = edge.with_changes(event.changes)
        elif isinstance(event, RelationshipRemoved):
            state.edges.pop(event.edge_id, None)


def resolve_graph_at_slice(graph: TemporalGraph, index: int) -> ResolvedState:
    """
    Resolve the state at the end of slice ``index``.

    Args:
        graph: The temporal graph.
        index: Slice index; values past the last slice resolve the final state.

    Returns:
        ResolvedState: Nodes and edges existing at that slice.
    """
    state = ResolvedState()
    for slice_index in range(min(index + 1, graph.slice_count)):
        _apply_slice(graph, state, slice_index)
    return state


def resolve_all_slices(graph: TemporalGraph) -> List[ResolvedState]:
    """Resolve every slice in a single forward pass."""
    states: List[ResolvedState] = []
    state = ResolvedState()
    for slice_index in range(graph.slice_count):
        _apply_slice(graph, state, slice_index)
        states.append(state.copy())
    logger.debug(f"Resolved {len(states)} slice state(s) for '{graph.title}'")
    return states
