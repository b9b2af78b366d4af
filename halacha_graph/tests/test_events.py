"""
Tests for events, event positions and graph validation.
"""
from __future__ import annotations

from halacha_graph.events import (
    EventIdentifier,
    EventKind,
    EventRef,
    PersonDied,
    PersonIntroduced,
    RelationshipAdded,
    RelationshipUpdated,
    TimeSlice,
    event_from_dict,
)
from halacha_graph.person import Gender, Person
from halacha_graph.relationship import Relationship, RelationshipType
from halacha_graph.scenario import ScenarioBuilder
from halacha_graph.temporal_graph import TemporalGraph


class TestEventRef:
    """Tests for the ordering of event positions."""

    def test_orders_by_slice_first(self):
        assert EventRef(0, 5) < EventRef(1, 0)
        assert EventRef(2, 0) > EventRef(1, 9)

    def test_orders_by_event_within_slice(self):
        assert EventRef(1, 0) < EventRef(1, 1)
        assert EventRef(1, 1) == EventRef(1, 1)

    def test_sorting(self):
        refs = [EventRef(1, 2), EventRef(0, 3), EventRef(1, 0)]
        assert sorted(refs) == [EventRef(0, 3), EventRef(1, 0), EventRef(1, 2)]


class TestEventIdentifier:
    """Tests for matching events by kind and subject."""

    def test_matches_person_event(self):
        identifier = EventIdentifier(EventKind.DEATH, person_id="reuven")
        assert identifier.matches(PersonDied("reuven"))
        assert not identifier.matches(PersonDied("shimon"))
        assert not identifier.matches(PersonIntroduced("reuven"))

    def test_matches_edge_event(self):
        identifier = EventIdentifier(EventKind.ADD_EDGE, edge_id="e1")
        assert identifier.matches(RelationshipAdded("e1"))
        assert not identifier.matches(RelationshipAdded("e2"))

    def test_unset_subject_matches_any(self):
        assert EventIdentifier(EventKind.DEATH).matches(PersonDied("anyone"))


class TestEventFromDict:
    """Tests for reading authored events."""

    def test_reads_each_kind(self):
        assert event_from_dict({"type": "addNode", "nodeId": "p1"}) == PersonIntroduced("p1")
        assert event_from_dict({"type": "death", "nodeId": "p1"}) == PersonDied("p1")
        assert event_from_dict({"type": "addEdge", "edgeId": "e1"}) == RelationshipAdded("e1")
        update = event_from_dict({"type": "updateEdge", "edgeId": "e1", "changes": {"type": "divorce"}})
        assert isinstance(update, RelationshipUpdated)
        assert update.changes == {"type": "divorce"}
        assert event_from_dict({"type": "removeEdge", "edgeId": "e1"}).kind == EventKind.REMOVE_EDGE


class TestTemporalGraph:
    """Tests for timeline iteration and validation."""

    def test_timeline_positions(self):
        graph = TemporalGraph(
            nodes={"a": Person("a", Gender.MALE)},
            slices=[
                TimeSlice("first", [PersonIntroduced("a")]),
                TimeSlice("second", [PersonDied("a")]),
            ],
        )
        assert [ref for ref, _ in graph.timeline()] == [EventRef(0, 0), EventRef(1, 0)]
        assert len(graph.events_for_person("a")) == 2

    def test_built_scenario_is_consistent(self):
        builder = ScenarioBuilder("Consistent")
        builder.add_person("Reuven", "male")
        builder.add_person("Rochel", "female")
        builder.marry("Reuven", "Rochel")
        builder.next_slice()
        builder.die("Reuven")

        assert builder.build().validate() == []

    def test_death_before_introduction(self):
        graph = TemporalGraph(nodes={"a": Person("a", Gender.MALE, introduced_index=2, death_index=1)})
        issues = graph.validate()
        assert [issue.issue_type for issue in issues] == ["death_before_introduction"]
        assert issues[0].severity == "error"

    def test_edge_problems(self):
        graph = TemporalGraph(
            nodes={"a": Person("a", Gender.MALE, introduced_index=1)},
            edges={"e1": Relationship("e1", RelationshipType.NISUIN, "a", "ghost", introduced_index=0)},
            slices=[TimeSlice("only", [RelationshipAdded("e2")])],
        )
        types = sorted(issue.issue_type for issue in graph.validate())
        assert types == ["edge_before_endpoint", "missing_endpoint", "unknown_edge_event"]

    def test_unknown_update_type(self):
        builder = ScenarioBuilder("Annulment")
        builder.add_person("Yaakov", "male")
        builder.add_person("Leah", "female")
        edge_id = builder.marry("Yaakov", "Leah")
        graph = builder.build()
        graph.slices[0].events.append(RelationshipUpdated(edge_id, {"type": "annulment"}))
        issues = graph.validate()
        assert [issue.issue_type for issue in issues] == ["unknown_relationship_type"]
        assert issues[0].edge_id == edge_id
