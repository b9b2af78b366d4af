"""
Tests for reading and writing authored patterns.
"""
from __future__ import annotations

import pytest

from halacha_graph.halacha.errors import RegistryError
from halacha_graph.halacha.patterns import (
    CompositePattern,
    DirectPattern,
    PathPattern,
    StatePattern,
    TemporalPattern,
    UnsupportedPattern,
    pattern_from_dict,
    pattern_to_dict,
)
from halacha_graph.person import Gender
from halacha_graph.relationship import RelationshipType


class TestPatternFromDict:
    """Tests for pattern_from_dict."""

    def test_direct(self):
        pattern = pattern_from_dict({"type": "direct", "directEdgeTypes": ["nisuin", "erusin"], "negate": True})
        assert isinstance(pattern, DirectPattern)
        assert pattern.edge_types == (RelationshipType.NISUIN, RelationshipType.ERUSIN)
        assert pattern.negate

    def test_path(self):
        pattern = pattern_from_dict({
            "type": "path",
            "pathPattern": "sibling.spouse",
            "pathGenders": ["male", "female"],
            "historicalSpouse": True,
        })
        assert isinstance(pattern, PathPattern)
        assert pattern.steps == ("sibling", "spouse")
        assert pattern.path_genders == (Gender.MALE, Gender.FEMALE)
        assert pattern.historical_spouse

    def test_path_with_null_gender(self):
        pattern = pattern_from_dict({"type": "path", "pathPattern": "parent.parent", "pathGenders": [None, "female"]})
        assert pattern.gender_for_step(0) is None
        assert pattern.gender_for_step(1) == Gender.FEMALE

    def test_unknown_step_is_accepted_when_loading(self):
        pattern = pattern_from_dict({"type": "path", "pathPattern": "sibling.cousin"})
        assert pattern.steps == ("sibling", "cousin")

    def test_state(self):
        pattern = pattern_from_dict({
            "type": "state",
            "stateConditions": [{"person": "A", "condition": "married", "negate": True}],
        })
        assert isinstance(pattern, StatePattern)
        assert pattern.conditions[0].person == "A"
        assert pattern.conditions[0].negate

    def test_temporal(self):
        pattern = pattern_from_dict({
            "type": "temporal",
            "temporalConditions": [{
                "type": "relationship-existed-when",
                "event": {"type": "death", "of": "spouse-of-B"},
                "relationship": {"between": ["spouse-of-B", "B"], "type": "nisuin"},
            }],
        })
        assert isinstance(pattern, TemporalPattern)
        condition = pattern.conditions[0]
        assert condition.event.of == "spouse-of-B"
        assert condition.relationship_between == ("spouse-of-B", "B")
        assert condition.relationship_type == "nisuin"

    def test_composite(self):
        pattern = pattern_from_dict({
            "type": "composite",
            "compositeOp": "OR",
            "subPatterns": [{"type": "direct", "directEdgeTypes": ["nisuin"]}],
        })
        assert isinstance(pattern, CompositePattern)
        assert pattern.operator == "or"
        assert len(pattern.patterns) == 1

    def test_unknown_type(self):
        pattern = pattern_from_dict({"type": "cosmic", "negate": True})
        assert isinstance(pattern, UnsupportedPattern)
        assert pattern.pattern_type == "cosmic"


class TestPatternErrors:
    """Tests for malformed pattern data."""

    def test_missing_type(self):
        with pytest.raises(RegistryError):
            pattern_from_dict({"pathPattern": "parent"})

    def test_path_without_steps(self):
        with pytest.raises(RegistryError):
            pattern_from_dict({"type": "path"})

    def test_invalid_edge_type(self):
        with pytest.raises(RegistryError):
            pattern_from_dict({"type": "direct", "directEdgeTypes": ["friendship"]})

    def test_invalid_gender(self):
        with pytest.raises(RegistryError):
            pattern_from_dict({"type": "path", "pathPattern": "parent", "throughGender": "other"})

    def test_invalid_operator(self):
        with pytest.raises(RegistryError):
            pattern_from_dict({"type": "composite", "compositeOp": "XOR"})

    def test_relationship_needs_two_subjects(self):
        with pytest.raises(RegistryError):
            pattern_from_dict({
                "type": "temporal",
                "temporalConditions": [{"type": "relationship-existed-when", "relationship": {"between": ["A"]}}],
            })


class TestPathPattern:
    """Tests for PathPattern helpers."""

    def test_path_genders_take_precedence(self):
        pattern = PathPattern.parse("sibling", path_genders=(None,), through_gender=Gender.MALE)
        assert pattern.gender_for_step(0) is None

    def test_through_gender_applies_to_every_step(self):
        pattern = PathPattern.parse("spouse.sibling", through_gender=Gender.FEMALE)
        assert pattern.gender_for_step(0) == Gender.FEMALE
        assert pattern.gender_for_step(1) == Gender.FEMALE

    def test_empty_path(self):
        assert PathPattern.parse("").steps == ()

    def test_empty_segments_are_kept(self):
        assert PathPattern.parse("parent..child").steps == ("parent", "", "child")
        assert PathPattern.parse("sibling.").steps == ("sibling", "")


def test_to_dict_reads_back():
    data = {
        "type": "composite",
        "compositeOp": "AND",
        "subPatterns": [
            {"type": "state", "stateConditions": [{"person": "B", "condition": "married"}]},
            {"type": "direct", "directEdgeTypes": ["nisuin", "erusin", "yibum"], "negate": True},
        ],
    }
    pattern = pattern_from_dict(data)
    assert pattern_to_dict(pattern) == data
    assert pattern_from_dict(pattern_to_dict(pattern)) == pattern
