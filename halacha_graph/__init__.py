"""halacha_graph package: Temporal genealogical graph with halachic status computation."""

from halacha_graph.events import (
    EventIdentifier,
    EventKind,
    EventRef,
    PersonDied,
    PersonIntroduced,
    RelationshipAdded,
    RelationshipRemoved,
    RelationshipUpdated,
    TimeSlice,
)
from halacha_graph.paths import BilingualText, PathStep, RelationshipPath, StepKind
from halacha_graph.person import Gender, Person
from halacha_graph.query_engine import GraphQueryEngine, RelationshipTiming
from halacha_graph.relationship import Relationship, RelationshipType, SPOUSAL_TYPES
from halacha_graph.resolver import ResolvedState, resolve_all_slices, resolve_graph_at_slice
from halacha_graph.scenario import ScenarioBuilder
from halacha_graph.temporal_graph import GraphIssue, TemporalGraph
from halacha_graph.halacha import (
    EngineConfig,
    HalachicRegistry,
    OpinionProfile,
    PatternMatcher,
    StatusEngine,
    ZikahTracker,
    create_default_opinion_profile,
    load_sample_registry,
)

__all__ = [
    "BilingualText",
    "EngineConfig",
    "EventIdentifier",
    "EventKind",
    "EventRef",
    "Gender",
    "GraphIssue",
    "GraphQueryEngine",
    "HalachicRegistry",
    "OpinionProfile",
    "PathStep",
    "PatternMatcher",
    "Person",
    "PersonDied",
    "PersonIntroduced",
    "Relationship",
    "RelationshipAdded",
    "RelationshipPath",
    "RelationshipRemoved",
    "RelationshipTiming",
    "RelationshipType",
    "RelationshipUpdated",
    "ResolvedState",
    "SPOUSAL_TYPES",
    "ScenarioBuilder",
    "StatusEngine",
    "StepKind",
    "TemporalGraph",
    "TimeSlice",
    "ZikahTracker",
    "create_default_opinion_profile",
    "load_sample_registry",
    "resolve_all_slices",
    "resolve_graph_at_slice",
]
