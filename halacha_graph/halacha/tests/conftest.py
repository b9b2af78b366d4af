"""
Pytest fixtures for the halacha tests.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest

from halacha_graph.halacha.config import EngineConfig
from halacha_graph.halacha.model import OpinionProfile
from halacha_graph.halacha.profiles import create_default_opinion_profile
from halacha_graph.halacha.registry import HalachicRegistry, load_sample_registry
from halacha_graph.halacha.status_engine import StatusEngine
from halacha_graph.query_engine import GraphQueryEngine
from halacha_graph.scenario import ScenarioBuilder
from halacha_graph.temporal_graph import TemporalGraph


class RecordingHooks:
    """App hooks that remember every call."""

    def __init__(self):
        self.steps: List[Dict[str, Any]] = []
        self.values: List[Tuple[str, Any]] = []

    def report_step(self, info=None, target=None, reset_counter=False, plus_step=1):
        self.steps.append({"info": info, "target": target, "reset_counter": reset_counter, "plus_step": plus_step})

    def update_key_value(self, key, value):
        self.values.append((key, value))


@pytest.fixture
def registry() -> HalachicRegistry:
    """The packaged sample registry."""
    return load_sample_registry()


@pytest.fixture
def default_profile(registry) -> OpinionProfile:
    return create_default_opinion_profile(registry)


@pytest.fixture
def recording_hooks():
    return RecordingHooks()


@pytest.fixture
def brothers_family():
    """
    Reuven married to Rochel, with brothers sharing Reuven's parent.

    Returns a factory; the builder is left at slice 0 so callers can add
    more before moving on.
    """
    def _create(brothers: Sequence[str] = ("Shimon",), title: str = "Brothers") -> ScenarioBuilder:
        builder = ScenarioBuilder(title)
        builder.add_person("Reuven", "male")
        for name in brothers:
            builder.add_sibling("Reuven", name, "male")
        builder.add_person("Rochel", "female")
        builder.marry("Reuven", "Rochel")
        return builder

    return _create


@pytest.fixture
def childless_widow(brothers_family):
    """Reuven dies childless in slice 1, leaving Rochel to his brothers."""
    def _create(brothers: Sequence[str] = ("Shimon",)) -> ScenarioBuilder:
        builder = brothers_family(brothers, title="Childless death")
        builder.next_slice("Reuven dies")
        builder.die("Reuven")
        return builder

    return _create


@pytest.fixture
def status_engine(registry):
    """Build a StatusEngine from a builder or a graph."""
    def _create(
        scenario,
        config: Optional[EngineConfig] = None,
        registry_override: Optional[HalachicRegistry] = None,
        app_hooks=None,
    ) -> StatusEngine:
        graph = scenario.build() if isinstance(scenario, ScenarioBuilder) else scenario
        return StatusEngine(graph, registry_override or registry, config=config, app_hooks=app_hooks)

    return _create


@pytest.fixture
def query_engine():
    def _create(scenario) -> GraphQueryEngine:
        graph: TemporalGraph = scenario.build() if isinstance(scenario, ScenarioBuilder) else scenario
        return GraphQueryEngine(graph)

    return _create
