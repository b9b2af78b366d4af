"""
Halachic rule layer over the temporal graph.

Core classes:
    - StatusEngine: Computes pair statuses under an opinion profile.
    - PatternMatcher: Evaluates relationship patterns.
    - ZikahTracker: Tracks levirate bonds across the timeline.
    - HalachicRegistry: Categories, rules and disputes.
    - EngineConfig: Engine configuration loaded from config.yaml.
"""
from halacha_graph.halacha.categories import (
    CategoryRegistry,
    categories_by_level,
    default_categories,
    is_more_severe,
    most_severe_category,
    sort_categories_by_priority,
)
from halacha_graph.halacha.config import EngineConfig
from halacha_graph.halacha.errors import (
    PatternError,
    RegistryError,
    UnknownConditionError,
    UnknownStepError,
    UnsupportedPatternError,
)
from halacha_graph.halacha.model import (
    AlternativeOutcome,
    AppliedStatus,
    ComputedStatus,
    HalachicLevel,
    HalachicRule,
    Machlokas,
    Opinion,
    OpinionCondition,
    OpinionProfile,
    RelevantMachlokas,
    RuleProduces,
    StatusCategory,
    ZikahInfo,
    ZikahStatus,
)
from halacha_graph.halacha.pattern_matcher import MatchResult, PatternMatcher
from halacha_graph.halacha.patterns import (
    CompositePattern,
    DirectPattern,
    EventSpec,
    PathPattern,
    StateCondition,
    StatePattern,
    TemporalCondition,
    TemporalPattern,
    UnsupportedPattern,
    pattern_from_dict,
    pattern_to_dict,
)
from halacha_graph.halacha.profiles import create_default_opinion_profile, profile_with, profile_with_selections
from halacha_graph.halacha.registry import HalachicRegistry, load_sample_registry
from halacha_graph.halacha.status_engine import StatusEngine
from halacha_graph.halacha.zikah_tracker import ZikahRecord, ZikahTracker

__all__ = [
    "AlternativeOutcome",
    "AppliedStatus",
    "CategoryRegistry",
    "CompositePattern",
    "ComputedStatus",
    "DirectPattern",
    "EngineConfig",
    "EventSpec",
    "HalachicLevel",
    "HalachicRegistry",
    "HalachicRule",
    "Machlokas",
    "MatchResult",
    "Opinion",
    "OpinionCondition",
    "OpinionProfile",
    "PathPattern",
    "PatternError",
    "PatternMatcher",
    "RegistryError",
    "RelevantMachlokas",
    "RuleProduces",
    "StateCondition",
    "StatePattern",
    "StatusCategory",
    "StatusEngine",
    "TemporalCondition",
    "TemporalPattern",
    "UnknownConditionError",
    "UnknownStepError",
    "UnsupportedPattern",
    "UnsupportedPatternError",
    "ZikahInfo",
    "ZikahRecord",
    "ZikahStatus",
    "ZikahTracker",
    "categories_by_level",
    "create_default_opinion_profile",
    "default_categories",
    "is_more_severe",
    "load_sample_registry",
    "most_severe_category",
    "pattern_from_dict",
    "pattern_to_dict",
    "profile_with",
    "profile_with_selections",
    "sort_categories_by_priority",
]
