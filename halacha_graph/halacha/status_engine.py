"""
Status engine: the single entry point for pair statuses.

Combines rule evaluation, the levirate bond state, opinion gating and a
result cache.

Core classes:
    - StatusEngine: Computes and caches statuses between people.

Example:
    registry = load_sample_registry()
    engine = StatusEngine(graph, registry)
    profile = create_default_opinion_profile(registry)
    status = engine.compute_status("shimon", "rochel", 1, profile)
    status.primary_category.id
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Set, Tuple

from halacha_graph.app_hooks import AppHooks
from halacha_graph.halacha.categories import default_categories
from halacha_graph.halacha.config import EngineConfig
from halacha_graph.halacha.model import (
    AlternativeOutcome,
    AppliedStatus,
    ComputedStatus,
    HalachicRule,
    OpinionProfile,
    RelevantMachlokas,
    StatusCategory,
    ZikahInfo,
)
from halacha_graph.halacha.pattern_matcher import PatternMatcher
from halacha_graph.halacha.profiles import create_default_opinion_profile, profile_with
from halacha_graph.halacha.registry import HalachicRegistry
from halacha_graph.halacha.zikah_tracker import ZikahTracker
from halacha_graph.paths import BilingualText
from halacha_graph.person import Person
from halacha_graph.query_engine import GraphQueryEngine
from halacha_graph.resolver import StateResolver
from halacha_graph.temporal_graph import TemporalGraph

logger = logging.getLogger(__name__)

CacheKey = Tuple[Tuple[str, str], int, tuple]


class StatusEngine:
    """
    Computes the statuses holding between pairs of people.

    The query engine, pattern matcher and zikah tracker are built on first
    use and rebuilt after ``refresh()``.

    Attributes:
        graph: The temporal graph.
        registry: Categories, rules and disputes to evaluate.
        config: Engine configuration.
        state_resolver: Resolver producing the per-slice states.
        app_hooks: Optional progress hooks.
    """

    def __init__(
        self,
        graph: TemporalGraph,
        registry: HalachicRegistry,
        config: Optional[EngineConfig] = None,
        state_resolver: Optional[StateResolver] = None,
        app_hooks: Optional[AppHooks] = None,
    ):
        self.graph = graph
        self.registry = registry
        self.config = config or EngineConfig()
        self.state_resolver = state_resolver
        self.app_hooks = app_hooks

        self._query_engine: Optional[GraphQueryEngine] = None
        self._matcher: Optional[PatternMatcher] = None
        self._tracker: Optional[ZikahTracker] = None
        self._exclusion_profile: Optional[OpinionProfile] = None
        self._cache: Dict[CacheKey, ComputedStatus] = {}
        self._missing_categories: Set[str] = set()

    # ------------------------------------------------------------------
    # Lazily built collaborators
    # ------------------------------------------------------------------

    @property
    def query_engine(self) -> GraphQueryEngine:
        if self._query_engine is None:
            self._query_engine = GraphQueryEngine(self.graph, resolver=self.state_resolver)
        return self._query_engine

    @property
    def pattern_matcher(self) -> PatternMatcher:
        if self._matcher is None:
            self._matcher = PatternMatcher(self.query_engine)
        return self._matcher

    @property
    def zikah_tracker(self) -> ZikahTracker:
        if self._tracker is None:
            self._tracker = ZikahTracker(self.query_engine, forbidden_relation=self.is_forbidden_relation)
        return self._tracker

    def refresh(self, graph: Optional[TemporalGraph] = None) -> None:
        """
        Drop every derived structure after a graph change.

        Args:
            graph: Replacement graph; the current graph is kept when omitted.
        """
        if graph is not None:
            self.graph = graph
        self.clear_cache()
        self._query_engine = None
        self._matcher = None
        if self._tracker is not None:
            self._tracker.refresh()
        self._tracker = None
        self._exclusion_profile = None
        logger.info(f"Status engine refreshed for '{self.graph.title}'")

    def clear_cache(self) -> None:
        self._cache.clear()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _report_step(self, info: str = "", target: Optional[int] = None, reset_counter: bool = False, plus_step: int = 0) -> None:
        """
        Report a step via app hooks if available. (Private method)

        Args:
            info (str): Information message.
            target (int): Target count for progress.
            reset_counter (bool): Whether to reset the counter.
            plus_step (int): Incremental step count.
        """
        if self.app_hooks and callable(getattr(self.app_hooks, "report_step", None)):
            self.app_hooks.report_step(info=info, target=target, reset_counter=reset_counter, plus_step=plus_step)
        elif info:
            logger.debug(info)

    def _category(self, category_id: str) -> Optional[StatusCategory]:
        category = self.registry.category(category_id)
        if category is None and self.config.fallback_to_default_categories:
            category = default_categories().get(category_id)
        if category is None and category_id not in self._missing_categories:
            self._missing_categories.add(category_id)
            logger.warning(f"Unknown status category '{category_id}'; its statuses are dropped")
        return category

    def _orient(self, a: str, b: str) -> Tuple[str, str]:
        """Rules read from the man towards the woman."""
        if not self.config.orient_male_first:
            return a, b
        person_a = self.graph.person(a)
        person_b = self.graph.person(b)
        if person_a is not None and person_b is not None and person_a.is_female and person_b.is_male:
            return b, a
        return a, b

    @staticmethod
    def _cache_key(a: str, b: str, index: int, profile: OpinionProfile) -> CacheKey:
        return (tuple(sorted((a, b))), index, profile.cache_key())

    @staticmethod
    def rule_applies(rule: HalachicRule, profile: OpinionProfile) -> bool:
        """True when the profile selects every opinion the rule is conditioned on."""
        return all(profile.selected(c.machlokas_id) == c.opinion_id for c in rule.applies_when)

    def _relevant_machlokos(self, rule: HalachicRule, profile: OpinionProfile) -> List[RelevantMachlokas]:
        machlokas_ids = list(rule.depends_on)
        for condition in rule.applies_when:
            if condition.machlokas_id not in machlokas_ids:
                machlokas_ids.append(condition.machlokas_id)

        relevant = []
        for machlokas_id in machlokas_ids:
            machlokas = self.registry.machlokas(machlokas_id)
            if machlokas is None:
                logger.debug(f"Rule '{rule.id}' depends on unknown machlokas '{machlokas_id}'")
                continue
            current = profile.selected(machlokas_id)
            alternatives = []
            for opinion in machlokas.opinions:
                if opinion.id == current:
                    continue
                applies = self.rule_applies(rule, profile_with(profile, machlokas_id, opinion.id))
                alternatives.append(AlternativeOutcome(
                    opinion_id=opinion.id,
                    would_produce_category_id=rule.produces.category_id if applies else None,
                ))
            relevant.append(RelevantMachlokas(machlokas_id, rule.id, current, alternatives))
        return relevant

    # ------------------------------------------------------------------
    # Status computation
    # ------------------------------------------------------------------

    def compute_status(self, a: str, b: str, index: int, profile: OpinionProfile) -> ComputedStatus:
        """
        Compute every status between A and B at a slice index.

        Rules not selected by the opinion profile are reported as relevant
        disputes instead of being evaluated. An active levirate bond adds
        its own status. Statuses are ordered by category priority, highest
        first, and the first is the primary status.

        Returns:
            ComputedStatus; cached per unordered pair, index and selections.
        """
        key = self._cache_key(a, b, index, profile)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug(f"Status cache hit for {a}/{b} at slice {index}")
            return cached

        first, second = self._orient(a, b)
        statuses: List[AppliedStatus] = []
        relevant: List[RelevantMachlokas] = []

        for rule in self.registry.rules:
            if not self.rule_applies(rule, profile):
                relevant.extend(self._relevant_machlokos(rule, profile))
                continue
            match = self.pattern_matcher.match_pattern(first, second, rule.pattern, index)
            if not match.matches:
                continue
            category = self._category(rule.produces.category_id)
            if category is None:
                continue
            statuses.append(AppliedStatus(
                category=category,
                rule_id=rule.id,
                rule_name=rule.produces.name or rule.name,
                sources=list(rule.sources),
                path=match.path,
                explanation=match.explanation,
            ))

        zikah = self.zikah_tracker.zikah_between(first, second, index)
        if zikah is not None and zikah.is_active:
            category = self._category(self.config.bond_category_id)
            if category is not None:
                name = self.config.bond_status_name
                statuses.append(AppliedStatus(
                    category=category,
                    rule_id=self.config.bond_category_id,
                    rule_name=BilingualText(name["en"], name.get("he", name["en"])),
                    explanation=f"bound since the death of {zikah.deceased_id} at slice {zikah.created_at_index}",
                ))

        statuses.sort(key=lambda status: -status.category.priority)
        result = ComputedStatus(
            person_a=first,
            person_b=second,
            at_index=index,
            primary_status=statuses[0] if statuses else None,
            all_statuses=statuses,
            zikah_info=zikah,
            relevant_machlokos=relevant,
        )
        self._cache[key] = result
        return result

    def compute_all_statuses(self, person_id: str, index: int, profile: OpinionProfile) -> Dict[str, ComputedStatus]:
        """Statuses between a person and everyone else alive at ``index``."""
        others = [
            person for person in self.graph.nodes.values()
            if person.id != person_id and self.query_engine.is_alive(person.id, index)
        ]
        self._report_step(info=f"Computing statuses for {person_id}", target=len(others), reset_counter=True, plus_step=0)

        results: Dict[str, ComputedStatus] = {}
        for person in others:
            results[person.id] = self.compute_status(person_id, person.id, index, profile)
            self._report_step(plus_step=1)

        if self.app_hooks and callable(getattr(self.app_hooks, "update_key_value", None)):
            with_status = sum(1 for status in results.values() if status.all_statuses)
            self.app_hooks.update_key_value("people_with_status", with_status)
        return results

    def is_marriage_permitted(self, a: str, b: str, index: int, profile: OpinionProfile) -> bool:
        """
        False when any prohibitive status holds.

        An active levirate bond lifts the brother's-wife prohibition, and
        only that one: when it is the sole source of prohibitive statuses
        the marriage is permitted.
        """
        status = self.compute_status(a, b, index, profile)
        prohibitive = [s for s in status.all_statuses if self.config.is_prohibitive(s.category.id)]
        if not prohibitive:
            return True

        bond_active = status.zikah_info is not None and status.zikah_info.is_active
        if bond_active and all(s.rule_id == self.config.bond_overridable_rule_id for s in prohibitive):
            return True
        return False

    def get_primary_category(self, a: str, b: str, index: int, profile: OpinionProfile) -> Optional[StatusCategory]:
        return self.compute_status(a, b, index, profile).primary_category

    def has_status(self, a: str, b: str, category_id: str, index: int, profile: OpinionProfile) -> bool:
        return self.compute_status(a, b, index, profile).has_category(category_id)

    def get_people_with_status(self, person_id: str, category_id: str, index: int, profile: OpinionProfile) -> List[Person]:
        results = self.compute_all_statuses(person_id, index, profile)
        return [self.graph.nodes[other_id] for other_id, status in results.items() if status.has_category(category_id)]

    # ------------------------------------------------------------------
    # Levirate bond
    # ------------------------------------------------------------------

    def is_forbidden_relation(self, brother_id: str, widow_id: str, index: int) -> bool:
        """
        Whether a brother is independently forbidden to his brother's widow.

        Evaluates the rules producing the configured exclusion categories
        under the registry's default opinions, leaving out the brother's-wife
        rule itself.
        """
        if self._exclusion_profile is None:
            self._exclusion_profile = create_default_opinion_profile(self.registry)
        for rule in self.registry.rules_producing(self.config.bond_exclusion_categories):
            if rule.id == self.config.bond_overridable_rule_id or not self.rule_applies(rule, self._exclusion_profile):
                continue
            if self.pattern_matcher.match_pattern(brother_id, widow_id, rule.pattern, index).matches:
                logger.debug(f"{brother_id} excluded from zikah with {widow_id} by rule '{rule.id}'")
                return True
        return False

    def zikah_between(self, a: str, b: str, index: int) -> Optional[ZikahInfo]:
        return self.zikah_tracker.zikah_between(a, b, index)

    def get_yevamos(self, index: int) -> List[Person]:
        return [self.graph.nodes[widow_id] for widow_id in self.zikah_tracker.yevamos_at(index)]

    def get_yevamim_for(self, widow_id: str, index: int) -> List[Person]:
        return [self.graph.nodes[brother_id] for brother_id in self.zikah_tracker.yevamim_for(widow_id, index)]
