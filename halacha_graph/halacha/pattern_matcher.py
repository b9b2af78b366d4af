"""
Evaluates relationship patterns between an ordered pair of people.

Each pattern kind has its own evaluation function, picked from a table keyed
by the pattern class. Evaluation errors (an unknown step keyword or
condition) make the failing pattern a non-match instead of propagating.
Inside a composite only the failing branch is dropped, and a failed
evaluation is never negated into a match.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Callable, Dict, List, Optional, Set

from halacha_graph.events import EventRef
from halacha_graph.halacha.errors import PatternError, UnknownConditionError, UnknownStepError, UnsupportedPatternError
from halacha_graph.halacha.patterns import (
    CompositePattern,
    DirectPattern,
    EventSpec,
    PathPattern,
    Pattern,
    StateCondition,
    StatePattern,
    TemporalCondition,
    TemporalPattern,
    UnsupportedPattern,
)
from halacha_graph.paths import PathStep, RelationshipPath, StepKind
from halacha_graph.query_engine import GraphQueryEngine
from halacha_graph.relationship import RelationshipType

logger = logging.getLogger(__name__)

_STEP_KEYWORDS = {kind.value for kind in StepKind}


@dataclass
class MatchResult:
    matches: bool
    path: Optional[RelationshipPath] = None
    explanation: str = ""
    failed: bool = False


class PatternMatcher:
    """
    Matches patterns from person A to person B at a slice index.

    Attributes:
        engine: Query engine the patterns are evaluated against.
    """

    def __init__(self, engine: GraphQueryEngine):
        self.engine = engine
        self._evaluators: Dict[type, Callable[[str, str, Pattern, int], MatchResult]] = {
            DirectPattern: self._match_direct,
            PathPattern: self._match_path,
            StatePattern: self._match_state,
            TemporalPattern: self._match_temporal,
            CompositePattern: self._match_composite,
            UnsupportedPattern: self._match_unsupported,
        }
        self._state_conditions: Dict[str, Callable[[str, int], bool]] = {
            "alive": engine.is_alive,
            "dead": self._is_dead,
            "married": engine.is_married,
            "unmarried": lambda person_id, index: not engine.is_married(person_id, index),
            "has-children": engine.has_children,
            "childless": lambda person_id, index: not engine.has_children(person_id, index),
            "has-living-children": engine.has_living_children,
            "has-brothers": lambda person_id, index: bool(engine.brothers_of(person_id, index)),
        }

    def match_pattern(self, a: str, b: str, pattern: Pattern, index: int) -> MatchResult:
        """
        Decide whether ``pattern`` holds from A to B at ``index``.

        Returns:
            MatchResult with the reconstructed path for path matches.
        """
        return self._evaluate_safely(a, b, pattern, index)

    def _evaluate_safely(self, a: str, b: str, pattern: Pattern, index: int) -> MatchResult:
        try:
            return self._evaluate(a, b, pattern, index)
        except PatternError as e:
            logger.warning(f"Pattern {pattern.kind} failed for {a} -> {b} at slice {index}: {e}")
            return MatchResult(False, explanation=f"evaluation failed: {e}", failed=True)

    def _evaluate(self, a: str, b: str, pattern: Pattern, index: int) -> MatchResult:
        evaluator = self._evaluators.get(type(pattern))
        if evaluator is None:
            raise UnsupportedPatternError(f"no evaluator for {type(pattern).__name__}")
        result = evaluator(a, b, pattern, index)
        if pattern.negate and not result.failed:
            return MatchResult(not result.matches, explanation=f"not ({result.explanation})")
        return result

    # Direct

    def _match_direct(self, a: str, b: str, pattern: DirectPattern, index: int) -> MatchResult:
        for edge in self.engine.relationships_between(a, b, index):
            if edge.type in pattern.edge_types:
                return MatchResult(True, explanation=f"{edge.type.value} edge {edge.id}")
        wanted = ", ".join(t.value for t in pattern.edge_types)
        return MatchResult(False, explanation=f"no edge of type [{wanted}]")

    # Path

    def _match_path(self, a: str, b: str, pattern: PathPattern, index: int) -> MatchResult:
        unknown = [step for step in pattern.steps if step not in _STEP_KEYWORDS]
        if unknown:
            raise UnknownStepError(f"unknown path step(s) {unknown} in '{pattern.path}'")

        if not pattern.steps:
            if a == b:
                return MatchResult(True, RelationshipPath.from_steps([]), "same person")
            return MatchResult(False, explanation="empty path between different people")

        steps = self._search(a, b, pattern, 0, [], {a}, index)
        if steps is None:
            return MatchResult(False, explanation=f"no '{pattern.path}' path")
        path = RelationshipPath.from_steps(steps)
        return MatchResult(True, path, path.description.en)

    def _search(
        self,
        current: str,
        target: str,
        pattern: PathPattern,
        position: int,
        steps: List[PathStep],
        visited: Set[str],
        index: int,
    ) -> Optional[List[PathStep]]:
        kind = StepKind(pattern.steps[position])
        wanted_gender = pattern.gender_for_step(position)
        is_last = position == len(pattern.steps) - 1

        for person, edge_id in self.engine.neighbors(current, kind, index, historical_spouse=pattern.historical_spouse):
            if person.id in visited:
                continue
            if wanted_gender is not None and person.gender != wanted_gender:
                continue
            step = PathStep(kind, person.id, edge_id, person.gender)
            if is_last:
                if person.id == target:
                    return steps + [step]
                continue
            visited.add(person.id)
            found = self._search(person.id, target, pattern, position + 1, steps + [step], visited, index)
            visited.discard(person.id)
            if found is not None:
                return found
        return None

    # State

    def _is_dead(self, person_id: str, index: int) -> bool:
        person = self.engine.graph.person(person_id)
        return person is not None and person.is_dead_at(index)

    def _check_state(self, a: str, b: str, condition: StateCondition, index: int) -> bool:
        check = self._state_conditions.get(condition.condition)
        if check is None:
            raise UnknownConditionError(f"unknown state condition '{condition.condition}'")
        if condition.person not in ("A", "B"):
            raise UnknownConditionError(f"state condition on unknown person '{condition.person}'")
        person_id = a if condition.person == "A" else b
        result = check(person_id, index)
        return not result if condition.negate else result

    def _match_state(self, a: str, b: str, pattern: StatePattern, index: int) -> MatchResult:
        for condition in pattern.conditions:
            if not self._check_state(a, b, condition, index):
                return MatchResult(False, explanation=f"{condition.person} fails '{condition.condition}'")
        return MatchResult(True, explanation="state conditions hold")

    # Temporal

    def resolve_subject(self, ref: str, a: str, b: str, index: int) -> Optional[str]:
        """
        Resolve a subject reference to a person id.

        Spouse references use the first active spouse, falling back to the
        most recent former spouse; child references use the first child.
        """
        if ref == "A":
            return a
        if ref == "B":
            return b
        relation, _, owner_ref = ref.partition("-of-")
        if owner_ref not in ("A", "B") or relation not in ("spouse", "child"):
            raise UnknownConditionError(f"unknown subject reference '{ref}'")
        owner = a if owner_ref == "A" else b

        if relation == "spouse":
            spouses = self.engine.spouses_of(owner, index)
            if spouses:
                return spouses[0].id
            former = self.engine.historical_spouses_of(owner, index)
            return former[-1].id if former else None
        children = self.engine.children_of(owner, index)
        return children[0].id if children else None

    def _resolve_event(self, spec: Optional[EventSpec], a: str, b: str, index: int) -> Optional[EventRef]:
        if spec is None:
            return None
        subject = self.resolve_subject(spec.of, a, b, index)
        if subject is None:
            return None
        return self.engine.find_person_event(spec.type, subject)

    def _check_temporal(self, a: str, b: str, condition: TemporalCondition, index: int) -> bool:
        engine = self.engine
        result = False

        if condition.type == "alive-when":
            subject = self.resolve_subject(condition.subject, a, b, index)
            event = self._resolve_event(condition.event, a, b, index)
            result = subject is not None and event is not None and engine.was_alive_when(subject, event)

        elif condition.type == "lifetime-overlap":
            subject = self.resolve_subject(condition.subject, a, b, index)
            other = self.resolve_subject(condition.overlap_with, a, b, index) if condition.overlap_with else None
            result = subject is not None and other is not None and engine.lifetimes_overlap(subject, other)

        elif condition.type == "event-order":
            first = self._resolve_event(condition.first_event, a, b, index)
            second = self._resolve_event(condition.second_event, a, b, index)
            result = first is not None and second is not None and engine.event_order(first, second) == "before"

        elif condition.type == "had-children-when":
            subject = self.resolve_subject(condition.subject, a, b, index)
            event = self._resolve_event(condition.event, a, b, index)
            result = subject is not None and event is not None and engine.had_living_children_when(subject, event)

        elif condition.type == "relationship-existed-when":
            event = self._resolve_event(condition.event, a, b, index)
            if condition.relationship_between is not None and event is not None:
                first = self.resolve_subject(condition.relationship_between[0], a, b, index)
                second = self.resolve_subject(condition.relationship_between[1], a, b, index)
                try:
                    relationship_type = RelationshipType(condition.relationship_type) if condition.relationship_type else None
                except ValueError as e:
                    raise UnknownConditionError(f"unknown relationship type '{condition.relationship_type}'") from e
                result = (
                    first is not None and second is not None
                    and engine.relationship_existed_when(first, second, event, relationship_type)
                )

        else:
            raise UnknownConditionError(f"unknown temporal condition '{condition.type}'")

        return not result if condition.negate else result

    def _match_temporal(self, a: str, b: str, pattern: TemporalPattern, index: int) -> MatchResult:
        for condition in pattern.conditions:
            if not self._check_temporal(a, b, condition, index):
                return MatchResult(False, explanation=f"temporal condition '{condition.type}' fails")
        return MatchResult(True, explanation="temporal conditions hold")

    # Composite

    def _match_composite(self, a: str, b: str, pattern: CompositePattern, index: int) -> MatchResult:
        if pattern.operator == "or":
            failed = False
            for sub in pattern.patterns:
                result = self._evaluate_safely(a, b, sub, index)
                if result.matches:
                    return result
                failed = failed or result.failed
            # a negated OR must not match only because a branch failed
            return MatchResult(False, explanation="no alternative matches", failed=failed)

        path: Optional[RelationshipPath] = None
        explanations = []
        for sub in pattern.patterns:
            result = self._evaluate_safely(a, b, sub, index)
            if not result.matches:
                return MatchResult(False, explanation=result.explanation, failed=result.failed)
            if path is None:
                path = result.path
            explanations.append(result.explanation)
        return MatchResult(True, path, "; ".join(explanations))

    def _match_unsupported(self, a: str, b: str, pattern: UnsupportedPattern, index: int) -> MatchResult:
        raise UnsupportedPatternError(f"unsupported pattern type '{pattern.pattern_type}'")
