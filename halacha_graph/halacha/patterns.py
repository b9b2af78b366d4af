"""
Relationship pattern AST.

Patterns are immutable values, one dataclass per pattern kind:

    - DirectPattern: an edge of one of the listed types joins A and B.
    - PathPattern: B is reachable from A by a dot-separated chain of steps
      (``parent``, ``child``, ``sibling``, ``spouse``).
    - StatePattern: conditions on the state of A or B.
    - TemporalPattern: conditions on event ordering and liveness.
    - CompositePattern: AND / OR over sub-patterns.
    - UnsupportedPattern: a kind not known to this version, kept so that
      loading never fails on it.

Every kind carries ``negate``. Authored data uses the mapping layout read
by ``pattern_from_dict``:

    {"type": "path", "pathPattern": "sibling.spouse",
     "pathGenders": ["male", "female"], "historicalSpouse": true}
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Union

from halacha_graph.halacha.errors import RegistryError
from halacha_graph.person import Gender
from halacha_graph.relationship import RelationshipType

# Subjects a temporal condition may refer to
SUBJECT_REFS = ("A", "B", "spouse-of-A", "spouse-of-B", "child-of-A", "child-of-B")


@dataclass(frozen=True)
class DirectPattern:
    edge_types: Tuple[RelationshipType, ...]
    negate: bool = False
    kind: ClassVar[str] = "direct"


@dataclass(frozen=True)
class PathPattern:
    """
    A chain of relationship steps from A to B.

    ``path_genders`` filters the person reached at each step (None means
    any) and takes precedence over ``through_gender``, which filters every
    step. With ``historical_spouse`` the spouse step follows any spouse the
    person ever had up to the index.
    """
    steps: Tuple[str, ...]
    path_genders: Optional[Tuple[Optional[Gender], ...]] = None
    through_gender: Optional[Gender] = None
    historical_spouse: bool = False
    negate: bool = False
    kind: ClassVar[str] = "path"

    @classmethod
    def parse(cls, path: str, **kwargs) -> PathPattern:
        # empty segments stay in the steps and fail at evaluation
        steps = tuple(step.strip() for step in path.split(".")) if path.strip() else ()
        return cls(steps=steps, **kwargs)

    @property
    def path(self) -> str:
        return ".".join(self.steps)

    def gender_for_step(self, position: int) -> Optional[Gender]:
        if self.path_genders is not None:
            return self.path_genders[position] if position < len(self.path_genders) else None
        return self.through_gender


@dataclass(frozen=True)
class StateCondition:
    condition: str
    person: str = "B"
    negate: bool = False


@dataclass(frozen=True)
class StatePattern:
    conditions: Tuple[StateCondition, ...]
    negate: bool = False
    kind: ClassVar[str] = "state"


@dataclass(frozen=True)
class EventSpec:
    """A conceptual event (``death``, ``birth``, ...) of a subject reference."""
    type: str
    of: str


@dataclass(frozen=True)
class TemporalCondition:
    type: str
    subject: str = "A"
    event: Optional[EventSpec] = None
    first_event: Optional[EventSpec] = None
    second_event: Optional[EventSpec] = None
    overlap_with: Optional[str] = None
    relationship_between: Optional[Tuple[str, str]] = None
    relationship_type: Optional[str] = None
    negate: bool = False


@dataclass(frozen=True)
class TemporalPattern:
    conditions: Tuple[TemporalCondition, ...]
    negate: bool = False
    kind: ClassVar[str] = "temporal"


@dataclass(frozen=True)
class CompositePattern:
    operator: str
    patterns: Tuple["Pattern", ...] = field(default_factory=tuple)
    negate: bool = False
    kind: ClassVar[str] = "composite"


@dataclass(frozen=True)
class UnsupportedPattern:
    pattern_type: str
    negate: bool = False
    kind: ClassVar[str] = "unsupported"


Pattern = Union[DirectPattern, PathPattern, StatePattern, TemporalPattern, CompositePattern, UnsupportedPattern]


def _gender(value: Any) -> Optional[Gender]:
    try:
        return Gender.coerce(value)
    except ValueError as e:
        raise RegistryError(f"Unknown gender '{value}'") from e


def _event_spec(data: Optional[Dict[str, Any]]) -> Optional[EventSpec]:
    if data is None:
        return None
    try:
        return EventSpec(type=str(data["type"]), of=str(data["of"]))
    except (KeyError, TypeError) as e:
        raise RegistryError(f"Malformed event reference: {data!r}") from e


def _temporal_condition(data: Dict[str, Any]) -> TemporalCondition:
    if "type" not in data:
        raise RegistryError(f"Temporal condition without type: {data!r}")
    relationship = data.get("relationship") or {}
    between = relationship.get("between")
    if between is not None:
        if len(between) != 2:
            raise RegistryError(f"Relationship condition needs exactly two subjects: {between!r}")
        between = (str(between[0]), str(between[1]))
    return TemporalCondition(
        type=str(data["type"]),
        subject=str(data.get("subject", "A")),
        event=_event_spec(data.get("event")),
        first_event=_event_spec(data.get("firstEvent")),
        second_event=_event_spec(data.get("secondEvent")),
        overlap_with=data.get("overlapWith"),
        relationship_between=between,
        relationship_type=relationship.get("type"),
        negate=bool(data.get("negate", False)),
    )


def pattern_from_dict(data: Dict[str, Any]) -> Pattern:
    """
    Build a pattern from its authored mapping.

    Unknown step keywords and condition names are accepted here and only
    fail when the pattern is evaluated; an unknown ``type`` yields an
    UnsupportedPattern.

    Raises:
        RegistryError: If required keys are missing or values malformed.
    """
    if not isinstance(data, dict) or "type" not in data:
        raise RegistryError(f"Pattern must be a mapping with a 'type': {data!r}")

    pattern_type = str(data["type"])
    negate = bool(data.get("negate", False))

    if pattern_type == "direct":
        try:
            edge_types = tuple(RelationshipType(t) for t in data.get("directEdgeTypes") or ())
        except ValueError as e:
            raise RegistryError(f"Unknown relationship type in {data!r}") from e
        return DirectPattern(edge_types=edge_types, negate=negate)

    if pattern_type == "path":
        if "pathPattern" not in data:
            raise RegistryError(f"Path pattern without 'pathPattern': {data!r}")
        genders = data.get("pathGenders")
        return PathPattern.parse(
            str(data["pathPattern"] or ""),
            path_genders=tuple(_gender(g) for g in genders) if genders is not None else None,
            through_gender=_gender(data.get("throughGender")),
            historical_spouse=bool(data.get("historicalSpouse", False)),
            negate=negate,
        )

    if pattern_type == "state":
        conditions = []
        for item in data.get("stateConditions") or ():
            if "condition" not in item:
                raise RegistryError(f"State condition without 'condition': {item!r}")
            conditions.append(StateCondition(
                condition=str(item["condition"]),
                person=str(item.get("person", "B")),
                negate=bool(item.get("negate", False)),
            ))
        return StatePattern(conditions=tuple(conditions), negate=negate)

    if pattern_type == "temporal":
        conditions = tuple(_temporal_condition(item) for item in data.get("temporalConditions") or ())
        return TemporalPattern(conditions=conditions, negate=negate)

    if pattern_type == "composite":
        operator = str(data.get("compositeOp", "AND")).lower()
        if operator not in ("and", "or"):
            raise RegistryError(f"Unknown composite operator '{operator}'")
        patterns = tuple(pattern_from_dict(sub) for sub in data.get("subPatterns") or ())
        return CompositePattern(operator=operator, patterns=patterns, negate=negate)

    return UnsupportedPattern(pattern_type=pattern_type, negate=negate)


def _event_spec_to_dict(spec: Optional[EventSpec]) -> Optional[Dict[str, str]]:
    return None if spec is None else {"type": spec.type, "of": spec.of}


def pattern_to_dict(pattern: Pattern) -> Dict[str, Any]:
    """Inverse of pattern_from_dict; omits keys left at their defaults."""
    data: Dict[str, Any] = {"type": pattern.pattern_type if isinstance(pattern, UnsupportedPattern) else pattern.kind}
    if pattern.negate:
        data["negate"] = True

    if isinstance(pattern, DirectPattern):
        data["directEdgeTypes"] = [t.value for t in pattern.edge_types]
    elif isinstance(pattern, PathPattern):
        data["pathPattern"] = pattern.path
        if pattern.path_genders is not None:
            data["pathGenders"] = [g.value if g else None for g in pattern.path_genders]
        if pattern.through_gender is not None:
            data["throughGender"] = pattern.through_gender.value
        if pattern.historical_spouse:
            data["historicalSpouse"] = True
    elif isinstance(pattern, StatePattern):
        data["stateConditions"] = [
            {"person": c.person, "condition": c.condition, **({"negate": True} if c.negate else {})}
            for c in pattern.conditions
        ]
    elif isinstance(pattern, TemporalPattern):
        conditions: List[Dict[str, Any]] = []
        for c in pattern.conditions:
            item: Dict[str, Any] = {"type": c.type, "subject": c.subject}
            for key, spec in (("event", c.event), ("firstEvent", c.first_event), ("secondEvent", c.second_event)):
                if spec is not None:
                    item[key] = _event_spec_to_dict(spec)
            if c.overlap_with is not None:
                item["overlapWith"] = c.overlap_with
            if c.relationship_between is not None:
                item["relationship"] = {"between": list(c.relationship_between), "type": c.relationship_type}
            if c.negate:
                item["negate"] = True
            conditions.append(item)
        data["temporalConditions"] = conditions
    elif isinstance(pattern, CompositePattern):
        data["compositeOp"] = pattern.operator.upper()
        data["subPatterns"] = [pattern_to_dict(sub) for sub in pattern.patterns]
    return data
