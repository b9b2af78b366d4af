"""
Data model of the halachic rule layer.

Core classes:
    - HalachicLevel: Ordered severity levels.
    - StatusCategory: A status a pair of people can hold.
    - Machlokas / Opinion / OpinionProfile: Disputes, their opinions, and a
      user's selection of opinions.
    - HalachicRule: A pattern that yields a status category.
    - AppliedStatus / ComputedStatus: Results of status computation.
    - ZikahStatus / ZikahInfo: Levirate bond state as reported to callers.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from halacha_graph.paths import BilingualText, RelationshipPath
from halacha_graph.halacha.patterns import Pattern


class HalachicLevel(str, Enum):
    """Severity levels, from most to least restrictive."""
    DORAITA = "doraita"
    DRABBANAN = "drabbanan"
    MINHAG = "minhag"
    CHUMRA = "chumra"
    KULA = "kula"

    @property
    def rank(self) -> int:
        """Higher is more restrictive."""
        return _LEVEL_RANKS[self]

    @property
    def color(self) -> str:
        return LEVEL_COLORS[self]


_LEVEL_RANKS: Dict[HalachicLevel, int] = {
    HalachicLevel.DORAITA: 4,
    HalachicLevel.DRABBANAN: 3,
    HalachicLevel.MINHAG: 2,
    HalachicLevel.CHUMRA: 1,
    HalachicLevel.KULA: 0,
}

LEVEL_COLORS: Dict[HalachicLevel, str] = {
    HalachicLevel.DORAITA: "#ef4444",
    HalachicLevel.DRABBANAN: "#f97316",
    HalachicLevel.MINHAG: "#eab308",
    HalachicLevel.CHUMRA: "#8b5cf6",
    HalachicLevel.KULA: "#22c55e",
}


@dataclass(frozen=True)
class StatusCategory:
    """
    A status that can hold between two people.

    Attributes:
        id: Unique identifier (e.g. 'ervah-doraita').
        name: Bilingual display name.
        level: Severity level.
        color: Display color.
        priority: Ordering weight; higher wins as primary status.
        description: Optional bilingual description.
    """
    id: str
    name: BilingualText
    level: HalachicLevel
    color: str
    priority: int
    description: Optional[BilingualText] = None


@dataclass
class Opinion:
    """
    One side of a dispute.

    Attributes:
        id: Unique identifier within the dispute.
        name: Bilingual display name.
        holders: Authorities who hold the opinion.
        position: What the opinion says.
        sources: Textual source references.
    """
    id: str
    name: BilingualText
    holders: List[str] = field(default_factory=list)
    position: Optional[BilingualText] = None
    sources: List[str] = field(default_factory=list)


@dataclass
class Machlokas:
    """A dispute between authorities, with the opinions held."""
    id: str
    name: BilingualText
    opinions: List[Opinion] = field(default_factory=list)
    default_opinion_id: Optional[str] = None
    era: str = ""
    sources: List[str] = field(default_factory=list)
    description: Optional[BilingualText] = None

    def opinion(self, opinion_id: str) -> Optional[Opinion]:
        for opinion in self.opinions:
            if opinion.id == opinion_id:
                return opinion
        return None

    @property
    def default_opinion(self) -> Optional[Opinion]:
        """The declared default opinion, else the first one listed."""
        if self.default_opinion_id is not None:
            opinion = self.opinion(self.default_opinion_id)
            if opinion is not None:
                return opinion
        return self.opinions[0] if self.opinions else None


@dataclass(frozen=True)
class OpinionCondition:
    machlokas_id: str
    opinion_id: str


@dataclass(frozen=True)
class RuleProduces:
    category_id: str
    name: Optional[BilingualText] = None


@dataclass
class HalachicRule:
    """
    A pattern over the graph that yields a status category.

    Attributes:
        id: Unique identifier.
        name: Bilingual name.
        pattern: Pattern matched from person A to person B.
        produces: Category the rule contributes when it matches.
        depends_on: Ids of disputes whose outcome can affect the rule.
        applies_when: Opinion conditions that must all be selected.
        sources: Textual source references.
    """
    id: str
    name: BilingualText
    pattern: Pattern
    produces: RuleProduces
    depends_on: List[str] = field(default_factory=list)
    applies_when: List[OpinionCondition] = field(default_factory=list)
    sources: List[str] = field(default_factory=list)

    @property
    def is_conditional(self) -> bool:
        return bool(self.applies_when)


@dataclass
class OpinionProfile:
    """A selection of one opinion per dispute."""
    id: str
    name: str = ""
    selections: Dict[str, str] = field(default_factory=dict)
    description: str = ""

    def selected(self, machlokas_id: str) -> Optional[str]:
        return self.selections.get(machlokas_id)

    def cache_key(self) -> tuple:
        return tuple(sorted(self.selections.items()))


@dataclass
class AppliedStatus:
    """A category contributed to a pair by one rule (or by an active bond)."""
    category: StatusCategory
    rule_id: str
    rule_name: BilingualText
    sources: List[str] = field(default_factory=list)
    path: Optional[RelationshipPath] = None
    explanation: str = ""

    @property
    def source(self) -> str:
        return "; ".join(self.sources)


@dataclass(frozen=True)
class AlternativeOutcome:
    opinion_id: str
    would_produce_category_id: Optional[str] = None


@dataclass
class RelevantMachlokas:
    """A dispute that kept a rule from applying under the current profile."""
    machlokas_id: str
    rule_id: str
    current_opinion_id: Optional[str]
    alternative_outcomes: List[AlternativeOutcome] = field(default_factory=list)


class ZikahStatus(str, Enum):
    AWAITING = "shomeres-yavam"
    AFTER_MAAMAR = "after-maamar"
    AFTER_YIBUM = "after-yibum"
    AFTER_CHALITZAH = "after-chalitzah"

    @property
    def is_open(self) -> bool:
        return self in (ZikahStatus.AWAITING, ZikahStatus.AFTER_MAAMAR)


@dataclass
class ZikahInfo:
    """
    Levirate bond state for one widow as seen at a slice index.

    Attributes:
        is_active: Bond in force at the index.
        widow_id: The widow bound by the bond.
        deceased_id: Her late husband.
        bound_to: Eligible brothers still alive at the index.
        status: Bond status as of the index.
        originating_marriage_id: The marriage edge the bond arose from.
        created_at_index: Slice of the husband's death.
        resolved_at_index: Slice of the resolving act, if resolved by then.
        resolution: 'yibum' or 'chalitzah' once resolved.
        resolved_by: Brother who performed the resolving act.
        maamar_by: Brother who performed a partial act.
    """
    is_active: bool
    widow_id: str
    deceased_id: str
    bound_to: List[str]
    status: ZikahStatus
    originating_marriage_id: str
    created_at_index: int
    resolved_at_index: Optional[int] = None
    resolution: Optional[str] = None
    resolved_by: Optional[str] = None
    maamar_by: Optional[str] = None


@dataclass
class ComputedStatus:
    """
    Everything the engine knows about a pair at a slice index.

    ``person_a`` is the party the rules were evaluated from.
    """
    person_a: str
    person_b: str
    at_index: int
    primary_status: Optional[AppliedStatus] = None
    all_statuses: List[AppliedStatus] = field(default_factory=list)
    zikah_info: Optional[ZikahInfo] = None
    relevant_machlokos: List[RelevantMachlokas] = field(default_factory=list)

    @property
    def primary_category(self) -> Optional[StatusCategory]:
        return self.primary_status.category if self.primary_status else None

    @property
    def category_ids(self) -> List[str]:
        return [status.category.id for status in self.all_statuses]

    def has_category(self, category_id: str) -> bool:
        return category_id in self.category_ids
