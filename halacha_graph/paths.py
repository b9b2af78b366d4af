"""
Relationship paths and their bilingual descriptions.

A path is a list of steps from one person to another, each step naming the
relationship kind that was followed and the person reached. Descriptions
read as a possessive chain in English ("Brother's wife") and as a chain of
"של" constructs in Hebrew.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from halacha_graph.person import Gender


class StepKind(str, Enum):
    PARENT = "parent"
    CHILD = "child"
    SIBLING = "sibling"
    SPOUSE = "spouse"


@dataclass(frozen=True)
class BilingualText:
    en: str
    he: str


# (neutral, male, female) labels per step kind
_STEP_LABELS: Dict[StepKind, Tuple[BilingualText, BilingualText, BilingualText]] = {
    StepKind.PARENT: (
        BilingualText("parent", "הורה"),
        BilingualText("father", "אב"),
        BilingualText("mother", "אם"),
    ),
    StepKind.CHILD: (
        BilingualText("child", "ילד"),
        BilingualText("son", "בן"),
        BilingualText("daughter", "בת"),
    ),
    StepKind.SIBLING: (
        BilingualText("sibling", "אח/אחות"),
        BilingualText("brother", "אח"),
        BilingualText("sister", "אחות"),
    ),
    StepKind.SPOUSE: (
        BilingualText("spouse", "בן/בת זוג"),
        BilingualText("husband", "בעל"),
        BilingualText("wife", "אשה"),
    ),
}


def step_label(kind: StepKind, gender: Optional[Gender] = None) -> BilingualText:
    neutral, male, female = _STEP_LABELS[StepKind(kind)]
    if gender == Gender.MALE:
        return male
    if gender == Gender.FEMALE:
        return female
    return neutral


@dataclass(frozen=True)
class PathStep:
    """
    One step of a relationship path.

    Attributes:
        kind: Relationship kind followed.
        person_id: Person reached by the step.
        edge_id: Edge traversed, when the step follows a single edge.
        gender: Gender of the person reached, used for labels.
    """
    kind: StepKind
    person_id: str
    edge_id: Optional[str] = None
    gender: Optional[Gender] = None


@dataclass
class RelationshipPath:
    steps: List[PathStep] = field(default_factory=list)
    description: BilingualText = field(default_factory=lambda: BilingualText("", ""))

    @classmethod
    def from_steps(cls, steps: List[PathStep]) -> RelationshipPath:
        return cls(steps=list(steps), description=describe_path(steps))

    @property
    def person_ids(self) -> List[str]:
        return [step.person_id for step in self.steps]

    def __len__(self) -> int:
        return len(self.steps)


def describe_path(steps: List[PathStep]) -> BilingualText:
    """
    Build the bilingual description of a path.

    Example:
        sibling(male) then spouse(female) -> "Brother's wife" / "אשה של אח"
    """
    if not steps:
        return BilingualText("Self", "עצמו")

    labels = [step_label(step.kind, step.gender) for step in steps]
    en = "'s ".join(label.en for label in labels)
    he = " של ".join(label.he for label in reversed(labels))
    return BilingualText(en[:1].upper() + en[1:], he)
