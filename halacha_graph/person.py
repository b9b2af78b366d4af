"""
Person nodes of the temporal genealogical graph.

A person carries a gender and the slice indices bounding their lifetime.
The lifetime is global to the graph: a person exists from the slice that
introduces them and, once dead, stays dead for every later slice.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"

    @classmethod
    def coerce(cls, value) -> Optional["Gender"]:
        """Return a Gender for a Gender/str value, None for None."""
        if value is None or isinstance(value, Gender):
            return value
        return cls(str(value).lower())


@dataclass
class Person:
    """
    A person in the genealogical graph.

    Attributes:
        id: Unique identifier.
        gender: Gender of the person.
        introduced_index: Slice index at which the person enters the graph.
        death_index: Slice index of death, or None while alive.
        name: Optional display name.
    """
    id: str
    gender: Gender
    introduced_index: int = 0
    death_index: Optional[int] = None
    name: str = ""

    def __post_init__(self):
        self.gender = Gender.coerce(self.gender)

    @property
    def is_male(self) -> bool:
        return self.gender == Gender.MALE

    @property
    def is_female(self) -> bool:
        return self.gender == Gender.FEMALE

    def is_dead_at(self, index: int) -> bool:
        return self.death_index is not None and self.death_index <= index

    def is_alive_at(self, index: int) -> bool:
        """True if introduced by ``index`` and not dead at ``index``."""
        if self.introduced_index > index:
            return False
        return not self.is_dead_at(index)

    def __str__(self) -> str:
        return self.name or self.id
