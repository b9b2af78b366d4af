"""
Relationship edges of the temporal genealogical graph.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
import logging
from typing import Any, Dict, FrozenSet, List, Mapping, Optional

logger = logging.getLogger(__name__)


class RelationshipType(str, Enum):
    ERUSIN = "erusin"
    NISUIN = "nisuin"
    DIVORCE = "divorce"
    YIBUM = "yibum"
    CHALITZAH = "chalitzah"
    PARENT_CHILD = "parent-child"
    SIBLING = "sibling"
    UNMARRIED_RELATIONS = "unmarried-relations"


# Edge types that make their endpoints spouses
SPOUSAL_TYPES: FrozenSet[RelationshipType] = frozenset({
    RelationshipType.ERUSIN,
    RelationshipType.NISUIN,
    RelationshipType.YIBUM,
})

# Edge types that close a marriage when an edge is updated into them
ENDING_TYPES: FrozenSet[RelationshipType] = frozenset({
    RelationshipType.DIVORCE,
    RelationshipType.CHALITZAH,
})

_PATCHABLE_FIELDS = ("type", "source_id", "target_id", "child_ids", "hidden", "label")

_PATCH_ALIASES = {
    "sourceId": "source_id",
    "targetId": "target_id",
    "childIds": "child_ids",
}


def parse_relationship_type(value: Any, context: str = "") -> Optional[RelationshipType]:
    """
    Read an authored relationship type.

    Returns:
        The type, or None (with a warning) when the value names no known type.
    """
    try:
        return RelationshipType(value)
    except ValueError:
        where = f" on {context}" if context else ""
        logger.warning(f"Ignoring unknown relationship type '{value}'{where}")
        return None


@dataclass
class Relationship:
    """
    A typed edge between two people.

    For parent-child edges the source is the parent and the target the child.
    Marriage edges may list the ids of the couple's children.

    Attributes:
        id: Unique identifier.
        type: Relationship type.
        source_id: Source person id.
        target_id: Target person id.
        introduced_index: Slice index at which the edge is first added.
        child_ids: Children of a marriage edge.
        hidden: Edge is structural and not meant for display.
        label: Optional display label.
    """
    id: str
    type: RelationshipType
    source_id: str
    target_id: str
    introduced_index: int = 0
    child_ids: List[str] = field(default_factory=list)
    hidden: bool = False
    label: str = ""

    def __post_init__(self):
        self.type = RelationshipType(self.type)

    @property
    def is_spousal(self) -> bool:
        return self.type in SPOUSAL_TYPES

    def involves(self, person_id: str) -> bool:
        return person_id in (self.source_id, self.target_id)

    def connects(self, a: str, b: str) -> bool:
        return {self.source_id, self.target_id} == {a, b}

    def other_party(self, person_id: str) -> Optional[str]:
        if self.source_id == person_id:
            return self.target_id
        if self.target_id == person_id:
            return self.source_id
        return None

    def with_changes(self, changes: Mapping[str, Any]) -> Relationship:
        """
        Return a copy with a partial update applied.

        Keys may use snake_case or the camelCase names of authored data.
        Unknown keys and unknown relationship types are ignored.
        """
        patch: Dict[str, Any] = {}
        for key, value in changes.items():
            name = _PATCH_ALIASES.get(key, key)
            if name not in _PATCHABLE_FIELDS:
                logger.warning(f"Ignoring unknown relationship field '{key}' on edge {self.id}")
                continue
            if name == "type":
                value = parse_relationship_type(value, f"edge {self.id}")
                if value is None:
                    continue
            elif name == "child_ids":
                value = list(value)
            patch[name] = value
        return replace(self, **patch)

    def copy(self) -> Relationship:
        return replace(self, child_ids=list(self.child_ids))
