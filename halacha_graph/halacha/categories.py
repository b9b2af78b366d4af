"""
Status category registry and ordering helpers.

The default categories ship as ``data/categories.yaml``.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import yaml

from halacha_graph.halacha.errors import RegistryError
from halacha_graph.halacha.model import HalachicLevel, StatusCategory
from halacha_graph.paths import BilingualText

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / "data"
DEFAULT_CATEGORIES_YAML = DATA_DIR / "categories.yaml"


def bilingual_from_dict(data: Any, context: str = "") -> BilingualText:
    """Read an ``{en, he}`` mapping; a plain string is used for both."""
    if isinstance(data, str):
        return BilingualText(data, data)
    if not isinstance(data, dict) or "en" not in data:
        raise RegistryError(f"Expected an {{en, he}} mapping{' for ' + context if context else ''}: {data!r}")
    return BilingualText(str(data["en"]), str(data.get("he", data["en"])))


def category_from_dict(data: Dict[str, Any]) -> StatusCategory:
    try:
        return StatusCategory(
            id=str(data["id"]),
            name=bilingual_from_dict(data["name"], data["id"]),
            level=HalachicLevel(data["level"]),
            color=str(data.get("color", "")),
            priority=int(data["priority"]),
            description=bilingual_from_dict(data["description"]) if data.get("description") else None,
        )
    except KeyError as e:
        raise RegistryError(f"Category missing required field {e}: {data!r}") from e
    except ValueError as e:
        if isinstance(e, RegistryError):
            raise
        raise RegistryError(f"Invalid category {data.get('id')!r}: {e}") from e


class CategoryRegistry:
    """Status categories by id, in registration order."""

    def __init__(self, categories: Iterable[StatusCategory] = ()):
        self._categories: Dict[str, StatusCategory] = {}
        for category in categories:
            self.register(category)

    def register(self, category: StatusCategory) -> None:
        if category.id in self._categories:
            logger.debug(f"Replacing category '{category.id}'")
        self._categories[category.id] = category

    def get(self, category_id: str) -> Optional[StatusCategory]:
        return self._categories.get(category_id)

    def __contains__(self, category_id: str) -> bool:
        return category_id in self._categories

    def __iter__(self):
        return iter(self._categories.values())

    def __len__(self) -> int:
        return len(self._categories)

    def all(self) -> List[StatusCategory]:
        return list(self._categories.values())

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> CategoryRegistry:
        if not yaml_path.exists():
            raise FileNotFoundError(f"Category file not found: {yaml_path}")
        try:
            with open(yaml_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Error parsing {yaml_path}: {e}")
        return cls(category_from_dict(item) for item in data.get("categories", []))


_default_registry: Optional[CategoryRegistry] = None


def default_categories() -> CategoryRegistry:
    """The packaged default categories, loaded once."""
    global _default_registry
    if _default_registry is None:
        _default_registry = CategoryRegistry.from_yaml(DEFAULT_CATEGORIES_YAML)
    return _default_registry


def sort_categories_by_priority(categories: Iterable[StatusCategory]) -> List[StatusCategory]:
    """Highest priority first; equal priorities keep their order."""
    return sorted(categories, key=lambda c: -c.priority)


def most_severe_category(categories: Iterable[StatusCategory]) -> Optional[StatusCategory]:
    ordered = sort_categories_by_priority(categories)
    return ordered[0] if ordered else None


def categories_by_level(categories: Iterable[StatusCategory], level: HalachicLevel) -> List[StatusCategory]:
    return [c for c in categories if c.level == HalachicLevel(level)]


def is_more_severe(first: StatusCategory, second: StatusCategory) -> bool:
    """Compare by level first, then by priority."""
    if first.level.rank != second.level.rank:
        return first.level.rank > second.level.rank
    return first.priority > second.priority
