"""
Halachic registry: categories, rules, disputes and named opinion profiles.

Registries are authored as YAML. The packaged sample registry combines
``data/categories.yaml``, ``data/rules.yaml`` and ``data/machlokos.yaml``.

Example:
    registry = load_sample_registry()
    rule = registry.rule("ervah-brothers-wife")
    registry.category(rule.produces.category_id)
"""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import yaml

from halacha_graph.halacha.categories import (
    DATA_DIR,
    CategoryRegistry,
    bilingual_from_dict,
    category_from_dict,
    default_categories,
)
from halacha_graph.halacha.errors import RegistryError
from halacha_graph.halacha.model import (
    HalachicRule,
    Machlokas,
    Opinion,
    OpinionCondition,
    OpinionProfile,
    RuleProduces,
    StatusCategory,
)
from halacha_graph.halacha.patterns import pattern_from_dict

logger = logging.getLogger(__name__)

SAMPLE_RULES_YAML = DATA_DIR / "rules.yaml"
SAMPLE_MACHLOKOS_YAML = DATA_DIR / "machlokos.yaml"


def _require(data: Dict[str, Any], key: str, what: str) -> Any:
    if key not in data:
        raise RegistryError(f"{what} missing required field '{key}': {data!r}")
    return data[key]


def _string_list(data: Dict[str, Any], key: str, legacy_key: str) -> List[str]:
    """Read a list of strings; one string, or a single-valued legacy key, also works."""
    value = data.get(key, data.get(legacy_key))
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    return [str(v) for v in value]


def rule_from_dict(data: Dict[str, Any]) -> HalachicRule:
    rule_id = str(_require(data, "id", "Rule"))
    produces = _require(data, "produces", f"Rule '{rule_id}'")
    category_id = produces.get("categoryId") if isinstance(produces, dict) else None
    if not category_id:
        raise RegistryError(f"Rule '{rule_id}' must name produces.categoryId")

    applies_when = []
    for condition in data.get("appliesWhen") or ():
        applies_when.append(OpinionCondition(
            machlokas_id=str(_require(condition, "machlokasId", f"Rule '{rule_id}' condition")),
            opinion_id=str(_require(condition, "opinionId", f"Rule '{rule_id}' condition")),
        ))

    return HalachicRule(
        id=rule_id,
        name=bilingual_from_dict(_require(data, "name", f"Rule '{rule_id}'"), rule_id),
        pattern=pattern_from_dict(_require(data, "pattern", f"Rule '{rule_id}'")),
        produces=RuleProduces(
            category_id=str(category_id),
            name=bilingual_from_dict(produces["name"]) if produces.get("name") else None,
        ),
        depends_on=[str(m) for m in data.get("dependsOn", data.get("dependsOnMachlokos")) or ()],
        applies_when=applies_when,
        sources=_string_list(data, "sources", "source"),
    )


def machlokas_from_dict(data: Dict[str, Any]) -> Machlokas:
    machlokas_id = str(_require(data, "id", "Machlokas"))
    opinions = [
        Opinion(
            id=str(_require(item, "id", f"Opinion of '{machlokas_id}'")),
            name=bilingual_from_dict(item.get("name", item["id"])),
            holders=_string_list(item, "holders", "authority"),
            position=bilingual_from_dict(item["position"]) if item.get("position") else None,
            sources=_string_list(item, "sources", "source"),
        )
        for item in data.get("opinions") or ()
    ]
    if not opinions:
        raise RegistryError(f"Machlokas '{machlokas_id}' has no opinions")
    return Machlokas(
        id=machlokas_id,
        name=bilingual_from_dict(_require(data, "name", f"Machlokas '{machlokas_id}'"), machlokas_id),
        opinions=opinions,
        default_opinion_id=data.get("defaultOpinionId"),
        era=str(data.get("era", "")),
        sources=_string_list(data, "sources", "source"),
        description=bilingual_from_dict(data["description"]) if data.get("description") else None,
    )


def profile_from_dict(data: Dict[str, Any]) -> OpinionProfile:
    return OpinionProfile(
        id=str(_require(data, "id", "Profile")),
        name=str(data.get("name", data["id"])),
        selections={str(k): str(v) for k, v in (data.get("selections") or {}).items()},
        description=str(data.get("description", "")),
    )


@dataclass
class HalachicRegistry:
    """
    Everything the status engine evaluates against.

    Attributes:
        categories: Status categories by id.
        rules: Rules in evaluation order.
        machlokos: Disputes.
        profiles: Named opinion profiles.
    """
    categories: CategoryRegistry = field(default_factory=CategoryRegistry)
    rules: List[HalachicRule] = field(default_factory=list)
    machlokos: List[Machlokas] = field(default_factory=list)
    profiles: List[OpinionProfile] = field(default_factory=list)

    def category(self, category_id: str) -> Optional[StatusCategory]:
        return self.categories.get(category_id)

    def rule(self, rule_id: str) -> Optional[HalachicRule]:
        for rule in self.rules:
            if rule.id == rule_id:
                return rule
        return None

    def machlokas(self, machlokas_id: str) -> Optional[Machlokas]:
        for machlokas in self.machlokos:
            if machlokas.id == machlokas_id:
                return machlokas
        return None

    def profile(self, profile_id: str) -> Optional[OpinionProfile]:
        for profile in self.profiles:
            if profile.id == profile_id:
                return profile
        return None

    def rules_producing(self, category_ids: Iterable[str]) -> List[HalachicRule]:
        wanted = set(category_ids)
        return [rule for rule in self.rules if rule.produces.category_id in wanted]

    def unknown_category_ids(self) -> List[str]:
        """Category ids named by rules but not registered."""
        missing = []
        for rule in self.rules:
            if rule.produces.category_id not in self.categories and rule.produces.category_id not in missing:
                missing.append(rule.produces.category_id)
        return missing

    def merged(self, other: HalachicRegistry) -> HalachicRegistry:
        """A new registry with ``other``'s entries added; same ids are replaced."""
        categories = CategoryRegistry(self.categories.all() + other.categories.all())
        rule_ids = {rule.id for rule in other.rules}
        machlokas_ids = {m.id for m in other.machlokos}
        profile_ids = {p.id for p in other.profiles}
        return HalachicRegistry(
            categories=categories,
            rules=[r for r in self.rules if r.id not in rule_ids] + list(other.rules),
            machlokos=[m for m in self.machlokos if m.id not in machlokas_ids] + list(other.machlokos),
            profiles=[p for p in self.profiles if p.id not in profile_ids] + list(other.profiles),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> HalachicRegistry:
        """
        Build a registry from a mapping with optional ``categories``,
        ``rules``, ``machlokos`` and ``profiles`` lists.

        Raises:
            RegistryError: On malformed entries.
        """
        return cls(
            categories=CategoryRegistry(category_from_dict(item) for item in data.get("categories") or ()),
            rules=[rule_from_dict(item) for item in data.get("rules") or ()],
            machlokos=[machlokas_from_dict(item) for item in data.get("machlokos") or ()],
            profiles=[profile_from_dict(item) for item in data.get("profiles") or ()],
        )

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> HalachicRegistry:
        if not yaml_path.exists():
            raise FileNotFoundError(f"Registry file not found: {yaml_path}")
        try:
            with open(yaml_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Error parsing {yaml_path}: {e}")
        registry = cls.from_dict(data)
        logger.debug(f"Loaded {len(registry.rules)} rule(s) and {len(registry.machlokos)} machlokas from {yaml_path}")
        return registry


def load_sample_registry() -> HalachicRegistry:
    """Default categories with the packaged sample rules and disputes."""
    registry = HalachicRegistry(categories=CategoryRegistry(default_categories().all()))
    registry = registry.merged(HalachicRegistry.from_yaml(SAMPLE_RULES_YAML))
    registry = registry.merged(HalachicRegistry.from_yaml(SAMPLE_MACHLOKOS_YAML))
    return registry
