from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional
import yaml

DEFAULT_CONFIG_YAML = Path(__file__).parent / "config.yaml"


def _read_yaml(yaml_path: Path) -> Dict[str, Any]:
    if not yaml_path or not yaml_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {yaml_path}. "
            "Please ensure config.yaml exists in the halacha directory."
        )
    try:
        with open(yaml_path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing {yaml_path}: {e}")


@dataclass
class EngineConfig:
    """
    Configuration for the status engine.

    Loads all configuration values from config.yaml in the halacha directory.
    """
    # Marriage permission
    prohibitive_categories: List[str] = field(init=False)

    # Levirate bond status
    bond_category_id: str = field(init=False)
    bond_status_name: Dict[str, str] = field(init=False)
    bond_overridable_rule_id: str = field(init=False)
    bond_exclusion_categories: List[str] = field(init=False)

    # Evaluation
    orient_male_first: bool = field(init=False)
    fallback_to_default_categories: bool = field(init=False)

    def __post_init__(self):
        """Load configuration from the packaged YAML file."""
        config_dict = _read_yaml(DEFAULT_CONFIG_YAML)
        for key in self.__dataclass_fields__.keys():
            if key not in config_dict:
                raise ValueError(f"Required configuration field '{key}' not found in config.yaml")
            object.__setattr__(self, key, config_dict[key])

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> EngineConfig:
        """
        Load configuration from a specific YAML file.

        Args:
            yaml_path: Path to YAML config file.

        Returns:
            EngineConfig: Configuration instance; keys absent from the file
            take their packaged defaults.
        """
        return cls.from_dict(_read_yaml(yaml_path))

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> EngineConfig:
        """
        Create configuration from a dictionary.

        Args:
            config_dict (Dict[str, Any]): Dictionary with configuration values.
        Returns:
            EngineConfig: Configuration instance.
        """
        instance = object.__new__(cls)
        defaults: Optional[Dict[str, Any]] = None

        for key in cls.__dataclass_fields__.keys():
            if key in config_dict:
                object.__setattr__(instance, key, config_dict[key])
                continue
            if defaults is None:
                defaults = _read_yaml(DEFAULT_CONFIG_YAML) if DEFAULT_CONFIG_YAML.exists() else {}
            if key not in defaults:
                raise ValueError(f"Required configuration field '{key}' not found")
            object.__setattr__(instance, key, defaults[key])

        return instance

    def is_prohibitive(self, category_id: str) -> bool:
        return category_id in self.prohibitive_categories
