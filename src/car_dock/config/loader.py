"""Dock configuration loader."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from car_dock.resolver import Exclusions
from car_dock.types import ComponentName

logger = logging.getLogger(__name__)


class DockConfig(BaseModel):
    """Configuration for the dock engine."""

    capacity: int = Field(4, ge=1, le=20, description="Number of dock slots")
    default_apps: List[str] = Field(
        default_factory=list,
        description="Flattened components pinned at startup, in slot order",
    )
    excluded_components: List[str] = Field(
        default_factory=list, description="Flattened components never shown"
    )
    excluded_packages: List[str] = Field(
        default_factory=list, description="Packages never shown"
    )
    user_id: int = Field(0, ge=0, description="User whose tasks feed the dock")
    max_tasks_to_fetch: int = Field(
        20, ge=1, le=100, description="Running tasks considered per materialization"
    )
    max_unique_id_tries: int = Field(
        20, ge=0, le=100, description="Retries when generating a colliding item id"
    )
    no_space_message: str = Field(
        "No spots available to pin", description="Shown when a pin has nowhere to go"
    )
    default_icon_color: int = Field(
        0xFF9E9E9E, description="Icon color used when none can be resolved"
    )
    log_level: str = Field("INFO", description="Logging level name")

    @field_validator("default_apps", "excluded_components")
    @classmethod
    def validate_components(cls, v: List[str]) -> List[str]:
        """Reject strings that are not ``package/class``."""
        for value in v:
            if ComponentName.unflatten(value) is None:
                raise ValueError(f"Invalid component name: {value!r}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {v}")
        return level

    def default_components(self) -> List[ComponentName]:
        """Default pinned components, in order."""
        return [ComponentName.unflatten(c) for c in self.default_apps]

    def exclusions(self) -> Exclusions:
        """Exclusion sets built from this config."""
        return Exclusions(
            packages=frozenset(self.excluded_packages),
            components=frozenset(
                ComponentName.unflatten(c) for c in self.excluded_components
            ),
        )


class ConfigLoader:
    """Loads dock configuration from YAML."""

    DEFAULT_CONFIG_PATHS = [
        "/etc/car-dock/dock_config.yaml",
        "./config/dock_config.yaml",
        "~/.config/car-dock/dock_config.yaml",
    ]

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to configuration file (optional)
        """
        self.config_path = config_path
        self.config: Dict[str, Any] = {}
        self.loaded_from: Optional[Path] = None
        self.load_config()

    def load_config(self) -> Dict[str, Any]:
        """Load raw configuration from the first readable file.

        Returns:
            Configuration dictionary
        """
        if self.config_path:
            paths = [self.config_path]
        else:
            paths = self.DEFAULT_CONFIG_PATHS

        for path in paths:
            expanded_path = Path(path).expanduser()
            if expanded_path.exists():
                try:
                    with open(expanded_path, "r") as f:
                        data = yaml.safe_load(f) or {}
                except (OSError, yaml.YAMLError) as e:
                    logger.error(f"Error loading config from {expanded_path}: {e}")
                    continue

                if not isinstance(data, dict):
                    logger.error(f"Config at {expanded_path} is not a mapping")
                    continue

                # settings may live at the top level or under a "dock" key
                section = data.get("dock", data) or {}
                if not isinstance(section, dict):
                    logger.error(f"Dock section in {expanded_path} is not a mapping")
                    continue

                self.config = section
                self.loaded_from = expanded_path
                logger.info(f"Loaded configuration from {expanded_path}")
                return self.config

        logger.warning("No configuration file found, using defaults")
        self.config = {}
        return self.config

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by dot-notation key.

        Args:
            key: Configuration key (e.g., 'capacity')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        value = self.config

        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def dock_config(self) -> DockConfig:
        """Validated dock configuration.

        Raises:
            pydantic.ValidationError: If the file holds invalid values
        """
        return DockConfig(**self.config)
