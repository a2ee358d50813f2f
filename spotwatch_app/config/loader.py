"""Configuration loader with 3-tier parameter precedence."""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional

import yaml

from ..errors import ConfigurationError
from ..logging.config import get_logger
from .defaults import (
    EngineConfig,
    FeedParams,
    LoggingParams,
    PollingParams,
    ReferenceParams,
    ScheduleParams,
    get_default_config,
)
from .validation import ConfigValidator, ValidationError

logger = get_logger(__name__)

CONFIG_FILENAME = "engine.yaml"

_SECTIONS = {
    "schedule": ScheduleParams,
    "polling": PollingParams,
    "reference": ReferenceParams,
    "feed": FeedParams,
    "logging": LoggingParams,
}


@dataclass(frozen=True)
class ConfigLoader:
    """Manages configuration loading with 3-tier precedence."""

    config_dir: Path
    defaults: EngineConfig

    @classmethod
    def create(cls, config_dir: Optional[Path] = None) -> "ConfigLoader":
        """Create a ConfigLoader instance."""
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent / "config"

        return cls(
            config_dir=Path(config_dir),
            defaults=get_default_config(),
        )

    def load_file_config(self) -> dict[str, Any]:
        """Load overrides from the engine YAML file, if present."""
        config_file = self.config_dir / CONFIG_FILENAME

        if not config_file.exists():
            return {}

        with open(config_file) as f:
            file_config = yaml.safe_load(f)

        if file_config is None:
            return {}
        if not isinstance(file_config, dict):
            raise ConfigurationError(
                f"{config_file} must contain a mapping at the top level",
                context={"path": str(config_file)}
            )
        return file_config

    def merge_config(self, overrides: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """
        Merge configuration with 3-tier precedence.

        Priority order:
        1. Explicit overrides (highest priority)
        2. Engine YAML file
        3. Global defaults (lowest priority)
        """
        config = self._dataclass_to_dict(self.defaults)

        config = self._deep_merge(config, self.load_file_config())

        if overrides:
            config = self._deep_merge(config, overrides)

        return config

    def load(self, overrides: Optional[dict[str, Any]] = None) -> EngineConfig:
        """Merge, validate and build the typed engine configuration.

        Raises:
            ConfigurationError: if any section is invalid
        """
        config = self.merge_config(overrides)

        errors = self._unknown_keys(config)
        if not errors:
            errors = ConfigValidator.validate_config(config)
        if errors:
            error_msgs = [f"{err.field}: {err.message} (got: {err.value})" for err in errors]
            logger.error("Configuration validation failed", errors=error_msgs)
            raise ConfigurationError(
                "Invalid engine configuration: " + "; ".join(error_msgs),
                errors=errors
            )

        feed = dict(config["feed"])
        if not feed.get("api_key"):
            feed["api_key"] = os.environ.get(feed["api_key_env"], "")
        config["feed"] = feed

        return EngineConfig(**{
            name: section_cls(**config[name]) for name, section_cls in _SECTIONS.items()
        })

    def _unknown_keys(self, config: dict[str, Any]) -> list[ValidationError]:
        errors = []
        for name, value in config.items():
            section_cls = _SECTIONS.get(name)
            if section_cls is None:
                errors.append(ValidationError(field=name, message="Unknown section", value=value))
                continue
            if not isinstance(value, dict):
                errors.append(ValidationError(field=name, message="Must be a mapping", value=value))
                continue
            known = {f.name for f in fields(section_cls)}
            for key in value:
                if key not in known:
                    errors.append(ValidationError(
                        field=f"{name}.{key}", message="Unknown parameter", value=value[key]
                    ))
        return errors

    def _dataclass_to_dict(self, obj: Any) -> dict[str, Any]:
        """Convert nested dataclasses to dictionary."""
        if hasattr(obj, '__dataclass_fields__'):
            result = {}
            for field_name, _field in obj.__dataclass_fields__.items():
                value = getattr(obj, field_name)
                if hasattr(value, '__dataclass_fields__'):
                    result[field_name] = self._dataclass_to_dict(value)
                else:
                    result[field_name] = value
            return result
        return obj  # type: ignore[no-any-return]

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result
