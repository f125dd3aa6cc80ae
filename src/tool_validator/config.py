"""Configuration management for the tool validator."""

import json
import re
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigError

DEFAULT_CONFIG_DIR = Path.home() / ".tool-validator"
CONFIG_FILENAME = "config.json"

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


class RepairStrategy(str, Enum):
    """How schema violations are repaired.

    Only COERCE repairs anything. NONE passes calls through untouched;
    DEFAULT, PROMPT and BLOCK are reserved and currently behave like NONE.
    """

    COERCE = "coerce"
    DEFAULT = "default"
    PROMPT = "prompt"
    BLOCK = "block"
    NONE = "none"


def to_snake_case(key: str) -> str:
    """Convert a camelCase host config key to its snake_case field name."""
    return _CAMEL_BOUNDARY.sub("_", key).lower()


class ValidatorConfig(BaseSettings):
    """Configuration for tool-call validation and repair."""

    model_config = SettingsConfigDict(
        env_prefix="TOOL_VALIDATOR_",
        env_file=str(DEFAULT_CONFIG_DIR / "config.env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    enabled: bool = Field(default=True, description="Enable tool-call validation")
    repair_strategy: RepairStrategy = Field(
        default=RepairStrategy.COERCE,
        description="Strategy used to repair schema violations",
    )
    block_on_validation_failure: bool = Field(
        default=False,
        description="Block calls whose arguments fail validation and cannot be repaired",
    )
    block_dangerous_calls: bool = Field(
        default=True,
        description="Block calls whose arguments match a danger pattern",
    )
    allow_tool_name_fuzzy_match: bool = Field(
        default=True,
        description="Suggest known tool names for unknown ones",
    )
    max_fuzzy_match_distance: int = Field(
        default=2,
        ge=0,
        description="Largest edit distance reported as a tool-name suggestion",
    )
    log_validation_errors: bool = Field(
        default=True,
        description="Log validation, repair and block events",
    )
    strict_mode: bool = Field(
        default=False,
        description="Block any call left invalid after repair",
    )
    log_level: str = Field(default="INFO", description="Logging level")
    config_dir: Path = Field(
        default_factory=lambda: DEFAULT_CONFIG_DIR,
        description="Configuration directory",
    )

    @classmethod
    def from_plugin_config(cls, plugin_config: Optional[Dict[str, Any]]) -> "ValidatorConfig":
        """
        Build configuration from a host plugin config mapping.

        Accepts camelCase keys as sent by the host as well as snake_case names.
        Unknown keys, such as the host's unused ``customValidators``, are ignored.

        Args:
            plugin_config: Mapping supplied by the host, may be None

        Returns:
            ValidatorConfig instance

        Raises:
            ConfigError: If a value has the wrong type or is out of range
        """
        values = {to_snake_case(key): value for key, value in (plugin_config or {}).items()}
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigError(f"Invalid tool-validator configuration: {e}") from e

    @property
    def should_block_invalid(self) -> bool:
        return self.strict_mode or self.block_on_validation_failure

    @property
    def attempts_coercion(self) -> bool:
        return self.repair_strategy is RepairStrategy.COERCE


def get_config() -> ValidatorConfig:
    """
    Get the tool validator configuration from the environment.

    Raises:
        ConfigError: If an environment value is invalid
    """
    try:
        return ValidatorConfig()
    except ValidationError as e:
        raise ConfigError(f"Invalid tool-validator configuration: {e}") from e


def load_config(path: Path) -> ValidatorConfig:
    """
    Load configuration from a JSON file.

    Args:
        path: Path to the JSON configuration file

    Returns:
        ValidatorConfig, with defaults when the file does not exist

    Raises:
        ConfigError: If the file is not valid JSON or holds invalid values
    """
    if not path.exists():
        return get_config()
    with open(path, encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {path}: {e}") from e
    return ValidatorConfig.from_plugin_config(data)


def save_config(config: ValidatorConfig, path: Path) -> None:
    """
    Save configuration to a JSON file.

    Args:
        config: Configuration to save
        path: Destination file
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(config.model_dump_json(indent=2))
