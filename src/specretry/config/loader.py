"""Configuration loader for specretry.

This module provides the ConfigLoader class for merging an optional YAML
configuration file with values given on the command line:
    command line > config file > built-in defaults
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .constants import DEFAULT_CONFIG_FILE
from .models import ConfigurationError, RunConfiguration

logger = logging.getLogger(__name__)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries.

    Values in override take precedence. Nested dicts are merged recursively.
    Lists are replaced entirely (not appended).

    Args:
        base: Base dictionary
        override: Override dictionary (values take precedence)

    Returns:
        Merged dictionary

    """
    result = base.copy()

    for key, value in override.items():
        if value is None:
            # Skip None values - don't override with None
            continue

        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


class ConfigLoader:
    """Build a RunConfiguration from a YAML file and CLI overrides.

    Example:
        loader = ConfigLoader()
        config = loader.load(
            config_file=None,
            overrides={"runner_args": ["conf.js"], "max_retries": 2},
        )

    """

    def __init__(self, base_path: str | Path | None = None) -> None:
        """Initialize the ConfigLoader.

        Args:
            base_path: Directory searched for .specretry.yaml. Defaults to the
                current working directory.

        """
        if base_path is None:
            self.base_path = Path.cwd()
        else:
            self.base_path = Path(base_path)

    def _load_yaml(self, path: Path) -> dict[str, Any]:
        """Load a YAML file.

        Args:
            path: Path to YAML file

        Returns:
            Parsed YAML content as dict

        Raises:
            ConfigurationError: If file cannot be read or parsed

        """
        try:
            with open(path) as f:
                content = yaml.safe_load(f)
        except FileNotFoundError:
            raise ConfigurationError(f"Configuration file not found: {path}")
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}")
        except PermissionError:
            raise ConfigurationError(f"Permission denied reading: {path}")

        if content is None:
            return {}
        if not isinstance(content, dict):
            raise ConfigurationError(f"Expected a mapping at the top of {path}")
        return content

    def _load_yaml_optional(self, path: Path) -> dict[str, Any] | None:
        """Load a YAML file if it exists.

        Args:
            path: Path to YAML file

        Returns:
            Parsed YAML content as dict, or None if file doesn't exist

        """
        if not path.exists():
            return None
        return self._load_yaml(path)

    def load(
        self,
        config_file: Path | None = None,
        overrides: dict[str, Any] | None = None,
    ) -> RunConfiguration:
        """Load and merge configuration.

        Args:
            config_file: Explicit YAML file. When omitted, .specretry.yaml in
                base_path is used if it exists.
            overrides: Values from the command line; None entries are ignored.

        Returns:
            Validated, frozen RunConfiguration

        Raises:
            ConfigurationError: If the file is unreadable or values are invalid

        """
        if config_file is not None:
            file_data = self._load_yaml(config_file)
            logger.debug(f"Loaded configuration from {config_file}")
        else:
            default_path = self.base_path / DEFAULT_CONFIG_FILE
            file_data = self._load_yaml_optional(default_path) or {}
            if file_data:
                logger.debug(f"Loaded configuration from {default_path}")

        merged = _deep_merge(file_data, overrides or {})

        try:
            return RunConfiguration(**merged)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e
