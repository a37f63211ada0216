"""Configuration loading system for specretry.

This module provides the RunConfiguration model, the ConfigLoader that
merges YAML files with command-line values, and shared constants.

Example:
    from specretry.config import ConfigLoader

    config = ConfigLoader().load(overrides={"runner_args": ["protractor.conf.js"]})

"""

from .constants import (
    DEFAULT_CONFIG_FILE,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RUNNER_BIN,
    DEFAULT_STATE_FILE,
    RETRY_RUN_FLAG,
    RETRY_RUN_PARAM,
    STATE_FILE_ENV_VAR,
    ExitCode,
)
from .loader import ConfigLoader
from .models import ConfigurationError, RunConfiguration

__all__ = [
    "DEFAULT_CONFIG_FILE",
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_RUNNER_BIN",
    "DEFAULT_STATE_FILE",
    "RETRY_RUN_FLAG",
    "RETRY_RUN_PARAM",
    "STATE_FILE_ENV_VAR",
    "ConfigLoader",
    "ConfigurationError",
    "ExitCode",
    "RunConfiguration",
]
