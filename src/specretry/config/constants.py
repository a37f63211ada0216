"""Shared constants for specretry.

This module is the single source of truth for default locations, the
synthetic retry-run flag and the process exit codes.
Import from here rather than hardcoding these values at call sites.
"""

from enum import IntEnum

DEFAULT_RUNNER_BIN: str = "node_modules/protractor/bin/protractor"
DEFAULT_STATE_FILE: str = ".protractor-retry-specs"
DEFAULT_CONFIG_FILE: str = ".specretry.yaml"
DEFAULT_MAX_RETRIES: int = 3

# Appended to every runner invocation so the admission filter knows to
# consult the retry state.
RETRY_RUN_PARAM: str = "--params.isRetryRun"
RETRY_RUN_FLAG: str = f"{RETRY_RUN_PARAM}=true"

# Exported to the runner so the admission filter reads the same file the
# orchestrator writes.
STATE_FILE_ENV_VAR: str = "SPECRETRY_STATE_FILE"


class ExitCode(IntEnum):
    """Exit status of the specretry process."""

    SUCCESS = 0
    BINARY_NOT_FOUND = 1
    RETRIES_EXHAUSTED = 2
    ORCHESTRATION_ERROR = 3
    NO_TARGETS = 4
    INVALID_CONFIGURATION = 5
    INTERRUPTED = 130
