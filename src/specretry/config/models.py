"""Pydantic models for specretry configuration.

The run configuration is built exactly once (from the CLI and an optional
YAML file) and then handed to every component; nothing reads settings
from module globals.
"""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from .constants import DEFAULT_MAX_RETRIES, DEFAULT_RUNNER_BIN, DEFAULT_STATE_FILE


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


class RunConfiguration(BaseModel):
    """Immutable configuration for one retry session.

    Maps to the CLI options and, optionally, .specretry.yaml
    """

    runner_bin: Path = Field(
        default=Path(DEFAULT_RUNNER_BIN), description="Path to the test-runner binary"
    )
    runner_args: tuple[str, ...] = Field(
        default=(), description="Arguments forwarded to the test runner"
    )
    timeout: float = Field(default=0, ge=0, description="Wall-clock timeout in seconds (0 = off)")
    retry_pause: float = Field(
        default=0, ge=0, description="Pause between retries in seconds (0 = off)"
    )
    max_retries: int = Field(
        default=DEFAULT_MAX_RETRIES, ge=0, description="Retries after the first attempt"
    )
    filter_path: Path | None = Field(default=None, description="Optional filter-hook module")
    verbosity: int = Field(default=0, ge=0, description="0 = errors, 1 = info, 2+ = debug")
    state_file: Path = Field(
        default=Path(DEFAULT_STATE_FILE), description="Location of the retry state"
    )

    model_config = {"frozen": True}

    @field_validator("runner_bin", "state_file")
    @classmethod
    def resolve_path(cls, v: Path) -> Path:
        """Resolve paths against the working directory."""
        return Path(v).expanduser().resolve()

    @field_validator("filter_path")
    @classmethod
    def resolve_filter_path(cls, v: Path | None) -> Path | None:
        """Resolve the filter-hook module path if one is given."""
        if v is None:
            return None
        return Path(v).expanduser().resolve()

    @property
    def max_attempts(self) -> int:
        """Total number of runner invocations allowed."""
        return self.max_retries + 1
