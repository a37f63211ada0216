"""Retry state persistence.

The retry state is the list of specs that failed in the most recent run.
The orchestrator writes it; the admission filter, running inside the
next runner process, reads it. On disk it is plain text with one full
spec name per line.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from specretry.config.constants import DEFAULT_STATE_FILE, STATE_FILE_ENV_VAR

logger = logging.getLogger(__name__)


class RetryStateError(Exception):
    """Raised when the retry state cannot be written."""

    pass


class RetryStateStore:
    """Reads and writes the retry state file.

    Example:
        >>> store = RetryStateStore(Path(".protractor-retry-specs"))
        >>> store.save(["Login rejects a bad password"])
        >>> store.load()
        ['Login rejects a bad password']
        >>> store.clear()

    """

    def __init__(self, path: Path) -> None:
        """Initialize the store.

        Args:
            path: Location of the state file.

        """
        self.path = Path(path)

    @classmethod
    def from_environment(cls) -> RetryStateStore:
        """Locate the state file the orchestrator exported to this process."""
        location = os.environ.get(STATE_FILE_ENV_VAR) or DEFAULT_STATE_FILE
        return cls(Path(location).resolve())

    def exists(self) -> bool:
        """Whether a retry state is currently present."""
        return self.path.exists()

    def save(self, names: list[str]) -> None:
        """Overwrite the state with the given spec names.

        Args:
            names: Failed spec names in discovery order.

        Raises:
            RetryStateError: If the file cannot be written.

        """
        logger.debug(f"Writing retry file at {self.path}")
        # Atomic write using temp file
        temp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            temp_path.write_text("\n".join(names), encoding="utf-8")
            temp_path.replace(self.path)
        except OSError as e:
            raise RetryStateError(f"Failed to write retry state {self.path}: {e}") from e

    def load(self) -> list[str] | None:
        """Read the stored spec names.

        Returns:
            The names, or None if no state is present.

        """
        try:
            content = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        return [name for name in content.split("\n") if name]

    def clear(self) -> None:
        """Delete the state. Clearing an absent state is a no-op."""
        logger.debug(f"Deleting {self.path}")
        self.path.unlink(missing_ok=True)
