"""Data models for the retry loop.

Phase flow for one session:
  RUNNING
    -> RETRY      (failures or unreadable output, budget left)
    -> SUCCESS    (clean run)
  Terminal: SUCCESS | EXHAUSTED | FATAL
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from specretry.config.constants import ExitCode


class RetryPhase(str, Enum):
    """Phase of the retry state machine."""

    RUNNING = "running"
    RETRY = "retry"
    SUCCESS = "success"
    EXHAUSTED = "exhausted"
    FATAL = "fatal"


_TERMINAL_PHASES: frozenset[RetryPhase] = frozenset(
    [RetryPhase.SUCCESS, RetryPhase.EXHAUSTED, RetryPhase.FATAL]
)


def is_terminal_phase(phase: RetryPhase) -> bool:
    """Return True if the loop stops in this phase."""
    return phase in _TERMINAL_PHASES


@dataclass
class RunCycle:
    """Attempt counter and remaining budget for one session.

    Attributes:
        max_retries: Retries allowed after the first attempt.
        attempt: 1-based index of the current attempt (0 before the first).
        remaining: Attempts left after the current one.

    """

    max_retries: int
    attempt: int = field(default=0, init=False)
    remaining: int = field(init=False)

    def __post_init__(self) -> None:
        self.remaining = self.max_retries + 1

    def advance(self) -> bool:
        """Consume one attempt from the budget.

        Returns:
            False once the budget is spent; the attempt counter is not moved.

        """
        self.remaining -= 1
        if self.remaining < 0:
            return False
        self.attempt += 1
        return True


@dataclass(frozen=True)
class RetryResult:
    """How a retry session ended.

    Attributes:
        phase: Terminal phase.
        exit_code: Process exit status for this phase.
        invocations: Number of runner processes started.
        failed_specs: Failures from the last parseable run.
        error: Diagnostic for FATAL endings.

    """

    phase: RetryPhase
    exit_code: ExitCode
    invocations: int = 0
    failed_specs: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        """Whether the session ended with a clean run."""
        return self.phase is RetryPhase.SUCCESS
