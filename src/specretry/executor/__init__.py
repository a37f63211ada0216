"""Executor module for running the test runner.

This module provides process supervision with a wall-clock timeout and
live, captured output.
"""

from specretry.executor.capture import (
    CaptureClosedError,
    CapturedOutput,
    echo,
    pump,
)
from specretry.executor.supervisor import (
    PARSEABLE_EXIT_CODES,
    BinaryNotFoundError,
    ProcessSupervisor,
    RunOutcome,
    RunStatus,
    SupervisorError,
)

__all__ = [
    # Capture
    "CaptureClosedError",
    "CapturedOutput",
    "echo",
    "pump",
    # Supervisor
    "PARSEABLE_EXIT_CODES",
    "BinaryNotFoundError",
    "ProcessSupervisor",
    "RunOutcome",
    "RunStatus",
    "SupervisorError",
]
