"""Process supervision for test-runner invocations.

This module provides the ProcessSupervisor class that launches the
runner binary, streams its output through to the terminal while
capturing it, and enforces the wall-clock timeout.
"""

from __future__ import annotations

import logging
import os
import subprocess
import sys
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from specretry.config.constants import RETRY_RUN_FLAG, STATE_FILE_ENV_VAR
from specretry.config.models import RunConfiguration
from specretry.executor.capture import CapturedOutput, pump

logger = logging.getLogger(__name__)

# Exit codes the runner uses when it produced a readable report
PARSEABLE_EXIT_CODES: frozenset[int] = frozenset({0, 1})

KILL_GRACE_SECONDS = 5.0
READER_JOIN_SECONDS = 1.0


class SupervisorError(Exception):
    """Base exception for supervisor errors."""

    pass


class BinaryNotFoundError(SupervisorError):
    """Raised when the runner binary does not exist."""

    pass


class RunStatus(str, Enum):
    """Status of a single runner invocation."""

    COMPLETED = "completed"
    INCONCLUSIVE = "inconclusive"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class RunOutcome:
    """Result of one runner invocation.

    Attributes:
        status: COMPLETED when the report can be parsed.
        exit_code: Child exit code, or None when it was killed for a timeout.
        stdout: Captured standard output.
        stderr: Captured standard error.
        duration_seconds: Wall-clock runtime.

    """

    status: RunStatus
    exit_code: int | None
    stdout: bytes = b""
    stderr: bytes = b""
    duration_seconds: float = 0.0

    @property
    def inconclusive(self) -> bool:
        """Whether the output must not be parsed."""
        return self.status is not RunStatus.COMPLETED


class ProcessSupervisor:
    """Runs the test-runner binary once per call to execute().

    Example:
        >>> supervisor = ProcessSupervisor(config)
        >>> outcome = supervisor.execute()
        >>> if not outcome.inconclusive:
        ...     result = parse_output(outcome.stdout, outcome.stderr)

    """

    def __init__(
        self,
        config: RunConfiguration,
        stdout_sink: Any = None,
        stderr_sink: Any = None,
    ) -> None:
        """Initialize the supervisor.

        Args:
            config: Run configuration.
            stdout_sink: Live copy target for stdout (defaults to sys.stdout).
            stderr_sink: Live copy target for stderr (defaults to sys.stderr).

        """
        self.config = config
        self._stdout_sink = stdout_sink
        self._stderr_sink = stderr_sink

    def build_command(self) -> list[str]:
        """Build the runner command line, including the retry-run flag."""
        return [str(self.config.runner_bin), *self.config.runner_args, RETRY_RUN_FLAG]

    def _prepare_env(self) -> dict[str, str]:
        env = os.environ.copy()
        env[STATE_FILE_ENV_VAR] = str(self.config.state_file)
        return env

    def execute(self) -> RunOutcome:
        """Run the binary to completion or timeout.

        Returns:
            RunOutcome with status, exit code and captured output.

        Raises:
            BinaryNotFoundError: If the runner binary is missing or cannot be started.

        """
        runner_bin = self.config.runner_bin
        if not runner_bin.is_file():
            raise BinaryNotFoundError(f'Could not find runner binary at "{runner_bin}"')

        cmd = self.build_command()
        logger.debug(f"Running command: {' '.join(cmd)}")

        capture = CapturedOutput()
        start_time = datetime.now(timezone.utc)
        try:
            proc = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                env=self._prepare_env(),
            )
        except (FileNotFoundError, PermissionError) as e:
            raise BinaryNotFoundError(
                f'Could not start runner binary at "{runner_bin}": {e.strerror}'
            ) from e

        readers = [
            threading.Thread(
                target=pump,
                args=(proc.stdout, self._stdout_sink or sys.stdout, capture.append_stdout),
                daemon=True,
            ),
            threading.Thread(
                target=pump,
                args=(proc.stderr, self._stderr_sink or sys.stderr, capture.append_stderr),
                daemon=True,
            ),
        ]
        for reader in readers:
            reader.start()

        timed_out = False
        try:
            exit_code: int | None = proc.wait(timeout=self.config.timeout or None)
        except subprocess.TimeoutExpired:
            timed_out = True
            exit_code = None
            self._terminate(proc)
        except BaseException:
            # Never leave the child running behind an interrupted wait
            self._terminate(proc)
            raise
        finally:
            # Grandchildren that inherited the pipes may keep them open
            # after the runner itself has exited
            for reader in readers:
                reader.join(timeout=READER_JOIN_SECONDS)

        duration = (datetime.now(timezone.utc) - start_time).total_seconds()
        stdout, stderr = capture.freeze()

        logger.info("Runner is done")
        if timed_out:
            logger.error(
                f"Runner exceeded the timeout of {self.config.timeout:g} seconds "
                "and had to be killed."
            )
            status = RunStatus.TIMED_OUT
        else:
            logger.debug(f"Child exited with exit code {exit_code}")
            if exit_code in PARSEABLE_EXIT_CODES:
                status = RunStatus.COMPLETED
            else:
                logger.error(f"Runner exited with unexpected exit code {exit_code}")
                status = RunStatus.INCONCLUSIVE

        return RunOutcome(
            status=status,
            exit_code=exit_code,
            stdout=stdout,
            stderr=stderr,
            duration_seconds=duration,
        )

    @staticmethod
    def _terminate(proc: subprocess.Popen) -> None:
        """Stop the child: SIGTERM first, SIGKILL if it lingers."""
        if proc.poll() is not None:
            return
        proc.terminate()
        try:
            proc.wait(timeout=KILL_GRACE_SECONDS)
        except subprocess.TimeoutExpired:
            logger.debug("Runner ignored SIGTERM, killing it")
            proc.kill()
            proc.wait()
