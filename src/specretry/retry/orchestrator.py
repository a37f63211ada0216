"""Retry orchestration for flaky end-to-end runs.

This module provides the RetryOrchestrator class that drives the
run -> parse -> persist -> pause cycle until the suite passes, the
retry budget is spent, or something unrecoverable happens.

Per attempt:
  1. consume budget (EXHAUSTED when spent)
  2. pre-run hook
  3. run the test runner
  4. parse its output (skipped for inconclusive runs)
  5. post-run hook
  6. SUCCESS on a clean run, otherwise persist failures, pause, RETRY
"""

from __future__ import annotations

import logging
import time

from specretry.config.constants import ExitCode
from specretry.config.models import RunConfiguration
from specretry.executor.supervisor import BinaryNotFoundError, ProcessSupervisor
from specretry.parsing.output_parser import ParseResult, parse_output
from specretry.retry.hooks import FilterHook
from specretry.retry.models import RetryPhase, RetryResult, RunCycle
from specretry.retry.state import RetryStateStore

logger = logging.getLogger(__name__)


class RetryOrchestrator:
    """Runs the test runner until it passes or the retry budget is spent.

    The orchestrator never calls sys.exit itself; run() returns a
    RetryResult whose exit_code the caller hands to the OS.

    Example:
        >>> orchestrator = RetryOrchestrator(config)
        >>> result = orchestrator.run()
        >>> sys.exit(result.exit_code)

    """

    def __init__(
        self,
        config: RunConfiguration,
        supervisor: ProcessSupervisor | None = None,
        state_store: RetryStateStore | None = None,
        hook: FilterHook | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            config: Run configuration.
            supervisor: Process supervisor (built from config if not provided).
            state_store: Retry state store (built from config if not provided).
            hook: Optional pre/post-run filter hook.

        """
        self.config = config
        self.supervisor = supervisor or ProcessSupervisor(config)
        self.state_store = state_store or RetryStateStore(config.state_file)
        self.hook = hook
        self.invocations = 0
        self._last_failed: list[str] = []

    def run(self) -> RetryResult:
        """Drive attempts until a terminal phase is reached.

        Returns:
            RetryResult describing how the session ended.

        """
        if self.state_store.exists():
            logger.debug(f"Removing stale retry state at {self.state_store.path}")
            self.state_store.clear()

        cycle = RunCycle(self.config.max_retries)

        while True:
            if not cycle.advance():
                return self._exhausted()

            try:
                phase = self._attempt(cycle)
            except BinaryNotFoundError as e:
                logger.error(str(e))
                return self._terminate(RetryPhase.FATAL, ExitCode.BINARY_NOT_FOUND, str(e))
            except KeyboardInterrupt:
                logger.error("Interrupted, stopping without further retries")
                return self._terminate(RetryPhase.FATAL, ExitCode.INTERRUPTED, "interrupted")
            except Exception as e:
                logger.exception(f"An error was thrown during attempt #{cycle.attempt}")
                return self._terminate(RetryPhase.FATAL, ExitCode.ORCHESTRATION_ERROR, str(e))

            if phase is RetryPhase.SUCCESS:
                return self._terminate(RetryPhase.SUCCESS, ExitCode.SUCCESS)

            logger.info("Retrying failed specs...")

    def _attempt(self, cycle: RunCycle) -> RetryPhase:
        """Execute steps 2-6 of one attempt.

        Args:
            cycle: Current run cycle.

        Returns:
            RetryPhase.SUCCESS or RetryPhase.RETRY.

        """
        attempt = cycle.attempt

        if self.hook is not None and self.hook.has_prerun:
            self.hook.prerun(attempt)

        logger.info(f"Doing runner run #{attempt}")
        result = self._run_once()

        if result.ok:
            logger.info(
                f"Identified {len(result.failed_specs)} failed specs which will be retried"
            )
            self._last_failed = list(result.failed_specs)
        else:
            logger.info("There was an error parsing the runner output. Retrying...")

        if self.hook is not None and self.hook.has_postrun:
            postrun = self.hook.postrun(attempt, list(result.failed_specs) if result.ok else None)
            logger.debug(f"Post-run filter returned {postrun!r}")

        if result.passed:
            logger.debug("No failed specs found, runner run was successful")
            return RetryPhase.SUCCESS

        if result.ok:
            self.state_store.save(result.failed_specs)

        if self.config.retry_pause > 0:
            logger.info(f"Waiting for {self.config.retry_pause:g} seconds before the next run")
            time.sleep(self.config.retry_pause)

        return RetryPhase.RETRY

    def _run_once(self) -> ParseResult:
        """Invoke the runner and parse its output when it is trustworthy."""
        outcome = self.supervisor.execute()
        self.invocations += 1

        if outcome.inconclusive:
            return ParseResult.failure(f"Runner run was {outcome.status.value}")

        return parse_output(outcome.stdout, outcome.stderr)

    def _exhausted(self) -> RetryResult:
        logger.error(
            f"Maximum number of retries ({self.config.max_retries}) exceeded without success"
        )
        return self._terminate(RetryPhase.EXHAUSTED, ExitCode.RETRIES_EXHAUSTED)

    def _terminate(
        self, phase: RetryPhase, exit_code: ExitCode, error: str | None = None
    ) -> RetryResult:
        """Clear the retry state and build the final result."""
        self.state_store.clear()
        return RetryResult(
            phase=phase,
            exit_code=exit_code,
            invocations=self.invocations,
            failed_specs=list(self._last_failed),
            error=error,
        )
