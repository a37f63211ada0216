"""Tests for retry loop models."""

from specretry.config.constants import ExitCode
from specretry.retry.models import RetryPhase, RetryResult, RunCycle, is_terminal_phase


class TestRunCycle:
    """Tests for RunCycle."""

    def test_zero_retries_allows_one_attempt(self) -> None:
        cycle = RunCycle(0)
        assert cycle.advance() is True
        assert cycle.attempt == 1
        assert cycle.advance() is False
        assert cycle.attempt == 1

    def test_attempts_are_one_based_and_bounded(self) -> None:
        cycle = RunCycle(3)
        attempts = []
        while cycle.advance():
            attempts.append(cycle.attempt)
        assert attempts == [1, 2, 3, 4]

    def test_remaining_counts_down(self) -> None:
        cycle = RunCycle(2)
        cycle.advance()
        assert cycle.remaining == 2
        cycle.advance()
        assert cycle.remaining == 1


class TestPhases:
    """Tests for phase helpers."""

    def test_terminal_phases(self) -> None:
        assert is_terminal_phase(RetryPhase.SUCCESS)
        assert is_terminal_phase(RetryPhase.EXHAUSTED)
        assert is_terminal_phase(RetryPhase.FATAL)

    def test_non_terminal_phases(self) -> None:
        assert not is_terminal_phase(RetryPhase.RUNNING)
        assert not is_terminal_phase(RetryPhase.RETRY)


class TestRetryResult:
    """Tests for RetryResult."""

    def test_succeeded(self) -> None:
        result = RetryResult(phase=RetryPhase.SUCCESS, exit_code=ExitCode.SUCCESS)
        assert result.succeeded is True
        assert result.invocations == 0
        assert result.failed_specs == []

    def test_not_succeeded(self) -> None:
        result = RetryResult(phase=RetryPhase.EXHAUSTED, exit_code=ExitCode.RETRIES_EXHAUSTED)
        assert result.succeeded is False
