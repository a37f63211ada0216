"""Tests for the process supervisor.

The runner is replaced by small Python scripts written into tmp_path.
"""

from __future__ import annotations

import contextlib
import io
import os
import signal
import stat
import sys
from pathlib import Path
from textwrap import dedent

import pytest

from specretry.config.constants import RETRY_RUN_FLAG, STATE_FILE_ENV_VAR
from specretry.config.models import RunConfiguration
from specretry.executor.supervisor import (
    BinaryNotFoundError,
    ProcessSupervisor,
    RunOutcome,
    RunStatus,
)

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="uses shebang scripts")


def write_runner(tmp_path: Path, body: str) -> Path:
    """Write an executable fake runner script."""
    path = tmp_path / "runner"
    path.write_text(f"#!{sys.executable}\nimport os, sys, time\n" + dedent(body))
    path.chmod(path.stat().st_mode | stat.S_IXUSR)
    return path


def make_supervisor(
    tmp_path: Path, body: str, **overrides: object
) -> tuple[ProcessSupervisor, io.BytesIO, io.BytesIO]:
    """Build a supervisor around a fake runner with in-memory sinks."""
    config = RunConfiguration(
        runner_bin=write_runner(tmp_path, body),
        runner_args=("conf.js", "--suite", "smoke"),
        state_file=tmp_path / "retry-specs",
        **overrides,
    )
    out, err = io.BytesIO(), io.BytesIO()
    return ProcessSupervisor(config, stdout_sink=out, stderr_sink=err), out, err


class TestBuildCommand:
    """Tests for command construction."""

    def test_appends_retry_flag(self, tmp_path: Path) -> None:
        supervisor, _, _ = make_supervisor(tmp_path, "")
        cmd = supervisor.build_command()
        assert cmd[1:] == ["conf.js", "--suite", "smoke", RETRY_RUN_FLAG]
        assert cmd[0] == str(supervisor.config.runner_bin)


class TestExecute:
    """Tests for ProcessSupervisor.execute."""

    def test_captures_and_streams_output(self, tmp_path: Path) -> None:
        supervisor, out, err = make_supervisor(
            tmp_path,
            """
            sys.stdout.write("hello stdout\\n")
            sys.stdout.flush()
            sys.stderr.write("hello stderr\\n")
            """,
        )

        outcome = supervisor.execute()

        assert outcome.status is RunStatus.COMPLETED
        assert outcome.exit_code == 0
        assert outcome.stdout == b"hello stdout\n"
        assert outcome.stderr == b"hello stderr\n"
        assert out.getvalue() == b"hello stdout\n"
        assert err.getvalue() == b"hello stderr\n"

    def test_forwards_arguments_and_state_location(self, tmp_path: Path) -> None:
        supervisor, _, _ = make_supervisor(
            tmp_path,
            f"""
            print(" ".join(sys.argv[1:]))
            print(os.environ["{STATE_FILE_ENV_VAR}"])
            """,
        )

        outcome = supervisor.execute()

        lines = outcome.stdout.decode().splitlines()
        assert lines[0] == f"conf.js --suite smoke {RETRY_RUN_FLAG}"
        assert lines[1] == str((tmp_path / "retry-specs").resolve())

    def test_exit_code_one_is_parseable(self, tmp_path: Path) -> None:
        supervisor, _, _ = make_supervisor(tmp_path, "print('1 failure')\nsys.exit(1)\n")

        outcome = supervisor.execute()

        assert outcome.status is RunStatus.COMPLETED
        assert outcome.exit_code == 1
        assert outcome.inconclusive is False

    def test_other_exit_code_is_inconclusive(self, tmp_path: Path) -> None:
        supervisor, _, _ = make_supervisor(tmp_path, "sys.exit(100)\n")

        outcome = supervisor.execute()

        assert outcome.status is RunStatus.INCONCLUSIVE
        assert outcome.exit_code == 100
        assert outcome.inconclusive is True

    def test_timeout_kills_runner(self, tmp_path: Path) -> None:
        supervisor, _, _ = make_supervisor(
            tmp_path,
            """
            print("starting", flush=True)
            time.sleep(30)
            """,
            timeout=0.5,
        )

        outcome = supervisor.execute()

        assert outcome.status is RunStatus.TIMED_OUT
        assert outcome.exit_code is None
        assert outcome.inconclusive is True
        assert outcome.stdout == b"starting\n"
        assert outcome.duration_seconds < 30

    def test_large_output_is_captured_completely(self, tmp_path: Path) -> None:
        supervisor, out, _ = make_supervisor(
            tmp_path,
            """
            for i in range(20000):
                print(f"line {i}")
            """,
        )

        outcome = supervisor.execute()

        lines = outcome.stdout.decode().splitlines()
        assert len(lines) == 20000
        assert lines[-1] == "line 19999"
        assert out.getvalue() == outcome.stdout

    def test_lingering_grandchild_does_not_block(self, tmp_path: Path) -> None:
        """The runner exits while a background child still holds its pipes."""
        pid_file = tmp_path / "grandchild.pid"
        supervisor, _, _ = make_supervisor(
            tmp_path,
            f"""
            import subprocess
            child = subprocess.Popen([sys.executable, "-c", "import time; time.sleep(15)"])
            with open({str(pid_file)!r}, "w") as f:
                f.write(str(child.pid))
            print("*  Failures  *")
            print("1) Suite A > does X", flush=True)
            sys.exit(1)
            """,
        )

        try:
            outcome = supervisor.execute()
        finally:
            if pid_file.exists():
                with contextlib.suppress(OSError):
                    os.kill(int(pid_file.read_text()), signal.SIGKILL)

        assert outcome.status is RunStatus.COMPLETED
        assert outcome.exit_code == 1
        assert b"1) Suite A > does X" in outcome.stdout
        assert outcome.duration_seconds < 10

    def test_missing_binary(self, tmp_path: Path) -> None:
        config = RunConfiguration(runner_bin=tmp_path / "absent", state_file=tmp_path / "s")
        supervisor = ProcessSupervisor(config)

        with pytest.raises(BinaryNotFoundError, match="Could not find runner binary"):
            supervisor.execute()

    def test_directory_is_not_a_binary(self, tmp_path: Path) -> None:
        (tmp_path / "bin").mkdir()
        config = RunConfiguration(runner_bin=tmp_path / "bin", state_file=tmp_path / "s")

        with pytest.raises(BinaryNotFoundError, match="Could not find runner binary"):
            ProcessSupervisor(config).execute()

    def test_non_executable_binary(self, tmp_path: Path) -> None:
        runner_bin = tmp_path / "runner"
        runner_bin.write_text("#!/bin/sh\nexit 0\n")
        runner_bin.chmod(0o644)
        config = RunConfiguration(runner_bin=runner_bin, state_file=tmp_path / "s")

        with pytest.raises(BinaryNotFoundError, match="Could not start runner binary"):
            ProcessSupervisor(config).execute()


class TestRunOutcome:
    """Tests for RunOutcome."""

    def test_completed_is_conclusive(self) -> None:
        assert RunOutcome(status=RunStatus.COMPLETED, exit_code=0).inconclusive is False

    def test_timed_out_is_inconclusive(self) -> None:
        assert RunOutcome(status=RunStatus.TIMED_OUT, exit_code=None).inconclusive is True
