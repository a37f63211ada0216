"""Failed-spec extraction from test-runner console output.

The runner prints a human-readable report; failures appear in a block
that opens with a ``* Failures *`` banner and lists one numbered entry
per failed spec:

    *  Failures  *
    1) Login page rejects a bad password
      Message:
        Expected true to be false.
    2) Login page remembers the user
    *  Pending  *

The three patterns below are the whole grammar this module depends on.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum

logger = logging.getLogger(__name__)

FAILURES_MARKER = re.compile(r"^\*\s+Failures\s+\*")
SECTION_MARKER = re.compile(r"^\*\s+\w+\s+\*")
FAILED_SPEC = re.compile(r"^[0-9]+\)\s+(.*)$")

NO_OUTPUT = "No runner output found"
STDERR_ERRORS = "There were errors on STDERR"


class ScanState(str, Enum):
    """State of the failure-block scanner."""

    SCANNING = "scanning"
    COLLECTING = "collecting"


@dataclass(frozen=True)
class ParseResult:
    """Outcome of parsing one run's output.

    Attributes:
        failed_specs: Full names of failed specs in printed order.
        error: Why the output could not be trusted; None when parsing succeeded.

    """

    failed_specs: list[str] = field(default_factory=list)
    error: str | None = None

    @classmethod
    def failure(cls, error: str) -> ParseResult:
        """Build the "parse failed" result."""
        return cls(failed_specs=[], error=error)

    @property
    def ok(self) -> bool:
        """Whether the output was parseable."""
        return self.error is None

    @property
    def passed(self) -> bool:
        """Whether the run passed outright."""
        return self.ok and not self.failed_specs


def _to_text(data: bytes | str) -> str:
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


def scan_failures(lines: list[str]) -> list[str]:
    """Collect failed spec names from already-split stdout lines.

    Args:
        lines: Output lines; each is trimmed before matching.

    Returns:
        Failed spec names in the order they appear.

    """
    failed_specs: list[str] = []
    state = ScanState.SCANNING

    for index, raw_line in enumerate(lines):
        line = raw_line.strip()

        if state is ScanState.SCANNING:
            if FAILURES_MARKER.match(line):
                logger.debug(f"Found failures marker at line {index}: {line}")
                state = ScanState.COLLECTING
            continue

        if SECTION_MARKER.match(line):
            logger.debug(f"Found marker stopping the failure parsing: {line}")
            state = ScanState.SCANNING
            continue

        match = FAILED_SPEC.match(line)
        if match:
            name = match.group(1)
            logger.info(f'Found failed spec: "{name}"')
            failed_specs.append(name)

    return failed_specs


def parse_output(stdout: bytes | str, stderr: bytes | str) -> ParseResult:
    """Parse a finished run's captured output.

    Args:
        stdout: Everything the runner wrote to standard output.
        stderr: Everything the runner wrote to standard error.

    Returns:
        ParseResult with the failed specs, or a failure result when stdout is
        empty or stderr carries real error text.

    """
    out_text = _to_text(stdout).strip()
    err_lines = _to_text(stderr).strip().split("\n")

    if not out_text:
        logger.error(NO_OUTPUT)
        return ParseResult.failure(NO_OUTPUT)

    # The runner always leaves a single blank line on stderr
    if len(err_lines) > 1:
        logger.error(STDERR_ERRORS)
        for err in err_lines:
            logger.error(err)
        return ParseResult.failure(STDERR_ERRORS)

    return ParseResult(failed_specs=scan_failures(out_text.split("\n")))
