"""Parsing of test-runner console output."""

from specretry.parsing.output_parser import (
    FAILED_SPEC,
    FAILURES_MARKER,
    SECTION_MARKER,
    ParseResult,
    ScanState,
    parse_output,
    scan_failures,
)

__all__ = [
    "FAILED_SPEC",
    "FAILURES_MARKER",
    "SECTION_MARKER",
    "ParseResult",
    "ScanState",
    "parse_output",
    "scan_failures",
]
