"""Tests for output capture.

Python justification: Required for pytest testing framework.
"""

import io

import pytest

from specretry.executor.capture import CaptureClosedError, CapturedOutput, echo, pump


class TestCapturedOutput:
    """Tests for CapturedOutput."""

    def test_starts_empty(self) -> None:
        capture = CapturedOutput()
        assert capture.freeze() == (b"", b"")

    def test_appends_in_order(self) -> None:
        capture = CapturedOutput()
        capture.append_stdout(b"one ")
        capture.append_stderr(b"err")
        capture.append_stdout(b"two")
        assert capture.freeze() == (b"one two", b"err")

    def test_frozen_rejects_appends(self) -> None:
        capture = CapturedOutput()
        capture.freeze()
        assert capture.frozen is True
        with pytest.raises(CaptureClosedError):
            capture.append_stdout(b"late")


class TestEcho:
    """Tests for echo."""

    def test_binary_sink(self) -> None:
        sink = io.BytesIO()
        echo(sink, b"data")
        assert sink.getvalue() == b"data"

    def test_text_sink(self) -> None:
        sink = io.StringIO()
        echo(sink, "grüß".encode())
        assert sink.getvalue() == "grüß"

    def test_text_wrapper_uses_buffer(self) -> None:
        raw = io.BytesIO()
        sink = io.TextIOWrapper(raw, encoding="utf-8")
        echo(sink, b"through buffer")
        assert raw.getvalue() == b"through buffer"


class TestPump:
    """Tests for pump."""

    def test_copies_to_sink_and_capture(self) -> None:
        source = io.BufferedReader(io.BytesIO(b"line one\nline two\n"))
        sink = io.BytesIO()
        capture = CapturedOutput()

        pump(source, sink, capture.append_stdout)

        assert sink.getvalue() == b"line one\nline two\n"
        assert capture.freeze()[0] == b"line one\nline two\n"
        assert source.closed

    def test_stops_quietly_after_freeze(self) -> None:
        source = io.BufferedReader(io.BytesIO(b"late output"))
        sink = io.BytesIO()
        capture = CapturedOutput()
        capture.freeze()

        pump(source, sink, capture.append_stdout)

        assert sink.getvalue() == b"late output"
        assert source.closed
