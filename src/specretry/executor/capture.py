"""Output capture utilities for runner execution.

This module provides buffers that collect a child's stdout and stderr
while echoing every chunk to the controlling terminal, so a human can
watch the run live and the parser still gets complete copies afterwards.
"""

from __future__ import annotations

import contextlib
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from functools import partial
from typing import IO, Any

logger = logging.getLogger(__name__)

CHUNK_SIZE = 65536


class CaptureClosedError(Exception):
    """Raised when appending to a capture that has already been frozen."""

    pass


@dataclass
class CapturedOutput:
    """Byte buffers for exactly one runner invocation.

    Created empty at spawn, appended to on every chunk and frozen at exit.

    Example:
        >>> capture = CapturedOutput()
        >>> capture.append_stdout(b"1 spec, 0 failures\\n")
        >>> stdout, stderr = capture.freeze()

    """

    _stdout: list[bytes] = field(default_factory=list, init=False)
    _stderr: list[bytes] = field(default_factory=list, init=False)
    _frozen: bool = field(default=False, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def _append(self, chunks: list[bytes], data: bytes) -> None:
        with self._lock:
            if self._frozen:
                raise CaptureClosedError("Capture is frozen; the process has exited")
            chunks.append(data)

    def append_stdout(self, data: bytes) -> None:
        """Append a chunk of standard output."""
        self._append(self._stdout, data)

    def append_stderr(self, data: bytes) -> None:
        """Append a chunk of standard error."""
        self._append(self._stderr, data)

    def freeze(self) -> tuple[bytes, bytes]:
        """Stop accepting data and return (stdout, stderr).

        Returns:
            The complete stdout and stderr byte strings.

        """
        with self._lock:
            self._frozen = True
            return b"".join(self._stdout), b"".join(self._stderr)

    @property
    def frozen(self) -> bool:
        """Whether the capture has been frozen."""
        return self._frozen


def echo(sink: Any, data: bytes) -> None:
    """Write a chunk to a text or binary stream and flush it.

    Args:
        sink: Target stream; its ``buffer`` is used when it has one.
        data: Raw bytes from the child.

    """
    binary = getattr(sink, "buffer", None)
    if binary is not None:
        binary.write(data)
        binary.flush()
        return
    try:
        sink.write(data)
    except TypeError:
        sink.write(data.decode("utf-8", errors="replace"))
    sink.flush()


def pump(source: IO[bytes], sink: Any, append: Callable[[bytes], None]) -> None:
    """Copy a pipe to a sink and a capture buffer until EOF.

    Args:
        source: The child's pipe, opened in binary mode.
        sink: Stream that receives the live copy.
        append: Capture callback receiving each chunk.

    """
    # read1 returns whatever is available instead of blocking for a full chunk
    read = partial(getattr(source, "read1", source.read), CHUNK_SIZE)
    try:
        for chunk in iter(read, b""):
            echo(sink, chunk)
            append(chunk)
    except CaptureClosedError:
        logger.debug("Discarding output written after the capture was frozen")
    finally:
        with contextlib.suppress(OSError):
            source.close()
