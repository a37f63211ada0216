"""User-supplied filter hooks.

A filter hook is a Python file that may define either or both of:

    def prerun(attempt): ...
    def postrun(attempt, failed_specs): ...

``failed_specs`` is None when the run's output could not be parsed.
Either function may return a plain value, an awaitable or a
``concurrent.futures.Future``; the orchestrator waits for it to settle
before moving on.
"""

from __future__ import annotations

import asyncio
import importlib.util
import inspect
import logging
from collections.abc import Awaitable, Callable
from concurrent.futures import Future
from pathlib import Path
from types import ModuleType
from typing import Any

logger = logging.getLogger(__name__)


class FilterHookError(Exception):
    """Raised when a filter hook module cannot be loaded."""

    pass


async def _await(awaitable: Awaitable[Any]) -> Any:
    return await awaitable


def settle(value: Any) -> Any:
    """Block until a hook's return value is available.

    Args:
        value: Plain value, awaitable or Future.

    Returns:
        The settled value. Exceptions raised while settling propagate.

    """
    if isinstance(value, Future):
        return value.result()
    if inspect.isawaitable(value):
        return asyncio.run(_await(value))
    return value


def load_module(path: Path) -> ModuleType:
    """Import a Python file by path.

    Args:
        path: Path to the hook module.

    Returns:
        The executed module.

    Raises:
        FilterHookError: If the file is missing or fails to import.

    """
    if not path.is_file():
        raise FilterHookError(f"Filter hook module not found: {path}")

    spec = importlib.util.spec_from_file_location(f"specretry_filter_{path.stem}", path)
    if spec is None or spec.loader is None:
        raise FilterHookError(f"Cannot import filter hook module: {path}")

    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        raise FilterHookError(f"Failed to import filter hook {path}: {e}") from e
    return module


class FilterHook:
    """Pre/post-run callbacks around each runner invocation.

    Both callbacks are optional; a missing one is a no-op.
    """

    def __init__(
        self,
        prerun: Callable[[int], Any] | None = None,
        postrun: Callable[[int, list[str] | None], Any] | None = None,
    ) -> None:
        """Initialize the hook.

        Args:
            prerun: Called with the attempt number before each run.
            postrun: Called with the attempt number and failed specs after each run.

        """
        self._prerun = prerun
        self._postrun = postrun

    @classmethod
    def from_module(cls, module: Any) -> FilterHook:
        """Build a hook from any object exposing prerun/postrun attributes."""
        prerun = getattr(module, "prerun", None)
        postrun = getattr(module, "postrun", None)
        for name, func in (("prerun", prerun), ("postrun", postrun)):
            if func is not None and not callable(func):
                raise FilterHookError(f"Filter hook attribute '{name}' is not callable")
        return cls(prerun=prerun, postrun=postrun)

    @classmethod
    def load(cls, path: Path) -> FilterHook:
        """Load a hook from a Python file."""
        logger.debug(f"Loading filter hook from {path}")
        return cls.from_module(load_module(path))

    @property
    def has_prerun(self) -> bool:
        """Whether a pre-run callback is configured."""
        return self._prerun is not None

    @property
    def has_postrun(self) -> bool:
        """Whether a post-run callback is configured."""
        return self._postrun is not None

    def prerun(self, attempt: int) -> Any:
        """Run the pre-run callback and wait for it to settle."""
        if self._prerun is None:
            return None
        logger.info("Running pre-run filter")
        return settle(self._prerun(attempt))

    def postrun(self, attempt: int, failed_specs: list[str] | None) -> Any:
        """Run the post-run callback and wait for it to settle."""
        if self._postrun is None:
            return None
        logger.info("Running post-run filter")
        return settle(self._postrun(attempt, failed_specs))
