"""Spec admission filter for retry runs.

This code runs inside the test runner's own process, not the
orchestrator's. The runner asks the filter, once per spec, whether the
spec should execute. On a retry run only the specs named in the retry
state are admitted; everything else is suppressed.

The filter chains onto whatever admission policy was installed before
it: a spec suppressed here never reaches the previous policy, and a spec
admitted here still has to pass it.

Example:
    from specretry.retry.spec_filter import install_spec_filter

    install_spec_filter(env)  # env.spec_filter now wraps the previous one

"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable, Sequence
from typing import Any

from specretry.config.constants import RETRY_RUN_FLAG, RETRY_RUN_PARAM
from specretry.retry.state import RetryStateStore

logger = logging.getLogger(__name__)

AdmissionPolicy = Callable[[Any], bool]


def is_retry_run(argv: Sequence[str]) -> bool:
    """Whether the command line carries the retry-run flag.

    Accepts ``--params.isRetryRun=true`` and ``--params.isRetryRun true``,
    both compared case-insensitively.
    """
    for index, arg in enumerate(argv):
        if arg.lower() == RETRY_RUN_FLAG.lower():
            return True
        if arg.lower() == RETRY_RUN_PARAM.lower() and [
            value.lower() for value in argv[index + 1 : index + 2]
        ] == ["true"]:
            return True
    return False


def spec_full_name(spec: Any) -> str:
    """Return a spec's full name.

    Args:
        spec: A name string, or an object with ``full_name`` or ``getFullName()``.

    """
    if isinstance(spec, str):
        return spec
    full_name = getattr(spec, "full_name", None)
    if full_name is not None:
        return full_name() if callable(full_name) else str(full_name)
    get_full_name = getattr(spec, "getFullName", None)
    if callable(get_full_name):
        return str(get_full_name())
    raise TypeError(f"Cannot determine the full name of {spec!r}")


class SpecAdmissionFilter:
    """Admission policy that restricts a retry run to the stored specs."""

    def __init__(
        self,
        retry_specs: Sequence[str] | None,
        is_retry_run: bool,
        previous: AdmissionPolicy | None = None,
    ) -> None:
        """Initialize the filter.

        Args:
            retry_specs: Names from the retry state, or None if there is none.
            is_retry_run: Whether this runner invocation is a retry run.
            previous: Admission policy installed before this one.

        """
        self.previous = previous
        self.is_retry_run = is_retry_run
        self.retry_specs = list(retry_specs) if retry_specs is not None else None
        self._allowed = (
            {name.lower() for name in self.retry_specs} if self.retry_specs is not None else None
        )

    @classmethod
    def from_environment(
        cls,
        previous: AdmissionPolicy | None = None,
        argv: Sequence[str] | None = None,
        store: RetryStateStore | None = None,
    ) -> SpecAdmissionFilter:
        """Build a filter from this process's arguments and the retry state.

        The state is read once, here; later changes are not seen.

        Args:
            previous: Admission policy installed before this one.
            argv: Command line to inspect (defaults to sys.argv).
            store: Retry state store (defaults to the exported location).

        """
        retry_run = is_retry_run(sys.argv if argv is None else argv)
        store = store or RetryStateStore.from_environment()
        retry_specs = store.load()
        if retry_specs is None and retry_run:
            logger.info(f"No retry specs file found at {store.path}, allowing all specs")
        return cls(retry_specs, retry_run, previous)

    @property
    def active(self) -> bool:
        """Whether the retry state restricts this run."""
        return self.is_retry_run and self._allowed is not None

    def _delegate(self, spec: Any) -> bool:
        return self.previous(spec) if self.previous is not None else True

    def __call__(self, spec: Any) -> bool:
        """Decide whether a spec may run.

        Args:
            spec: The spec, as handed over by the runner.

        Returns:
            True to execute the spec, False to suppress it.

        """
        if not self.active:
            return self._delegate(spec)

        if spec_full_name(spec).lower() in self._allowed:
            return self._delegate(spec)

        logger.debug(f"Removing spec {spec_full_name(spec)} from the list of active specs")
        return False


def install_spec_filter(
    host: Any,
    attribute: str = "spec_filter",
    argv: Sequence[str] | None = None,
    store: RetryStateStore | None = None,
) -> SpecAdmissionFilter:
    """Wrap the admission policy stored on ``host`` with a retry filter.

    Args:
        host: Object holding the runner's admission policy.
        attribute: Name of the policy attribute.
        argv: Command line to inspect (defaults to sys.argv).
        store: Retry state store (defaults to the exported location).

    Returns:
        The installed filter.

    """
    previous = getattr(host, attribute, None)
    spec_filter = SpecAdmissionFilter.from_environment(previous=previous, argv=argv, store=store)
    setattr(host, attribute, spec_filter)
    return spec_filter
