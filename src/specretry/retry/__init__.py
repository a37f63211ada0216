"""Retry loop, retry state and admission filtering.

The orchestrator side (RetryOrchestrator, RetryStateStore, FilterHook)
runs in the specretry process. The admission side (SpecAdmissionFilter,
install_spec_filter) runs inside the test runner.
"""

from specretry.retry.hooks import FilterHook, FilterHookError, load_module, settle
from specretry.retry.models import RetryPhase, RetryResult, RunCycle, is_terminal_phase
from specretry.retry.orchestrator import RetryOrchestrator
from specretry.retry.spec_filter import (
    AdmissionPolicy,
    SpecAdmissionFilter,
    install_spec_filter,
    is_retry_run,
    spec_full_name,
)
from specretry.retry.state import RetryStateError, RetryStateStore

__all__ = [
    # Hooks
    "FilterHook",
    "FilterHookError",
    "load_module",
    "settle",
    # Models
    "RetryPhase",
    "RetryResult",
    "RunCycle",
    "is_terminal_phase",
    # Orchestrator
    "RetryOrchestrator",
    # Admission filter
    "AdmissionPolicy",
    "SpecAdmissionFilter",
    "install_spec_filter",
    "is_retry_run",
    "spec_full_name",
    # State
    "RetryStateError",
    "RetryStateStore",
]
