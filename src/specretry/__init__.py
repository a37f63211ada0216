"""specretry - rerun only the failed specs of a flaky end-to-end suite.

This package launches a test runner, scrapes the failed specs from its
console report, and reruns the runner restricted to those specs until the
suite passes or the retry budget is spent.
"""

__version__ = "0.1.0"

__all__ = [
    "cli",
    "config",
    "executor",
    "parsing",
    "retry",
]
