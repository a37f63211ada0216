"""CLI module for specretry.

This module provides the command-line entry point.
"""

from specretry.cli.main import cli, configure_logging, main

__all__ = [
    "cli",
    "configure_logging",
    "main",
]
