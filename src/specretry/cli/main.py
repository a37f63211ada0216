"""Command-line interface for specretry.

Usage:
    specretry [OPTIONS] -- protractor.conf.js --protractor --args
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from specretry import __version__
from specretry.config import ConfigLoader, ConfigurationError, ExitCode
from specretry.retry.hooks import FilterHook, FilterHookError
from specretry.retry.orchestrator import RetryOrchestrator

logger = logging.getLogger(__name__)


def configure_logging(verbosity: int) -> None:
    """Configure root logging for the given -v count.

    Args:
        verbosity: 0 shows warnings and errors, 1 adds info, 2 or more adds debug.

    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger().setLevel(level)


@click.command(
    context_settings={"help_option_names": ["-h", "--help"], "ignore_unknown_options": True}
)
@click.version_option(version=__version__, prog_name="specretry")
@click.argument("targets", nargs=-1, type=click.UNPROCESSED)
@click.option(
    "--protractor-bin",
    "-p",
    "runner_bin",
    type=click.Path(path_type=Path),
    help="Test-runner binary (default: node_modules/protractor/bin/protractor).",
)
@click.option(
    "--timeout",
    "-t",
    type=float,
    help="Kill a run after this many seconds (default: 0, no timeout).",
)
@click.option(
    "--retry-pause",
    "-r",
    type=float,
    help="Seconds to wait between retries (default: 0).",
)
@click.option(
    "--max-retries",
    "-m",
    type=int,
    help="Retries after the first run (default: 3).",
)
@click.option(
    "--filter",
    "-f",
    "filter_path",
    type=click.Path(path_type=Path),
    help="Python module defining prerun(attempt) and/or postrun(attempt, failed_specs).",
)
@click.option(
    "--state-file",
    type=click.Path(path_type=Path),
    help="Where failed specs are handed to the next run (default: .protractor-retry-specs).",
)
@click.option(
    "--config",
    "-c",
    "config_file",
    type=click.Path(path_type=Path, exists=True, dir_okay=False),
    help="YAML configuration file (default: .specretry.yaml if present).",
)
@click.option("--verbose", "-v", count=True, help="Increase verbosity (-v info, -vv debug).")
@click.pass_context
def cli(
    ctx: click.Context,
    targets: tuple[str, ...],
    runner_bin: Path | None,
    timeout: float | None,
    retry_pause: float | None,
    max_retries: int | None,
    filter_path: Path | None,
    state_file: Path | None,
    config_file: Path | None,
    verbose: int,
) -> None:
    """Run a test runner and retry only the specs that failed.

    TARGETS are forwarded to the runner; put -- before runner flags.

    Examples:

        specretry -- protractor.conf.js

        specretry -m 5 -r 10 -t 1800 -vv -- protractor.conf.js --suite smoke

    """
    if not targets:
        click.echo(ctx.get_help())
        ctx.exit(ExitCode.NO_TARGETS)

    try:
        config = ConfigLoader().load(
            config_file=config_file,
            overrides={
                "runner_bin": runner_bin,
                "runner_args": list(targets),
                "timeout": timeout,
                "retry_pause": retry_pause,
                "max_retries": max_retries,
                "filter_path": filter_path,
                "state_file": state_file,
                "verbosity": verbose or None,
            },
        )
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(ExitCode.INVALID_CONFIGURATION)

    configure_logging(config.verbosity)

    hook = None
    if config.filter_path is not None:
        try:
            hook = FilterHook.load(config.filter_path)
        except FilterHookError as e:
            logger.error(str(e))
            ctx.exit(ExitCode.ORCHESTRATION_ERROR)

    result = RetryOrchestrator(config, hook=hook).run()
    ctx.exit(int(result.exit_code))


def main() -> None:
    """Console entry point.

    Maps click usage errors to INVALID_CONFIGURATION so they cannot be
    confused with RETRIES_EXHAUSTED.
    """
    try:
        rv = cli.main(standalone_mode=False)
    except click.exceptions.Abort:
        click.echo("Aborted!", err=True)
        sys.exit(ExitCode.INTERRUPTED)
    except click.ClickException as e:
        e.show()
        sys.exit(ExitCode.INVALID_CONFIGURATION)
    sys.exit(rv if isinstance(rv, int) else ExitCode.SUCCESS)


if __name__ == "__main__":
    main()
