"""
repo-sync — CLI Entry Point

Usage:
    repo-sync [--dry-run] [--verbose] [--retry-count N]
    python -m repo_sync.main --help

Exit codes:
    0    every organization synchronized without failures
    1    a repository or listing failed, or a precondition/option was invalid
    130  interrupted (SIGINT / SIGTERM)
"""

from __future__ import annotations

# Load .env file FIRST, before any other imports that might read env vars
from dotenv import find_dotenv, load_dotenv

load_dotenv(find_dotenv(usecwd=True))

import logging
import signal
import sys
from typing import List, Optional

import click

from .config.loader import load_config
from .config.models import SyncConfig
from .errors import ConfigurationError, PreconditionError
from .logging_config import setup_logging
from .mirror.manager import SyncManager

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def build_manager(config: SyncConfig) -> SyncManager:
    """Create the manager with the real git and GitHub clients."""
    return SyncManager.from_config(config)


@click.command(
    "repo-sync",
    epilog="""\b
Examples:
    repo-sync                             Run full synchronization
    repo-sync --dry-run                   List repositories only
    repo-sync --verbose --retry-count 5   Verbose mode with 5 retries

\b
Prerequisites:
    - GITHUB_TOKEN set in the environment or .env
    - git configured with SSH access to the organizations
    - Write access to the build organization
""",
)
@click.option("--dry-run", is_flag=True, help="Only list repositories, don't perform operations")
@click.option("--verbose", is_flag=True, help="Enable verbose logging")
@click.option(
    "--retry-count",
    type=click.IntRange(min=1),
    default=None,
    metavar="N",
    help="Number of retries for failed operations (default: 3)",
)
def cli(dry_run: bool, verbose: bool, retry_count: Optional[int]) -> int:
    """Synchronize repositories from source organizations into a build organization.

    Each source organization's repositories are cloned, their mapped branch
    (e.g. TEST, DEV) is created or updated, the repository is forked into
    the build organization, and the branch is pushed there as BUILD.
    """
    try:
        config = load_config(
            {"dry_run": dry_run, "verbose": verbose, "retry_count": retry_count}
        )
    except ConfigurationError as e:
        setup_logging(verbose=verbose)
        logger.error(str(e))
        return EXIT_FAILURE

    config.workdir.mkdir(parents=True, exist_ok=True)
    setup_logging(verbose=config.verbose, log_file=config.log_file)

    manager = build_manager(config)
    try:
        manager.log_banner()
        summary = manager.run()
    except PreconditionError as e:
        logger.error(str(e))
        return EXIT_FAILURE
    finally:
        manager.close()

    return EXIT_OK if summary.succeeded else EXIT_FAILURE


def run(argv: Optional[List[str]] = None) -> int:
    """Invoke the CLI and map every outcome onto an exit code."""
    try:
        rv = cli.main(args=argv, prog_name="repo-sync", standalone_mode=False)
    except click.UsageError as e:
        if e.ctx is not None:
            click.echo(e.ctx.get_help(), err=True)
            click.echo(err=True)
        click.echo(f"Error: {e.format_message()}", err=True)
        return EXIT_FAILURE
    except click.ClickException as e:
        e.show()
        return EXIT_FAILURE
    except (click.Abort, KeyboardInterrupt):
        logger.error("Script interrupted by user")
        return EXIT_INTERRUPTED
    return rv if isinstance(rv, int) else EXIT_OK


def _interrupt(signum, frame) -> None:
    raise KeyboardInterrupt


def main() -> None:
    signal.signal(signal.SIGTERM, _interrupt)
    sys.exit(run())


if __name__ == "__main__":
    main()
