"""
Sync Manager — Run every configured source organization once.

This is the main entry point for a sync run. It checks the hosting session,
processes the source organizations sequentially in their configured order,
and reports the aggregated outcome.

## Usage from other modules:

    from repo_sync.mirror.manager import SyncManager

    manager = SyncManager.from_config(config)
    summary = manager.run()
    sys.exit(0 if summary.succeeded else 1)
"""

from __future__ import annotations

import logging
from typing import Optional

from ..config.models import SyncConfig
from .git_sync import GitClient
from .github_sync import GitHubClient, HostingClient
from .pipeline import SyncContext
from .processor import process_organization
from .state import RunSummary

logger = logging.getLogger(__name__)


class SyncManager:
    """Sequences the organization processors for one run."""

    def __init__(self, ctx: SyncContext):
        self.ctx = ctx

    @classmethod
    def from_config(
        cls,
        config: SyncConfig,
        hosting: Optional[HostingClient] = None,
        git: Optional[GitClient] = None,
    ) -> "SyncManager":
        """Create a manager with the real git and GitHub clients unless given."""
        git = git or GitClient()
        hosting = hosting or GitHubClient(config, git)
        return cls(SyncContext(config=config, hosting=hosting, git=git))

    @property
    def config(self) -> SyncConfig:
        return self.ctx.config

    def close(self) -> None:
        """Release the hosting client's connection pool, if it has one."""
        close = getattr(self.ctx.hosting, "close", None)
        if close is not None:
            close()

    def log_banner(self) -> None:
        config = self.config
        logger.info("Starting repository synchronization")
        logger.info(f"Target directory: {config.workdir}")
        logger.info(f"Dry run mode: {str(config.dry_run).lower()}")
        logger.info(f"Verbose mode: {str(config.verbose).lower()}")
        logger.info(f"Retry count: {config.retry_count}")

    def check_prerequisites(self) -> None:
        """Verify the hosting session. Raises PreconditionError."""
        logger.info("Checking GitHub authentication...")
        login = self.ctx.hosting.check_authentication()
        logger.info(f"GitHub authentication verified{f' ({login})' if login else ''}")

    def run(self) -> RunSummary:
        """
        Check prerequisites, then process each source organization.

        A failed organization never stops the next one.

        Raises:
            PreconditionError: Before any repository is touched
        """
        self.config.workdir.mkdir(parents=True, exist_ok=True)
        self.check_prerequisites()

        summary = RunSummary(dry_run=self.config.dry_run)
        for source in self.config.sources:
            summary.organizations.append(process_organization(self.ctx, source))

        self.report(summary)
        return summary

    def report(self, summary: RunSummary) -> None:
        config = self.config
        for org in summary.organizations:
            logger.info(org.summary_line())

        if summary.succeeded:
            logger.info("✅ Repository synchronization completed successfully!")
        else:
            logger.error("❌ Repository synchronization completed with errors!")
            logger.error(f"Check the log file for details: {config.log_file}")

        if summary.dry_run:
            logger.info("This was a dry run. No actual changes were made.")
            return

        for source in config.sources:
            logger.info(
                f"- {source.org} repositories → {source.branch} branch → "
                f"{config.build_org}/{config.destination_ref} branch"
            )
        logger.info(f"- Log file: {config.log_file}")
        logger.info(f"- Working directory: {config.workdir}")
