"""
Organization Processor — Drive the pipeline over one organization's repos.

Failures are isolated per repository: a failing repository is counted, gets
a skip marker, and the loop moves on. Only a failed or empty listing fails
the organization as a whole.
"""

from __future__ import annotations

import logging
from typing import List

from ..config.models import SourceOrg
from ..errors import SyncError
from .pipeline import SyncContext, sync_repository
from .state import OrgResult, RepoResult, has_skip_marker, write_skip_marker

logger = logging.getLogger(__name__)


def list_repositories(ctx: SyncContext, source: SourceOrg) -> List[str]:
    """
    List up to max_repos names for the source organization.

    Raises:
        SyncError: On API errors, or when the listing is empty
    """
    logger.info(f"Fetching repository list for organization: {source.org}")
    repos = ctx.hosting.list_repositories(source.org, ctx.config.max_repos)
    repos = [name for name in repos if name]
    if not repos:
        raise SyncError(
            f"No repositories found for organization '{source.org}' or access denied"
        )
    logger.info(f"Found {len(repos)} repositories in '{source.org}'")
    return repos


def process_repository(ctx: SyncContext, source: SourceOrg, repo: str) -> RepoResult:
    config = ctx.config
    logger.info(f"Processing repository: {source.org}/{repo}")

    if has_skip_marker(config.marker_path(repo)):
        logger.info(f"Skipping repository '{repo}' (marked to skip)")
        return RepoResult.skipped(repo)

    if config.dry_run:
        logger.info(
            f"[DRY-RUN] Would process: {source.org}/{repo} → branch {source.branch}"
        )
        return RepoResult.processed(repo)

    result = sync_repository(ctx, source, repo)
    if not result.ok:
        logger.error(f"Failed to process repository: {source.org}/{repo} ({result.error})")
        write_skip_marker(config.marker_path(repo))
    return result


def process_organization(ctx: SyncContext, source: SourceOrg) -> OrgResult:
    """Process every listed repository of one source organization, in listing order."""
    logger.info(f"=== Starting {source.label}: {source.org} → {source.branch} ===")
    outcome = OrgResult(org=source.org, branch=source.branch)

    try:
        repos = list_repositories(ctx, source)
    except SyncError as e:
        logger.error(f"Failed to get repository list for '{source.org}': {e}")
        outcome.listing_error = str(e)
        return outcome

    for repo in repos:
        outcome.results.append(process_repository(ctx, source, repo))

    logger.info(f"=== Completed {source.label} ===")
    logger.info(
        f"Processed: {outcome.processed}, Failed: {outcome.failed}, Skipped: {outcome.skipped}"
    )
    if outcome.failed:
        logger.warning(f"{outcome.failed} repositories failed during {source.label}")

    return outcome
