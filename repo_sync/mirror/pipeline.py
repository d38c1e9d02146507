"""
Fork-and-Push Pipeline — Mirror one repository into the build organization.

Steps, in order (any failure aborts the rest for that repository):

1. Materialize   — fetch an existing clone, or clone with retries
2. Reconcile     — make the source's target branch current
3. Ensure fork   — fork into the build org unless a repo of that name exists,
                   then wait until the new fork is visible
4. Build remote  — add/update the "build" remote
5. Push          — push <branch>:<destination_ref> to the build remote

Steps 3-5 change remote state and are not undone on failure.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from ..config.models import SourceOrg, SyncConfig
from ..errors import HostingError, SyncError
from ..reliability.retry import retry_with_backoff
from .branches import reconcile_branch
from .git_sync import GitClient, ensure_remote
from .github_sync import HostingClient
from .state import RepoResult

logger = logging.getLogger(__name__)


@dataclass
class SyncContext:
    """Everything a run needs, passed explicitly to each component."""

    config: SyncConfig
    hosting: HostingClient
    git: GitClient
    sleep: Callable[[float], None] = field(default=time.sleep)

    def retry(self, operation, description: str):
        return retry_with_backoff(
            operation,
            self.config.retry_count,
            description=description,
            sleep=self.sleep,
        )


def materialize(ctx: SyncContext, source: SourceOrg, repo: str) -> Path:
    """
    Fetch an existing clone, or clone a fresh one.

    Only a directory holding git metadata counts as a clone. A directory left
    behind by a failed clone (e.g. one that only held a skip marker) is cloned
    into, so git never runs against an enclosing repository.
    """
    repo_dir = ctx.config.repo_dir(repo)

    if (repo_dir / ".git").exists():
        logger.debug(f"Repository '{repo}' already exists, updating")
        ctx.git.fetch_all(repo_dir)
    else:
        logger.debug(f"Cloning repository '{source.org}/{repo}'")
        ctx.retry(
            lambda: ctx.hosting.clone_repository(source.org, repo, repo_dir),
            description=f"clone {source.org}/{repo} {repo_dir}",
        )
    return repo_dir


def ensure_fork(ctx: SyncContext, source: SourceOrg, repo: str) -> bool:
    """Fork into the build org. Returns False if a repo of that name was already there."""
    build_org = ctx.config.build_org
    logger.debug(f"Checking if fork '{build_org}/{repo}' already exists")

    if ctx.hosting.repository_exists(build_org, repo):
        logger.debug(f"Fork '{build_org}/{repo}' already exists")
        return False

    logger.info(f"Forking '{source.org}/{repo}' to '{build_org}'")
    ctx.retry(
        lambda: ctx.hosting.fork_repository(source.org, repo, build_org),
        description=f"fork {source.org}/{repo} --org={build_org}",
    )
    return True


def wait_for_fork(ctx: SyncContext, repo: str) -> None:
    """Poll until a requested fork exists. GitHub creates forks asynchronously."""
    build_org = ctx.config.build_org

    def _check() -> None:
        if not ctx.hosting.repository_exists(build_org, repo):
            raise HostingError(f"Fork '{build_org}/{repo}' is not ready yet")

    retry_with_backoff(
        _check,
        ctx.config.fork_ready_attempts,
        description=f"wait for fork {build_org}/{repo}",
        sleep=ctx.sleep,
    )
    logger.debug(f"Fork '{build_org}/{repo}' is ready")


def push_to_build(ctx: SyncContext, repo_dir: Path, repo: str, branch: str) -> None:
    config = ctx.config
    refspec = config.push_refspec(branch)
    logger.debug(f"Pushing branch '{branch}' to '{config.build_org}/{repo}' as {config.destination_ref}")
    ctx.retry(
        lambda: ctx.git.push(repo_dir, config.build_remote, refspec, force=config.force_push),
        description=f"git push {config.build_remote} {refspec}",
    )


def sync_repository(ctx: SyncContext, source: SourceOrg, repo: str) -> RepoResult:
    """
    Run the whole pipeline for one repository.

    Never raises SyncError: failures come back as a failed RepoResult.
    """
    try:
        repo_dir = materialize(ctx, source, repo)
        branch_state = reconcile_branch(ctx.git, repo_dir, source.branch)
        logger.debug(f"Branch '{source.branch}' {branch_state} in {repo}")
        if ensure_fork(ctx, source, repo):
            wait_for_fork(ctx, repo)
        ensure_remote(
            ctx.git,
            repo_dir,
            ctx.config.build_remote,
            ctx.config.build_remote_url(repo),
        )
        push_to_build(ctx, repo_dir, repo, source.branch)
    except SyncError as e:
        return RepoResult.failed(repo, str(e))

    logger.debug(f"Successfully processed: {source.org}/{repo}")
    return RepoResult.processed(repo)
