"""
Branch Reconciler — Make a named branch current, preferring origin's state.

Checkout and push failures propagate and fail the repository. A failed pull
only degrades to a warning; the local tip is kept.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ..errors import GitCommandError
from .git_sync import GitClient

logger = logging.getLogger(__name__)

ORIGIN = "origin"


def _pull_or_warn(git: GitClient, repo: Path, branch: str) -> None:
    try:
        git.pull(repo, ORIGIN, branch)
    except GitCommandError as e:
        logger.warning(
            f"Failed to pull latest changes for branch '{branch}', "
            f"continuing with local version ({e.output or e})"
        )


def reconcile_branch(git: GitClient, repo: Path, branch: str) -> str:
    """
    Ensure `branch` is checked out in `repo` and exists on origin.

    1. Local branch exists → checkout, pull from origin (pull failure = warning)
    2. Only origin/<branch> exists → create tracking branch, pull
    3. Neither → create from the current checkout and push to origin

    Returns which path was taken: "updated", "tracked" or "created".
    """
    logger.debug(f"Ensuring branch '{branch}' exists")

    if git.ref_exists(repo, f"refs/heads/{branch}"):
        logger.debug(f"Branch '{branch}' exists, checking out")
        git.checkout(repo, branch)
        _pull_or_warn(git, repo, branch)
        return "updated"

    if git.ref_exists(repo, f"refs/remotes/{ORIGIN}/{branch}"):
        logger.debug(f"Branch '{branch}' exists on {ORIGIN}, creating tracking branch")
        git.checkout(repo, branch, create=True, start_point=f"{ORIGIN}/{branch}")
        _pull_or_warn(git, repo, branch)
        return "tracked"

    logger.debug(f"Creating new branch '{branch}'")
    git.checkout(repo, branch, create=True)
    git.push(repo, ORIGIN, branch)
    return "created"
