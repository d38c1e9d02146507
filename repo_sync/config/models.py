"""
Config Models — Pydantic schema for the immutable run configuration.

One SyncConfig is built at startup and passed explicitly to every component.
Nothing mutates it for the duration of a run.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class SourceOrg(BaseModel):
    """A source organization and the branch its repositories sync onto."""

    model_config = ConfigDict(frozen=True)

    org: str = Field(min_length=1)
    branch: str = Field(min_length=1)

    @property
    def label(self) -> str:
        return f"{self.org} Processing"


DEFAULT_SOURCES: Tuple[SourceOrg, ...] = (
    SourceOrg(org="EmergentMonk", branch="TEST"),
    SourceOrg(org="multimodalas", branch="DEV"),
)


def _default_workdir() -> Path:
    return Path.home() / "repo_mirror"


class SyncConfig(BaseModel):
    """Complete configuration for one repo-sync run."""

    model_config = ConfigDict(frozen=True)

    # Organizations
    sources: Tuple[SourceOrg, ...] = Field(default=DEFAULT_SOURCES, min_length=1)
    build_org: str = Field(default="QSOLKCB", min_length=1)

    # Local layout
    workdir: Path = Field(default_factory=_default_workdir)
    log_filename: str = "repo_sync.log"
    skip_marker: str = ".repo_sync_skip"

    # Limits
    max_repos: int = Field(default=200, ge=1)
    retry_count: int = Field(default=3, ge=1)
    # Polls after a fork request; 8 attempts wait up to 127s in total
    fork_ready_attempts: int = Field(default=8, ge=1)

    # Push target
    destination_ref: str = Field(default="BUILD", min_length=1)
    build_remote: str = Field(default="build", min_length=1)
    force_push: bool = True

    # Hosting
    git_host: str = "github.com"
    api_url: str = "https://api.github.com"
    github_token: Optional[str] = Field(default=None, repr=False)
    request_timeout: float = Field(default=30.0, gt=0)

    # Invocation flags
    dry_run: bool = False
    verbose: bool = False

    @property
    def log_file(self) -> Path:
        return self.workdir / self.log_filename

    def repo_dir(self, repo: str) -> Path:
        """Working directory for one repository."""
        return self.workdir / repo

    def marker_path(self, repo: str) -> Path:
        """Skip marker location for one repository."""
        return self.repo_dir(repo) / self.skip_marker

    def clone_url(self, owner: str, repo: str) -> str:
        return f"git@{self.git_host}:{owner}/{repo}.git"

    def build_remote_url(self, repo: str) -> str:
        return self.clone_url(self.build_org, repo)

    def push_refspec(self, branch: str) -> str:
        return f"{branch}:{self.destination_ref}"
