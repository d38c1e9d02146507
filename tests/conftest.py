"""
Shared fixtures for repo-sync tests.

Provides recording fakes for the hosting and git clients so the pipeline,
processor and manager can run end-to-end against a temporary working
directory without network access or a git binary.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

import pytest

from repo_sync.config.models import SourceOrg, SyncConfig
from repo_sync.errors import GitCommandError, HostingError, PreconditionError
from repo_sync.mirror.pipeline import SyncContext

ALWAYS = 10**6

# Calls that change local or remote state
MUTATING_HOSTING_CALLS = {"clone_repository", "fork_repository"}
MUTATING_GIT_CALLS = {
    "clone",
    "fetch_all",
    "checkout",
    "pull",
    "push",
    "add_remote",
    "set_remote_url",
}


class _Recorder:
    def __init__(self) -> None:
        self.calls: List[Tuple] = []
        self.failures: Dict[str, int] = {}

    def fail(self, method: str, times: int = ALWAYS) -> None:
        """Make the next `times` calls of `method` fail."""
        self.failures[method] = times

    def _should_fail(self, method: str) -> bool:
        remaining = self.failures.get(method, 0)
        if remaining > 0:
            self.failures[method] = remaining - 1
            return True
        return False

    def call_names(self) -> List[str]:
        return [c[0] for c in self.calls]

    def count(self, method: str) -> int:
        return sum(1 for c in self.calls if c[0] == method)


class FakeHosting(_Recorder):
    """Recording HostingClient."""

    def __init__(
        self,
        repos: Optional[Dict[str, List[str]]] = None,
        authenticated: bool = True,
    ) -> None:
        super().__init__()
        self.repos = repos or {}
        self.authenticated = authenticated
        self.existing: Set[Tuple[str, str]] = set()
        self.listing_errors: Set[str] = set()
        self.clone_failures: Dict[str, int] = {}
        # Existence checks that still miss a fork right after it is requested
        self.fork_ready_after = 0
        self._pending_forks: Dict[Tuple[str, str], int] = {}

    def check_authentication(self) -> str:
        self.calls.append(("check_authentication",))
        if not self.authenticated:
            raise PreconditionError("GitHub authentication failed: HTTP 401")
        return "test-user"

    def list_repositories(self, org: str, limit: int) -> List[str]:
        self.calls.append(("list_repositories", org, limit))
        if org in self.listing_errors:
            raise HostingError(f"Listing repositories for '{org}' failed: HTTP 500", 500)
        return list(self.repos.get(org, []))[:limit]

    def repository_exists(self, owner: str, name: str) -> bool:
        self.calls.append(("repository_exists", owner, name))
        pending = self._pending_forks.get((owner, name), 0)
        if pending > 0:
            self._pending_forks[(owner, name)] = pending - 1
            return False
        return (owner, name) in self.existing

    def fork_repository(self, owner: str, name: str, org: str) -> None:
        self.calls.append(("fork_repository", owner, name, org))
        if self._should_fail("fork_repository"):
            raise HostingError(f"Forking {owner}/{name} into {org} failed: HTTP 502", 502)
        self.existing.add((org, name))
        if self.fork_ready_after:
            self._pending_forks[(org, name)] = self.fork_ready_after

    def clone_repository(self, owner: str, name: str, target: Path) -> None:
        self.calls.append(("clone_repository", owner, name, target))
        remaining = self.clone_failures.get(name, 0)
        if remaining > 0:
            self.clone_failures[name] = remaining - 1
            raise GitCommandError(["git", "clone", name], 128, output="Connection reset")
        (target / ".git").mkdir(parents=True, exist_ok=True)


class FakeGit(_Recorder):
    """Recording GitClient keyed by repository directory name."""

    def __init__(self) -> None:
        super().__init__()
        self.local: Dict[str, Set[str]] = {}
        self.origin: Dict[str, Set[str]] = {}
        self.remotes: Dict[str, Dict[str, str]] = {}
        self.current: Dict[str, str] = {}
        self.pushes: List[Tuple[str, str, str, bool]] = []

    def _error(self, *args: str) -> GitCommandError:
        return GitCommandError(["git", *args], 1, output="simulated failure")

    def _local(self, repo: Path) -> Set[str]:
        return self.local.setdefault(repo.name, {"main"})

    def clone(self, url: str, target: Path) -> None:
        self.calls.append(("clone", url, target))
        (target / ".git").mkdir(parents=True, exist_ok=True)

    def fetch_all(self, repo: Path) -> None:
        self.calls.append(("fetch_all", repo))
        if self._should_fail("fetch_all"):
            raise self._error("fetch", "--all", "--prune")

    def ref_exists(self, repo: Path, ref: str) -> bool:
        self.calls.append(("ref_exists", repo, ref))
        if ref.startswith("refs/heads/"):
            return ref[len("refs/heads/"):] in self._local(repo)
        if ref.startswith("refs/remotes/origin/"):
            return ref[len("refs/remotes/origin/"):] in self.origin.get(repo.name, set())
        return False

    def checkout(
        self,
        repo: Path,
        branch: str,
        create: bool = False,
        start_point: Optional[str] = None,
    ) -> None:
        self.calls.append(("checkout", repo, branch, create, start_point))
        if self._should_fail("checkout"):
            raise self._error("checkout", branch)
        if create:
            self._local(repo).add(branch)
        self.current[repo.name] = branch

    def pull(self, repo: Path, remote: str, branch: str) -> None:
        self.calls.append(("pull", repo, remote, branch))
        if self._should_fail("pull"):
            raise self._error("pull", remote, branch)

    def push(self, repo: Path, remote: str, refspec: str, force: bool = False) -> None:
        self.calls.append(("push", repo, remote, refspec, force))
        if self._should_fail("push"):
            raise self._error("push", remote, refspec)
        self.pushes.append((repo.name, remote, refspec, force))
        if remote == "origin":
            self.origin.setdefault(repo.name, set()).add(refspec)

    def remote_exists(self, repo: Path, name: str) -> bool:
        self.calls.append(("remote_exists", repo, name))
        return name in self.remotes.get(repo.name, {})

    def remote_url(self, repo: Path, name: str) -> str:
        self.calls.append(("remote_url", repo, name))
        return self.remotes[repo.name][name]

    def add_remote(self, repo: Path, name: str, url: str) -> None:
        self.calls.append(("add_remote", repo, name, url))
        self.remotes.setdefault(repo.name, {})[name] = url

    def set_remote_url(self, repo: Path, name: str, url: str) -> None:
        self.calls.append(("set_remote_url", repo, name, url))
        self.remotes.setdefault(repo.name, {})[name] = url


@pytest.fixture(autouse=True)
def restore_root_logger():
    """setup_logging() replaces root handlers; put the originals back."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)


@pytest.fixture
def sleeps() -> List[float]:
    """Records every backoff delay instead of sleeping."""
    return []


@pytest.fixture
def config(tmp_path: Path) -> SyncConfig:
    return SyncConfig(
        sources=(SourceOrg(org="A", branch="TEST"), SourceOrg(org="B", branch="DEV")),
        build_org="BUILDORG",
        workdir=tmp_path / "mirror",
        retry_count=3,
    )


@pytest.fixture
def hosting() -> FakeHosting:
    return FakeHosting(repos={"A": ["r1", "r2"], "B": ["r3"]})


@pytest.fixture
def git() -> FakeGit:
    return FakeGit()


@pytest.fixture
def ctx(config: SyncConfig, hosting: FakeHosting, git: FakeGit, sleeps: List[float]) -> SyncContext:
    return SyncContext(config=config, hosting=hosting, git=git, sleep=sleeps.append)
