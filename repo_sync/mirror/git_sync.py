"""
Git Sync — Thin wrapper around the git executable.

Every call takes an explicit repository path and runs git with that path as
its working directory; the process cwd is never changed. Failures raise
GitCommandError carrying git's stderr.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Optional, Sequence

from ..errors import GitCommandError

logger = logging.getLogger(__name__)


class GitClient:
    """Git operations used by the sync pipeline."""

    def __init__(self, executable: str = "git", timeout: Optional[float] = None):
        self.executable = executable
        self.timeout = timeout

    def _run(
        self, args: Sequence[str], cwd: Optional[Path] = None
    ) -> subprocess.CompletedProcess:
        cmd = [self.executable, *args]
        logger.debug(f"[git] {' '.join(cmd)}" + (f" (in {cwd})" if cwd else ""))
        try:
            return subprocess.run(
                cmd,
                cwd=str(cwd) if cwd else None,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            return subprocess.CompletedProcess(
                cmd, -1, stdout="", stderr=f"timed out after {self.timeout}s"
            )

    def _check(self, args: Sequence[str], cwd: Optional[Path] = None) -> str:
        """Run git and return stdout; raise on non-zero exit."""
        result = self._run(args, cwd)
        if result.returncode != 0:
            error = (result.stderr or "").strip() or (result.stdout or "").strip()
            raise GitCommandError(
                [self.executable, *args],
                result.returncode,
                output=error,
                cwd=str(cwd) if cwd else None,
            )
        return result.stdout

    def _ok(self, args: Sequence[str], cwd: Optional[Path] = None) -> bool:
        """Return True when git exits with status 0."""
        return self._run(args, cwd).returncode == 0

    # ─── Repository ─────────────────────────────────────────

    def clone(self, url: str, target: Path) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        self._check(["clone", url, str(target)])

    def fetch_all(self, repo: Path) -> None:
        self._check(["fetch", "--all", "--prune"], cwd=repo)

    # ─── Refs & branches ────────────────────────────────────

    def ref_exists(self, repo: Path, ref: str) -> bool:
        """Whether a fully qualified ref (refs/heads/X, refs/remotes/origin/X) exists."""
        return self._ok(["show-ref", "--verify", "--quiet", ref], cwd=repo)

    def checkout(
        self,
        repo: Path,
        branch: str,
        create: bool = False,
        start_point: Optional[str] = None,
    ) -> None:
        args = ["checkout"]
        if create:
            args.append("-b")
        args.append(branch)
        if start_point:
            args.append(start_point)
        self._check(args, cwd=repo)

    def pull(self, repo: Path, remote: str, branch: str) -> None:
        self._check(["pull", remote, branch], cwd=repo)

    def push(self, repo: Path, remote: str, refspec: str, force: bool = False) -> None:
        args = ["push"]
        if force:
            args.append("--force")
        args.extend([remote, refspec])
        self._check(args, cwd=repo)

    # ─── Remotes ────────────────────────────────────────────

    def remote_exists(self, repo: Path, name: str) -> bool:
        return self._ok(["remote", "get-url", name], cwd=repo)

    def remote_url(self, repo: Path, name: str) -> str:
        return self._check(["remote", "get-url", name], cwd=repo).strip()

    def add_remote(self, repo: Path, name: str, url: str) -> None:
        self._check(["remote", "add", name, url], cwd=repo)

    def set_remote_url(self, repo: Path, name: str, url: str) -> None:
        self._check(["remote", "set-url", name, url], cwd=repo)


def ensure_remote(git: GitClient, repo: Path, name: str, url: str) -> None:
    """
    Add the remote, or update its URL if it already exists.

    Safe to call on every run.
    """
    if git.remote_exists(repo, name):
        current_url = git.remote_url(repo, name)
        if current_url != url:
            logger.info(f"[git] Updating remote URL for {name}: {url}")
            git.set_remote_url(repo, name, url)
        else:
            logger.debug(f"[git] Remote '{name}' already exists")
        return

    logger.debug(f"[git] Adding remote '{name}': {url}")
    git.add_remote(repo, name, url)
