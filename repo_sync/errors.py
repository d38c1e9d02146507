"""
Errors — Exception hierarchy for repository synchronization.

Every failure that a pipeline step can recover from (by retrying, or by
isolating the repository) derives from SyncError, so callers only need a
single except clause at the boundary where a failure becomes a result.

## Usage

    from repo_sync.errors import SyncError

    try:
        sync_step()
    except SyncError as e:
        logger.error(f"Step failed: {e}")
"""

from __future__ import annotations

from typing import Optional, Sequence


class SyncError(Exception):
    """Base class for all repo-sync failures."""


class CommandError(SyncError):
    """Raised when an external command exits non-zero."""

    def __init__(
        self,
        args: Sequence[str],
        returncode: int,
        output: str = "",
        cwd: Optional[str] = None,
    ):
        self.command = list(args)
        self.returncode = returncode
        self.output = output
        self.cwd = cwd
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        message = f"{' '.join(self.command)} failed (exit {self.returncode})"
        if self.cwd:
            message += f" in {self.cwd}"
        if self.output:
            message += f": {self.output}"
        return message


class GitCommandError(CommandError):
    """Raised when a git invocation fails."""


class HostingError(SyncError):
    """Raised when the hosting API returns an unexpected response."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class RetryExhaustedError(SyncError):
    """Raised when an operation failed on every allowed attempt."""

    def __init__(self, description: str, attempts: int, cause: Exception):
        self.description = description
        self.attempts = attempts
        self.cause = cause
        super().__init__(
            f"{description} failed after {attempts} attempt(s): {cause}"
        )


class PreconditionError(SyncError):
    """Raised when the run cannot start (e.g. not authenticated)."""


class ConfigurationError(SyncError):
    """Raised when configuration is missing or invalid."""
