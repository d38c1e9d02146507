"""
Sync State — Per-run results and the on-disk skip markers.

Results live only for the duration of a run. The only state that survives
between runs is the skip marker: a zero-byte file inside a repository's
working directory that quarantines it after a failure. The tool never
removes a marker; deleting it is an operator action.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

# Repository outcomes
STATUS_PROCESSED = "processed"
STATUS_FAILED = "failed"
STATUS_SKIPPED = "skipped"


@dataclass
class RepoResult:
    """Outcome of the pipeline for one repository."""

    repo: str
    status: str
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status != STATUS_FAILED

    @classmethod
    def processed(cls, repo: str) -> "RepoResult":
        return cls(repo=repo, status=STATUS_PROCESSED)

    @classmethod
    def failed(cls, repo: str, error: str) -> "RepoResult":
        return cls(repo=repo, status=STATUS_FAILED, error=error)

    @classmethod
    def skipped(cls, repo: str) -> "RepoResult":
        return cls(repo=repo, status=STATUS_SKIPPED)


@dataclass
class OrgResult:
    """Outcome of processing one source organization."""

    org: str
    branch: str
    results: List[RepoResult] = field(default_factory=list)
    listing_error: Optional[str] = None

    def _count(self, status: str) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def processed(self) -> int:
        return self._count(STATUS_PROCESSED)

    @property
    def failed(self) -> int:
        return self._count(STATUS_FAILED)

    @property
    def skipped(self) -> int:
        return self._count(STATUS_SKIPPED)

    @property
    def succeeded(self) -> bool:
        return self.listing_error is None and self.failed == 0

    def summary_line(self) -> str:
        if self.listing_error:
            return f"{self.org} → {self.branch}: listing failed ({self.listing_error})"
        return (
            f"{self.org} → {self.branch}: Processed: {self.processed}, "
            f"Failed: {self.failed}, Skipped: {self.skipped}"
        )


@dataclass
class RunSummary:
    """Outcome of a whole run across all source organizations."""

    organizations: List[OrgResult] = field(default_factory=list)
    dry_run: bool = False

    @property
    def succeeded(self) -> bool:
        return all(org.succeeded for org in self.organizations)


# ─── Skip markers ───────────────────────────────────────────


def has_skip_marker(marker: Path) -> bool:
    return marker.is_file()


def write_skip_marker(marker: Path) -> None:
    """Create the marker (and the repository directory if needed)."""
    marker.parent.mkdir(parents=True, exist_ok=True)
    marker.touch()
    logger.debug(f"Skip marker written: {marker}")
