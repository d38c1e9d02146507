"""
GitHub Sync — Hosting API client for listing, checking and forking repos.

Uses the GitHub REST API over httpx. Cloning goes through git, with the
SSH URL for the repository on the configured host.

The pipeline depends only on the HostingClient protocol, so tests can
substitute a recording fake without touching the network.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

import httpx
from pydantic import BaseModel, ValidationError

from ..config.models import SyncConfig
from ..errors import HostingError, PreconditionError
from .git_sync import GitClient

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


class RemoteRepository(BaseModel):
    """The subset of a GitHub repository payload the sync reads."""

    name: str
    full_name: Optional[str] = None
    fork: bool = False
    archived: bool = False
    default_branch: Optional[str] = None


class HostingClient(Protocol):
    """Operations the pipeline needs from the hosting service."""

    def check_authentication(self) -> str: ...

    def list_repositories(self, org: str, limit: int) -> List[str]: ...

    def repository_exists(self, owner: str, name: str) -> bool: ...

    def fork_repository(self, owner: str, name: str, org: str) -> None: ...

    def clone_repository(self, owner: str, name: str, target: Path) -> None: ...


def _get_headers(token: Optional[str]) -> Dict[str, str]:
    """Get GitHub API headers."""
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


class GitHubClient:
    """HostingClient backed by the GitHub REST API."""

    def __init__(
        self,
        config: SyncConfig,
        git: GitClient,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.config = config
        self.git = git
        self._http = httpx.Client(
            base_url=config.api_url,
            headers=_get_headers(config.github_token),
            timeout=config.request_timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "GitHubClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            return self._http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise HostingError(f"{method} {url} failed: {e}") from e

    # ─── Session ────────────────────────────────────────────

    def check_authentication(self) -> str:
        """
        Verify the API token is accepted.

        Returns the authenticated login.

        Raises:
            PreconditionError: If no token is configured or it is rejected
        """
        if not self.config.github_token:
            raise PreconditionError(
                "GITHUB_TOKEN is not set. Export a token or add it to .env."
            )

        try:
            resp = self._request("GET", "/user")
        except HostingError as e:
            raise PreconditionError(f"Could not reach GitHub API: {e}") from e

        if resp.status_code != 200:
            raise PreconditionError(
                f"GitHub authentication failed: HTTP {resp.status_code}"
            )
        try:
            login = resp.json().get("login", "")
        except ValueError:
            login = ""
        logger.debug(f"[github] Authenticated as {login}")
        return login

    # ─── Repositories ───────────────────────────────────────

    def list_repositories(self, org: str, limit: int) -> List[str]:
        """
        List repository names in an organization, in API order.

        Stops after `limit` names or when a short page signals the end.
        """
        per_page = min(MAX_PAGE_SIZE, limit)
        names: List[str] = []
        page = 1

        while len(names) < limit:
            resp = self._request(
                "GET",
                f"/orgs/{org}/repos",
                params={"per_page": per_page, "page": page},
            )
            if resp.status_code != 200:
                raise HostingError(
                    f"Listing repositories for '{org}' failed: HTTP {resp.status_code}",
                    status_code=resp.status_code,
                )

            try:
                payload = resp.json()
            except ValueError as e:
                raise HostingError(f"Listing for '{org}' returned invalid JSON") from e
            if not isinstance(payload, list):
                raise HostingError(f"Unexpected listing payload for '{org}'")

            try:
                repos = [RemoteRepository.model_validate(item) for item in payload]
            except ValidationError as e:
                raise HostingError(f"Malformed repository entry for '{org}': {e}") from e

            names.extend(repo.name for repo in repos)
            if len(payload) < per_page:
                break
            page += 1

        return names[:limit]

    def repository_exists(self, owner: str, name: str) -> bool:
        resp = self._request("GET", f"/repos/{owner}/{name}")
        if resp.status_code == 200:
            return True
        if resp.status_code == 404:
            return False
        raise HostingError(
            f"Checking {owner}/{name} failed: HTTP {resp.status_code}",
            status_code=resp.status_code,
        )

    def fork_repository(self, owner: str, name: str, org: str) -> None:
        """Create a fork of owner/name under org. The API answers 202 Accepted."""
        resp = self._request(
            "POST",
            f"/repos/{owner}/{name}/forks",
            json={"organization": org, "default_branch_only": False},
        )
        if resp.status_code not in (200, 202):
            raise HostingError(
                f"Forking {owner}/{name} into {org} failed: HTTP {resp.status_code}: {resp.text}",
                status_code=resp.status_code,
            )
        logger.info(f"[github] Fork of {owner}/{name} requested in {org}")

    def clone_repository(self, owner: str, name: str, target: Path) -> None:
        self.git.clone(self.config.clone_url(owner, name), target)
