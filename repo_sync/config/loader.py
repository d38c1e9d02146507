"""
Config Loader — Build the run configuration from layered sources.

Layers, lowest precedence first:
1. Built-in defaults (SyncConfig field defaults)
2. Optional YAML file named by REPO_SYNC_CONFIG
3. Individual environment variables
4. Invocation options

## Usage

    export REPO_SYNC_SOURCES="EmergentMonk:TEST,multimodalas:DEV"
    export REPO_SYNC_WORKDIR="$HOME/repo_mirror"
    export GITHUB_TOKEN="ghp_xxx"

    config = load_config({"dry_run": True, "retry_count": 5})

## YAML file

    build_org: QSOLKCB
    max_repos: 200
    sources:
      - org: EmergentMonk
        branch: TEST
      - org: multimodalas
        branch: DEV
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml
from pydantic import ValidationError

from ..errors import ConfigurationError
from .models import SyncConfig

logger = logging.getLogger(__name__)

CONFIG_FILE_ENV = "REPO_SYNC_CONFIG"

# Environment variable → SyncConfig field
ENV_FIELDS = {
    "REPO_SYNC_WORKDIR": "workdir",
    "REPO_SYNC_BUILD_ORG": "build_org",
    "REPO_SYNC_MAX_REPOS": "max_repos",
    "REPO_SYNC_DEST_REF": "destination_ref",
    "REPO_SYNC_GIT_HOST": "git_host",
    "GITHUB_API_URL": "api_url",
    "GITHUB_TOKEN": "github_token",
}


def load_yaml(path: Path) -> Dict[str, Any]:
    """Load a YAML mapping; an empty file yields an empty dict."""
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    return data


def parse_sources(raw: str) -> List[Dict[str, str]]:
    """
    Parse "org:BRANCH,org:BRANCH" into source mappings.

    Order is preserved; it is the order organizations are processed in.
    """
    sources = []
    for chunk in raw.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        org, sep, branch = chunk.partition(":")
        if not sep or not org.strip() or not branch.strip():
            raise ConfigurationError(
                f"Invalid source '{chunk}' (expected ORG:BRANCH)"
            )
        sources.append({"org": org.strip(), "branch": branch.strip()})
    if not sources:
        raise ConfigurationError("REPO_SYNC_SOURCES is set but lists no sources")
    return sources


def _from_env(env: Mapping[str, str]) -> Dict[str, Any]:
    data: Dict[str, Any] = {}
    for var, field_name in ENV_FIELDS.items():
        value = env.get(var)
        if value:
            data[field_name] = value

    raw_sources = env.get("REPO_SYNC_SOURCES")
    if raw_sources:
        data["sources"] = parse_sources(raw_sources)

    if "workdir" in data:
        data["workdir"] = Path(data["workdir"]).expanduser()
    return data


def load_config(
    overrides: Optional[Mapping[str, Any]] = None,
    env: Optional[Mapping[str, str]] = None,
) -> SyncConfig:
    """
    Build the immutable SyncConfig for this run.

    Args:
        overrides: Values from invocation options; None values are ignored
        env: Environment mapping (defaults to os.environ)

    Raises:
        ConfigurationError: If any layer holds an invalid value
    """
    env = os.environ if env is None else env
    data: Dict[str, Any] = {}

    config_file = env.get(CONFIG_FILE_ENV)
    if config_file:
        path = Path(config_file).expanduser()
        if not path.is_file():
            raise ConfigurationError(f"Config file not found: {path}")
        logger.debug(f"Loading config file {path}")
        try:
            data.update(load_yaml(path))
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    data.update(_from_env(env))

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return SyncConfig(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
