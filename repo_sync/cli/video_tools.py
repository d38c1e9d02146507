"""
CLI video tools command — install common video packages on Ubuntu.

Usage:
    setup-video-tools [--dry-run]
    python -m repo_sync.cli.video_tools

Packages cover playback, capture/streaming, editing, and metadata
inspection. Re-executes itself through sudo when not run as root.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import sys
from typing import List, Sequence

import click

from ..logging_config import setup_logging

logger = logging.getLogger(__name__)

VIDEO_PACKAGES = (
    "ffmpeg",
    "gstreamer1.0-plugins-bad",
    "gstreamer1.0-plugins-ugly",
    "handbrake",
    "libavcodec-extra",
    "mediainfo",
    "mpv",
    "obs-studio",
    "shotcut",
    "vlc",
)


def apt_commands(packages: Sequence[str] = VIDEO_PACKAGES) -> List[List[str]]:
    return [
        ["apt-get", "update"],
        ["apt-get", "install", "-y", *packages],
    ]


def ensure_root(argv: Sequence[str]) -> None:
    """Return if root; otherwise replace this process with a sudo re-run."""
    if os.geteuid() == 0:
        return

    sudo = shutil.which("sudo")
    if sudo:
        logger.info("Re-running with sudo")
        os.execvp(
            sudo,
            [
                sudo,
                "--preserve-env=DEBIAN_FRONTEND",
                sys.executable,
                "-m",
                "repo_sync.cli.video_tools",
                *argv,
            ],
        )

    raise click.ClickException("This script must run as root or with sudo available.")


def run_commands(commands: Sequence[Sequence[str]], dry_run: bool = False) -> int:
    """Run each command in order; stop at the first failure and return its code."""
    env = dict(os.environ, DEBIAN_FRONTEND="noninteractive")

    for cmd in commands:
        if dry_run:
            logger.info(f"[DRY-RUN] Would run: {' '.join(cmd)}")
            continue

        logger.info(f"Running: {' '.join(cmd)}")
        result = subprocess.run(list(cmd), env=env)
        if result.returncode != 0:
            logger.error(f"{cmd[0]} exited with {result.returncode}: {' '.join(cmd)}")
            return result.returncode

    return 0


@click.command("setup-video-tools")
@click.option("--dry-run", is_flag=True, help="Print the apt-get commands without running them")
@click.pass_context
def setup_video_tools(ctx: click.Context, dry_run: bool) -> None:
    """Install playback, capture, editing and inspection tools via apt-get."""
    setup_logging()

    if not dry_run:
        ensure_root(sys.argv[1:])

    code = run_commands(apt_commands(), dry_run=dry_run)
    if code == 0 and not dry_run:
        logger.info(f"Installed {len(VIDEO_PACKAGES)} packages")
    ctx.exit(code)


def main() -> None:
    setup_video_tools(prog_name="setup-video-tools")


if __name__ == "__main__":
    main()
