"""
Retry — Bounded retries with exponential backoff.

Wraps a single operation (a git push, a clone, a fork request) and retries
it when it raises a SyncError. The delay before the k-th retry is
2^(k-1) seconds: 1s, 2s, 4s, ... There is no jitter and no per-attempt
timeout; a hung operation hangs the loop.

## Usage

    from repo_sync.reliability.retry import retry_with_backoff

    retry_with_backoff(
        lambda: git.push(repo_path, "build", "TEST:BUILD"),
        attempts=3,
        description="git push build TEST:BUILD",
    )
"""

from __future__ import annotations

import logging
import time
from typing import Callable, List, TypeVar

from ..errors import RetryExhaustedError, SyncError

logger = logging.getLogger(__name__)

T = TypeVar("T")

INITIAL_DELAY_SECONDS = 1


def backoff_delays(attempts: int) -> List[int]:
    """Delays slept between attempts: one fewer than the attempt count."""
    return [INITIAL_DELAY_SECONDS * (2 ** i) for i in range(max(attempts - 1, 0))]


def retry_with_backoff(
    operation: Callable[[], T],
    attempts: int,
    *,
    description: str,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Run an operation, retrying on SyncError with exponential backoff.

    Args:
        operation: Zero-argument callable; raises SyncError on failure
        attempts: Maximum number of invocations (>= 1)
        description: Human-readable command name used in log lines
        sleep: Sleep function (injected by tests)

    Returns:
        Whatever the first successful invocation returned

    Raises:
        RetryExhaustedError: If every attempt failed
        ValueError: If attempts < 1
    """
    if attempts < 1:
        raise ValueError(f"attempts must be >= 1, got {attempts}")

    delays = backoff_delays(attempts)
    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except SyncError as e:
            if attempt == attempts:
                logger.error(
                    f"Command failed after {attempts} attempts: {description}"
                )
                raise RetryExhaustedError(description, attempts, e) from e

            delay = delays[attempt - 1]
            logger.warning(
                f"Attempt {attempt} failed, retrying in {delay}s: {description} ({e})"
            )
            sleep(delay)

    # Unreachable: the loop either returns or raises.
    raise AssertionError("retry loop exited without result")
