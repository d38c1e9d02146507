"""
Reliability Module — Retry with exponential backoff.
"""

from .retry import backoff_delays, retry_with_backoff

__all__ = [
    "retry_with_backoff",
    "backoff_delays",
]
