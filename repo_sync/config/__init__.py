"""
Configuration — Immutable run settings.
"""

from .loader import load_config
from .models import DEFAULT_SOURCES, SourceOrg, SyncConfig

__all__ = [
    "load_config",
    "SyncConfig",
    "SourceOrg",
    "DEFAULT_SOURCES",
]
