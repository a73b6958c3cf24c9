"""Configuration package for Archive Miner.

Re-exports the settings symbols so that callers can write::

    from archive_miner.config import get_settings
"""

from __future__ import annotations

from archive_miner.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
