"""
loopvol utilities

Logging helpers.
"""

from loopvol.utils.logger import (
    configure_logging,
    resolve_level,
    DEFAULT_FORMAT,
)

__all__ = [
    "configure_logging",
    "resolve_level",
    "DEFAULT_FORMAT",
]
