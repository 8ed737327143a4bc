"""
Storage module for loopvol

Backing files for loop devices.
"""

from .backing import BackingStore, BACKING_FILE_MODE

__all__ = [
    "BackingStore",
    "BACKING_FILE_MODE",
]
