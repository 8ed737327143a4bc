"""
Loop device layer for loopvol

Minor allocation, node creation, binding and formatting.
"""

from loopvol.devices.runner import CommandResult, CommandRunner, EXIT_NOT_EXECUTABLE
from loopvol.devices.binder import DeviceBinder, LOOP_MAJOR
from loopvol.devices.allocator import LoopbackAllocator, DEFAULT_MIN_MINOR
from loopvol.devices.formatter import FilesystemFormatter

__all__ = [
    "CommandResult",
    "CommandRunner",
    "EXIT_NOT_EXECUTABLE",
    "DeviceBinder",
    "LOOP_MAJOR",
    "LoopbackAllocator",
    "DEFAULT_MIN_MINOR",
    "FilesystemFormatter",
]
