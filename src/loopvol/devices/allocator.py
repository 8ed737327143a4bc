"""
Loop device minor number allocation.

The device directory is the only record of which minors are in use.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from loopvol.devices.binder import DeviceBinder
from loopvol.errors import DeviceError, DeviceNodeExistsError, HostEnvironmentError
from loopvol.types import LoopDevice

logger = logging.getLogger(__name__)

# Lowest minor handed out; the OS manages the low loop devices itself
DEFAULT_MIN_MINOR = 1000


class LoopbackAllocator:
    """Picks and reserves unused loop device minor numbers."""

    def __init__(
        self,
        device_dir: str = "/dev",
        prefix: str = "loop",
        min_minor: int = DEFAULT_MIN_MINOR,
        max_attempts: int = 16,
    ):
        self.device_dir = Path(device_dir)
        self.prefix = prefix
        self.min_minor = min_minor
        self.max_attempts = max_attempts

    def device_path(self, minor: int) -> str:
        """Node path for a minor number, e.g. /dev/loop1000."""
        return str(self.device_dir / f"{self.prefix}{minor}")

    def parse_minor(self, node_name: str) -> Optional[int]:
        """Minor number encoded in a node name, or None for other nodes."""
        if not node_name.startswith(self.prefix):
            return None
        suffix = node_name[len(self.prefix):]
        if not (suffix.isascii() and suffix.isdigit()):
            return None
        return int(suffix)

    def next_free_minor(self) -> int:
        """
        One above the highest loop minor present, never below min_minor.

        Advisory only: nothing is reserved. Use reserve() to claim it.

        Raises:
            HostEnvironmentError: If the device directory cannot be read
        """
        try:
            names = os.listdir(self.device_dir)
        except OSError as e:
            raise HostEnvironmentError(str(self.device_dir), f"Failed to read directory: {e}") from e

        minor = self.min_minor
        for name in names:
            found = self.parse_minor(name)
            if found is not None and found + 1 > minor:
                minor = found + 1
        return minor

    def reserve(self, binder: DeviceBinder) -> LoopDevice:
        """
        Claim a free minor by exclusively creating its device node.

        If another process creates the node first, the next minor is
        tried, up to max_attempts nodes.

        Returns:
            The reserved LoopDevice, whose node now exists

        Raises:
            HostEnvironmentError: If the device directory cannot be read
            DeviceError: If node creation fails or all attempts collide
        """
        minor = self.next_free_minor()
        last_error = None
        for attempt in range(self.max_attempts):
            path = self.device_path(minor)
            try:
                binder.create_node(path, minor)
            except DeviceNodeExistsError as e:
                logger.debug(f"{path} was taken (attempt {attempt + 1}/{self.max_attempts})")
                last_error = e
                minor = max(minor + 1, self.next_free_minor())
                continue
            logger.info(f"Reserved loop device {path}")
            return LoopDevice(minor=minor, path=path, major=binder.major)

        raise DeviceError(
            str(self.device_dir),
            f"reserve a loop device node after {self.max_attempts} attempts in",
            output=last_error.output if last_error else "",
        )
