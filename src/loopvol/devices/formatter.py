"""
Filesystem creation on bound loop devices.
"""

import logging
from typing import Optional

from loopvol.devices.runner import CommandRunner
from loopvol.errors import FormatError

logger = logging.getLogger(__name__)


class FilesystemFormatter:
    """Formats a device and burns the volume name into its label."""

    def __init__(self, runner: Optional[CommandRunner] = None, mkfs_bin: str = "mkfs.ext4"):
        self.runner = runner or CommandRunner()
        self.mkfs_bin = mkfs_bin

    def format(self, device_path: str, label: str) -> None:
        """
        Create a filesystem labelled label on device_path.

        The label is the only lasting link between a volume name and its
        device; remove finds the device again through it.

        Raises:
            FormatError: If the mkfs tool fails
        """
        self.runner.run([self.mkfs_bin, "-L", label, device_path]).check(
            lambda r: FormatError(device_path, label, output=r.output, exit_code=r.exit_code)
        )
        logger.info(f"Created filesystem labelled '{label}' on {device_path}")
