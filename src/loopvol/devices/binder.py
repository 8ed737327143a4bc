"""
Loop device node management and file binding.
"""

import logging
import os
from typing import Optional

from loopvol.devices.runner import CommandResult, CommandRunner
from loopvol.errors import (
    DeviceError,
    DeviceNodeExistsError,
    DeviceNotFoundError,
    IgnoredError,
)

logger = logging.getLogger(__name__)

# Kernel major number of loop devices
LOOP_MAJOR = 7


class DeviceBinder:
    """
    Creates loop device nodes and binds them to backing files.

    All kernel interaction goes through external tools (mknod, losetup,
    blkid) run by a CommandRunner; failures carry the tool's output.
    """

    def __init__(
        self,
        runner: Optional[CommandRunner] = None,
        major: int = LOOP_MAJOR,
        mknod_bin: str = "mknod",
        losetup_bin: str = "losetup",
        blkid_bin: str = "blkid",
    ):
        self.runner = runner or CommandRunner()
        self.major = major
        self.mknod_bin = mknod_bin
        self.losetup_bin = losetup_bin
        self.blkid_bin = blkid_bin

    def create_node(self, path: str, minor: int) -> None:
        """
        Create a block special file for a loop device.

        Creation is exclusive: if the path already exists the call fails
        with DeviceNodeExistsError, which makes it usable as a reservation.

        Raises:
            DeviceNodeExistsError: If a node already exists at path
            DeviceError: If mknod fails for any other reason
        """
        result = self.runner.run([self.mknod_bin, path, "b", str(self.major), str(minor)])
        if not result.ok:
            if os.path.lexists(path):
                raise DeviceNodeExistsError(path, output=result.output, exit_code=result.exit_code)
            raise self._error(path, "make device node", result)
        logger.debug(f"Created device node {path} ({self.major}:{minor})")

    def bind(self, path: str, backing_file: str) -> None:
        """
        Attach a device node to a backing file.

        Raises:
            DeviceError: If losetup fails
        """
        self.runner.run([self.losetup_bin, path, backing_file]).check(
            lambda r: self._error(path, f"set up loopback device for backing file {backing_file} on", r)
        )
        logger.info(f"Bound {path} to {backing_file}")

    def unbind(self, path: str) -> None:
        """
        Detach a bound device.

        Raises:
            DeviceError: If losetup -d fails
        """
        self.runner.run([self.losetup_bin, "-d", path]).check(
            lambda r: self._error(path, "detach loopback device", r)
        )
        logger.info(f"Detached loopback device {path}")

    def unbind_stale(self, path: str) -> Optional[IgnoredError]:
        """
        Detach whatever may still be bound at path, tolerating failure.

        A node left behind by a volume that was removed but never detached
        would otherwise make the following bind fail.

        Returns:
            None if the detach succeeded, otherwise the IgnoredError
        """
        try:
            self.unbind(path)
        except DeviceError as e:
            ignored = IgnoredError("stale unbind", e)
            logger.debug(ignored.message)
            return ignored
        return None

    def find_device_by_label(self, label: str) -> str:
        """
        Find the bound device whose filesystem carries label.

        Returns:
            Device path, e.g. /dev/loop1000

        Raises:
            DeviceNotFoundError: If no device has this label
        """
        result = self.runner.run([self.blkid_bin, "-L", label])
        device = result.output.strip()
        if not result.ok or not device:
            raise DeviceNotFoundError(label, output=result.output)
        # blkid prints one device per line; the first one wins
        device = device.splitlines()[0].strip()
        logger.debug(f"Label '{label}' resolved to {device}")
        return device

    def remove_node(self, path: str) -> None:
        """
        Delete a device node file.

        Raises:
            DeviceError: If the node cannot be removed
        """
        try:
            os.remove(path)
        except OSError as e:
            raise DeviceError(path, "remove device node", output=str(e)) from e
        logger.info(f"Removed device node {path}")

    @staticmethod
    def _error(path: str, action: str, result: CommandResult) -> DeviceError:
        return DeviceError(path, action, output=result.output, exit_code=result.exit_code)
