"""
loopvol core manager

The volume manager is the single entry point for volume lifecycle
operations. It composes the backing store, the loop device allocator,
the device binder and the filesystem formatter.

Volume lifecycle:
    create: backing file -> reserved device node -> bind -> format
    remove: label lookup -> unbind -> delete backing file -> remove node
"""

import logging
import threading
from typing import Any, Dict, List, Optional

from loopvol.config import VolumeConfig
from loopvol.devices import (
    CommandRunner,
    DeviceBinder,
    FilesystemFormatter,
    LoopbackAllocator,
)
from loopvol.errors import VolumeError, VolumeNotFoundError
from loopvol.path_utils import validate_volume_name
from loopvol.storage import BackingStore
from loopvol.types import LoopDevice, ProvisionResult, Volume, VolumeRecord

logger = logging.getLogger(__name__)


class VolumeManager:
    """
    Main volume manager - single entry point for all operations.

    Responsibilities:
    - Volume name validation
    - Ordering of the create/remove steps
    - Serializing lifecycle operations within the process
    - Optional compensation when create fails half way

    No volume state is kept between calls: the backing root and the
    device directory are re-read every time.
    """

    def __init__(
        self,
        config: Optional[VolumeConfig] = None,
        runner: Optional[CommandRunner] = None,
    ):
        """
        Initialize volume manager.

        Args:
            config: Optional configuration. If not provided, uses defaults.
            runner: Optional command runner shared by all device tools
        """
        if config is None:
            config = VolumeConfig()

        self.config = config
        self.runner = runner or CommandRunner()
        self.store = BackingStore(config.backing_root, config.volume_size_bytes)
        self.allocator = LoopbackAllocator(
            device_dir=config.device_dir,
            prefix=config.loop_prefix,
            min_minor=config.min_minor,
            max_attempts=config.max_reserve_attempts,
        )
        self.binder = DeviceBinder(
            runner=self.runner,
            major=config.loop_major,
            mknod_bin=config.mknod_bin,
            losetup_bin=config.losetup_bin,
            blkid_bin=config.blkid_bin,
        )
        self.formatter = FilesystemFormatter(runner=self.runner, mkfs_bin=config.mkfs_command)
        self._lock = threading.Lock()

        logger.debug(
            f"VolumeManager initialized: backing_root={config.backing_root}, "
            f"device_dir={config.device_dir}"
        )

    def _validate(self, name: str) -> None:
        validate_volume_name(name, max_length=self.config.max_label_length)

    def create(self, name: str, opts: Optional[Dict[str, Any]] = None) -> ProvisionResult:
        """
        Provision a volume: backing file, loop device, filesystem.

        Args:
            name: Volume name, also used as the filesystem label
            opts: Driver options (ignored)

        Returns:
            ProvisionResult with the volume, its device and any ignored errors

        Raises:
            InvalidRequestError: If the name is not usable
            VolumeAlreadyExistsError: If the volume already exists
            HostEnvironmentError: If the backing root or device directory is unusable
            DeviceError: If a device node cannot be reserved or bound
            FormatError: If the filesystem cannot be created
        """
        self._validate(name)

        with self._lock:
            self.store.ensure_root()
            backing = self.store.create_backing_file(name)

            device: Optional[LoopDevice] = None
            bound = False
            ignored = []
            try:
                device = self.allocator.reserve(self.binder)

                stale = self.binder.unbind_stale(device.path)
                if stale is not None:
                    ignored.append(stale)

                self.binder.bind(device.path, str(backing))
                bound = True
                self.formatter.format(device.path, name)
            except VolumeError:
                if self.config.rollback_on_failure:
                    self._rollback(name, device, bound)
                else:
                    logger.info(f"Create of volume '{name}' failed; partial state left in place")
                raise

        volume = Volume(
            name=name,
            backing_path=str(backing),
            device_path=device.path,
            size_bytes=self.store.size_bytes,
        )
        logger.info(f"Created volume '{name}' on {device.path}")
        return ProvisionResult(volume=volume, device=device, ignored_errors=ignored)

    def _rollback(self, name: str, device: Optional[LoopDevice], bound: bool) -> None:
        """Undo the steps of a failed create, newest first."""
        logger.info(f"Rolling back partially created volume '{name}'")
        if device is not None and bound:
            try:
                self.binder.unbind(device.path)
            except VolumeError as e:
                logger.warning(f"Rollback of '{name}' could not detach {device.path}: {e}")
        if device is not None:
            try:
                self.binder.remove_node(device.path)
            except VolumeError as e:
                logger.warning(f"Rollback of '{name}' could not remove {device.path}: {e}")
        try:
            self.store.delete_backing_file(name)
        except VolumeError as e:
            logger.warning(f"Rollback of '{name}' could not delete backing file: {e}")

    def list(self, opts: Optional[Dict[str, Any]] = None) -> List[VolumeRecord]:
        """
        List all volumes, one record per backing file.

        Returns:
            Volume records sorted by name; empty list when there are none

        Raises:
            HostEnvironmentError: If the backing root is unusable
        """
        with self._lock:
            self.store.ensure_root()
            names = self.store.list_backing_files()
        return [VolumeRecord(name=name) for name in names]

    def get(self, name: str) -> Volume:
        """
        Get a volume by name.

        The device path is not resolved; it is only known during create
        and remove.

        Raises:
            VolumeNotFoundError: If there is no backing file for the name
        """
        self._validate(name)
        path = self.store.backing_path(name)
        try:
            size = path.stat().st_size
        except FileNotFoundError as e:
            raise VolumeNotFoundError(name) from e
        return Volume(name=name, backing_path=str(path), size_bytes=size)

    def attach(self, name: str, opts: Optional[Dict[str, Any]] = None) -> None:
        """Loop devices stay attached once bound; nothing to do."""
        self._validate(name)

    def detach(self, name: str, opts: Optional[Dict[str, Any]] = None) -> None:
        """Loop devices stay attached once bound; nothing to do."""
        self._validate(name)

    def remove(self, name: str, opts: Optional[Dict[str, Any]] = None) -> None:
        """
        Tear down a volume: detach its device, delete its backing file,
        then delete the device node.

        Steps run in order and the first failure aborts the rest.

        Args:
            name: Volume name
            opts: Driver options (ignored)

        Raises:
            DeviceNotFoundError: If no bound device carries the volume's label
            DeviceError: If detaching or removing the node fails
            VolumeNotFoundError: If the backing file is already gone
        """
        self._validate(name)

        with self._lock:
            device = self.binder.find_device_by_label(name)
            logger.info(f"Detaching loopback device {device} for volume '{name}'")
            self.binder.unbind(device)
            self.store.delete_backing_file(name)
            self.binder.remove_node(device)

        logger.info(f"Removed volume '{name}'")
