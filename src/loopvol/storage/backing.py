"""
Backing store for loopvol

Each volume is one pre-allocated regular file directly under the backing
root. The set of files in that directory is the set of volumes: there is
no separate index.
"""

import logging
import os
from pathlib import Path
from typing import List

from loopvol.errors import (
    HostEnvironmentError,
    StorageError,
    VolumeAlreadyExistsError,
    VolumeNotFoundError,
)
from loopvol.path_utils import validate_resolved_path

logger = logging.getLogger(__name__)

# rwxr-xr-x, subject to the umask
BACKING_FILE_MODE = 0o755


class BackingStore:
    """
    Manages the directory of per-volume backing files.

    Responsibilities:
    - Root directory creation
    - Exclusive creation and pre-allocation of backing files
    - Listing and deleting backing files
    """

    def __init__(self, root: str, size_bytes: int):
        """
        Initialize the backing store.

        Args:
            root: Directory holding the backing files
            size_bytes: Size pre-allocated for every new backing file
        """
        self.root = Path(root)
        self.size_bytes = size_bytes

    def ensure_root(self) -> None:
        """
        Create the backing root if it does not exist yet.

        Raises:
            HostEnvironmentError: If the directory cannot be created
        """
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise HostEnvironmentError(str(self.root), str(e)) from e

    def backing_path(self, name: str) -> Path:
        """Path of the backing file for a volume (root/name)."""
        path = self.root / name
        validate_resolved_path(path, self.root)
        return path

    def exists(self, name: str) -> bool:
        """Check whether a volume's backing file is present."""
        return self.backing_path(name).is_file()

    def create_backing_file(self, name: str) -> Path:
        """
        Exclusively create and pre-allocate a backing file.

        Exclusive creation is the volume uniqueness check. Space is
        allocated up front so writes through the loop device never hit
        a full disk later.

        Args:
            name: Volume name

        Returns:
            Path of the new backing file

        Raises:
            VolumeAlreadyExistsError: If a backing file with this name exists
            StorageError: If the file cannot be created or allocated
        """
        path = self.backing_path(name)
        flags = os.O_RDWR | os.O_CREAT | os.O_EXCL
        try:
            fd = os.open(path, flags, BACKING_FILE_MODE)
        except FileExistsError as e:
            raise VolumeAlreadyExistsError(name) from e
        except OSError as e:
            raise StorageError(
                f"Failed to create backing file {path}: {e}",
                volume_name=name,
                path=str(path),
            ) from e

        try:
            os.posix_fallocate(fd, 0, self.size_bytes)
        except OSError as e:
            os.close(fd)
            path.unlink()
            raise StorageError(
                f"Failed to allocate {self.size_bytes} bytes for {path}: {e}",
                volume_name=name,
                path=str(path),
            ) from e
        os.close(fd)

        logger.info(f"Created backing file {path} ({self.size_bytes} bytes)")
        return path

    def list_backing_files(self) -> List[str]:
        """
        List the names of all backing files, sorted.

        Raises:
            HostEnvironmentError: If the backing root cannot be read
        """
        try:
            with os.scandir(self.root) as entries:
                names = [
                    entry.name for entry in entries
                    if entry.is_file(follow_symlinks=False)
                ]
        except OSError as e:
            raise HostEnvironmentError(str(self.root), f"Failed to read directory: {e}") from e
        return sorted(names)

    def delete_backing_file(self, name: str) -> None:
        """
        Delete a volume's backing file.

        Raises:
            VolumeNotFoundError: If there is no backing file for the name
            StorageError: If the file exists but cannot be removed
        """
        path = self.backing_path(name)
        try:
            path.unlink()
        except FileNotFoundError as e:
            raise VolumeNotFoundError(name) from e
        except OSError as e:
            raise StorageError(
                f"Failed to remove backing file {path}: {e}",
                volume_name=name,
                path=str(path),
            ) from e
        logger.info(f"Deleted backing file {path}")
