"""
loopvol: named volumes on loopback devices

Provisions file-backed block volumes by binding pre-allocated backing
files to loop devices and formatting them, with the volume name burned
into the filesystem label so the device can be found again.
"""

__version__ = "1.0.0"

from loopvol.manager import VolumeManager
from loopvol.config import VolumeConfig
from loopvol.types import (
    Volume,
    VolumeRecord,
    LoopDevice,
    ProvisionResult,
    CommandRequest,
)
from loopvol.api.dispatcher import CommandDispatcher, create_dispatcher

from loopvol.errors import (
    VolumeError,
    HostEnvironmentError,
    StorageError,
    VolumeAlreadyExistsError,
    VolumeNotFoundError,
    DeviceNotFoundError,
    DeviceError,
    DeviceNodeExistsError,
    FormatError,
    InvalidRequestError,
    IgnoredError,
)

__all__ = [
    "VolumeManager",
    "VolumeConfig",
    "Volume",
    "VolumeRecord",
    "LoopDevice",
    "ProvisionResult",
    "CommandRequest",
    # Dispatcher
    "CommandDispatcher",
    "create_dispatcher",
    # Exception classes
    "VolumeError",
    "HostEnvironmentError",
    "StorageError",
    "VolumeAlreadyExistsError",
    "VolumeNotFoundError",
    "DeviceNotFoundError",
    "DeviceError",
    "DeviceNodeExistsError",
    "FormatError",
    "InvalidRequestError",
    "IgnoredError",
]
