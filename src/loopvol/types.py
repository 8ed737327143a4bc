"""
loopvol type definitions

Common types used across the loopvol project.
"""

from dataclasses import dataclass, field
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from loopvol.errors import IgnoredError

__all__ = [
    "Volume",
    "VolumeRecord",
    "LoopDevice",
    "ProvisionResult",
    "CommandRequest",
]


class Volume(BaseModel):
    """File-backed volume, reconstructed from its backing file on every call"""

    name: str = Field(..., min_length=1, description="Volume name, also the filesystem label")

    backing_path: str = Field(..., description="Backing file path (root/name)")

    device_path: Optional[str] = Field(
        None,
        description="Bound loop device, only known during an operation"
    )

    size_bytes: int = Field(..., ge=0, description="Backing file size in bytes")


class VolumeRecord(BaseModel):
    """Entry of a volume listing"""

    name: str = Field(..., description="Volume name")


class LoopDevice(BaseModel):
    """Loop device node identified by its minor number"""

    minor: int = Field(..., ge=0, description="Minor number")

    path: str = Field(..., description="Device node path (/dev/loop<minor>)")

    major: int = Field(default=7, description="Major number")


class CommandRequest(BaseModel):
    """A single command received by the dispatcher"""

    cmd: str = Field(..., min_length=1, description="Command verb")

    name: str = Field(default="", description="Volume name (unused by list)")

    opts: Dict[str, Any] = Field(
        default_factory=dict,
        description="Driver options, accepted and ignored"
    )


@dataclass
class ProvisionResult:
    """
    Outcome of a successful create.

    Attributes:
        volume: The provisioned volume, with its device path set
        device: The loop device reserved for it
        ignored_errors: Best-effort failures tolerated along the way
    """

    volume: Volume
    device: LoopDevice
    ignored_errors: List[IgnoredError] = field(default_factory=list)
