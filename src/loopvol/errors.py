"""
loopvol error definitions

Standard exceptions used across the loopvol project.
"""

from typing import Optional, Dict, Any


class VolumeError(Exception):
    """Base exception for all volume errors"""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or "UNKNOWN"
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


class HostEnvironmentError(VolumeError):
    """A host directory the system depends on is unusable"""

    def __init__(self, path: str, reason: str):
        super().__init__(
            message=f"Host environment failure at {path}: {reason}",
            error_code="HOST_ENV",
            details={"path": path},
        )
        self.path = path
        self.reason = reason


class StorageError(VolumeError):
    """Backing file operation failed"""

    def __init__(self, message: str, volume_name: Optional[str] = None, **kwargs):
        super().__init__(message, error_code="STORAGE_ERROR", details=kwargs)
        self.volume_name = volume_name


class VolumeAlreadyExistsError(VolumeError):
    """A backing file with this name already exists"""

    def __init__(self, volume_name: str):
        super().__init__(
            message=f"Volume '{volume_name}' already exists",
            error_code="VOL_EXISTS"
        )
        self.volume_name = volume_name


class VolumeNotFoundError(VolumeError):
    """Volume does not exist"""

    def __init__(self, volume_name: str, message: Optional[str] = None,
                 error_code: str = "VOL_NOT_FOUND"):
        super().__init__(
            message=message or f"Volume '{volume_name}' not found",
            error_code=error_code
        )
        self.volume_name = volume_name


class DeviceNotFoundError(VolumeNotFoundError):
    """No bound device carries the volume's label"""

    def __init__(self, volume_name: str, output: str = ""):
        super().__init__(
            volume_name,
            message=f"No loop device labelled '{volume_name}' is bound",
            error_code="DEV_NOT_FOUND",
        )
        self.output = output


class DeviceError(VolumeError):
    """A loop device tool invocation failed"""

    def __init__(
        self,
        device: str,
        action: str,
        output: str = "",
        exit_code: Optional[int] = None,
        error_code: str = "DEVICE_ERROR",
    ):
        message = f"Failed to {action} {device}"
        if exit_code is not None:
            message += f" (exit code {exit_code})"
        message += f". Output = {output.strip()}"
        super().__init__(
            message=message,
            error_code=error_code,
            details={"device": device, "exit_code": exit_code},
        )
        self.device = device
        self.action = action
        self.output = output
        self.exit_code = exit_code


class DeviceNodeExistsError(DeviceError):
    """The device node path is already taken"""

    def __init__(self, device: str, output: str = "", exit_code: Optional[int] = None):
        super().__init__(
            device,
            "make device node",
            output=output,
            exit_code=exit_code,
            error_code="DEV_NODE_EXISTS",
        )


class FormatError(VolumeError):
    """Creating the filesystem on a device failed"""

    def __init__(self, device: str, label: str, output: str = "",
                 exit_code: Optional[int] = None):
        super().__init__(
            message=(
                f"Failed to create filesystem labelled '{label}' on {device} "
                f"(exit code {exit_code}). Output = {output.strip()}"
            ),
            error_code="FORMAT_ERROR",
            details={"device": device, "label": label, "exit_code": exit_code},
        )
        self.device = device
        self.label = label
        self.output = output
        self.exit_code = exit_code


class InvalidRequestError(VolumeError):
    """Invalid request parameters"""

    def __init__(self, field: str, value: Any, reason: str):
        super().__init__(
            message=f"Invalid field '{field}': {reason}",
            error_code="INVALID_REQUEST"
        )
        self.field = field
        self.value = value
        self.reason = reason


class IgnoredError(VolumeError):
    """
    A failure that was tolerated on purpose.

    Returned (never raised) by best-effort steps such as detaching a
    stale binding before reusing a device path.
    """

    def __init__(self, step: str, cause: VolumeError):
        super().__init__(
            message=f"Ignored failure during {step}: {cause.message}",
            error_code="IGNORED",
            details={"step": step, "cause": cause.error_code},
        )
        self.step = step
        self.cause = cause


# Error codes
ERROR_CODES = {
    # Host errors
    "HOST_ENV": "Backing root or device directory unusable",
    "STORAGE_ERROR": "Backing file operation failed",

    # Volume errors (VOL_xxx)
    "VOL_EXISTS": "Volume already exists",
    "VOL_NOT_FOUND": "Volume not found",

    # Device errors (DEV_xxx)
    "DEV_NOT_FOUND": "No device bound for volume label",
    "DEV_NODE_EXISTS": "Device node already exists",
    "DEVICE_ERROR": "Loop device operation failed",
    "FORMAT_ERROR": "Filesystem creation failed",

    # Request errors
    "INVALID_REQUEST": "Invalid request parameter",
    "PARSE_ERROR": "Request is not valid JSON",

    # Tolerated failures
    "IGNORED": "Best-effort step failed and was ignored",
}
