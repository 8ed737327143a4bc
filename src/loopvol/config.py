from pydantic import BaseModel, Field
from typing import Optional


class VolumeConfig(BaseModel):
    """
    Runtime configuration for loopvol.

    This configuration is loaded from:
    1. Environment variables (LOOPVOL_*)
    2. Configuration file (if provided)
    3. Default values (hardcoded)

    Priority: Environment variables > Config file > Defaults
    """

    # Backing store
    backing_root: str = Field(
        default="/tmp/docker-volumes",
        description="Directory holding one backing file per volume"
    )

    volume_size_bytes: int = Field(
        default=100 * 1024 * 1024,
        ge=1024 * 1024,
        description="Size pre-allocated for each backing file (bytes)"
    )

    # Loop devices
    device_dir: str = Field(
        default="/dev",
        description="Directory scanned for and holding loop device nodes"
    )

    loop_prefix: str = Field(
        default="loop",
        min_length=1,
        description="Name prefix of loop device nodes"
    )

    loop_major: int = Field(
        default=7,
        ge=0,
        description="Kernel major number of loop devices"
    )

    min_minor: int = Field(
        default=1000,
        ge=0,
        le=1048575,
        description="Lowest minor number handed out, keeps clear of OS-managed loop devices"
    )

    max_reserve_attempts: int = Field(
        default=16,
        ge=1,
        le=1024,
        description="Device nodes tried before minor reservation gives up"
    )

    # Filesystem
    filesystem: str = Field(
        default="ext4",
        description="Filesystem created on each device"
    )

    max_label_length: int = Field(
        default=16,
        ge=1,
        le=255,
        description="Longest volume name accepted, bounded by the filesystem label size"
    )

    # Failure handling
    rollback_on_failure: bool = Field(
        default=False,
        description="Tear down partially provisioned volumes when create fails"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Log level name (DEBUG/INFO/WARNING/ERROR)"
    )

    log_file: Optional[str] = Field(
        default=None,
        description="Optional file receiving log output in addition to stderr"
    )

    # External tools
    losetup_bin: str = Field(default="losetup", description="Loop setup tool")
    mknod_bin: str = Field(default="mknod", description="Device node creation tool")
    blkid_bin: str = Field(default="blkid", description="Label lookup tool")
    mkfs_bin: Optional[str] = Field(
        default=None,
        description="Filesystem creation tool (default: mkfs.<filesystem>)"
    )

    @property
    def mkfs_command(self) -> str:
        """Executable used to format devices."""
        return self.mkfs_bin or f"mkfs.{self.filesystem}"

    @classmethod
    def from_env(cls, **overrides) -> "VolumeConfig":
        """
        Load configuration from environment variables.

        Environment variables (LOOPVOL_*) override defaults:

        - LOOPVOL_BACKING_ROOT: Backing file directory
        - LOOPVOL_DEVICE_DIR: Device node directory
        - LOOPVOL_MIN_MINOR: Lowest minor number to allocate
        - LOOPVOL_VOLUME_SIZE: Backing file size in bytes
        - LOOPVOL_FILESYSTEM: Filesystem type (ext4)
        - LOOPVOL_ROLLBACK: Roll back failed creates (true/false)
        - LOOPVOL_LOG_LEVEL: Log level name

        Keyword overrides (e.g. values read from a config file) are applied
        first and environment variables win over them.
        """
        import os

        kwargs = dict(overrides)

        if "LOOPVOL_BACKING_ROOT" in os.environ:
            kwargs["backing_root"] = os.environ["LOOPVOL_BACKING_ROOT"]
        if "LOOPVOL_DEVICE_DIR" in os.environ:
            kwargs["device_dir"] = os.environ["LOOPVOL_DEVICE_DIR"]
        if "LOOPVOL_MIN_MINOR" in os.environ:
            kwargs["min_minor"] = int(os.environ["LOOPVOL_MIN_MINOR"])
        if "LOOPVOL_VOLUME_SIZE" in os.environ:
            kwargs["volume_size_bytes"] = int(os.environ["LOOPVOL_VOLUME_SIZE"])
        if "LOOPVOL_FILESYSTEM" in os.environ:
            kwargs["filesystem"] = os.environ["LOOPVOL_FILESYSTEM"]
        if "LOOPVOL_ROLLBACK" in os.environ:
            kwargs["rollback_on_failure"] = os.environ["LOOPVOL_ROLLBACK"].lower() == "true"
        if "LOOPVOL_LOG_LEVEL" in os.environ:
            kwargs["log_level"] = os.environ["LOOPVOL_LOG_LEVEL"].upper()

        return cls(**kwargs)

    @classmethod
    def from_file(cls, config_path: str) -> "VolumeConfig":
        """
        Load configuration from a YAML or JSON file.

        Supported formats: .yaml, .yml, .json
        """
        import yaml

        with open(config_path, "r") as f:
            if config_path.endswith((".yaml", ".yml")):
                data = yaml.safe_load(f)
            elif config_path.endswith(".json"):
                import json
                data = json.load(f)
            else:
                raise ValueError(f"Unsupported config format: {config_path}")

        return cls(**(data or {}))

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "VolumeConfig":
        """Load a config file (if given) and apply environment overrides on top."""
        if config_path is None:
            return cls.from_env()
        base = cls.from_file(config_path)
        return cls.from_env(**base.model_dump(exclude_unset=True))
