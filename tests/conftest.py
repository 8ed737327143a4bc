"""
Pytest configuration and fixtures for loopvol tests.

The FakeRunner fixture stands in for the external tools (mknod, losetup,
blkid, mkfs) and keeps their effects in memory and in temporary
directories, so the lifecycle can be exercised without root or a kernel
loop driver.
"""

import os
import sys
import tempfile
from pathlib import Path
from typing import Dict, Generator, List, Sequence, Tuple

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from loopvol.config import VolumeConfig  # noqa: E402
from loopvol.devices.runner import CommandResult  # noqa: E402
from loopvol.manager import VolumeManager  # noqa: E402


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "integration: Lifecycle tests across all components"
    )


# =============================================================================
# Fake external tools
# =============================================================================

class FakeRunner:
    """
    Simulates the loop device tools.

    - mknod creates a placeholder file for the node (exclusive)
    - losetup binds/detaches nodes in an in-memory table
    - mkfs records the label of a bound device
    - blkid -L looks the label up among bound devices

    Scripted failures: failures["losetup"] = (1, "boom") makes every
    losetup call fail; failures["losetup -d"] only the detach calls.
    """

    def __init__(self):
        self.calls: List[List[str]] = []
        self.bindings: Dict[str, str] = {}
        self.labels: Dict[str, str] = {}
        self.failures: Dict[str, Tuple[int, str]] = {}

    def run(self, argv: Sequence[str]) -> CommandResult:
        argv = [str(arg) for arg in argv]
        self.calls.append(argv)

        for key in (" ".join(argv[:2]), argv[0]):
            if key in self.failures:
                exit_code, output = self.failures[key]
                return CommandResult(argv=argv, exit_code=exit_code, output=output)

        tool = os.path.basename(argv[0])
        if tool == "mknod":
            return self._mknod(argv)
        if tool == "losetup":
            return self._losetup(argv)
        if tool == "blkid":
            return self._blkid(argv)
        if tool.startswith("mkfs"):
            return self._mkfs(argv)
        return CommandResult(argv=argv, exit_code=127, output=f"{argv[0]}: not found")

    def commands(self, tool: str) -> List[List[str]]:
        """All recorded invocations of a tool."""
        return [call for call in self.calls if os.path.basename(call[0]) == tool]

    def _mknod(self, argv):
        path = argv[1]
        try:
            fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o660)
        except FileExistsError:
            return CommandResult(argv=argv, exit_code=1, output=f"mknod: {path}: File exists\n")
        os.close(fd)
        return CommandResult(argv=argv, exit_code=0)

    def _losetup(self, argv):
        if argv[1] == "-d":
            device = argv[2]
            if device not in self.bindings:
                return CommandResult(
                    argv=argv, exit_code=1,
                    output=f"losetup: {device}: detach failed: No such device or address\n",
                )
            del self.bindings[device]
            self.labels.pop(device, None)
            return CommandResult(argv=argv, exit_code=0)

        device, backing = argv[1], argv[2]
        if not os.path.exists(device):
            return CommandResult(argv=argv, exit_code=1, output=f"losetup: {device}: No such file\n")
        if device in self.bindings:
            return CommandResult(argv=argv, exit_code=1, output=f"losetup: {device}: Device or resource busy\n")
        self.bindings[device] = backing
        return CommandResult(argv=argv, exit_code=0)

    def _mkfs(self, argv):
        label, device = argv[2], argv[3]
        if device not in self.bindings:
            return CommandResult(argv=argv, exit_code=1, output=f"mkfs: {device}: No such device\n")
        self.labels[device] = label
        return CommandResult(argv=argv, exit_code=0, output="Writing superblocks: done\n")

    def _blkid(self, argv):
        label = argv[2]
        for device, found in self.labels.items():
            if found == label:
                return CommandResult(argv=argv, exit_code=0, output=f"{device}\n")
        return CommandResult(argv=argv, exit_code=2, output="")


# =============================================================================
# Temporary Directories
# =============================================================================

@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def backing_root(temp_dir) -> Path:
    """Backing root path; not created, the store creates it on demand."""
    return temp_dir / "docker-volumes"


@pytest.fixture
def device_dir(temp_dir) -> Path:
    """Fake /dev with the low loop devices an OS usually has."""
    path = temp_dir / "dev"
    path.mkdir(parents=True)
    for minor in range(8):
        (path / f"loop{minor}").touch()
    (path / "loop-control").touch()
    (path / "null").touch()
    return path


# =============================================================================
# Component Fixtures
# =============================================================================

@pytest.fixture
def config(backing_root, device_dir) -> VolumeConfig:
    """Configuration pointing at the temporary directories."""
    return VolumeConfig(
        backing_root=str(backing_root),
        device_dir=str(device_dir),
        volume_size_bytes=1024 * 1024,
    )


@pytest.fixture
def fake_runner() -> FakeRunner:
    """Simulated external tools."""
    return FakeRunner()


@pytest.fixture
def manager(config, fake_runner) -> VolumeManager:
    """VolumeManager wired to the fake tools."""
    return VolumeManager(config=config, runner=fake_runner)

