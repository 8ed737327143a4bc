"""
External tool execution for loopvol.
"""

import logging
import subprocess
from dataclasses import dataclass, field
from typing import Callable, List, Sequence

from loopvol.errors import VolumeError

logger = logging.getLogger(__name__)

# Exit code reported when the executable cannot be started
EXIT_NOT_EXECUTABLE = 127


@dataclass
class CommandResult:
    """Result of one tool invocation, stdout and stderr merged."""

    argv: List[str] = field(default_factory=list)
    exit_code: int = 0
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    def check(self, error_factory: Callable[["CommandResult"], VolumeError]) -> "CommandResult":
        """Raise the error built by error_factory if the command failed."""
        if not self.ok:
            raise error_factory(self)
        return self


class CommandRunner:
    """Runs external tools synchronously and captures their output."""

    def run(self, argv: Sequence[str]) -> CommandResult:
        """Run a command to completion.

        Args:
            argv: Executable and arguments, no shell involved

        Returns:
            CommandResult with exit code and combined output. A missing
            executable is reported as exit code 127, not raised.
        """
        argv = [str(arg) for arg in argv]
        logger.debug(f"Running {' '.join(argv)}")
        try:
            completed = subprocess.run(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                check=False,
            )
        except OSError as e:
            logger.debug(f"Could not start {argv[0]}: {e}")
            return CommandResult(argv=argv, exit_code=EXIT_NOT_EXECUTABLE, output=str(e))

        result = CommandResult(
            argv=argv,
            exit_code=completed.returncode,
            output=completed.stdout or "",
        )
        logger.debug(f"{argv[0]} exited with {result.exit_code}")
        return result
