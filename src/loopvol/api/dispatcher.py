"""
loopvol command dispatcher

Maps JSON command requests onto VolumeManager operations. Requests look
like {"cmd": "create", "name": "vol1", "opts": {}}; responses are either
{"result": ...} or {"error": {"code": ..., "message": ...}}.

The stdio loop reads one request per line and writes one response per
line, so a volume driver can drive loopvol over a pipe.
"""

import json
import logging
import sys
from typing import Any, Callable, Dict, Optional, TextIO

from pydantic import ValidationError

from ..config import VolumeConfig
from ..errors import VolumeError
from ..manager import VolumeManager
from ..types import CommandRequest

logger = logging.getLogger(__name__)


def error_response(code: str, message: str) -> Dict[str, Any]:
    """Build an error response."""
    return {"error": {"code": code, "message": message}}


class CommandDispatcher:
    """
    Dispatches volume commands to a VolumeManager.

    Unknown commands answer {"result": null}, as volume drivers expect
    from a runner that does not implement a verb.
    """

    def __init__(
        self,
        manager: Optional[VolumeManager] = None,
        config: Optional[VolumeConfig] = None,
    ):
        """
        Initialize the dispatcher.

        Args:
            manager: Volume manager to drive; built from config if omitted
            config: Optional configuration used when no manager is given
        """
        self.manager = manager or VolumeManager(config)
        self._handlers: Dict[str, Callable[[CommandRequest], Any]] = {
            "create": self._handle_create,
            "list": self._handle_list,
            "attach": self._handle_attach,
            "detach": self._handle_detach,
            "remove": self._handle_remove,
        }

    @property
    def commands(self):
        """Names of the supported commands."""
        return sorted(self._handlers)

    def handle(self, request: Any) -> Dict[str, Any]:
        """
        Handle one decoded request.

        Args:
            request: Decoded JSON request

        Returns:
            Response dict, never raises for volume or request errors
        """
        if not isinstance(request, dict):
            return error_response("INVALID_REQUEST", "Request must be a JSON object")

        try:
            command = CommandRequest(**request)
        except ValidationError as e:
            return error_response("INVALID_REQUEST", f"Malformed request: {e.errors()[0]['msg']}")

        handler = self._handlers.get(command.cmd)
        if handler is None:
            logger.debug(f"Ignoring unknown command '{command.cmd}'")
            return {"result": None}

        logger.debug(f"Running command '{command.cmd}' for '{command.name}'")
        try:
            result = handler(command)
        except VolumeError as e:
            logger.info(f"Command '{command.cmd}' failed: {e}")
            return error_response(e.error_code, e.message)

        return {"result": result}

    def handle_line(self, line: str) -> Dict[str, Any]:
        """Decode a JSON line and handle it."""
        try:
            request = json.loads(line)
        except json.JSONDecodeError as e:
            return error_response("PARSE_ERROR", f"Parse error: {e}")
        return self.handle(request)

    def run(self, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None) -> None:
        """
        Serve requests from stdin until EOF.

        Blank lines are skipped; every other line gets exactly one
        response line.
        """
        stdin = stdin or sys.stdin
        stdout = stdout or sys.stdout

        logger.info("Serving volume commands on stdio")
        for line in stdin:
            line = line.strip()
            if not line:
                continue
            response = self.handle_line(line)
            stdout.write(json.dumps(response) + "\n")
            stdout.flush()
        logger.info("Command input closed")

    def _handle_create(self, command: CommandRequest) -> None:
        self.manager.create(command.name, command.opts)

    def _handle_list(self, command: CommandRequest) -> Any:
        return [record.model_dump() for record in self.manager.list(command.opts)]

    def _handle_attach(self, command: CommandRequest) -> None:
        self.manager.attach(command.name, command.opts)

    def _handle_detach(self, command: CommandRequest) -> None:
        self.manager.detach(command.name, command.opts)

    def _handle_remove(self, command: CommandRequest) -> None:
        self.manager.remove(command.name, command.opts)


def create_dispatcher(config: Optional[VolumeConfig] = None) -> CommandDispatcher:
    """
    Create a dispatcher with its own VolumeManager.

    Args:
        config: Optional configuration

    Returns:
        CommandDispatcher instance
    """
    return CommandDispatcher(config=config)


__all__ = [
    "CommandDispatcher",
    "create_dispatcher",
    "error_response",
]
