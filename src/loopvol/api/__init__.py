"""
loopvol API module

JSON command dispatcher.
"""

from loopvol.api.dispatcher import (
    CommandDispatcher,
    create_dispatcher,
    error_response,
)

__all__ = [
    "CommandDispatcher",
    "create_dispatcher",
    "error_response",
]
