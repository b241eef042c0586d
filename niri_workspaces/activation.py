"""Workspace activation (click to focus).

Each request opens its own short-lived niri connection so a click never
touches the sync worker's sockets. Failures are logged, never raised.
"""

import logging
import threading
from pathlib import Path
from typing import Optional, Union

from .connection import NiriIPCError, NiriSocket

logger = logging.getLogger(__name__)


def focus_workspace(workspace_id: int, socket_path: Optional[Union[str, Path]] = None) -> bool:
    """Focus a workspace by id.

    Returns:
        True if niri acknowledged the action
    """
    try:
        with NiriSocket.connect(socket_path) as sock:
            sock.focus_workspace(workspace_id)
    except NiriIPCError as e:
        logger.error(f"Failed to switch to workspace {workspace_id}: {e}")
        return False

    logger.debug(f"Switched to workspace {workspace_id}")
    return True


def request_activation(workspace_id: int, socket_path: Optional[Union[str, Path]] = None) -> threading.Thread:
    """Focus a workspace on a detached thread and return immediately."""
    thread = threading.Thread(
        target=focus_workspace,
        args=(workspace_id, socket_path),
        name=f"niri-focus-{workspace_id}",
        daemon=True,
    )
    thread.start()
    return thread
