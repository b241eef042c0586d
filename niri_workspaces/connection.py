"""niri IPC socket client.

niri listens on the Unix socket named by ``$NIRI_SOCKET``. Each request is a
JSON value on its own line and each reply is a JSON line of the form
``{"Ok": ...}`` or ``{"Err": "message"}``. After an ``EventStream`` request is
acknowledged, the same connection yields one JSON event per line.

No timeouts are set: a query blocks until niri answers.
"""

import json
import logging
import os
import socket
from pathlib import Path
from typing import Any, Iterator, List, Optional, Union

from pydantic import TypeAdapter, ValidationError

from .models import Event, Window, Workspace

logger = logging.getLogger(__name__)

NIRI_SOCKET_ENV = "NIRI_SOCKET"

REQUEST_WORKSPACES = "Workspaces"
REQUEST_WINDOWS = "Windows"
REQUEST_EVENT_STREAM = "EventStream"
REPLY_HANDLED = "Handled"

_workspaces_adapter = TypeAdapter(List[Workspace])
_windows_adapter = TypeAdapter(List[Window])


class NiriIPCError(Exception):
    """Base class for niri IPC errors."""
    pass


class NiriConnectionError(NiriIPCError):
    """The socket could not be opened, or failed or closed mid-conversation."""
    pass


class NiriProtocolError(NiriIPCError):
    """niri sent something other than what the request calls for."""
    pass


class NiriRequestError(NiriIPCError):
    """niri answered the request with an ``Err`` reply."""
    pass


def focus_workspace_request(workspace_id: int) -> dict:
    """Build the ``FocusWorkspace`` action request for a workspace id."""
    return {"Action": {"FocusWorkspace": {"reference": {"Id": workspace_id}}}}


class NiriSocket:
    """One connection to niri's IPC socket."""

    def __init__(self, sock: socket.socket) -> None:
        self._sock = sock
        self._reader = sock.makefile("rb")
        self._closed = False

    @classmethod
    def connect(cls, path: Optional[Union[str, Path]] = None) -> "NiriSocket":
        """Open a connection to niri.

        Args:
            path: Socket path (defaults to ``$NIRI_SOCKET``)

        Raises:
            NiriConnectionError: If no path is known or the connect fails
        """
        socket_path = path or os.environ.get(NIRI_SOCKET_ENV)
        if not socket_path:
            raise NiriConnectionError(f"${NIRI_SOCKET_ENV} is not set; is niri running?")

        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.connect(str(socket_path))
        except OSError as e:
            sock.close()
            raise NiriConnectionError(f"Failed to connect to niri socket {socket_path}: {e}") from e

        logger.debug(f"Connected to niri socket {socket_path}")
        return cls(sock)

    def __enter__(self) -> "NiriSocket":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._reader.close()
        finally:
            self._sock.close()

    def _readline(self) -> Any:
        try:
            line = self._reader.readline()
        except OSError as e:
            raise NiriConnectionError(f"Failed to read from niri socket: {e}") from e
        if not line:
            raise NiriConnectionError("niri closed the connection")
        try:
            return json.loads(line)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise NiriProtocolError(f"Invalid JSON from niri: {e}") from e

    def send(self, request: Any) -> Any:
        """Send one request and return the payload of its ``Ok`` reply.

        Raises:
            NiriConnectionError: On socket errors or EOF
            NiriRequestError: If niri replies with ``Err``
            NiriProtocolError: If the reply is neither ``Ok`` nor ``Err``
        """
        try:
            self._sock.sendall((json.dumps(request) + "\n").encode())
        except OSError as e:
            raise NiriConnectionError(f"Failed to send request to niri: {e}") from e

        reply = self._readline()
        if isinstance(reply, dict) and len(reply) == 1:
            if "Ok" in reply:
                return reply["Ok"]
            if "Err" in reply:
                raise NiriRequestError(f"niri rejected {request!r}: {reply['Err']}")
        raise NiriProtocolError(f"Unexpected reply to {request!r}: {reply!r}")

    def _expect_variant(self, request: str, payload: Any) -> Any:
        if not isinstance(payload, dict) or request not in payload:
            raise NiriProtocolError(f"Expected {request} response, got: {payload!r}")
        return payload[request]

    def workspaces(self) -> List[Workspace]:
        """Query all workspaces."""
        payload = self._expect_variant(REQUEST_WORKSPACES, self.send(REQUEST_WORKSPACES))
        try:
            return _workspaces_adapter.validate_python(payload)
        except ValidationError as e:
            raise NiriProtocolError(f"Malformed Workspaces response: {e}") from e

    def windows(self) -> List[Window]:
        """Query all windows."""
        payload = self._expect_variant(REQUEST_WINDOWS, self.send(REQUEST_WINDOWS))
        try:
            return _windows_adapter.validate_python(payload)
        except ValidationError as e:
            raise NiriProtocolError(f"Malformed Windows response: {e}") from e

    def subscribe(self) -> None:
        """Turn this connection into an event stream.

        Raises:
            NiriProtocolError: If niri does not acknowledge with ``Handled``
        """
        reply = self.send(REQUEST_EVENT_STREAM)
        if reply != REPLY_HANDLED:
            raise NiriProtocolError(f"Expected Handled response, got: {reply!r}")

    def read_events(self) -> Iterator[Event]:
        """Yield events until the stream fails.

        The stream never ends cleanly: EOF raises NiriConnectionError.
        """
        while True:
            data = self._readline()
            try:
                event = Event.from_json(data)
            except ValueError as e:
                raise NiriProtocolError(str(e)) from e
            yield event

    def focus_workspace(self, workspace_id: int) -> None:
        """Ask niri to focus the workspace with the given id."""
        reply = self.send(focus_workspace_request(workspace_id))
        if reply != REPLY_HANDLED:
            raise NiriProtocolError(f"Expected Handled response, got: {reply!r}")
