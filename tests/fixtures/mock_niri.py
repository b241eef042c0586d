"""Mock niri IPC fixtures for testing the sync loop without a running niri."""

import json
import socketserver
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from niri_workspaces.channel import DeliveryError
from niri_workspaces.connection import NiriConnectionError
from niri_workspaces.models import Event, Snapshot, Window, Workspace


def make_workspace(id: int, idx: Optional[int] = None, name: Optional[str] = None, **kwargs) -> Workspace:
    """Build a Workspace; idx defaults to the id."""
    return Workspace(id=id, idx=id if idx is None else idx, name=name, **kwargs)


def make_window(
    id: int,
    app_id: Optional[str] = None,
    workspace_id: Optional[int] = 1,
    pos: Optional[tuple] = None,
    **kwargs,
) -> Window:
    """Build a Window at a (column, tile) scrolling-layout position."""
    return Window(
        id=id,
        app_id=app_id,
        workspace_id=workspace_id,
        layout={"pos_in_scrolling_layout": pos},
        **kwargs,
    )


def workspace_json(id: int, idx: Optional[int] = None, name: Optional[str] = None, **kwargs) -> Dict[str, Any]:
    """A workspace object as niri sends it."""
    data = {
        "id": id,
        "idx": id if idx is None else idx,
        "name": name,
        "output": "eDP-1",
        "is_urgent": False,
        "is_active": False,
        "is_focused": False,
        "active_window_id": None,
    }
    data.update(kwargs)
    return data


def window_json(id: int, app_id: Optional[str], workspace_id: Optional[int], pos: Optional[List[int]] = None,
                **kwargs) -> Dict[str, Any]:
    """A window object as niri sends it."""
    data = {
        "id": id,
        "title": f"window {id}",
        "app_id": app_id,
        "pid": 1000 + id,
        "workspace_id": workspace_id,
        "is_focused": False,
        "is_floating": pos is None,
        "is_urgent": False,
        "layout": {
            "pos_in_scrolling_layout": pos,
            "tile_size": [800.0, 600.0],
            "window_size": [800, 600],
            "tile_pos_in_workspace_view": None,
            "window_offset_in_tile": [0.0, 0.0],
        },
    }
    data.update(kwargs)
    return data


class MockNiriSocket:
    """Stands in for NiriSocket in synchronizer tests.

    Errors passed in are raised from the matching call.
    """

    def __init__(
        self,
        workspaces: Optional[List[Workspace]] = None,
        windows: Optional[List[Window]] = None,
        events: Optional[List[Event]] = None,
        subscribe_error: Optional[Exception] = None,
        query_error: Optional[Exception] = None,
        stream_error: Optional[Exception] = None,
    ) -> None:
        self._workspaces = workspaces or []
        self._windows = windows or []
        self._events = events or []
        self.subscribe_error = subscribe_error
        self.query_error = query_error
        self.stream_error = stream_error or NiriConnectionError("niri closed the connection")
        self.workspace_queries = 0
        self.window_queries = 0
        self.subscribed = False
        self.closed = False

    def workspaces(self) -> List[Workspace]:
        self.workspace_queries += 1
        if self.query_error is not None:
            raise self.query_error
        return list(self._workspaces)

    def windows(self) -> List[Window]:
        self.window_queries += 1
        return list(self._windows)

    def subscribe(self) -> None:
        if self.subscribe_error is not None:
            raise self.subscribe_error
        self.subscribed = True

    def read_events(self) -> Iterator[Event]:
        for event in self._events:
            yield event
        raise self.stream_error

    def close(self) -> None:
        self.closed = True


@dataclass
class RecordingChannel:
    """Collects delivered snapshots; fails once ``fail_after`` sends succeeded."""

    fail_after: Optional[int] = None
    snapshots: List[Snapshot] = field(default_factory=list)
    states: List[Any] = field(default_factory=list)
    closed: bool = False
    synchronizer: Any = None

    def send(self, snapshot: Snapshot) -> None:
        if self.fail_after is not None and len(self.snapshots) >= self.fail_after:
            raise DeliveryError("consumer torn down")
        if self.synchronizer is not None:
            self.states.append(self.synchronizer.state)
        self.snapshots.append(snapshot)

    def close(self) -> None:
        self.closed = True


class _FakeNiriHandler(socketserver.StreamRequestHandler):
    """Answers niri requests from the server's canned state."""

    def _reply(self, data: Any) -> None:
        self.wfile.write((json.dumps(data) + "\n").encode())
        self.wfile.flush()

    def handle(self) -> None:
        server: FakeNiriServer = self.server  # type: ignore[assignment]
        for line in self.rfile:
            request = json.loads(line)
            with server.lock:
                server.requests.append(request)

            if request == "Workspaces":
                self._reply({"Ok": {"Workspaces": server.workspaces}})
            elif request == "Windows":
                self._reply({"Ok": {"Windows": server.windows}})
            elif request == "EventStream":
                self._reply(server.subscribe_reply)
                for event in server.events:
                    self._reply(event)
                # Closing the stream ends the subscriber's loop
                return
            elif isinstance(request, dict) and "Action" in request:
                target = request["Action"]["FocusWorkspace"]["reference"]["Id"]
                known = {ws["id"] for ws in server.workspaces}
                if target in known:
                    self._reply({"Ok": "Handled"})
                else:
                    self._reply({"Err": "workspace not found"})
            else:
                self._reply({"Err": f"unknown request: {request!r}"})


class FakeNiriServer(socketserver.ThreadingUnixStreamServer):
    """A niri IPC socket on disk, serving canned workspaces, windows and events."""

    daemon_threads = True

    def __init__(self, path: Path) -> None:
        self.path = path
        self.workspaces: List[Dict[str, Any]] = []
        self.windows: List[Dict[str, Any]] = []
        self.events: List[Dict[str, Any]] = []
        self.subscribe_reply: Any = {"Ok": "Handled"}
        self.requests: List[Any] = []
        self.lock = threading.Lock()
        super().__init__(str(path), _FakeNiriHandler)
        self._thread = threading.Thread(target=self.serve_forever, name="fake-niri", daemon=True)

    def start(self) -> "FakeNiriServer":
        self._thread.start()
        return self

    def stop(self) -> None:
        self.shutdown()
        self.server_close()
