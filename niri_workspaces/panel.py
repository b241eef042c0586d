"""Bar output: turns snapshots into lines a status bar can read.

Three formats are supported:

- ``json``: one JSON array per snapshot, for eww ``deflisten`` variables
- ``yuck``: an eww widget literal with clickable workspace buttons
- ``i3bar``: the i3bar protocol (header plus an infinite array of block lists)

Every snapshot replaces the whole bar; identical consecutive output is
printed once.
"""

from __future__ import annotations

import json
import logging
import sys
import threading
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, TextIO, Union

from .activation import request_activation
from .models import Snapshot, WorkspaceView
from .protocol import ClickEvent, MouseButton, WorkspaceBlock, protocol_header

logger = logging.getLogger(__name__)

DEFAULT_FOCUS_COMMAND = "niri-workspaces focus {id}"


def format_workspace_label(view: WorkspaceView) -> str:
    """Build the button text: ``idx``, then `` name`` and ``: icons`` if present."""
    label = str(view.idx)
    if view.name:
        label += f" {view.name}"
    if view.icons:
        label += f": {view.icons}"
    return label


def workspace_classes(view: WorkspaceView) -> List[str]:
    """CSS classes for the workspace's state flags."""
    classes = [
        ("focused", view.is_focused),
        ("urgent", view.is_urgent),
        ("active", view.is_active),
    ]
    return [name for name, enabled in classes if enabled]


def sort_snapshot(snapshot: Iterable[WorkspaceView]) -> List[WorkspaceView]:
    """Order views by workspace index (ascending)."""
    return sorted(snapshot, key=lambda view: view.idx)


# ============================================================================
# Renderers
# ============================================================================


class Renderer:
    """Serializes a sorted snapshot into one output line."""

    def header(self) -> Optional[str]:
        return None

    def render(self, views: List[WorkspaceView]) -> str:
        raise NotImplementedError

    def footer(self) -> Optional[str]:
        return None


class JsonRenderer(Renderer):
    """Compact JSON array, one object per workspace."""

    def render(self, views: List[WorkspaceView]) -> str:
        rows: List[Dict[str, Any]] = []
        for view in views:
            row = view.model_dump()
            row["label"] = format_workspace_label(view)
            row["classes"] = workspace_classes(view)
            rows.append(row)
        return json.dumps(rows, separators=(",", ":"), ensure_ascii=False)


class YuckRenderer(Renderer):
    """eww widget literal; each button runs ``focus_command`` on click."""

    def __init__(self, focus_command: str = DEFAULT_FOCUS_COMMAND) -> None:
        self.focus_command = focus_command

    @staticmethod
    def _format_value(value: Any) -> str:
        if isinstance(value, bool):
            return "true" if value else "false"
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)

    def render(self, views: List[WorkspaceView]) -> str:
        parts = []
        for view in views:
            css_class = " ".join(["workspace", *workspace_classes(view)])
            attrs = [
                ("class", self._format_value(css_class)),
                ("onclick", self._format_value(self.focus_command.replace("{id}", str(view.id)))),
            ]
            attr_string = " ".join(f":{key} {value}" for key, value in attrs)
            label = f"(label :markup {self._format_value(format_workspace_label(view))})"
            parts.append(f"(button {attr_string} {label})")

        # Wrap in a box container so eww's (literal :content) gets a single element
        return f"(box :orientation \"h\" :spacing 3 :class \"workspaces\" {' '.join(parts)})"


class I3barRenderer(Renderer):
    """i3bar protocol stream; block instances carry workspace ids."""

    def __init__(self, click_events: bool = False) -> None:
        self.click_events = click_events

    def header(self) -> Optional[str]:
        return protocol_header(self.click_events)

    def render(self, views: List[WorkspaceView]) -> str:
        blocks = [
            WorkspaceBlock.for_workspace(view.id, format_workspace_label(view), view.is_urgent).to_json()
            for view in views
        ]
        return json.dumps(blocks, ensure_ascii=False) + ","

    def footer(self) -> Optional[str]:
        return "]"


RENDERERS = {
    "json": JsonRenderer,
    "yuck": YuckRenderer,
    "i3bar": I3barRenderer,
}


# ============================================================================
# Panel
# ============================================================================


class WorkspacePanel:
    """Drains the snapshot channel and writes the bar's output."""

    def __init__(self, renderer: Renderer, stream: Optional[TextIO] = None) -> None:
        self.renderer = renderer
        self.stream = stream or sys.stdout
        self._last_payload: Optional[str] = None
        self.snapshots_received = 0

    def _write(self, text: str) -> None:
        print(text, file=self.stream, flush=True)

    def render(self, snapshot: Snapshot) -> bool:
        """Render a snapshot as a full replacement of the bar.

        Returns:
            True if a new line was written
        """
        self.snapshots_received += 1
        serialized = self.renderer.render(sort_snapshot(snapshot))
        if serialized == self._last_payload:
            return False
        self._write(serialized)
        self._last_payload = serialized
        return True

    async def run(self, channel) -> None:
        """Render every snapshot until the producer closes the channel.

        The last output is left in place, so the bar freezes on the most
        recent state if the sync worker stops.
        """
        header = self.renderer.header()
        if header is not None:
            self._write(header)
        try:
            async for snapshot in channel:
                self.render(snapshot)
        finally:
            channel.close_receiver()
        footer = self.renderer.footer()
        if footer is not None:
            self._write(footer)
        logger.info("Snapshot channel closed, no further updates")


class ClickListener:
    """Reads i3bar click events from stdin and focuses clicked workspaces."""

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        socket_path: Optional[Union[str, Path]] = None,
    ) -> None:
        self.stream = stream or sys.stdin
        self.socket_path = socket_path
        self._thread = threading.Thread(target=self.run, name="click-listener", daemon=True)

    def start(self) -> None:
        self._thread.start()

    def handle_line(self, line: str) -> Optional[int]:
        """Handle one line of the click event stream.

        Returns:
            The workspace id an activation was requested for, if any
        """
        # Skip array start/end markers and the separating commas
        line = line.strip().strip(",")
        if not line or line in ("[", "]"):
            return None

        try:
            event = ClickEvent.from_json(json.loads(line))
        except (json.JSONDecodeError, KeyError, ValueError, AttributeError) as e:
            logger.error(f"Failed to parse click event {line!r}: {e}")
            return None

        if event.button is not MouseButton.LEFT:
            return None
        try:
            workspace_id = event.workspace_id
        except ValueError:
            logger.error(f"Click event has invalid workspace id: {event.instance!r}")
            return None
        if workspace_id is None:
            return None

        request_activation(workspace_id, self.socket_path)
        return workspace_id

    def run(self) -> None:
        logger.info("Click event listener started")
        for line in self.stream:
            self.handle_line(line)
        logger.info("Click event stream closed")
