"""i3bar protocol pieces for the ``i3bar`` output format.

Every workspace is one block named ``workspace`` whose ``instance`` is the
niri workspace id; the bar echoes both back in click events.

See: https://i3wm.org/docs/i3bar-protocol.html
"""

import json
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Optional

BLOCK_NAME = "workspace"
PROTOCOL_VERSION = 1


def protocol_header(click_events: bool) -> str:
    """Header object plus the opening bracket of the endless block-list array."""
    header = json.dumps({"version": PROTOCOL_VERSION, "click_events": click_events})
    return f"{header}\n["


@dataclass
class WorkspaceBlock:
    """A workspace button on the bar."""

    full_text: str                  # Workspace label, may carry pango markup from icon templates
    instance: str                   # niri workspace id
    name: str = BLOCK_NAME
    urgent: bool = False
    separator: bool = False
    separator_block_width: int = 6  # Gap between workspace buttons
    markup: str = "pango"

    @classmethod
    def for_workspace(cls, workspace_id: int, label: str, is_urgent: bool = False) -> "WorkspaceBlock":
        return cls(full_text=label, instance=str(workspace_id), urgent=is_urgent)

    def to_json(self) -> Dict[str, Any]:
        return asdict(self)


class MouseButton(Enum):
    """Mouse button codes from i3bar protocol."""
    LEFT = 1
    MIDDLE = 2
    RIGHT = 3
    SCROLL_UP = 4
    SCROLL_DOWN = 5


@dataclass
class ClickEvent:
    """A click reported by the bar on stdin."""

    name: Optional[str]
    instance: Optional[str]
    button: MouseButton

    @classmethod
    def from_json(cls, data: dict) -> "ClickEvent":
        """Parse one decoded click event.

        Raises:
            KeyError: If the button field is missing
            ValueError: If the button code is unknown
        """
        return cls(
            name=data.get("name"),
            instance=data.get("instance"),
            button=MouseButton(data["button"]),
        )

    @property
    def workspace_id(self) -> Optional[int]:
        """Id of the clicked workspace, None for clicks on other blocks.

        Raises:
            ValueError: If a workspace block carries a non-numeric instance
        """
        if self.name != BLOCK_NAME or not self.instance:
            return None
        return int(self.instance)
