"""Pydantic models for niri IPC replies and the workspace views built from them.

Window and Workspace mirror the objects niri returns for the ``Windows`` and
``Workspaces`` requests. Only the fields this package reads are typed; any
extra fields sent by newer niri versions are ignored.
"""

from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class WindowLayout(BaseModel):
    """Position and size of a window in niri's layout."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    pos_in_scrolling_layout: Optional[Tuple[int, int]] = Field(
        default=None, description="(column, tile) index, 1-based; None for floating windows"
    )
    tile_size: Optional[Tuple[float, float]] = None
    window_size: Optional[Tuple[int, int]] = None
    tile_pos_in_workspace_view: Optional[Tuple[float, float]] = None
    window_offset_in_tile: Optional[Tuple[float, float]] = None


class Window(BaseModel):
    """A toplevel window as reported by niri."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int
    title: Optional[str] = None
    app_id: Optional[str] = Field(default=None, description="Wayland app_id, case as supplied")
    pid: Optional[int] = None
    workspace_id: Optional[int] = None
    is_focused: bool = False
    is_floating: bool = False
    is_urgent: bool = False
    layout: WindowLayout = Field(default_factory=WindowLayout)


class Workspace(BaseModel):
    """A workspace as reported by niri."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int = Field(..., description="Stable workspace id")
    idx: int = Field(..., ge=0, description="Index on its monitor, used for sorting and labels")
    name: Optional[str] = None
    output: Optional[str] = None
    is_urgent: bool = False
    is_active: bool = False
    is_focused: bool = False
    active_window_id: Optional[int] = None


class WorkspaceView(BaseModel):
    """One workspace as shown by the bar.

    Built fresh on every aggregation pass. ``icons`` holds the formatted
    icons of the workspace's windows, space separated, or "" when empty.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    name: str = ""
    icons: str = ""
    idx: int
    is_focused: bool = False
    is_urgent: bool = False
    is_active: bool = False


# A full-replacement list of views, one per workspace. Unordered.
Snapshot = List[WorkspaceView]


class Event(BaseModel):
    """One event from the niri event stream.

    niri encodes events as single-key objects, e.g.
    ``{"WindowClosed": {"id": 12}}``; ``kind`` is that key.
    """

    model_config = ConfigDict(frozen=True)

    kind: str
    payload: Any = None

    @classmethod
    def from_json(cls, data: Any) -> "Event":
        """Parse a decoded event line.

        Raises:
            ValueError: If ``data`` is not a single-key object
        """
        if not isinstance(data, dict) or len(data) != 1:
            raise ValueError(f"Expected a single-key event object, got: {data!r}")
        kind, payload = next(iter(data.items()))
        return cls(kind=kind, payload=payload)
