"""Merge a workspace list and a window list into per-workspace views."""

import logging
from typing import Dict, Iterable, Tuple

from .config import Config
from .icons import format_icon, resolve_icon
from .models import Snapshot, Window, Workspace, WorkspaceView

logger = logging.getLogger(__name__)


def layout_sort_key(window: Window) -> Tuple[int, ...]:
    """Sort key for a window's position in the scrolling layout.

    Windows without a position (floating ones) sort before all others.
    """
    pos = window.layout.pos_in_scrolling_layout
    if pos is None:
        return (0,)
    return (1, *pos)


def build_workspace_views(
    config: Config,
    workspaces: Iterable[Workspace],
    windows: Iterable[Window],
) -> Snapshot:
    """Build one WorkspaceView per workspace.

    The two lists come from separate queries, so a window may reference a
    workspace that closed in between; such windows are dropped, as are
    windows that are not on any workspace.

    Args:
        config: Effective configuration (icon table, default icon, formats)
        workspaces: Reply to the ``Workspaces`` request
        windows: Reply to the ``Windows`` request

    Returns:
        Views in no particular order
    """
    views: Dict[int, WorkspaceView] = {}
    icons: Dict[int, str] = {}
    for ws in workspaces:
        views[ws.id] = WorkspaceView(
            id=ws.id,
            name=ws.name or "",
            idx=ws.idx,
            is_focused=ws.is_focused,
            is_urgent=ws.is_urgent,
            is_active=ws.is_active,
        )
        icons[ws.id] = ""

    # sorted() is stable, so ties keep niri's order
    for window in sorted(windows, key=layout_sort_key):
        if window.workspace_id is None:
            continue
        if window.workspace_id not in icons:
            logger.debug(f"Dropping window {window.id}: unknown workspace {window.workspace_id}")
            continue

        raw_icon = resolve_icon(config, window)
        formatted = format_icon(config, raw_icon, window.is_focused, window.is_urgent)
        # No separator while the string is still empty
        if icons[window.workspace_id]:
            icons[window.workspace_id] += " "
        icons[window.workspace_id] += formatted

    return [view.model_copy(update={"icons": icons[ws_id]}) for ws_id, view in views.items()]
