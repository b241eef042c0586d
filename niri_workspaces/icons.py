"""Window icon resolution and state formatting."""

import logging

from .config import ICON_PLACEHOLDER, Config
from .models import Window

logger = logging.getLogger(__name__)


def resolve_icon(config: Config, window: Window) -> str:
    """Look up the glyph for a window's app_id.

    The app_id is lowercased before lookup. Windows without an app_id, or
    with one missing from the table, get ``config.window_icon_default``.
    """
    if window.app_id is None:
        logger.warning(f"Window doesn't have an app_id: {window!r}")
        return config.window_icon_default

    icon = config.window_icons.get(window.app_id.lower())
    if icon is None:
        logger.warning(f"No icon configured for app_id={window.app_id!r}")
        return config.window_icon_default
    return icon


def format_icon(config: Config, icon: str, is_focused: bool, is_urgent: bool) -> str:
    """Apply the template for the window's state to an icon.

    Urgent beats focused, focused beats default. Only the first placeholder
    is substituted; a template without one comes back unchanged.
    """
    formats = config.window_icon_formats
    if is_urgent:
        template = formats.urgent
    elif is_focused:
        template = formats.focused
    else:
        template = formats.default

    return template.replace(ICON_PLACEHOLDER, icon, 1)
