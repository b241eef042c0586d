"""Pytest configuration and fixtures for niri-workspaces tests."""

from types import MappingProxyType

import pytest

from fixtures.mock_niri import FakeNiriServer, workspace_json
from niri_workspaces.config import Config, WindowIconFormats


@pytest.fixture
def icon_table():
    """Small effective icon table (lowercase keys)."""
    return {
        "firefox": "F",
        "alacritty": "A",
        "code": "C",
    }


@pytest.fixture
def config(icon_table):
    """Effective configuration with a "?" default icon and bare templates."""
    return Config(
        window_icon_default="?",
        window_icon_formats=WindowIconFormats(),
        window_icons=MappingProxyType(dict(icon_table)),
    )


@pytest.fixture
def styled_config(icon_table):
    """Configuration with distinct templates per window state."""
    return Config(
        window_icon_default="?",
        window_icon_formats=WindowIconFormats(
            focused="[{icon}]",
            urgent="!{icon}!",
            default="{icon}",
        ),
        window_icons=MappingProxyType(dict(icon_table)),
    )


@pytest.fixture
def fake_niri(tmp_path):
    """A fake niri IPC server on a Unix socket with two workspaces."""
    server = FakeNiriServer(tmp_path / "niri.sock")
    server.workspaces = [
        workspace_json(1, idx=1, is_focused=True, is_active=True),
        workspace_json(2, idx=2, name="Work"),
    ]
    server.start()
    yield server
    server.stop()
