"""End-to-end tests against a fake niri server on a Unix socket."""

import asyncio
import json

import pytest

from fixtures.mock_niri import window_json
from niri_workspaces.activation import focus_workspace
from niri_workspaces.channel import SnapshotChannel
from niri_workspaces.cli import run_panel
from niri_workspaces.config import Config, ReconnectPolicy
from niri_workspaces.panel import JsonRenderer
from niri_workspaces.sync import SyncState, SyncWorker

pytestmark = pytest.mark.integration


async def collect(channel: SnapshotChannel, timeout: float = 10.0):
    async def drain():
        return [snapshot async for snapshot in channel]
    return await asyncio.wait_for(drain(), timeout)


@pytest.mark.asyncio
async def test_worker_follows_event_stream(fake_niri, config):
    fake_niri.windows = [
        window_json(10, "firefox", 1, pos=[1, 1]),
        window_json(11, "code", 1, pos=[2, 1]),
        window_json(12, "Alacritty", 2, pos=[1, 1]),
    ]
    fake_niri.events = [
        {"WindowOpenedOrChanged": {"window": window_json(11, "code", 1, pos=[2, 1])}},
        {"KeyboardLayoutsChanged": {"keyboard_layouts": {"names": ["us"], "current_idx": 0}}},
        {"WorkspaceActivated": {"id": 2, "focused": True}},
        {"WindowFocusChanged": {"id": 10}},
    ]
    channel = SnapshotChannel()
    worker = SyncWorker(config, channel, socket_path=fake_niri.path)

    worker.start()
    snapshots = await collect(channel)
    worker.join(5.0)

    # Initial snapshot plus one per relevant event; the stream then ends
    assert len(snapshots) == 3
    assert worker.state is SyncState.FAILED

    views = {view.id: view for view in snapshots[0]}
    assert views[1].icons == "F C"
    assert views[1].is_focused
    assert views[2].icons == "A"
    assert views[2].name == "Work"


@pytest.mark.asyncio
async def test_worker_fails_when_subscription_rejected(fake_niri, config):
    fake_niri.subscribe_reply = {"Err": "event stream unavailable"}
    channel = SnapshotChannel()
    worker = SyncWorker(config, channel, socket_path=fake_niri.path)

    worker.start()
    snapshots = await collect(channel)
    worker.join(5.0)

    assert len(snapshots) == 1
    assert worker.state is SyncState.FAILED


@pytest.mark.asyncio
async def test_worker_without_niri(tmp_path, config):
    channel = SnapshotChannel()
    worker = SyncWorker(config, channel, socket_path=tmp_path / "missing.sock")

    worker.start()
    snapshots = await collect(channel)
    worker.join(5.0)

    assert snapshots == []
    assert worker.state is SyncState.FAILED


@pytest.mark.asyncio
async def test_reconnects_print_unchanged_state_once(fake_niri, icon_table, capsys):
    policy = ReconnectPolicy(enabled=True, initial_delay=0.01, max_delay=0.02, max_attempts=2)
    config = Config(window_icon_default="?", window_icons=icon_table, reconnect=policy)
    fake_niri.windows = [window_json(10, "firefox", 1, pos=[1, 1])]
    # Never subscribed, so every failed run counts towards max_attempts
    fake_niri.subscribe_reply = {"Err": "event stream unavailable"}

    exit_code = await asyncio.wait_for(
        run_panel(config, JsonRenderer(), socket_path=str(fake_niri.path)), 10.0
    )

    assert exit_code == 1
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 1
    rows = json.loads(lines[0])
    assert [row["label"] for row in rows] == ["1: F", "2 Work"]
    assert fake_niri.requests.count("EventStream") == 3


def test_focus_workspace(fake_niri):
    assert focus_workspace(2, fake_niri.path) is True
    assert focus_workspace(99, fake_niri.path) is False
    assert fake_niri.requests == [
        {"Action": {"FocusWorkspace": {"reference": {"Id": 2}}}},
        {"Action": {"FocusWorkspace": {"reference": {"Id": 99}}}},
    ]
