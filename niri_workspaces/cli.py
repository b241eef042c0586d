"""Command line entry point.

``niri-workspaces`` streams workspace state for a status bar;
``niri-workspaces focus ID`` switches to a workspace (bind it to clicks).
"""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Iterable, Optional

from .activation import focus_workspace
from .channel import SnapshotChannel
from .config import Config, default_config_path, load_config
from .panel import (
    DEFAULT_FOCUS_COMMAND,
    RENDERERS,
    ClickListener,
    I3barRenderer,
    Renderer,
    WorkspacePanel,
    YuckRenderer,
)
from .sync import SyncState, SyncWorker

logger = logging.getLogger(__name__)


def setup_logging(level: Optional[str] = None) -> None:
    """Log to stderr; stdout belongs to the bar."""
    log_level = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    handler = logging.StreamHandler(sys.stderr)
    formatter = logging.Formatter("%(levelname)s [%(name)s] %(message)s")
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    logger.debug(f"Logging configured: level={log_level}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="niri-workspaces",
        description="Emit niri workspaces, annotated with window icons, for a status bar",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"Configuration file (default: {default_config_path()})",
    )
    parser.add_argument(
        "--socket",
        default=None,
        help="niri IPC socket (default: $NIRI_SOCKET)",
    )
    parser.add_argument(
        "--format",
        choices=sorted(RENDERERS),
        default="json",
        help="Output format (json for eww deflisten, yuck for eww literal, i3bar for i3bar protocol)",
    )
    parser.add_argument(
        "--click-events",
        action="store_true",
        help="With --format=i3bar: read click events from stdin and focus clicked workspaces",
    )
    parser.add_argument(
        "--focus-command",
        default=DEFAULT_FOCUS_COMMAND,
        help="With --format=yuck: command run when a workspace button is clicked ({id} is replaced)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (default: $LOG_LEVEL or INFO)",
    )

    subparsers = parser.add_subparsers(dest="command")
    focus = subparsers.add_parser("focus", help="Focus a workspace by id and exit")
    focus.add_argument("workspace_id", type=int, help="niri workspace id")
    return parser


def make_renderer(args: argparse.Namespace) -> Renderer:
    if args.format == "yuck":
        return YuckRenderer(args.focus_command)
    if args.format == "i3bar":
        return I3barRenderer(click_events=args.click_events)
    return RENDERERS[args.format]()


async def run_panel(config: Config, renderer: Renderer, socket_path: Optional[str] = None,
                    click_events: bool = False) -> int:
    """Run the sync worker and render its snapshots until it stops.

    Returns:
        Exit code (0 = worker stopped cleanly, 1 = worker failed)
    """
    channel = SnapshotChannel(asyncio.get_running_loop())
    worker = SyncWorker(config, channel, socket_path=socket_path)
    panel = WorkspacePanel(renderer)

    if click_events:
        ClickListener(socket_path=socket_path).start()

    worker.start()
    await panel.run(channel)

    if worker.state in (None, SyncState.FAILED):
        logger.error("Workspace sync stopped; bar output is frozen on the last state")
        return 1
    return 0


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.click_events and args.format != "i3bar":
        parser.error("--click-events requires --format=i3bar")

    setup_logging(args.log_level)

    if args.command == "focus":
        return 0 if focus_workspace(args.workspace_id, args.socket) else 1

    config = load_config(args.config)
    logger.info(f"niri-workspaces starting (format={args.format}, {len(config.window_icons)} icons)")

    try:
        return asyncio.run(run_panel(config, make_renderer(args), args.socket, args.click_events))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
