"""Workspace state synchronization with niri.

``WorkspaceSynchronizer`` owns two niri connections: one for queries and one
for the event stream. It pushes a full snapshot after connecting and again
after every event that can change what the bar shows. Any connection or
protocol error is fatal; ``SyncWorker`` runs the synchronizer on a
background thread and, only if the reconnect policy allows it, starts a
fresh one after a failure.
"""

import functools
import logging
import threading
import time
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Protocol, Union

from .aggregator import build_workspace_views
from .channel import DeliveryError
from .config import Config
from .connection import NiriConnectionError, NiriIPCError, NiriSocket
from .models import Event, Snapshot

logger = logging.getLogger(__name__)

# Events that can change workspace membership, window order or focus/urgency
RELEVANT_EVENTS = frozenset({
    "WindowOpenedOrChanged",
    "WindowClosed",
    "WindowLayoutsChanged",
    "WindowFocusChanged",
    "WorkspacesChanged",
})


class SyncState(Enum):
    """Lifecycle of a WorkspaceSynchronizer."""

    CONNECTING = "connecting"
    INITIAL_SYNC = "initial_sync"
    SUBSCRIBED = "subscribed"
    FAILED = "failed"


class SnapshotSink(Protocol):
    def send(self, snapshot: Snapshot) -> None: ...


def is_relevant(event: Event) -> bool:
    """Whether an event warrants re-querying niri."""
    return event.kind in RELEVANT_EVENTS


class WorkspaceSynchronizer:
    """Keeps the bar's snapshot in step with niri.

    Blocking; meant to run on its own thread. ``run()`` only returns once the
    synchronizer has failed.
    """

    def __init__(
        self,
        config: Config,
        channel: SnapshotSink,
        connect: Callable[[], NiriSocket] = NiriSocket.connect,
    ) -> None:
        """Initialize the synchronizer.

        Args:
            config: Effective configuration
            channel: Where snapshots are delivered
            connect: Factory opening one niri connection per call
        """
        self.config = config
        self.channel = channel
        self._connect = connect
        self.state = SyncState.CONNECTING
        self.error: Optional[Exception] = None
        self.was_subscribed = False
        self._cmd_socket: Optional[NiriSocket] = None
        self._event_socket: Optional[NiriSocket] = None

    def _transition(self, state: SyncState) -> None:
        logger.info(f"Workspace sync: {self.state.value} -> {state.value}")
        self.state = state

    def run(self) -> SyncState:
        """Connect, sync, subscribe and follow events until something fails.

        Returns:
            The terminal state, always SyncState.FAILED
        """
        try:
            self._cmd_socket = self._connect()
            self._event_socket = self._connect()

            self._transition(SyncState.INITIAL_SYNC)
            self.refresh()

            self._transition(SyncState.SUBSCRIBED)
            self._event_socket.subscribe()
            self.was_subscribed = True
            logger.info("Subscribed to niri event stream")

            for event in self._event_socket.read_events():
                self.handle_event(event)
            raise NiriConnectionError("niri event stream ended")

        except (NiriIPCError, DeliveryError) as e:
            self.error = e
            logger.error(f"Workspace sync failed while {self.state.value}: {e}")
            self._transition(SyncState.FAILED)
        finally:
            self.close()

        return self.state

    def handle_event(self, event: Event) -> bool:
        """Refresh once for a relevant event, ignore anything else.

        Returns:
            True if a snapshot was delivered
        """
        if not is_relevant(event):
            logger.debug(f"Ignoring niri event {event.kind}")
            return False
        logger.debug(f"niri event {event.kind}, refreshing workspaces")
        self.refresh()
        return True

    def refresh(self) -> Snapshot:
        """Query workspaces and windows, aggregate them and deliver the result.

        The two queries are separate round trips; a window whose workspace
        vanished in between is dropped and the next event fixes the view.
        """
        if self._cmd_socket is None:
            raise NiriConnectionError("Command connection is not open")
        workspaces = self._cmd_socket.workspaces()
        windows = self._cmd_socket.windows()
        snapshot = build_workspace_views(self.config, workspaces, windows)
        self.channel.send(snapshot)
        logger.debug(f"Delivered snapshot of {len(snapshot)} workspace(s)")
        return snapshot

    def close(self) -> None:
        for sock in (self._cmd_socket, self._event_socket):
            if sock is not None:
                sock.close()
        self._cmd_socket = None
        self._event_socket = None


class SyncWorker:
    """Background thread running WorkspaceSynchronizer.

    Closes the channel when it stops so the consumer knows no more snapshots
    will arrive.
    """

    def __init__(
        self,
        config: Config,
        channel,
        socket_path: Optional[Union[str, Path]] = None,
        connect: Optional[Callable[[], NiriSocket]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.channel = channel
        self._connect = connect or functools.partial(NiriSocket.connect, socket_path)
        self._sleep = sleep
        self.state: Optional[SyncState] = None
        self.runs = 0
        self._thread = threading.Thread(target=self.run, name="niri-sync", daemon=True)

    def start(self) -> None:
        self._thread.start()

    def join(self, timeout: Optional[float] = None) -> None:
        self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def run(self) -> Optional[SyncState]:
        """Run synchronizers until one fails and the policy says stop."""
        policy = self.config.reconnect
        attempt = 0
        delay = policy.initial_delay
        try:
            while True:
                synchronizer = WorkspaceSynchronizer(self.config, self.channel, self._connect)
                self.runs += 1
                try:
                    self.state = synchronizer.run()
                except Exception as e:
                    logger.error(f"Workspace sync crashed, not reconnecting: {e}", exc_info=True)
                    self.state = SyncState.FAILED
                    break

                if not policy.enabled:
                    break
                if isinstance(synchronizer.error, DeliveryError):
                    logger.error("Snapshot consumer is gone, not reconnecting")
                    break
                if synchronizer.was_subscribed:
                    attempt = 0
                    delay = policy.initial_delay

                attempt += 1
                if attempt > policy.max_attempts:
                    logger.error(f"Giving up on niri after {policy.max_attempts} reconnect attempt(s)")
                    break
                logger.warning(
                    f"Reconnecting to niri in {delay:.1f}s (attempt {attempt}/{policy.max_attempts})"
                )
                self._sleep(delay)
                # Exponential backoff: double delay up to max_delay
                delay = min(delay * 2, policy.max_delay)
        finally:
            self.channel.close()
        return self.state
