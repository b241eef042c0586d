"""Thread-to-asyncio delivery channel for workspace snapshots.

The sync worker runs blocking socket I/O on its own thread and must never
wait on the bar. ``SnapshotChannel.send`` hands each snapshot to the
consumer's event loop with ``call_soon_threadsafe`` and returns at once; the
queue on the loop side is unbounded, so snapshots are never dropped or
reordered.
"""

import asyncio
import logging
import threading
from typing import AsyncIterator, Optional

from .models import Snapshot

logger = logging.getLogger(__name__)

_CLOSED = object()


class DeliveryError(Exception):
    """A snapshot could not be handed to the consumer."""
    pass


class ChannelClosed(Exception):
    """The producer closed the channel and every snapshot has been received."""
    pass


class SnapshotChannel:
    """Unbounded single-producer, single-consumer FIFO of snapshots."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """Create the channel on the consumer's event loop.

        Args:
            loop: Consumer loop (defaults to the running loop)
        """
        self._loop = loop or asyncio.get_running_loop()
        self._queue: "asyncio.Queue[object]" = asyncio.Queue()
        self._closed = threading.Event()
        self._receiver_closed = threading.Event()

    @property
    def is_closed(self) -> bool:
        return self._closed.is_set()

    def send(self, snapshot: Snapshot) -> None:
        """Queue a snapshot for the consumer without blocking.

        Raises:
            DeliveryError: If either side has closed or the consumer loop is gone
        """
        if self._receiver_closed.is_set():
            raise DeliveryError("Snapshot consumer has been torn down")
        if self._closed.is_set():
            raise DeliveryError("Channel is closed")
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, snapshot)
        except RuntimeError as e:
            # call_soon_threadsafe raises RuntimeError once the loop is closed
            raise DeliveryError(f"Snapshot consumer loop is gone: {e}") from e

    def close(self) -> None:
        """Producer side: no more snapshots will follow."""
        if self._closed.is_set():
            return
        self._closed.set()
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, _CLOSED)
        except RuntimeError:
            logger.debug("Consumer loop already closed; nothing to notify")

    def close_receiver(self) -> None:
        """Consumer side: stop accepting snapshots."""
        self._receiver_closed.set()

    async def recv(self) -> Snapshot:
        """Wait for the next snapshot.

        Raises:
            ChannelClosed: Once the producer closed and the queue is drained
        """
        item = await self._queue.get()
        if item is _CLOSED:
            # Leave the marker in place for any later recv()
            self._queue.put_nowait(_CLOSED)
            raise ChannelClosed()
        return item  # type: ignore[return-value]

    def __aiter__(self) -> AsyncIterator[Snapshot]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[Snapshot]:
        while True:
            try:
                snapshot = await self.recv()
            except ChannelClosed:
                return
            yield snapshot
