"""Trigger channel between request handlers and the update executor.

Strict FIFO, unbounded, no deduplication: three pushes for the same
repository queue three jobs. Any number of request threads may send;
exactly one executor thread receives.
"""

import queue
import threading
from typing import Optional

from hubhook.errors import DispatchFailed

_CLOSED = object()


class TriggerChannel:
    """Ordered hand-off of repository full names to the executor."""

    def __init__(self) -> None:
        self._queue: queue.Queue = queue.Queue()
        # Makes the closed check and the put atomic, so nothing is enqueued
        # behind the close marker.
        self._send_lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, repo: str) -> None:
        """Enqueue a trigger for `repo`.

        Raises:
            DispatchFailed: If the channel has been closed.
        """
        with self._send_lock:
            if self._closed:
                raise DispatchFailed(f"Trigger channel closed, dropping update for {repo}")
            self._queue.put(repo)

    def receive(self, timeout: Optional[float] = None) -> Optional[str]:
        """Block until a trigger arrives.

        Returns None once the channel is closed and every earlier trigger
        has been received.

        Raises:
            queue.Empty: If `timeout` elapses first.
        """
        item = self._queue.get(timeout=timeout)
        if item is _CLOSED:
            # Leave the marker for any other waiting receiver.
            self._queue.put(_CLOSED)
            return None
        return item

    def close(self) -> None:
        """Refuse further sends. Already queued triggers are still delivered."""
        with self._send_lock:
            if not self._closed:
                self._closed = True
                self._queue.put(_CLOSED)

    def pending(self) -> int:
        """Approximate number of triggers waiting to be received."""
        size = self._queue.qsize()
        return size - 1 if self._closed and size else size
