#!/usr/bin/env python3
"""
Queue utilities for the rendezvous barrier.

Provides the one-slot wake channel that watch callbacks use to wake a
thread blocked inside a barrier wait loop.
"""

import logging
import queue
import threading
import time
from typing import Generic, Optional, TypeVar
from dataclasses import dataclass

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass
class QueueItem(Generic[T]):
    """Item in a wake channel with metadata."""
    value: T
    timestamp: float
    sequence_id: int


class WakeSignal(Generic[T]):
    """
    A one-slot channel with non-blocking, overwrite-on-full send.

    Senders never block and never fail: if a wake-up is already pending it
    is replaced by the newer one, so any number of notifications between two
    receives collapse into a single wake-up. The receiver blocks for at most
    ``timeout`` seconds, which lets a periodic re-check act as a backstop for
    notifications that never arrive.
    """

    def __init__(self):
        self._queue: queue.Queue = queue.Queue(maxsize=1)
        self._lock = threading.Lock()
        self._sequence_counter = 0
        self._overwritten = 0

    def send(self, value: T) -> None:
        """
        Post a wake-up without blocking.

        Args:
            value: Payload describing why the receiver is being woken
        """
        with self._lock:
            self._sequence_counter += 1
            item = QueueItem(
                value=value,
                timestamp=time.time(),
                sequence_id=self._sequence_counter
            )
            try:
                self._queue.put_nowait(item)
            except queue.Full:
                # Drop the pending wake-up and keep the newer one
                try:
                    self._queue.get_nowait()
                    self._overwritten += 1
                except queue.Empty:
                    pass
                self._queue.put_nowait(item)

    def receive(self, timeout: Optional[float] = None) -> Optional[QueueItem[T]]:
        """
        Wait for a wake-up.

        Args:
            timeout: Seconds to wait (None = forever)

        Returns:
            The pending QueueItem, or None if the timeout elapsed first
        """
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> int:
        """
        Discard a pending wake-up, if any.

        Returns:
            Number of items discarded (0 or 1)
        """
        try:
            self._queue.get_nowait()
            return 1
        except queue.Empty:
            return 0

    def pending(self) -> bool:
        """Check whether a wake-up is waiting to be received."""
        return not self._queue.empty()

    def get_stats(self) -> dict:
        """Get channel statistics."""
        return {
            'pending': self.pending(),
            'sent': self._sequence_counter,
            'overwritten': self._overwritten,
        }
