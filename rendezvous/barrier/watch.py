# -*- coding: utf-8 -*-
"""Bridge from store watch events to a barrier's wake signal."""

import logging
import threading
from enum import Enum

from .types import BarrierLifecycle
from ..stores.base import WatchedEvent
from ..utils.queues import WakeSignal

logger = logging.getLogger(__name__)


class WakeSource(Enum):
    """What woke a barrier's wait loop."""
    WATCH = "watch"
    TIMEOUT = "timeout"
    CANCEL = "cancel"


class WatchBridge:
    """
    Watcher that forwards fired watches to a waiting barrier.

    The bridge shares the barrier's lifecycle handle and wake signal rather
    than holding the barrier itself. While the lifecycle is LIVE every event
    posts a wake-up; once the barrier is deactivated or cancelled events are
    dropped. It is called on the store's event thread and never raises.
    """

    def __init__(self, lifecycle: BarrierLifecycle, wake: WakeSignal, name: str = ""):
        self.lifecycle = lifecycle
        self.wake = wake
        self.name = name
        self._lock = threading.Lock()
        self.forwarded = 0
        self.dropped = 0

    def __call__(self, event: WatchedEvent) -> None:
        with self._lock:
            if self.lifecycle.is_live:
                self.wake.send(WakeSource.WATCH)
                self.forwarded += 1
                logger.debug(f"Barrier {self.name}: {event.type.value} on {event.path}, waking waiter")
            else:
                self.dropped += 1
                logger.debug(f"Barrier {self.name} is {self.lifecycle.state.value}, "
                             f"ignoring {event.type.value} on {event.path}")

    def __repr__(self) -> str:
        return f"WatchBridge(name={self.name!r}, forwarded={self.forwarded}, dropped={self.dropped})"
