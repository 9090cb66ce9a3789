#!/usr/bin/env python3
"""
Shared types for the rendezvous barrier.

Kept separate from the coordinator so the watch bridge and the CLI can use
them without importing the protocol logic.
"""

import os
import socket
import threading
import time
from typing import Dict, Any
from dataclasses import dataclass, field
from enum import Enum


class BarrierRole(Enum):
    """Role a member plays in one barrier round."""
    INITIATOR = "initiator"
    FOLLOWER = "follower"


class BarrierPhase(Enum):
    """Progress of one member through a barrier round."""
    INIT = "init"
    ROOT_RACE = "root_race"
    INITIATOR_WAITING = "initiator_waiting"
    FOLLOWER_WAITING = "follower_waiting"
    ALLCLEAR_PUBLISHED = "allclear_published"
    ALLCLEAR_OBSERVED = "allclear_observed"
    SELF_CLEANUP = "self_cleanup"
    DONE = "done"
    FAILED = "failed"


class BarrierState(Enum):
    """Whether watch notifications may still wake the barrier."""
    LIVE = "live"
    DEACTIVATED = "deactivated"
    CANCELLED = "cancelled"


class BarrierLifecycle:
    """
    Lifecycle state shared between a barrier and its watch bridge.

    Reads and transitions are atomic; the bridge only ever reads.
    """

    def __init__(self):
        self._state = BarrierState.LIVE
        self._lock = threading.Lock()

    @property
    def state(self) -> BarrierState:
        with self._lock:
            return self._state

    @property
    def is_live(self) -> bool:
        return self.state is BarrierState.LIVE

    @property
    def is_cancelled(self) -> bool:
        return self.state is BarrierState.CANCELLED

    def deactivate(self) -> bool:
        """Move LIVE -> DEACTIVATED. Returns True if the state changed."""
        with self._lock:
            if self._state is BarrierState.LIVE:
                self._state = BarrierState.DEACTIVATED
                return True
            return False

    def cancel(self) -> bool:
        """Move any non-cancelled state to CANCELLED. Returns True if the state changed."""
        with self._lock:
            if self._state is BarrierState.CANCELLED:
                return False
            self._state = BarrierState.CANCELLED
            return True

    def __repr__(self) -> str:
        return f"BarrierLifecycle(state={self.state.value})"


@dataclass
class MemberInfo:
    """Descriptive payload stored in a member's entry."""
    member_id: str
    host: str = field(default_factory=socket.gethostname)
    pid: int = field(default_factory=os.getpid)
    entered_at: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        """Convert member info to dictionary for serialization."""
        return {
            'member_id': self.member_id,
            'host': self.host,
            'pid': self.pid,
            'entered_at': self.entered_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MemberInfo':
        """Create member info from dictionary."""
        return cls(
            member_id=data['member_id'],
            host=data.get('host', ''),
            pid=data.get('pid', 0),
            entered_at=data.get('entered_at', 0.0),
        )
