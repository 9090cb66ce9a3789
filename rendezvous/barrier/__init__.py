#!/usr/bin/env python3
"""
Distributed rendezvous barrier

Lets N processes that share only a coordination store block until all N
have reached a named barrier, then proceed together:
- Root-creation race decides the single initiator per round
- Watches wake waiters, a fixed poll interval backs them up
- Members remove their own registration on the way out
"""

from .base import Barrier
from .coordinator import BarrierCoordinator
from .nodes import try_to_create_node, delete_node_if_empty
from .types import BarrierLifecycle, BarrierPhase, BarrierRole, BarrierState, MemberInfo
from .watch import WakeSource, WatchBridge

__all__ = [
    'Barrier',
    'BarrierCoordinator',
    'BarrierLifecycle',
    'BarrierPhase',
    'BarrierRole',
    'BarrierState',
    'MemberInfo',
    'WakeSource',
    'WatchBridge',
    'try_to_create_node',
    'delete_node_if_empty',
]
