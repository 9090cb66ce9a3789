# -*- coding: utf-8 -*-
"""Rendezvous - distributed barrier over a hierarchical coordination store."""

__version__ = "0.1.0"

from .barrier import (
    Barrier, BarrierCoordinator, BarrierPhase, BarrierRole, BarrierState,
    WatchBridge
)
from .config import RendezvousConfig, BarrierConfig, get_config
from .metrics import BarrierMetrics
from .rendezvous_types import (
    RendezvousException, CoordinationFailure, CommunicationFailure,
    InterruptionFailure, BarrierStateError, StoreError
)
from .stores import CoordinationStore, CreateMode, MemoryCoordinationStore

__all__ = [
    '__version__',
    'Barrier',
    'BarrierCoordinator',
    'BarrierPhase',
    'BarrierRole',
    'BarrierState',
    'WatchBridge',
    'RendezvousConfig',
    'BarrierConfig',
    'get_config',
    'BarrierMetrics',
    'RendezvousException',
    'CoordinationFailure',
    'CommunicationFailure',
    'InterruptionFailure',
    'BarrierStateError',
    'StoreError',
    'CoordinationStore',
    'CreateMode',
    'MemoryCoordinationStore',
]
