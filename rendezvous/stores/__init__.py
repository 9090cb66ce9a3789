# -*- coding: utf-8 -*-
"""Coordination store interface and the in-memory implementation."""

from .base import (
    CoordinationStore, CreateMode, EventType, SessionState,
    WatchedEvent, Watcher, join_path, split_path, validate_path
)
from .memory import MemoryCoordinationStore, MemorySession

__all__ = [
    'CoordinationStore',
    'CreateMode',
    'EventType',
    'SessionState',
    'WatchedEvent',
    'Watcher',
    'join_path',
    'split_path',
    'validate_path',
    'MemoryCoordinationStore',
    'MemorySession',
]
