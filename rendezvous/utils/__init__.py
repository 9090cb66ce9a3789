"""Utilities shared across the rendezvous package."""

from .queues import QueueItem, WakeSignal

__all__ = ['QueueItem', 'WakeSignal']
