# -*- coding: utf-8 -*-
"""Exception types shared by the rendezvous barrier and its stores."""

from typing import Optional


class RendezvousException(Exception):
    """Base rendezvous exception."""
    pass


class CoordinationFailure(RendezvousException):
    """
    Unrecoverable fault while entering a barrier.

    The underlying error is kept both as ``__cause__`` (when raised with
    ``from``) and as ``cause`` so callers can inspect it after the fact.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class CommunicationFailure(CoordinationFailure):
    """The coordination store was unreachable or rejected an operation."""
    pass


class InterruptionFailure(CoordinationFailure):
    """The waiting thread was interrupted or the barrier was cancelled."""
    pass


class BarrierStateError(RendezvousException):
    """A barrier was used outside its single-use lifecycle."""
    pass


# Store exceptions
class StoreError(RendezvousException):
    """Base class for coordination store errors."""

    def __init__(self, message: str = "", path: Optional[str] = None):
        super().__init__(message or path or self.__class__.__name__)
        self.path = path


class NodeExistsError(StoreError):
    """Node already exists."""
    pass


class NoNodeError(StoreError):
    """Node (or its parent) does not exist."""
    pass


class NotEmptyError(StoreError):
    """Node still has children."""
    pass


class ConnectionLossError(StoreError):
    """Connection to the store was lost mid-operation."""
    pass


class SessionExpiredError(StoreError):
    """The client session expired; its ephemeral nodes are gone."""
    pass


class NoChildrenForEphemeralsError(StoreError):
    """Tried to create a child under an ephemeral node."""
    pass
