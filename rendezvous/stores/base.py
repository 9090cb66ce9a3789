# -*- coding: utf-8 -*-
"""Coordination store interface used by the rendezvous barrier.

A coordination store is a hierarchical namespace of nodes ("/a/b/c") with
persistent and ephemeral nodes and one-shot watches, in the style of
ZooKeeper. The barrier only depends on this interface; concrete clients
(the in-memory store here, or an adapter over a real ensemble) implement it.
"""

import abc
from typing import Callable, List, Optional
from dataclasses import dataclass
from enum import Enum


class CreateMode(Enum):
    """Node lifetime."""
    PERSISTENT = "persistent"
    EPHEMERAL = "ephemeral"


class EventType(Enum):
    """Kinds of change a watch can report."""
    NONE = "none"
    NODE_CREATED = "node_created"
    NODE_DELETED = "node_deleted"
    NODE_DATA_CHANGED = "node_data_changed"
    NODE_CHILDREN_CHANGED = "node_children_changed"


class SessionState(Enum):
    """Client session state reported alongside watch events."""
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    EXPIRED = "expired"
    CLOSED = "closed"


@dataclass(frozen=True)
class WatchedEvent:
    """A fired watch."""
    type: EventType
    state: SessionState
    path: Optional[str] = None


Watcher = Callable[[WatchedEvent], None]


def join_path(*parts: str) -> str:
    """Join node names into an absolute path: join_path("a", "b") -> "/a/b"."""
    names = [p.strip("/") for p in parts if p and p.strip("/")]
    return "/" + "/".join(names)


def split_path(path: str) -> tuple:
    """Split an absolute path into (parent, name). The root's parent is None."""
    validate_path(path)
    if path == "/":
        return None, ""
    parent, _, name = path.rpartition("/")
    return parent or "/", name


def validate_path(path: str) -> None:
    """Raise ValueError if path is not a well-formed absolute node path."""
    if not isinstance(path, str) or not path.startswith("/"):
        raise ValueError(f"Path must be absolute: {path!r}")
    if path != "/" and (path.endswith("/") or "//" in path):
        raise ValueError(f"Malformed path: {path!r}")


class CoordinationStore(abc.ABC):
    """Abstract client of a hierarchical coordination store.

    Implementations must make ``create`` and ``delete`` atomic: a create of
    an existing node raises NodeExistsError without side effects, and a
    delete of a node with children raises NotEmptyError without side
    effects. Watches fire at most once, asynchronously, on the client's
    event thread.
    """

    @abc.abstractmethod
    def create(self, path: str, data: bytes = b"",
               mode: CreateMode = CreateMode.PERSISTENT) -> str:
        """Create a node and return its path.

        Raises NodeExistsError if it exists, NoNodeError if its parent
        does not and NoChildrenForEphemeralsError if the parent is ephemeral.
        """
        pass

    @abc.abstractmethod
    def delete(self, path: str) -> None:
        """Delete a node.

        Raises NotEmptyError if it has children and NoNodeError if it is
        absent.
        """
        pass

    @abc.abstractmethod
    def exists(self, path: str, watch: Optional[Watcher] = None) -> bool:
        """Check if a node exists.

        A watch is armed whether or not the node exists and fires on its
        creation, deletion or data change.
        """
        pass

    @abc.abstractmethod
    def get_children(self, path: str, watch: Optional[Watcher] = None) -> List[str]:
        """List child names of a node.

        The watch fires when the child set changes or the node is deleted.
        Raises NoNodeError if the node is absent (no watch is armed).
        """
        pass

    @abc.abstractmethod
    def get_data(self, path: str) -> bytes:
        """Read a node's payload. Raises NoNodeError if it is absent."""
        pass

    @abc.abstractmethod
    def close(self) -> None:
        """End the session, removing its ephemeral nodes."""
        pass

    def __enter__(self) -> 'CoordinationStore':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
