# -*- coding: utf-8 -*-
"""In-memory coordination store.

Good for tests, local development and the CLI simulator. One
``MemoryCoordinationStore`` plays the server; every ``connect()`` returns a
``MemorySession`` that behaves like an independent client: it owns its
ephemeral nodes and delivers its watch events, in order, on its own event
thread.
"""

import itertools
import logging
import queue
import threading
from typing import Dict, List, Optional, Tuple

from .base import (
    CoordinationStore, CreateMode, EventType, SessionState,
    WatchedEvent, Watcher, split_path, validate_path
)
from ..rendezvous_types import (
    NodeExistsError, NoNodeError, NotEmptyError, NoChildrenForEphemeralsError,
    ConnectionLossError, SessionExpiredError
)

logger = logging.getLogger(__name__)

_STOP = object()


class _Node:
    """A node in the shared tree."""

    __slots__ = ('data', 'owner', 'children')

    def __init__(self, data: bytes = b"", owner: Optional[int] = None):
        self.data = data
        self.owner = owner
        self.children: Dict[str, None] = {}


class MemoryCoordinationStore:
    """Shared node tree with atomic create/delete and one-shot watches."""

    def __init__(self):
        self._nodes: Dict[str, _Node] = {"/": _Node()}
        self._lock = threading.RLock()
        self._data_watches: Dict[str, List[Tuple['MemorySession', Watcher]]] = {}
        self._child_watches: Dict[str, List[Tuple['MemorySession', Watcher]]] = {}
        self._sessions: Dict[int, 'MemorySession'] = {}
        self._session_ids = itertools.count(1)

    def connect(self) -> 'MemorySession':
        """Open a new client session."""
        with self._lock:
            session = MemorySession(self, next(self._session_ids))
            self._sessions[session.session_id] = session
        logger.debug(f"Session {session.session_id} connected")
        return session

    # Inspection helpers

    def paths(self) -> List[str]:
        """All node paths except the root, sorted."""
        with self._lock:
            return sorted(p for p in self._nodes if p != "/")

    def has_node(self, path: str) -> bool:
        with self._lock:
            return path in self._nodes

    def children_of(self, path: str) -> List[str]:
        with self._lock:
            node = self._nodes.get(path)
            return list(node.children) if node else []

    def pending_watch_count(self) -> int:
        """Number of armed, not yet fired watches."""
        with self._lock:
            return (sum(len(w) for w in self._data_watches.values()) +
                    sum(len(w) for w in self._child_watches.values()))

    # Operations on behalf of sessions

    def _create(self, session: 'MemorySession', path: str, data: bytes,
                mode: CreateMode) -> str:
        validate_path(path)
        parent, name = split_path(path)
        if parent is None:
            raise NodeExistsError(path=path)

        with self._lock:
            if path in self._nodes:
                raise NodeExistsError(path=path)
            parent_node = self._nodes.get(parent)
            if parent_node is None:
                raise NoNodeError(f"Parent does not exist: {parent}", path=path)
            if parent_node.owner is not None:
                raise NoChildrenForEphemeralsError(f"Ephemeral nodes cannot have children: {parent}", path=path)

            owner = session.session_id if mode is CreateMode.EPHEMERAL else None
            self._nodes[path] = _Node(data, owner)
            parent_node.children[name] = None

            self._trigger(self._data_watches, path, EventType.NODE_CREATED)
            self._trigger(self._child_watches, parent, EventType.NODE_CHILDREN_CHANGED)
        return path

    def _delete(self, path: str) -> None:
        validate_path(path)
        if path == "/":
            raise NotEmptyError("Cannot delete the root", path=path)

        with self._lock:
            node = self._nodes.get(path)
            if node is None:
                raise NoNodeError(path=path)
            if node.children:
                raise NotEmptyError(path=path)

            parent, name = split_path(path)
            del self._nodes[path]
            self._nodes[parent].children.pop(name, None)

            self._trigger(self._data_watches, path, EventType.NODE_DELETED)
            self._trigger(self._child_watches, path, EventType.NODE_DELETED)
            self._trigger(self._child_watches, parent, EventType.NODE_CHILDREN_CHANGED)

    def _exists(self, session: 'MemorySession', path: str,
                watch: Optional[Watcher]) -> bool:
        validate_path(path)
        with self._lock:
            if watch is not None:
                self._arm(self._data_watches, path, session, watch)
            return path in self._nodes

    def _get_children(self, session: 'MemorySession', path: str,
                      watch: Optional[Watcher]) -> List[str]:
        validate_path(path)
        with self._lock:
            node = self._nodes.get(path)
            if node is None:
                raise NoNodeError(path=path)
            if watch is not None:
                self._arm(self._child_watches, path, session, watch)
            return list(node.children)

    def _get_data(self, path: str) -> bytes:
        validate_path(path)
        with self._lock:
            node = self._nodes.get(path)
            if node is None:
                raise NoNodeError(path=path)
            return node.data

    def _end_session(self, session: 'MemorySession') -> None:
        """Drop a session's watches and ephemeral nodes."""
        with self._lock:
            self._sessions.pop(session.session_id, None)
            for watches in (self._data_watches, self._child_watches):
                for path in list(watches):
                    remaining = [(s, w) for s, w in watches[path] if s is not session]
                    if remaining:
                        watches[path] = remaining
                    else:
                        del watches[path]

            # Deepest first; ephemeral nodes never have children
            owned = sorted(
                (p for p, n in self._nodes.items() if n.owner == session.session_id),
                key=len, reverse=True
            )
            for path in owned:
                self._delete(path)

        if owned:
            logger.debug(f"Session {session.session_id} ended, removed {len(owned)} ephemeral node(s)")

    def _arm(self, watches: Dict[str, List[Tuple['MemorySession', Watcher]]],
             path: str, session: 'MemorySession', watch: Watcher) -> None:
        registered = watches.setdefault(path, [])
        for s, w in registered:
            if s is session and w == watch:
                return
        registered.append((session, watch))

    def _trigger(self, watches: Dict[str, List[Tuple['MemorySession', Watcher]]],
                 path: str, event_type: EventType) -> None:
        fired = watches.pop(path, [])
        for session, watch in fired:
            session._dispatch(watch, WatchedEvent(event_type, SessionState.CONNECTED, path))


class MemorySession(CoordinationStore):
    """A client session on a MemoryCoordinationStore."""

    def __init__(self, store: MemoryCoordinationStore, session_id: int):
        self._store = store
        self.session_id = session_id
        self._state = SessionState.CONNECTED
        self._state_lock = threading.Lock()
        self._events: queue.Queue = queue.Queue()
        self._event_thread = threading.Thread(
            target=self._event_loop,
            name=f"memory-store-events-{session_id}",
            daemon=True
        )
        self._event_thread.start()

    @property
    def state(self) -> SessionState:
        with self._state_lock:
            return self._state

    def create(self, path: str, data: bytes = b"",
               mode: CreateMode = CreateMode.PERSISTENT) -> str:
        self._check()
        return self._store._create(self, path, data, mode)

    def delete(self, path: str) -> None:
        self._check()
        self._store._delete(path)

    def exists(self, path: str, watch: Optional[Watcher] = None) -> bool:
        self._check()
        return self._store._exists(self, path, watch)

    def get_children(self, path: str, watch: Optional[Watcher] = None) -> List[str]:
        self._check()
        return self._store._get_children(self, path, watch)

    def get_data(self, path: str) -> bytes:
        self._check()
        return self._store._get_data(path)

    def close(self) -> None:
        """Close the session; safe to call more than once."""
        with self._state_lock:
            if self._state in (SessionState.CLOSED, SessionState.EXPIRED):
                return
            self._state = SessionState.CLOSED
        self._store._end_session(self)
        self._events.put(_STOP)

    # Fault injection

    def expire(self) -> None:
        """Simulate session expiry: ephemerals vanish, later calls fail."""
        with self._state_lock:
            if self._state in (SessionState.CLOSED, SessionState.EXPIRED):
                return
            self._state = SessionState.EXPIRED
        logger.warning(f"Session {self.session_id} expired")
        self._store._end_session(self)
        self._events.put(_STOP)

    def disconnect(self) -> None:
        """Simulate a transient connection loss."""
        with self._state_lock:
            if self._state is SessionState.CONNECTED:
                self._state = SessionState.DISCONNECTED

    def reconnect(self) -> None:
        with self._state_lock:
            if self._state is SessionState.DISCONNECTED:
                self._state = SessionState.CONNECTED

    def wait_for_events(self, timeout: Optional[float] = None) -> bool:
        """Block until every event queued so far has been delivered."""
        done = threading.Event()
        self._events.put(done)
        return done.wait(timeout)

    def _check(self) -> None:
        state = self.state
        if state is SessionState.EXPIRED:
            raise SessionExpiredError(f"Session {self.session_id} expired")
        if state is SessionState.CLOSED:
            raise SessionExpiredError(f"Session {self.session_id} closed")
        if state is SessionState.DISCONNECTED:
            raise ConnectionLossError(f"Session {self.session_id} disconnected")

    def _dispatch(self, watch: Watcher, event: WatchedEvent) -> None:
        self._events.put((watch, event))

    def _event_loop(self) -> None:
        while True:
            item = self._events.get()
            if item is _STOP:
                break
            if isinstance(item, threading.Event):
                item.set()
                continue
            watch, event = item
            try:
                watch(event)
            except Exception:
                logger.exception(f"Watcher raised while handling {event.type.value} on {event.path}")
