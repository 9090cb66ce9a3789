#!/usr/bin/env python3
"""
Barrier Coordinator - rendezvous of N members through a coordination store.

Every member creates (if absent) the persistent barrier node ``/<name>`` and
its own ephemeral node ``/<name>/<member>``. Whoever actually created the
barrier node is the initiator: it watches the barrier's children until the
expected number of members is present and then publishes the ephemeral
``/<name>/AllClear`` marker. Everyone else is a follower and waits for that
marker to appear. Each member finally removes its own node, unless something
was created underneath it.

Watches fire at most once and can be missed between a check and the next
re-arm, so every wait is bounded by the poll interval and followed by a fresh
read of the store.
"""

import logging
import threading
import time
from typing import Optional

import orjson

from .base import Barrier
from .nodes import try_to_create_node, delete_node_if_empty
from .types import BarrierLifecycle, BarrierPhase, BarrierRole, MemberInfo
from .watch import WakeSource, WatchBridge
from ..config import RendezvousConfig
from ..metrics import BarrierMetrics, get_metrics
from ..rendezvous_types import (
    BarrierStateError, CommunicationFailure, InterruptionFailure, StoreError
)
from ..stores.base import CoordinationStore, CreateMode, join_path
from ..utils.queues import WakeSignal

logger = logging.getLogger(__name__)

_WAITING_PHASES = (
    BarrierPhase.ROOT_RACE,
    BarrierPhase.INITIATOR_WAITING,
    BarrierPhase.FOLLOWER_WAITING,
)


class BarrierCoordinator(Barrier):
    """
    One member's view of one barrier round.

    Instances are single-use: ``enter()`` may be called once. Create a new
    instance (and use a new barrier name) for the next round.
    """

    def __init__(self, barrier_name: str, num_members: int, member_id: str,
                 store: CoordinationStore,
                 config: Optional[RendezvousConfig] = None,
                 metrics: Optional[BarrierMetrics] = None):
        super().__init__(config)
        if not barrier_name or '/' in barrier_name:
            raise ValueError(f"Barrier name must be a single node name, got {barrier_name!r}")
        if not member_id or '/' in member_id:
            raise ValueError(f"Member id must be a single node name, got {member_id!r}")
        if num_members < 1:
            raise ValueError(f"Barrier needs at least one member, got {num_members}")
        if member_id == self.config.barrier.all_clear_name:
            raise ValueError(f"Member id {member_id!r} collides with the all-clear marker")

        self.barrier_name = barrier_name
        self.num_members = num_members
        self.member_id = member_id
        self.store = store
        self.role: Optional[BarrierRole] = None

        self.lifecycle = BarrierLifecycle()
        self._wake: WakeSignal[WakeSource] = WakeSignal()
        self._watcher = WatchBridge(self.lifecycle, self._wake, name=barrier_name)
        self._metrics = metrics
        self._phase = BarrierPhase.INIT
        self._phase_lock = threading.Lock()

    @property
    def barrier_path(self) -> str:
        return join_path(self.barrier_name)

    @property
    def member_path(self) -> str:
        return join_path(self.barrier_name, self.member_id)

    @property
    def all_clear_path(self) -> str:
        return join_path(self.barrier_name, self.config.barrier.all_clear_name)

    @property
    def phase(self) -> BarrierPhase:
        with self._phase_lock:
            return self._phase

    @property
    def watcher(self) -> WatchBridge:
        """The watch bridge installed on every store read."""
        return self._watcher

    @property
    def metrics(self) -> Optional[BarrierMetrics]:
        if self._metrics is None and self.config.operational.enable_metrics:
            self._metrics = get_metrics()
        return self._metrics

    def enter(self) -> BarrierRole:
        """
        Block until every expected member has reached the barrier.

        Returns:
            The role this member played in the round

        Raises:
            CommunicationFailure: a store operation failed
            InterruptionFailure: the wait was interrupted or cancelled
            BarrierStateError: the instance was already used or cancelled
        """
        with self._phase_lock:
            if self.lifecycle.is_cancelled:
                raise BarrierStateError(f"Barrier {self.barrier_name} was cancelled")
            if self._phase is not BarrierPhase.INIT:
                raise BarrierStateError(
                    f"Barrier {self.barrier_name} already entered "
                    f"(phase={self._phase.value}); barriers are single-use"
                )
            self._phase = BarrierPhase.ROOT_RACE

        metrics = self.metrics
        started = time.monotonic()
        if metrics:
            metrics.waiter_started()

        try:
            role = self._run_round()
        except StoreError as e:
            self._fail(type(e).__name__)
            logger.error(f"Member {self.member_id} failed in barrier {self.barrier_name}: {e}")
            raise CommunicationFailure(
                f"Store failure in barrier {self.barrier_name}: {e}", cause=e
            ) from e
        except InterruptionFailure:
            self._fail('cancelled')
            raise
        except KeyboardInterrupt as e:
            self._fail('interrupted')
            raise InterruptionFailure(
                f"Interrupted while waiting in barrier {self.barrier_name}", cause=e
            ) from e
        finally:
            if metrics:
                metrics.waiter_finished()

        duration = time.monotonic() - started
        if metrics:
            metrics.record_entry(role.value, duration)
        logger.info(f"Member {self.member_id} passed barrier {self.barrier_name} "
                    f"as {role.value} after {duration:.3f}s")
        return role

    def make_inactive(self) -> None:
        """
        Stop forwarding watch notifications to the wait loop.

        A pending wait is not released; it keeps polling and still returns
        only once the barrier condition holds.
        """
        if self.lifecycle.deactivate():
            logger.debug(f"Barrier {self.barrier_name} deactivated for member {self.member_id}")

    def cancel(self) -> bool:
        """
        Abandon the barrier.

        A pending ``enter()`` wakes up, removes this member's node and raises
        InterruptionFailure. Without a pending wait the node is removed right
        away. Nodes of other members, the barrier node and the marker are
        left alone. Once the member has moved past its wait the round can
        no longer be aborted; it completes and the instance is only marked
        as unusable.

        Returns:
            True if this call cancelled the barrier, False if it already was
        """
        with self._phase_lock:
            if not self.lifecycle.cancel():
                return False
            phase = self._phase

        if phase in _WAITING_PHASES:
            logger.info(f"Cancelling pending wait of member {self.member_id} "
                        f"in barrier {self.barrier_name}")
            self._wake.send(WakeSource.CANCEL)
        elif phase in (BarrierPhase.INIT, BarrierPhase.FAILED):
            try:
                delete_node_if_empty(self.store, self.member_path)
            except StoreError as e:
                raise CommunicationFailure(
                    f"Store failure while cancelling barrier {self.barrier_name}: {e}", cause=e
                ) from e
            logger.info(f"Member {self.member_id} cancelled barrier {self.barrier_name}")
        return True

    def _run_round(self) -> BarrierRole:
        created = try_to_create_node(self.store, self.barrier_path, CreateMode.PERSISTENT)
        try_to_create_node(self.store, self.member_path, CreateMode.EPHEMERAL,
                           self._member_payload())

        if created is not None:
            self.role = BarrierRole.INITIATOR
            logger.info(f"Member {self.member_id} created barrier {self.barrier_path}, "
                        f"waiting for {self.num_members} members")
            self._await_members()
        else:
            self.role = BarrierRole.FOLLOWER
            logger.debug(f"Member {self.member_id} joined existing barrier {self.barrier_path}")
            self._await_all_clear()

        self._set_phase(BarrierPhase.SELF_CLEANUP)
        delete_node_if_empty(self.store, self.member_path)
        self._set_phase(BarrierPhase.DONE)
        return self.role

    def _await_members(self) -> None:
        self._set_phase(BarrierPhase.INITIATOR_WAITING)
        members = self.store.get_children(self.barrier_path, watch=self._watcher)
        while len(members) < self.num_members:
            logger.debug(f"Barrier {self.barrier_name}: {len(members)}/{self.num_members} present")
            self._wait_for_wake()
            members = self.store.get_children(self.barrier_path, watch=self._watcher)

        # Everyone has joined, give the all clear
        self._leave_wait(BarrierPhase.ALLCLEAR_PUBLISHED)
        try_to_create_node(self.store, self.all_clear_path, CreateMode.EPHEMERAL)
        logger.info(f"Barrier {self.barrier_name}: {len(members)} members present, all clear published")

    def _await_all_clear(self) -> None:
        self._set_phase(BarrierPhase.FOLLOWER_WAITING)
        while not self.store.exists(self.all_clear_path, watch=self._watcher):
            self._wait_for_wake()
        self._leave_wait(BarrierPhase.ALLCLEAR_OBSERVED)

    def _wait_for_wake(self) -> None:
        """Block until a watch fires, the poll interval passes, or cancel()."""
        self._raise_if_cancelled()
        item = self._wake.receive(timeout=self.config.barrier.poll_interval)
        source = WakeSource.TIMEOUT if item is None else item.value
        if self.metrics:
            self.metrics.record_wakeup(source.value)
        self._raise_if_cancelled()

    def _leave_wait(self, phase: BarrierPhase) -> None:
        """Move past a wait phase unless cancel() got in first.

        Checked and switched under the phase lock, so cancel() either sees a
        waiting phase and this raises, or sees the new phase and the round
        completes.
        """
        with self._phase_lock:
            cancelled = self.lifecycle.is_cancelled
            if not cancelled:
                self._phase = phase
        if cancelled:
            self._raise_if_cancelled()

    def _raise_if_cancelled(self) -> None:
        if not self.lifecycle.is_cancelled:
            return
        released = delete_node_if_empty(self.store, self.member_path)
        raise InterruptionFailure(
            f"Barrier {self.barrier_name} cancelled while member {self.member_id} "
            f"was waiting (node released: {released})"
        )

    def _member_payload(self) -> bytes:
        return orjson.dumps(MemberInfo(member_id=self.member_id).to_dict())

    def _set_phase(self, phase: BarrierPhase) -> None:
        with self._phase_lock:
            self._phase = phase

    def _fail(self, error_type: str) -> None:
        self._set_phase(BarrierPhase.FAILED)
        if self.metrics:
            self.metrics.record_failure(error_type)

    def __repr__(self) -> str:
        return (f"BarrierCoordinator(barrier={self.barrier_name!r}, member={self.member_id!r}, "
                f"num_members={self.num_members}, phase={self.phase.value}, "
                f"state={self.lifecycle.state.value})")
