# -*- coding: utf-8 -*-
"""Pytest configuration for rendezvous tests."""

import threading
from typing import Callable, Dict, List

import pytest

from rendezvous.config import RendezvousConfig
from rendezvous.metrics import BarrierMetrics
from rendezvous.stores import MemoryCoordinationStore


@pytest.fixture
def store():
    """A fresh in-memory coordination store."""
    return MemoryCoordinationStore()


@pytest.fixture
def connect(store):
    """Open sessions on the store; all of them are closed after the test."""
    sessions = []

    def _connect():
        session = store.connect()
        sessions.append(session)
        return session

    yield _connect

    for session in sessions:
        session.close()


@pytest.fixture
def session(connect):
    """A single client session."""
    return connect()


@pytest.fixture
def config():
    """Config isolated from the environment, with a short poll interval."""
    config = RendezvousConfig(load_external=False)
    config.barrier.poll_interval = 0.05
    return config


@pytest.fixture
def metrics():
    """Metrics on a private registry."""
    return BarrierMetrics()


@pytest.fixture
def run_concurrently():
    """Run callables on their own threads; collect results and exceptions."""

    def _run(calls: Dict[str, Callable], timeout: float = 10.0) -> Dict[str, Dict]:
        outcomes: Dict[str, Dict] = {name: {} for name in calls}
        start = threading.Barrier(len(calls))

        def worker(name, fn):
            start.wait()
            try:
                outcomes[name]['result'] = fn()
            except BaseException as e:
                outcomes[name]['error'] = e

        threads: List[threading.Thread] = [
            threading.Thread(target=worker, args=(name, fn), daemon=True)
            for name, fn in calls.items()
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout)
        assert not any(t.is_alive() for t in threads), "threads still blocked after timeout"
        return outcomes

    return _run
