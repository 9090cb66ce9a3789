"""Tests for the one-slot wake channel."""

import threading
import time

from rendezvous.utils.queues import WakeSignal


class TestWakeSignal:
    """Test send/receive semantics"""

    def test_receive_times_out(self):
        signal = WakeSignal()
        started = time.monotonic()
        assert signal.receive(timeout=0.05) is None
        assert time.monotonic() - started >= 0.04

    def test_send_then_receive(self):
        signal = WakeSignal()
        signal.send("watch")
        item = signal.receive(timeout=0.1)
        assert item.value == "watch"
        assert item.sequence_id == 1
        assert signal.pending() is False

    def test_overwrite_on_full(self):
        """Several sends between receives collapse into the latest one"""
        signal = WakeSignal()
        for value in ("a", "b", "c"):
            signal.send(value)

        item = signal.receive(timeout=0.1)
        assert item.value == "c"
        assert signal.receive(timeout=0.01) is None

        stats = signal.get_stats()
        assert stats['sent'] == 3
        assert stats['overwritten'] == 2

    def test_send_never_blocks(self):
        signal = WakeSignal()
        started = time.monotonic()
        for _ in range(1000):
            signal.send(None)
        assert time.monotonic() - started < 1.0

    def test_wakes_blocked_receiver(self):
        signal = WakeSignal()
        received = []

        def receiver():
            received.append(signal.receive(timeout=5.0))

        thread = threading.Thread(target=receiver)
        thread.start()
        time.sleep(0.05)
        signal.send("cancel")
        thread.join(2.0)

        assert not thread.is_alive()
        assert received[0].value == "cancel"

    def test_drain(self):
        signal = WakeSignal()
        assert signal.drain() == 0
        signal.send("x")
        assert signal.drain() == 1
        assert signal.pending() is False
