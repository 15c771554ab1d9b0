from __future__ import annotations

import socket
import subprocess
import sys
import threading

import pytest

from bounded_runner import Attempt, AttemptCancelled, current_attempt
from bounded_runner.execution.attempt import WAIT_SLICE_SECONDS


class _Closable:
    def __init__(self, order: list[str], name: str, fail: bool = False) -> None:
        self.order = order
        self.name = name
        self.fail = fail
        self.closed = False

    def close(self) -> None:
        self.order.append(self.name)
        self.closed = True
        if self.fail:
            raise OSError(f"{self.name} close failed")


def test_current_attempt_is_visible_only_inside_run() -> None:
    attempt = Attempt(task=current_attempt, deadline_seconds=1.0)

    assert current_attempt() is None
    assert attempt.run() is attempt
    assert current_attempt() is None


def test_cancel_releases_resources_in_reverse_order() -> None:
    order: list[str] = []
    attempt = Attempt(task=lambda: None, deadline_seconds=1.0)
    first = attempt.register(_Closable(order, "first"))
    second = attempt.register(_Closable(order, "second"))

    attempt.cancel()

    assert attempt.cancelled
    assert order == ["second", "first"]
    assert first.closed and second.closed


def test_cancel_releases_everything_before_reraising() -> None:
    order: list[str] = []
    attempt = Attempt(task=lambda: None, deadline_seconds=1.0)
    attempt.register(_Closable(order, "first"))
    attempt.register(_Closable(order, "broken", fail=True))

    with pytest.raises(OSError, match="broken close failed"):
        attempt.cancel()

    assert order == ["broken", "first"]


def test_cancel_is_idempotent() -> None:
    order: list[str] = []
    attempt = Attempt(task=lambda: None, deadline_seconds=1.0)
    attempt.register(_Closable(order, "only"))

    attempt.cancel()
    attempt.cancel()

    assert order == ["only"]


def test_register_after_cancel_releases_immediately() -> None:
    order: list[str] = []
    attempt = Attempt(task=lambda: None, deadline_seconds=1.0)
    attempt.cancel()

    resource = attempt.register(_Closable(order, "late"))

    assert resource.closed
    assert order == ["late"]


def test_register_accepts_callbacks() -> None:
    calls: list[str] = []
    attempt = Attempt(task=lambda: None, deadline_seconds=1.0)
    attempt.register(lambda: calls.append("released"))

    attempt.cancel()

    assert calls == ["released"]


def test_register_rejects_unreleasable_objects() -> None:
    attempt = Attempt(task=lambda: None, deadline_seconds=1.0)

    with pytest.raises(TypeError, match="Cannot release resource of type int"):
        attempt.register(5)


def test_cancel_kills_registered_process() -> None:
    proc = subprocess.Popen([sys.executable, "-c", "import time; time.sleep(30)"])
    attempt = Attempt(task=lambda: None, deadline_seconds=1.0)
    attempt.register(proc)

    attempt.cancel()

    assert proc.wait(timeout=5) != 0


def test_cancel_unblocks_socket_reader() -> None:
    left, right = socket.socketpair()
    attempt = Attempt(task=lambda: None, deadline_seconds=1.0)
    attempt.register(left)
    received: list[bytes | Exception] = []

    def reader() -> None:
        try:
            received.append(left.recv(16))
        except OSError as exc:
            received.append(exc)

    thread = threading.Thread(target=reader)
    thread.start()
    attempt.cancel()
    thread.join(5)
    right.close()

    assert not thread.is_alive()
    assert received
    assert received[0] == b"" or isinstance(received[0], OSError)


def test_check_raises_after_cancel() -> None:
    attempt = Attempt(task=lambda: None, deadline_seconds=1.0, label="report: ")
    attempt.check()

    attempt.cancel()

    with pytest.raises(AttemptCancelled, match="report: Attempt was cancelled"):
        attempt.check()


def test_wait_returns_early_on_cancel() -> None:
    attempt = Attempt(task=lambda: None, deadline_seconds=1.0)
    threading.Timer(0.05, attempt.cancel).start()

    assert attempt.wait(5) is True


def test_remaining_counts_down_to_zero() -> None:
    attempt = Attempt(task=lambda: None, deadline_seconds=0.0)

    assert attempt.remaining() == 0.0
    assert Attempt(task=lambda: None, deadline_seconds=60).remaining() > 59


def test_next_wait_is_capped_for_very_long_deadlines() -> None:
    attempt = Attempt(task=lambda: None, deadline_seconds=1e12)

    assert attempt.next_wait() == WAIT_SLICE_SECONDS


def test_next_wait_tracks_short_deadlines() -> None:
    attempt = Attempt(task=lambda: None, deadline_seconds=0.5)

    assert 0.0 < attempt.next_wait() <= 0.5
    assert Attempt(task=lambda: None, deadline_seconds=0.0).next_wait() == 0.0
