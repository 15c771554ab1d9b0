from __future__ import annotations

import threading
from concurrent.futures import CancelledError

import pytest

from bounded_runner import Attempt, SubmissionError, current_attempt
from bounded_runner.execution.slot import ExecutionSlot


def _attempt(task) -> Attempt:
    return Attempt(task=task, deadline_seconds=5.0)


def test_submit_runs_task_on_named_worker() -> None:
    slot = ExecutionSlot(name="lane-under-test")

    future = slot.submit(_attempt(lambda: threading.current_thread().name))

    assert future.result(timeout=2) == "lane-under-test"
    slot.shutdown()


def test_task_errors_land_on_the_future() -> None:
    slot = ExecutionSlot()

    future = slot.submit(_attempt(lambda: 1 / 0))

    with pytest.raises(ZeroDivisionError):
        future.result(timeout=2)
    slot.shutdown()


def test_submit_after_shutdown_is_rejected() -> None:
    slot = ExecutionSlot(name="closed-lane")
    slot.shutdown()

    with pytest.raises(SubmissionError, match="closed-lane"):
        slot.submit(_attempt(lambda: 1))


def test_graceful_shutdown_lets_queued_work_finish() -> None:
    slot = ExecutionSlot()
    gate = threading.Event()
    first = slot.submit(_attempt(lambda: gate.wait(2)))
    second = slot.submit(_attempt(lambda: "queued"))

    slot.shutdown(cancel_running=False)
    gate.set()

    assert first.result(timeout=2) is True
    assert second.result(timeout=2) == "queued"


def test_forceful_shutdown_cancels_running_and_queued_work() -> None:
    slot = ExecutionSlot()
    started = threading.Event()

    def running() -> str:
        started.set()
        return "cancelled" if current_attempt().wait(5) else "finished"

    first = slot.submit(_attempt(running))
    second = slot.submit(_attempt(lambda: "queued"))
    assert started.wait(2)

    slot.shutdown()

    assert first.result(timeout=2) == "cancelled"
    with pytest.raises(CancelledError):
        second.result(timeout=2)


def test_shutdown_is_idempotent_and_closes() -> None:
    slot = ExecutionSlot()
    slot.submit(_attempt(lambda: 1)).result(timeout=2)

    slot.shutdown(cancel_running=False)
    slot.shutdown()
    slot.shutdown()

    assert slot.closed
