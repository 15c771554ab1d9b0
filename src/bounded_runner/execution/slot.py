from __future__ import annotations

import queue
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any

from ..errors import SubmissionError
from .attempt import Attempt


@dataclass(slots=True)
class _WorkItem:
    """Queued attempt paired with the future its caller waits on.

    Example:
        ```python
        item = _WorkItem(attempt=attempt, future=Future())
        ```
    """

    attempt: Attempt
    future: Future[Any]


class ExecutionSlot:
    """Single-capacity execution lane backed by one daemon worker thread.

    Submissions are served in FIFO order, one at a time. The worker is a
    daemon so a task that ignores cancellation never blocks interpreter exit.

    Example:
        ```python
        slot = ExecutionSlot(name="report-worker")
        future = slot.submit(Attempt(task=lambda: 1, deadline_seconds=1.0))
        ```
    """

    def __init__(self, name: str = "bounded-runner") -> None:
        """Create an idle slot; the worker thread starts on first submit.

        Example:
            ```python
            slot = ExecutionSlot()
            ```
        """
        self._name = name
        self._lock = threading.Lock()
        self._queue: queue.SimpleQueue[_WorkItem | None] = queue.SimpleQueue()
        self._thread: threading.Thread | None = None
        self._active: Attempt | None = None
        self._closed = False
        self._discard_pending = False

    @property
    def closed(self) -> bool:
        """Whether the slot has stopped accepting work.

        Example:
            ```python
            assert not slot.closed
            ```
        """
        with self._lock:
            return self._closed

    def submit(self, attempt: Attempt) -> Future[Any]:
        """Queue an attempt and return the future that resolves with its outcome.

        Example:
            ```python
            future = slot.submit(attempt)
            value = future.result(timeout=1.0)
            ```
        """
        future: Future[Any] = Future()
        with self._lock:
            if self._closed:
                raise SubmissionError(f"Execution slot '{self._name}' is shut down")
            self._queue.put(_WorkItem(attempt=attempt, future=future))
            if self._thread is None:
                self._thread = threading.Thread(
                    target=self._worker_loop,
                    daemon=True,
                    name=self._name,
                )
                self._thread.start()
        return future

    def shutdown(self, *, cancel_running: bool = True) -> None:
        """Close the slot; optionally cancel queued and running attempts.

        Graceful shutdown lets already-queued work drain. Forceful shutdown
        cancels queued futures and cancels the running attempt. Idempotent.

        Example:
            ```python
            slot.shutdown(cancel_running=False)
            ```
        """
        with self._lock:
            first_close = not self._closed
            self._closed = True
            if cancel_running:
                self._discard_pending = True
            active = self._active if cancel_running else None
            started = self._thread is not None
        if first_close and started:
            self._queue.put(None)
        if not cancel_running:
            return
        self._drain()
        if active is not None:
            active.cancel()

    def _drain(self) -> None:
        """Cancel every future still waiting in the queue.

        Example:
            ```python
            slot._drain()
            ```
        """
        leftover: list[_WorkItem | None] = []
        while True:
            try:
                leftover.append(self._queue.get_nowait())
            except queue.Empty:
                break
        for item in leftover:
            if item is None:
                # keep the stop sentinel for the worker
                self._queue.put(None)
                continue
            item.future.cancel()

    def _worker_loop(self) -> None:
        """Serve queued attempts one at a time until the stop sentinel.

        Example:
            ```python
            threading.Thread(target=slot._worker_loop, daemon=True).start()
            ```
        """
        while True:
            item = self._queue.get()
            if item is None:
                return
            with self._lock:
                if self._discard_pending:
                    item.future.cancel()
                    continue
                if not item.future.set_running_or_notify_cancel():
                    continue
                self._active = item.attempt
            try:
                result = item.attempt.run()
            except BaseException as exc:
                item.future.set_exception(exc)
            else:
                item.future.set_result(result)
            finally:
                with self._lock:
                    self._active = None
