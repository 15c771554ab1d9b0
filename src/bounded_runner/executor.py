from __future__ import annotations

import logging
import math
import sys
import threading
import time
from concurrent.futures import FIRST_COMPLETED, wait
from datetime import timedelta
from typing import Any, Callable

from .diagnostics import DiagnosticsSink, LoggingSink
from .errors import DeadlineExceeded, SubmissionError, TaskAborted
from .execution.attempt import Attempt
from .execution.slot import ExecutionSlot
from .execution.types import BoundedResult, OutcomeStatus
from .execution.units import TimeUnit
from .settings import ExecutorSettings


def _coerce_timeout(timeout: Any) -> float | None:
    """Return the timeout as a float, or None when it is not a positive number.

    Example:
        ```python
        _coerce_timeout(100)  # 100.0
        _coerce_timeout(0)  # None
        _coerce_timeout(10**400)  # sys.float_info.max
        ```
    """
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
        return None
    try:
        value = float(timeout)
    except OverflowError:
        # ints beyond float range wait as long as the platform allows
        return sys.float_info.max if timeout > 0 else None
    if not math.isfinite(value) or value <= 0:
        return None
    return value


def _coerce_unit(time_unit: Any) -> TimeUnit | None:
    """Return the unit as a `TimeUnit`, or None when it is missing or unknown.

    Example:
        ```python
        _coerce_unit("ms")  # TimeUnit.MILLISECONDS
        _coerce_unit(None)  # None
        ```
    """
    if time_unit is None:
        return None
    try:
        return TimeUnit.parse(time_unit)
    except ValueError:
        return None


class BoundedExecutor:
    """Run one task at a time under a hard wall-clock deadline.

    By default the executor is one-shot: every call to `run` or
    `execute_with_deadline` closes the execution slot before returning, and a
    later call is rejected at submission. Pass `one_shot=False` to keep the
    slot open across calls and close it with `shutdown()` (or a `with` block).

    Nothing raised by the task, a timeout, or a closed slot escapes `run`;
    failures surface as a `BoundedResult` status plus a diagnostic.

    Example:
        ```python
        executor = BoundedExecutor()
        value = executor.execute_with_deadline(fetch_report, 2, TimeUnit.SECONDS)
        ```
    """

    def __init__(
        self,
        *,
        sink: DiagnosticsSink | None = None,
        settings: ExecutorSettings | None = None,
        one_shot: bool | None = None,
    ) -> None:
        """Provision a fresh single-capacity slot; nothing runs yet.

        Example:
            ```python
            executor = BoundedExecutor(one_shot=False, sink=LoggingSink())
            ```
        """
        self._settings = settings or ExecutorSettings()
        self._sink: DiagnosticsSink = sink or LoggingSink()
        self._one_shot = self._settings.one_shot if one_shot is None else one_shot
        self._slot = ExecutionSlot(name=self._settings.thread_name)
        self._lock = threading.Lock()
        self._last_elapsed = timedelta(0)

    def __enter__(self) -> "BoundedExecutor":
        """Use the executor as a context manager that shuts down on exit.

        Example:
            ```python
            with BoundedExecutor(one_shot=False) as executor:
                executor.run(task, 1, "s")
            ```
        """
        return self

    def __exit__(self, *exc_info: object) -> None:
        """Shut the slot down when leaving the `with` block.

        Example:
            ```python
            executor.__exit__(None, None, None)
            ```
        """
        self.shutdown()

    @property
    def closed(self) -> bool:
        """Whether the slot accepts no further work.

        Example:
            ```python
            executor.run(task, 1, "s")
            assert executor.closed  # one-shot default
            ```
        """
        return self._slot.closed

    @property
    def one_shot(self) -> bool:
        """Whether each run closes the slot.

        Example:
            ```python
            BoundedExecutor(one_shot=False).one_shot  # False
            ```
        """
        return self._one_shot

    def execute_with_deadline(
        self,
        task: Callable[[], Any] | None,
        timeout: float | None,
        time_unit: TimeUnit | str | None,
        log_prefix: str | None = None,
    ) -> Any | None:
        """Run the task under the deadline and return its value, or None.

        None is returned on invalid input, timeout, task failure and
        submission failure alike; use `run` to tell them apart.

        Example:
            ```python
            value = BoundedExecutor().execute_with_deadline(lambda: 42, 1000, TimeUnit.MILLISECONDS)
            ```
        """
        return self.run(task, timeout, time_unit, log_prefix).value

    def run(
        self,
        task: Callable[[], Any] | None,
        timeout: float | None,
        time_unit: TimeUnit | str | None,
        log_prefix: str | None = None,
    ) -> BoundedResult:
        """Run the task under the deadline and return a tagged outcome.

        Example:
            ```python
            result = BoundedExecutor().run(fetch_report, 100, "ms", log_prefix="report: ")
            if result.timed_out:
                ...
            ```
        """
        prefix = self._settings.log_prefix if log_prefix is None else log_prefix
        seconds = _coerce_timeout(timeout)
        unit = _coerce_unit(time_unit)
        if task is None or not callable(task) or seconds is None or unit is None:
            message = f"{prefix}Cannot start with arguments provided."
            self._sink.record(logging.WARNING, message)
            return BoundedResult(status=OutcomeStatus.INVALID, error=message)

        attempt = Attempt(task=task, deadline_seconds=unit.to_seconds(seconds), label=prefix)
        start = time.monotonic()
        try:
            value = self._run_bounded(attempt, timeout, unit)
            elapsed = timedelta(seconds=time.monotonic() - start)
            with self._lock:
                self._last_elapsed = elapsed
            self._sink.record(
                logging.DEBUG,
                f"{prefix}Completed in {elapsed.total_seconds() * 1000:.1f} ms.",
            )
            return BoundedResult(status=OutcomeStatus.SUCCESS, value=value, elapsed=elapsed)
        except DeadlineExceeded as exc:
            message = f"{prefix}Timed out after {timeout} {unit}."
            self._sink.record(logging.WARNING, message)
            return BoundedResult(
                status=OutcomeStatus.TIMED_OUT,
                error=message,
                exception=exc,
                elapsed=timedelta(seconds=time.monotonic() - start),
            )
        except SubmissionError as exc:
            self._sink.record(logging.WARNING, f"{prefix}Non-timeout exception occurred: {exc}")
            return BoundedResult(
                status=OutcomeStatus.REJECTED,
                error=str(exc),
                exception=exc,
                elapsed=timedelta(seconds=time.monotonic() - start),
            )
        except Exception as exc:
            self._sink.record(logging.WARNING, f"{prefix}Non-timeout exception occurred", exc)
            return BoundedResult(
                status=OutcomeStatus.FAILED,
                error=f"{type(exc).__name__}: {exc}",
                exception=exc,
                elapsed=timedelta(seconds=time.monotonic() - start),
            )
        finally:
            if self._one_shot:
                self._close_slot(cancel_running=False)

    def get_elapsed_time(self) -> timedelta:
        """Duration of the most recent successful run, zero before any.

        Example:
            ```python
            executor.execute_with_deadline(task, 1, "s")
            millis = executor.get_elapsed_time() / timedelta(milliseconds=1)
            ```
        """
        with self._lock:
            return self._last_elapsed

    def shutdown(self) -> None:
        """Forcefully close the slot, cancelling any in-flight attempt. Never raises.

        Example:
            ```python
            executor.shutdown()
            executor.shutdown()  # no-op
            ```
        """
        self._close_slot(cancel_running=True)

    def _run_bounded(self, attempt: Attempt, timeout: Any, unit: TimeUnit) -> Any:
        """Submit the attempt and wait for it up to its deadline.

        Raises `SubmissionError` when the slot refuses the task,
        `DeadlineExceeded` when the deadline passes first, or whatever the
        task raised. A `SystemExit` or other non-`Exception` raised on the
        worker thread comes back as `TaskAborted`; only `KeyboardInterrupt`
        passes through. Every non-success path cancels the attempt.

        Example:
            ```python
            value = executor._run_bounded(attempt, 100, TimeUnit.MILLISECONDS)
            ```
        """
        future = self._slot.submit(attempt)
        try:
            while True:
                done, _ = wait([future], timeout=attempt.next_wait(), return_when=FIRST_COMPLETED)
                if done or attempt.remaining() <= 0:
                    break
        except BaseException:
            self._cancel(future, attempt)
            raise
        if not done:
            self._cancel(future, attempt)
            raise DeadlineExceeded(timeout, unit)
        if future.cancelled():
            raise SubmissionError("Execution slot was shut down before the task started")
        try:
            return future.result()
        except (Exception, KeyboardInterrupt):
            self._cancel(future, attempt)
            raise
        except BaseException as exc:
            self._cancel(future, attempt)
            raise TaskAborted(f"Task raised {type(exc).__name__}: {exc}") from exc

    def _cancel(self, future: Any, attempt: Attempt) -> None:
        """Drop a queued future and cancel the attempt, logging release failures.

        Example:
            ```python
            executor._cancel(future, attempt)
            ```
        """
        future.cancel()
        try:
            attempt.cancel()
        except Exception as exc:
            self._sink.record(
                logging.WARNING,
                f"{attempt.label}Cancellation could not release every resource",
                exc,
            )

    def _close_slot(self, *, cancel_running: bool) -> None:
        """Shut the slot down, logging instead of raising on failure.

        Example:
            ```python
            executor._close_slot(cancel_running=True)
            ```
        """
        try:
            self._slot.shutdown(cancel_running=cancel_running)
        except Exception as exc:
            self._sink.record(
                logging.WARNING,
                "Exception occurred, shut down executor unsuccessfully.",
                exc,
            )
