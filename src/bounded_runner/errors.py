from __future__ import annotations

from typing import Any


class BoundedRunnerError(Exception):
    """Base class for errors raised inside a bounded run."""


class SubmissionError(BoundedRunnerError, RuntimeError):
    """The execution slot refused a task, typically because it is closed."""


class AttemptCancelled(BoundedRunnerError):
    """Raised by a cooperative task that noticed its attempt was cancelled."""


class DeadlineExceeded(BoundedRunnerError, TimeoutError):
    """The task did not finish before its deadline.

    Example:
        ```python
        raise DeadlineExceeded(100, "MILLISECONDS")
        ```
    """

    def __init__(self, timeout: Any, unit: Any) -> None:
        """Store the configured timeout and unit for diagnostics.

        Example:
            ```python
            exc = DeadlineExceeded(2, TimeUnit.SECONDS)
            ```
        """
        self.timeout = timeout
        self.unit = unit
        super().__init__(f"Timed out after {timeout} {unit}")


class TaskAborted(BoundedRunnerError):
    """The task raised a `BaseException` such as `SystemExit` on the worker thread."""
