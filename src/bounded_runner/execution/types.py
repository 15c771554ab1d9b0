from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Any


class OutcomeStatus(Enum):
    """How a bounded run ended."""

    SUCCESS = "success"
    TIMED_OUT = "timed_out"
    FAILED = "failed"
    REJECTED = "rejected"
    INVALID = "invalid"


@dataclass(slots=True)
class BoundedResult:
    """Normalized outcome of one bounded run returned by `BoundedExecutor.run`.

    Example:
        ```python
        result = BoundedResult(status=OutcomeStatus.SUCCESS, value=42)
        ```
    """

    status: OutcomeStatus
    value: Any = None
    error: str | None = None
    exception: BaseException | None = None
    elapsed: timedelta | None = None

    @property
    def ok(self) -> bool:
        """Whether the task finished within its deadline without failing.

        Example:
            ```python
            if result.ok:
                use(result.value)
            ```
        """
        return self.status is OutcomeStatus.SUCCESS

    @property
    def timed_out(self) -> bool:
        """Whether the run was cut off at its deadline.

        Example:
            ```python
            if result.timed_out:
                retry_later()
            ```
        """
        return self.status is OutcomeStatus.TIMED_OUT
