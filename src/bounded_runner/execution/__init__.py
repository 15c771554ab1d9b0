from .attempt import Attempt, current_attempt
from .slot import ExecutionSlot
from .types import BoundedResult, OutcomeStatus
from .units import TimeUnit

__all__ = [
    "Attempt",
    "BoundedResult",
    "ExecutionSlot",
    "OutcomeStatus",
    "TimeUnit",
    "current_attempt",
]
