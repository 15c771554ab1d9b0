from .diagnostics import DiagnosticsSink, LoggingSink
from .errors import AttemptCancelled, BoundedRunnerError, DeadlineExceeded, SubmissionError, TaskAborted
from .execution.attempt import Attempt, current_attempt
from .execution.types import BoundedResult, OutcomeStatus
from .execution.units import TimeUnit
from .executor import BoundedExecutor
from .settings import ExecutorSettings
from .tasks import CommandResult, command_task

__all__ = [
    "Attempt",
    "AttemptCancelled",
    "BoundedExecutor",
    "BoundedResult",
    "BoundedRunnerError",
    "CommandResult",
    "DeadlineExceeded",
    "DiagnosticsSink",
    "ExecutorSettings",
    "LoggingSink",
    "OutcomeStatus",
    "SubmissionError",
    "TaskAborted",
    "TimeUnit",
    "command_task",
    "current_attempt",
]
