from __future__ import annotations

import logging
from typing import Protocol

LOGGER_NAME = "bounded_runner"


class DiagnosticsSink(Protocol):
    def record(self, level: int, message: str, exc: BaseException | None = None) -> None:
        """Record one diagnostic message at a `logging` level.

        Example:
            ```python
            sink.record(logging.WARNING, "report: Timed out after 100 MILLISECONDS.")
            ```
        """
        ...


class LoggingSink:
    """Diagnostics sink that forwards to a standard library logger.

    Example:
        ```python
        sink = LoggingSink(logging.getLogger("billing.client"))
        ```
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        """Bind the sink to a logger, defaulting to the package logger.

        Example:
            ```python
            sink = LoggingSink()
            ```
        """
        self._logger = logger or logging.getLogger(LOGGER_NAME)

    def record(self, level: int, message: str, exc: BaseException | None = None) -> None:
        """Log the message, attaching the exception traceback when given.

        Example:
            ```python
            sink.record(logging.WARNING, "Non-timeout exception occurred", exc)
            ```
        """
        self._logger.log(level, "%s", message, exc_info=exc)
