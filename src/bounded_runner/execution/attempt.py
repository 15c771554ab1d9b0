from __future__ import annotations

import contextlib
import contextvars
import socket
import subprocess
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from ..errors import AttemptCancelled

WAIT_SLICE_SECONDS = 3600.0

_CURRENT_ATTEMPT: contextvars.ContextVar["Attempt | None"] = contextvars.ContextVar(
    "bounded_runner_current_attempt", default=None
)


def current_attempt() -> "Attempt | None":
    """Return the attempt running on this worker thread, if any.

    Tasks stay zero-argument callables; a task that wants to observe
    cancellation or hand over its sockets and processes looks itself up here.

    Example:
        ```python
        def task():
            attempt = current_attempt()
            sock = attempt.register(socket.create_connection(("db", 5432)))
            return sock.recv(1024)
        ```
    """
    return _CURRENT_ATTEMPT.get()


def _is_releasable(resource: Any) -> bool:
    """Tell whether `Attempt.register` knows how to release a resource.

    Example:
        ```python
        _is_releasable(open("/tmp/x", "w"))  # True
        ```
    """
    if isinstance(resource, (subprocess.Popen, socket.socket)):
        return True
    return callable(getattr(resource, "close", None)) or callable(resource)


def _release(resource: Any) -> None:
    """Release one registered resource so a blocked task gets unblocked.

    Example:
        ```python
        _release(proc)  # kills a still-running subprocess
        ```
    """
    if isinstance(resource, subprocess.Popen):
        if resource.poll() is None:
            resource.kill()
        return
    if isinstance(resource, socket.socket):
        # close() alone does not wake a thread blocked in recv() on Linux
        with contextlib.suppress(OSError):
            resource.shutdown(socket.SHUT_RDWR)
        resource.close()
        return
    close = getattr(resource, "close", None)
    if callable(close):
        close()
        return
    resource()


@dataclass(slots=True, eq=False)
class Attempt:
    """One bounded run of a task: the task, its deadline and its start time.

    Example:
        ```python
        attempt = Attempt(task=lambda: 42, deadline_seconds=1.0, label="report: ")
        ```
    """

    task: Callable[[], Any]
    deadline_seconds: float
    label: str = ""
    started_at: float = field(default_factory=time.monotonic)
    _cancelled: threading.Event = field(default_factory=threading.Event, repr=False)
    _resources: list[Any] = field(default_factory=list, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def deadline_at(self) -> float:
        """Monotonic timestamp at which the attempt expires.

        Example:
            ```python
            expires = attempt.deadline_at
            ```
        """
        return self.started_at + self.deadline_seconds

    @property
    def cancelled(self) -> bool:
        """Whether cancellation has been requested.

        Example:
            ```python
            if attempt.cancelled:
                return None
            ```
        """
        return self._cancelled.is_set()

    def remaining(self) -> float:
        """Seconds left before the deadline, never negative.

        Example:
            ```python
            sock.settimeout(attempt.remaining())
            ```
        """
        return max(0.0, self.deadline_at - time.monotonic())

    def next_wait(self) -> float:
        """Seconds to block in one wait: what is left, capped at one slice.

        Very long deadlines are waited out slice by slice so no single wait
        exceeds what the platform's lock timeouts accept.

        Example:
            ```python
            Attempt(task=job, deadline_seconds=1e12).next_wait()  # 3600.0
            ```
        """
        return min(self.remaining(), WAIT_SLICE_SECONDS)

    def run(self) -> Any:
        """Run the task with this attempt visible through `current_attempt()`.

        Example:
            ```python
            value = attempt.run()
            ```
        """
        token = _CURRENT_ATTEMPT.set(self)
        try:
            return self.task()
        finally:
            _CURRENT_ATTEMPT.reset(token)

    def register(self, resource: Any) -> Any:
        """Tie a process, socket, closable or callback to this attempt.

        Registered resources are released when the attempt is cancelled. A
        resource registered after cancellation is released right away.

        Example:
            ```python
            proc = attempt.register(subprocess.Popen(["sleep", "10"]))
            ```
        """
        if not _is_releasable(resource):
            raise TypeError(f"Cannot release resource of type {type(resource).__name__}")
        with self._lock:
            if not self._cancelled.is_set():
                self._resources.append(resource)
                return resource
        _release(resource)
        return resource

    def cancel(self) -> None:
        """Flag the attempt as cancelled and release every registered resource.

        Every resource is released even if an earlier one fails; the first
        failure is re-raised afterwards.

        Example:
            ```python
            attempt.cancel()
            ```
        """
        with self._lock:
            self._cancelled.set()
            resources, self._resources = self._resources, []
        first_error: Exception | None = None
        for resource in reversed(resources):
            try:
                _release(resource)
            except Exception as exc:
                if first_error is None:
                    first_error = exc
        if first_error is not None:
            raise first_error

    def wait(self, seconds: float) -> bool:
        """Sleep up to `seconds`, waking early on cancellation.

        Example:
            ```python
            if attempt.wait(0.5):
                raise AttemptCancelled()
            ```
        """
        return self._cancelled.wait(seconds)

    def check(self) -> None:
        """Raise `AttemptCancelled` if cancellation was requested.

        Example:
            ```python
            for chunk in chunks:
                attempt.check()
                upload(chunk)
            ```
        """
        if self._cancelled.is_set():
            raise AttemptCancelled(f"{self.label}Attempt was cancelled")
