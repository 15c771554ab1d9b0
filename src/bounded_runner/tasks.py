from __future__ import annotations

import subprocess
from dataclasses import dataclass
from typing import Callable, Mapping, Sequence

from .execution.attempt import current_attempt


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Completed external command returned by a `command_task`.

    Example:
        ```python
        result = CommandResult(argv=("true",), returncode=0, stdout="", stderr="")
        ```
    """

    argv: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str


def command_task(
    argv: Sequence[str],
    *,
    input_text: str | None = None,
    cwd: str | None = None,
    env: Mapping[str, str] | None = None,
) -> Callable[[], CommandResult]:
    """Build a task that runs an external command inside a bounded run.

    The process is registered with the running attempt, so a timeout kills it
    and releases its pipes instead of leaving it orphaned.

    Example:
        ```python
        task = command_task(["curl", "-sf", "https://example.com/health"])
        result = BoundedExecutor().run(task, 2, TimeUnit.SECONDS)
        ```
    """
    command = tuple(str(part) for part in argv)
    if not command:
        raise ValueError("command_task requires a non-empty 'argv'")

    def _run_command() -> CommandResult:
        """Start the command, hand it to the attempt and collect its output.

        Example:
            ```python
            result = _run_command()
            ```
        """
        proc = subprocess.Popen(
            command,
            stdin=subprocess.PIPE if input_text is not None else subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            cwd=cwd,
            env=dict(env) if env is not None else None,
        )
        attempt = current_attempt()
        if attempt is not None:
            attempt.register(proc)
        stdout, stderr = proc.communicate(input=input_text)
        if attempt is not None:
            attempt.check()
        return CommandResult(
            argv=command,
            returncode=proc.returncode,
            stdout=stdout,
            stderr=stderr,
        )

    return _run_command
