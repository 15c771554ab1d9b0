import sys
import time

import pytest

from bounded_runner import (
    Attempt,
    AttemptCancelled,
    BoundedExecutor,
    OutcomeStatus,
    TimeUnit,
    command_task,
)


def test_command_task_returns_output() -> None:
    task = command_task([sys.executable, "-c", "import sys; print(sys.stdin.read().upper())"], input_text="hi")

    result = BoundedExecutor().run(task, 10, TimeUnit.SECONDS)

    assert result.ok
    assert result.value.returncode == 0
    assert result.value.stdout.strip() == "HI"


def test_command_task_runs_outside_an_executor() -> None:
    result = command_task([sys.executable, "-c", "import sys; sys.exit(3)"])()

    assert result.returncode == 3


def test_command_task_is_killed_on_timeout() -> None:
    task = command_task([sys.executable, "-c", "import time; time.sleep(30)"])

    started = time.monotonic()
    result = BoundedExecutor().run(task, 200, TimeUnit.MILLISECONDS)

    assert result.status is OutcomeStatus.TIMED_OUT
    assert time.monotonic() - started < 5


def test_command_task_requires_argv() -> None:
    with pytest.raises(ValueError, match="non-empty 'argv'"):
        command_task([])


def test_cancelled_command_raises_attempt_cancelled() -> None:
    attempt = Attempt(
        task=command_task([sys.executable, "-c", "import time; time.sleep(30)"]),
        deadline_seconds=5,
    )
    attempt.cancel()

    with pytest.raises(AttemptCancelled):
        attempt.run()
