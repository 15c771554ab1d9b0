from __future__ import annotations

import math
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .execution.units import TimeUnit


def _default_settings_path() -> Path:
    """Return bundled default settings TOML path.

    Example:
        ```python
        path = _default_settings_path()
        ```
    """
    return Path(__file__).with_name("default_settings.toml")


def _read_settings_toml(path: Path) -> dict[str, Any]:
    """Read settings TOML and return the executor table.

    Example:
        ```python
        raw = _read_settings_toml(Path("/tmp/bounded.toml"))
        ```
    """
    if not path.exists():
        return {
            "one_shot": True,
            "log_prefix": "Time limited Request: ",
            "default_timeout": 5,
            "default_unit": "SECONDS",
            "thread_name": "bounded-runner",
        }
    raw = tomllib.loads(path.read_text(encoding="utf-8"))
    executor_obj = raw.get("executor", raw)
    if not isinstance(executor_obj, dict):
        raise ValueError("Executor settings must be a TOML table")
    return executor_obj


_DEFAULT_SETTINGS_RAW = _read_settings_toml(_default_settings_path())
DEFAULT_ONE_SHOT = bool(_DEFAULT_SETTINGS_RAW.get("one_shot", True))
DEFAULT_LOG_PREFIX = str(_DEFAULT_SETTINGS_RAW.get("log_prefix", "Time limited Request: "))
DEFAULT_TIMEOUT = float(_DEFAULT_SETTINGS_RAW.get("default_timeout", 5))
DEFAULT_UNIT = str(_DEFAULT_SETTINGS_RAW.get("default_unit", "SECONDS"))
DEFAULT_THREAD_NAME = str(_DEFAULT_SETTINGS_RAW.get("thread_name", "bounded-runner"))


@dataclass(slots=True)
class ExecutorSettings:
    """Configuration for a `BoundedExecutor`.

    Example:
        ```python
        settings = ExecutorSettings(one_shot=False, log_prefix="billing: ")
        ```
    """

    one_shot: bool = DEFAULT_ONE_SHOT
    log_prefix: str = DEFAULT_LOG_PREFIX
    default_timeout: float = DEFAULT_TIMEOUT
    default_unit: str = DEFAULT_UNIT
    thread_name: str = DEFAULT_THREAD_NAME
    config_path: str | None = None

    def __post_init__(self) -> None:
        """Validate timeout, unit and thread name after initialization.

        Example:
            ```python
            ExecutorSettings(default_timeout=2, default_unit="ms")
            ```
        """
        if isinstance(self.default_timeout, bool) or not isinstance(
            self.default_timeout, (int, float)
        ):
            raise ValueError("'default_timeout' must be a number")
        if not math.isfinite(self.default_timeout) or self.default_timeout <= 0:
            raise ValueError("'default_timeout' must be a positive number")
        self.default_unit = TimeUnit.parse(self.default_unit).name
        if not self.thread_name.strip():
            raise ValueError("'thread_name' must be a non-empty string")

    @property
    def unit(self) -> TimeUnit:
        """Default time unit as a `TimeUnit` member.

        Example:
            ```python
            ExecutorSettings(default_unit="ms").unit  # TimeUnit.MILLISECONDS
            ```
        """
        return TimeUnit.parse(self.default_unit)

    @classmethod
    def from_file(cls, config_path: str) -> "ExecutorSettings":
        """Create settings from a TOML file with an `[executor]` table.

        Example:
            ```python
            settings = ExecutorSettings.from_file("/etc/bounded-runner.toml")
            ```
        """
        path = Path(config_path)
        if not path.exists():
            raise ValueError(f"Settings file not found: {config_path}")
        raw = _read_settings_toml(path)
        one_shot = raw.get("one_shot", DEFAULT_ONE_SHOT)
        if not isinstance(one_shot, bool):
            raise ValueError("'one_shot' must be a boolean")
        return cls(
            one_shot=one_shot,
            log_prefix=str(raw.get("log_prefix", DEFAULT_LOG_PREFIX)),
            default_timeout=raw.get("default_timeout", DEFAULT_TIMEOUT),
            default_unit=str(raw.get("default_unit", DEFAULT_UNIT)),
            thread_name=str(raw.get("thread_name", DEFAULT_THREAD_NAME)),
            config_path=config_path,
        )
