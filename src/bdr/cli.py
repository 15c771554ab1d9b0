from __future__ import annotations

import argparse
import logging
from functools import partial
from typing import Any, Never, Sequence

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich_argparse import RawTextRichHelpFormatter

from bounded_runner import BoundedExecutor, ExecutorSettings, OutcomeStatus, TimeUnit, command_task
from bounded_runner.diagnostics import LOGGER_NAME
from bounded_runner.execution.units import unit_aliases

_CONSOLE = Console(no_color=False)
_ERR_CONSOLE = Console(stderr=True)

_EXIT_CODES = {
    OutcomeStatus.TIMED_OUT: 124,
    OutcomeStatus.FAILED: 1,
    OutcomeStatus.REJECTED: 1,
    OutcomeStatus.INVALID: 2,
}


class _CLIHelpFormatter(RawTextRichHelpFormatter):
    """Rich formatter with explicit high-contrast CLI styles.

    Example:
        ```python
        parser = argparse.ArgumentParser(formatter_class=_CLIHelpFormatter)
        ```
    """

    styles = {
        "argparse.args": "bold cyan",
        "argparse.groups": "bold magenta",
        "argparse.help": "white",
        "argparse.metavar": "bold yellow",
        "argparse.prog": "bold bright_blue",
        "argparse.syntax": "bold bright_white",
        "argparse.text": "bright_white",
    }


_HELP_FORMATTER = partial(
    _CLIHelpFormatter,
    max_help_position=34,
    width=120,
)


class _RichArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that renders errors via Rich.

    Example:
        ```python
        parser = _RichArgumentParser(prog="python -m bdr")
        ```
    """

    def error(self, message: str) -> Never:
        """Render parse errors with Rich and exit.

        Example:
            ```python
            # parser.error("invalid usage")
            ```
        """
        _CONSOLE.print(Panel.fit(f"[bold red]Error:[/bold red] {message}", border_style="red"))
        self.print_help()
        raise SystemExit(2)


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser for bounded command runs.

    Example:
        ```python
        parser = build_parser()
        ```
    """
    parser = _RichArgumentParser(
        prog="python -m bdr",
        description=(
            "bounded-runner CLI\n"
            "Run a command under a hard wall-clock deadline.\n"
            "A command that outlives its deadline is killed."
        ),
        epilog=(
            "Quick Examples:\n"
            "  python -m bdr run --timeout 2 -- curl -sf https://example.com/health\n"
            "  python -m bdr run --timeout 500 --unit ms -- ./slow-query.sh\n"
            "  python -m bdr settings --settings bounded.toml\n"
            "  python -m bdr units"
        ),
        formatter_class=_HELP_FORMATTER,
    )
    sub = parser.add_subparsers(
        dest="command",
        required=True,
        parser_class=_RichArgumentParser,
    )

    run_cmd = sub.add_parser(
        "run",
        help="Run one command under a deadline.",
        description=(
            "Run one command as a bounded task.\n"
            "Exit code is the command's own on success, 124 on timeout,\n"
            "1 on failure and 2 on invalid arguments."
        ),
        epilog=(
            "Examples:\n"
            "  python -m bdr run --timeout 3 -- python -c \"print('hi')\"\n"
            "  python -m bdr run --timeout 100 --unit ms --label 'report: ' -- sleep 5"
        ),
        formatter_class=_HELP_FORMATTER,
    )
    run_cmd.add_argument(
        "--timeout",
        type=float,
        help="Deadline amount (default: settings default_timeout).",
    )
    run_cmd.add_argument(
        "--unit",
        help=(
            "Deadline unit name or alias (default: settings default_unit).\n"
            "Examples: ms, s, MINUTES"
        ),
    )
    run_cmd.add_argument(
        "--label",
        help="Prefix for diagnostic messages (default: settings log_prefix).",
    )
    run_cmd.add_argument(
        "--settings",
        help="Path to a TOML file with an [executor] table.",
    )
    run_cmd.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Also log successful runs.",
    )
    run_cmd.add_argument("argv", nargs="+", metavar="CMD")

    settings_cmd = sub.add_parser(
        "settings",
        help="Show effective executor settings.",
        description="Show the settings a run would use.",
        formatter_class=_HELP_FORMATTER,
    )
    settings_cmd.add_argument(
        "--settings",
        help="Path to a TOML file with an [executor] table.",
    )

    sub.add_parser(
        "units",
        help="List supported time units.",
        description="List time units and their accepted aliases.",
        formatter_class=_HELP_FORMATTER,
    )
    return parser


def _configure_logging(verbose: bool) -> None:
    """Route package diagnostics through a Rich log handler on stderr.

    Example:
        ```python
        _configure_logging(verbose=True)
        ```
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.addHandler(RichHandler(console=_ERR_CONSOLE, show_path=False))
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _load_settings(path: str | None) -> ExecutorSettings:
    """Return settings from a file, or the bundled defaults.

    Example:
        ```python
        settings = _load_settings(None)
        ```
    """
    return ExecutorSettings.from_file(path) if path else ExecutorSettings()


def _print_settings(settings: ExecutorSettings) -> None:
    """Render settings in a rich table.

    Example:
        ```python
        _print_settings(ExecutorSettings())
        ```
    """
    table = Table(title="Executor Settings")
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="magenta")
    table.add_row("one_shot", str(settings.one_shot))
    table.add_row("log_prefix", repr(settings.log_prefix))
    table.add_row("default_timeout", f"{settings.default_timeout:g}")
    table.add_row("default_unit", settings.default_unit)
    table.add_row("thread_name", settings.thread_name)
    table.add_row("config_path", settings.config_path or "(bundled defaults)")
    _CONSOLE.print(table)


def _print_units() -> None:
    """Render supported time units in a rich table.

    Example:
        ```python
        _print_units()
        ```
    """
    table = Table(title="Time Units")
    table.add_column("Unit", style="cyan")
    table.add_column("Seconds")
    table.add_column("Aliases", style="magenta")
    for unit in TimeUnit:
        table.add_row(unit.name, f"{unit.value:g}", ", ".join(unit_aliases(unit)))
    _CONSOLE.print(table)


def _run(args: argparse.Namespace, settings: ExecutorSettings) -> int:
    """Run the requested command and render its outcome.

    Example:
        ```python
        code = _run(args, ExecutorSettings())
        ```
    """
    argv: list[str] = list(args.argv)
    if argv and argv[0] == "--":
        argv = argv[1:]
    if not argv:
        _CONSOLE.print(Panel.fit("No command given after '--'", style="bold red"))
        return 2
    timeout: Any = args.timeout if args.timeout is not None else settings.default_timeout
    unit = args.unit if args.unit is not None else settings.default_unit

    executor = BoundedExecutor(settings=settings)
    result = executor.run(command_task(argv), timeout, unit, log_prefix=args.label)

    table = Table(title="Bounded Run")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("command", " ".join(argv))
    table.add_row("deadline", f"{timeout:g} {unit}")
    table.add_row("status", result.status.value)
    if result.elapsed is not None:
        table.add_row("elapsed", f"{result.elapsed.total_seconds() * 1000:.1f} ms")
    if result.ok:
        table.add_row("returncode", str(result.value.returncode))
    elif result.error:
        table.add_row("error", result.error)
    _CONSOLE.print(table)

    if not result.ok:
        return _EXIT_CODES[result.status]
    if result.value.stdout:
        _CONSOLE.out(result.value.stdout, end="", highlight=False)
    if result.value.stderr:
        _ERR_CONSOLE.out(result.value.stderr, end="", highlight=False)
    return result.value.returncode


def main(argv: Sequence[str] | None = None) -> int:
    """Run the `bdr` CLI command handler.

    Example:
        ```python
        code = main(["run", "--timeout", "2", "--", "true"])
        ```
    """
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        settings = _load_settings(args.settings if args.command != "units" else None)
    except ValueError as exc:
        _CONSOLE.print(Panel.fit(f"[bold red]Invalid settings:[/bold red] {exc}", border_style="red"))
        return 2

    if args.command == "run":
        _configure_logging(args.verbose)
        return _run(args, settings)
    if args.command == "settings":
        _print_settings(settings)
        return 0
    if args.command == "units":
        _print_units()
        return 0

    parser.error("Unhandled command")
    return 2
