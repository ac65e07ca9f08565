from __future__ import annotations

import argparse
import json
import logging
import sys
from functools import partial
from pathlib import Path
from typing import Any, Never, Sequence

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.pretty import Pretty
from rich.table import Table
from rich.text import Text
from rich_argparse import RawTextRichHelpFormatter
from polyglot_runner import SUPPORTED_LANGUAGES, RunnerSettings, handle_event, run_code
from polyglot_runner.execution.capabilities import all_capabilities

_CONSOLE = Console(no_color=False)


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
        parser = _RichArgumentParser(prog="pgr")
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
    """Build CLI parser for running snippets and inspecting language support.

    Example:
        ```python
        parser = build_parser()
        ```
    """
    parser = _RichArgumentParser(
        prog="pgr",
        description=(
            "polyglot-runner CLI\n"
            "Compile and run Java, C++, JavaScript or Python snippets in disposable workspaces."
        ),
        epilog=(
            "Quick Examples:\n"
            "  pgr run python hello.py\n"
            "  pgr run cpp main.cpp --input '3 4'\n"
            "  echo 'console.log(process.argv.slice(2))' | pgr run javascript - --input 'a b'\n"
            "  pgr languages\n"
            "  pgr event request.json"
        ),
        formatter_class=_HELP_FORMATTER,
    )
    parser.add_argument(
        "--config",
        help=(
            "Path to a runner TOML file.\n"
            "Example: --config ./runner.toml"
        ),
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log process spawns and workspace lifecycle.",
    )

    sub = parser.add_subparsers(
        dest="command",
        required=True,
        parser_class=_RichArgumentParser,
    )

    run_cmd = sub.add_parser(
        "run",
        help="Run one source file.",
        description=(
            "Compile (java, cpp) and run one source file.\n"
            "Program output is written unchanged to stdout."
        ),
        epilog=(
            "Examples:\n"
            "  pgr run java Main.java\n"
            "  pgr run python echo.py --input-file data.txt\n"
            "  pgr run python slow.py --timeout 2"
        ),
        formatter_class=_HELP_FORMATTER,
    )
    run_cmd.add_argument("language", help=f"One of: {', '.join(SUPPORTED_LANGUAGES)}.")
    run_cmd.add_argument("source", help="Source file path, or '-' to read from stdin.")
    input_group = run_cmd.add_mutually_exclusive_group()
    input_group.add_argument(
        "--input",
        help=(
            "Extra input for the program.\n"
            "Piped to stdin, except javascript which receives whitespace-split argv."
        ),
    )
    input_group.add_argument("--input-file", help="Read the extra input from a file.")
    run_cmd.add_argument(
        "--timeout",
        type=float,
        help="Wall-clock budget per process, in seconds (default: from config).",
    )

    sub.add_parser(
        "languages",
        help="List supported languages.",
        description="Show each language's phases, input convention and source naming.",
        formatter_class=_HELP_FORMATTER,
    )

    event_cmd = sub.add_parser(
        "event",
        help="Handle one JSON request event.",
        description=(
            "Feed a JSON event {language, code, userInput} through the request handler\n"
            "and print the status/body envelope."
        ),
        epilog=(
            "Example:\n"
            "  pgr event request.json"
        ),
        formatter_class=_HELP_FORMATTER,
    )
    event_cmd.add_argument("path", help="Event JSON file, or '-' to read from stdin.")

    return parser


def configure_logging(verbose: bool) -> None:
    """Route library logs through Rich; DEBUG when verbose, WARNING otherwise.

    Example:
        ```python
        configure_logging(verbose=True)
        ```
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def build_settings(args: argparse.Namespace) -> RunnerSettings:
    """Create settings from the global `--config` flag and `--timeout`.

    Example:
        ```python
        settings = build_settings(args)
        ```
    """
    settings = RunnerSettings.from_file(args.config) if args.config else RunnerSettings()
    timeout = getattr(args, "timeout", None)
    if timeout is not None:
        settings = settings.with_timeout(timeout)
    return settings


def _read_text(path: str) -> str:
    """Read a file, or stdin for '-'.

    Example:
        ```python
        code = _read_text("hello.py")
        ```
    """
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def _print_languages() -> None:
    """Render the language capability table.

    Example:
        ```python
        _print_languages()
        ```
    """
    table = Table(title="Supported Languages")
    table.add_column("Language", style="cyan")
    table.add_column("Name", style="magenta")
    table.add_column("Phases")
    table.add_column("Input")
    table.add_column("Source")
    for caps in all_capabilities():
        table.add_row(
            caps.language,
            caps.display_name,
            "compile, run" if caps.compiled else "run",
            caps.input_mode,
            caps.source_name or f"temp {caps.workspace_kind}",
        )
    _CONSOLE.print(table)


def _run(args: argparse.Namespace, settings: RunnerSettings) -> int:
    """Execute the `run` subcommand.

    Example:
        ```python
        code = _run(args, RunnerSettings())
        ```
    """
    code = _read_text(args.source)
    user_input: str | None = args.input
    if args.input_file:
        user_input = _read_text(args.input_file)
    outcome = run_code(args.language, code, user_input, settings=settings)
    if outcome.ok:
        sys.stdout.write(outcome.output)
        sys.stdout.flush()
        return 0
    if outcome.kind == "unsupported_language":
        _CONSOLE.print(
            Panel.fit(
                f"{outcome.error}\nSupported: {', '.join(SUPPORTED_LANGUAGES)}",
                style="bold red",
            )
        )
        return 2
    _CONSOLE.print(
        Panel.fit(
            Text(outcome.error or ""),
            title=f"{outcome.kind} failure",
            border_style="red",
        )
    )
    return 1


def main(argv: Sequence[str] | None = None) -> int:
    """Run the `pgr` CLI command handler.

    Example:
        ```python
        code = main(["run", "python", "hello.py"])
        ```
    """
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    configure_logging(args.verbose)
    settings = build_settings(args)

    if args.command == "run":
        return _run(args, settings)
    if args.command == "languages":
        _print_languages()
        return 0
    if args.command == "event":
        event: Any = json.loads(_read_text(args.path))
        if not isinstance(event, dict):
            parser.error("event must be a JSON object")
        response = handle_event(event, settings=settings)
        _CONSOLE.print(Panel.fit(Pretty(response), title="Response", border_style="cyan"))
        return 0 if response["statusCode"] == 200 else 1

    parser.error("Unhandled command")
    return 2
