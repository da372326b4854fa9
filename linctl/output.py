"""Output modes and mode-aware message helpers shared by every command."""

import json
from enum import Enum
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.text import Text

# soft_wrap keeps long lines intact instead of re-flowing them at the terminal width
console = Console(highlight=False, emoji=False, soft_wrap=True)
err_console = Console(stderr=True, highlight=False, emoji=False, soft_wrap=True)


class OutputMode(str, Enum):
    RICH = "rich"
    PLAIN = "plain"
    JSON = "json"


def mode_from_flags(json_out: bool, plaintext: bool) -> OutputMode:
    """--json wins over --plaintext; rich is the default."""
    if json_out:
        return OutputMode.JSON
    if plaintext:
        return OutputMode.PLAIN
    return OutputMode.RICH


def to_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def print_json(data: Any) -> None:
    typer.echo(to_json(data))


def error(message: str, mode: OutputMode) -> None:
    """Report a single-line error. JSON goes to stdout so callers can parse it."""
    match mode:
        case OutputMode.JSON:
            print_json({"error": message})
        case OutputMode.PLAIN:
            typer.echo(f"Error: {message}", err=True)
        case _:
            err_console.print(f"[red]✗ {escape(message)}[/red]")


def info(message: str, mode: OutputMode) -> None:
    match mode:
        case OutputMode.JSON:
            print_json({"message": message})
        case OutputMode.PLAIN:
            typer.echo(message)
        case _:
            console.print(escape(message))


def emit(text: str | Text, mode: OutputMode) -> None:
    """Print an already-rendered block: styled Text in rich mode, plain str otherwise."""
    if mode is OutputMode.RICH:
        console.print(text)
    else:
        typer.echo(text)


def fail(message: str, mode: OutputMode) -> typer.Exit:
    """Report ``message`` and return the Exit to raise: ``raise fail(...)``."""
    error(message, mode)
    return typer.Exit(1)
