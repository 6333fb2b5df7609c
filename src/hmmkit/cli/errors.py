"""
Error handling for CLI commands.

Library errors are mapped to exit codes and rendered with rich, with
suggestions where the fix is obvious.
"""

import traceback
from pathlib import Path
from typing import List, Optional

import click
import typer
from rich.console import Console
from rich.markup import escape

from ..exceptions import (
    FileFormatError,
    InvalidArgumentError,
    ModelPersistenceError,
    NumericalDegeneracyError
)
from ..logger import get_logger

console = Console(stderr=True)
logger = get_logger(__name__)

EXIT_CODES = {
    "success": 0,
    "general_error": 1,
    "invalid_argument": 2,
    "file_format": 3,
    "model_error": 4,
    "numerical_error": 5
}


class HMMKitCLIError(Exception):
    """Base exception for CLI-specific errors."""

    def __init__(self, message: str, exit_code: int = 1, suggestions: Optional[List[str]] = None):
        self.message = message
        self.exit_code = exit_code
        self.suggestions = suggestions or []
        super().__init__(message)


def exit_code_for(error: Exception) -> int:
    if isinstance(error, HMMKitCLIError):
        return error.exit_code
    if isinstance(error, FileFormatError):
        return EXIT_CODES["file_format"]
    if isinstance(error, ModelPersistenceError):
        return EXIT_CODES["model_error"]
    if isinstance(error, NumericalDegeneracyError):
        return EXIT_CODES["numerical_error"]
    if isinstance(error, InvalidArgumentError):
        return EXIT_CODES["invalid_argument"]
    return EXIT_CODES["general_error"]


def format_error_message(error: Exception, operation: str, debug: bool = False) -> str:
    """Format error message with context and suggestions."""
    error_type = type(error).__name__

    message_parts = [
        f"[red]Error during {operation}:[/red]",
        f"[red]{error_type}: {escape(str(error))}[/red]"
    ]

    suggestions = getattr(error, 'suggestions', None)
    if suggestions:
        message_parts.append("")
        message_parts.append("[yellow]Suggestions:[/yellow]")
        for suggestion in suggestions:
            message_parts.append(f"  • {escape(suggestion)}")

    if debug:
        message_parts.append("")
        message_parts.append("[dim]Debug information:[/dim]")
        message_parts.append(f"[dim]{escape(traceback.format_exc())}[/dim]")

    return "\n".join(message_parts)


def handle_cli_error(error: Exception, operation: str, debug: Optional[bool] = None) -> None:
    """
    Display an error and exit with its code.

    When ``debug`` is None it is taken from the --debug flag of the current command.
    """
    if debug is None:
        ctx = click.get_current_context(silent=True)
        debug = bool(ctx.find_root().meta.get("debug", False)) if ctx is not None else False

    exit_code = exit_code_for(error)

    console.print(format_error_message(error, operation, debug))
    console.print(f"\n[dim]For more help, run: hmmkit {operation.split()[0]} --help[/dim]")

    logger.error(f"CLI error in {operation}: {error}", exc_info=debug)

    raise typer.Exit(exit_code)


def validate_file_exists(path: Path, file_type: str = "file") -> Path:
    """Validate that a file exists with helpful error messages."""
    if not path.exists():
        suggestions = []

        if not path.parent.exists():
            suggestions.append(f"Create the directory: mkdir -p {path.parent}")
        else:
            similar_files = [
                item.name for item in path.parent.iterdir()
                if item.name.lower().startswith(path.stem.lower()[:3])
            ]
            if similar_files:
                suggestions.append(f"Did you mean one of: {', '.join(similar_files[:3])}")

        raise HMMKitCLIError(
            f"{file_type.capitalize()} not found: {path}",
            exit_code=EXIT_CODES["invalid_argument"],
            suggestions=suggestions
        )

    return path
