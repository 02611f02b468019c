"""
Centralized error formatting for the CLI.

Every failure is rendered the same way on stderr and mapped to an exit code,
so stdout stays empty and the shell wrapper never changes directory.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any

from rich.markup import escape

from atuin_z.core.result import (
    AtuinZError,
    ConfigurationError,
    DatabaseError,
    ExclusionStoreError,
)

EXIT_FAILURE = 1


class ErrorSeverity(Enum):
    """Severity levels for error display."""

    WARNING = auto()
    ERROR = auto()
    CRITICAL = auto()


@dataclass(frozen=True, slots=True)
class FormattedError:
    """A formatted error ready for display."""

    message: str
    severity: ErrorSeverity
    code: str
    details: dict[str, Any]
    traceback: str | None = None


def _error_code(exc: Exception) -> str:
    """Derive an error code from exception type."""
    if isinstance(exc, ConfigurationError):
        return "CONFIG_ERROR"
    if isinstance(exc, DatabaseError):
        return "DATABASE_ERROR"
    if isinstance(exc, ExclusionStoreError):
        return "EXCLUSION_ERROR"
    if isinstance(exc, AtuinZError):
        return "ATUIN_Z_ERROR"
    if isinstance(exc, PermissionError):
        return "PERMISSION_DENIED"
    return "UNEXPECTED_ERROR"


def _severity(exc: Exception) -> ErrorSeverity:
    """Determine severity based on exception type."""
    if isinstance(exc, ConfigurationError):
        return ErrorSeverity.WARNING
    if isinstance(exc, AtuinZError):
        return ErrorSeverity.ERROR
    return ErrorSeverity.CRITICAL


def format_error(
    exc: Exception,
    *,
    include_traceback: bool = False,
) -> FormattedError:
    """Format an exception into a structured error.

    Args:
        exc: The exception to format
        include_traceback: Whether to include full traceback (for debugging)

    Returns:
        FormattedError ready for display
    """
    details: dict[str, Any] = {}
    if isinstance(exc, AtuinZError):
        details = exc.context.copy()
        message = exc.message
    else:
        message = str(exc)

    if isinstance(exc, OSError):
        if exc.filename:
            details["path"] = str(exc.filename)
        if exc.errno:
            details["errno"] = exc.errno

    tb = None
    if include_traceback:
        tb = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))

    return FormattedError(
        message=message,
        severity=_severity(exc),
        code=_error_code(exc),
        details=details,
        traceback=tb,
    )


def format_for_cli(error: FormattedError) -> str:
    """Format error for CLI display with Rich markup."""
    color_map = {
        ErrorSeverity.WARNING: "yellow",
        ErrorSeverity.ERROR: "red",
        ErrorSeverity.CRITICAL: "bold red",
    }
    color = color_map.get(error.severity, "red")

    parts = [f"[{color}]{error.code}[/{color}]: {escape(error.message)}"]

    if error.details:
        detail_lines = [f"  {k}: {escape(str(v))}" for k, v in error.details.items()]
        parts.append("\n".join(detail_lines))

    if error.traceback:
        parts.append(f"\n[dim]{escape(error.traceback)}[/dim]")

    return "\n".join(parts)


__all__ = [
    "EXIT_FAILURE",
    "ErrorSeverity",
    "FormattedError",
    "format_error",
    "format_for_cli",
]
