"""Result type and error hierarchy for atuin-z.

Lookups that can fail in an expected way (no database, unreadable exclusion
file) return ``Ok``/``Err`` and callers ``match`` on them:

    match resolve_db_path(explicit, env):
        case Ok(path):
            ...
        case Err(err):
            raise err

Code that streams history rows raises instead, since a generator cannot hand
back an ``Err`` halfway through.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

T = TypeVar("T")
E = TypeVar("E", bound=Exception)


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    error: E


Result = Ok[T] | Err[E]


class AtuinZError(Exception):
    """Base exception for all atuin-z errors.

    Every error is terminal for the current invocation; the CLI reports it on
    stderr and exits non-zero so the shell wrapper never changes directory.
    """

    def __init__(self, message: str, *, context: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{key}={value}" for key, value in self.context.items())
        return f"{self.message} [{details}]"


class ConfigurationError(AtuinZError):
    """No usable history database: nothing resolved, or the file is missing or unreadable."""


class DatabaseError(AtuinZError):
    """The history database could not be read.

    Covers corrupt or non-SQLite files, a missing ``history`` table or
    required column, and a lock held past the busy timeout.
    """


class ExclusionStoreError(AtuinZError):
    """The exclusion list could not be read or written."""


def try_result(fn: Callable[[], T], error_type: type[E] = AtuinZError) -> Result[T, E]:
    """Call ``fn``; an ``error_type`` it raises comes back as ``Err``."""
    try:
        return Ok(fn())
    except error_type as exc:
        return Err(exc)


__all__ = [
    "Ok",
    "Err",
    "Result",
    "AtuinZError",
    "ConfigurationError",
    "DatabaseError",
    "ExclusionStoreError",
    "try_result",
]
