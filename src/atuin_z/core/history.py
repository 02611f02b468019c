"""Read-only access to the Atuin shell-history database.

The ranking engine only needs a stream of (directory, timestamp) visits, so
the database sits behind the narrow ``HistorySource`` protocol. The SQLite
implementation never writes: it opens the file with ``mode=ro``, switches the
connection to ``query_only`` and waits at most ``busy_timeout`` seconds on a
concurrent writer before failing.
"""

from __future__ import annotations

import logging
import os
import sqlite3
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType
from typing import Protocol
from urllib.parse import quote

from atuin_z.core.result import DatabaseError

logger = logging.getLogger(__name__)

HISTORY_TABLE = "history"
REQUIRED_COLUMNS = frozenset({"cwd", "timestamp"})


@dataclass(frozen=True, slots=True)
class HistoryRecord:
    """A single command execution; timestamps are nanoseconds since the epoch."""

    directory: str
    timestamp: int
    exit_status: int | None = None


class HistorySource(Protocol):
    def iter_records(self) -> Iterator[HistoryRecord]: ...


def _usable_directory(value: object) -> bool:
    return isinstance(value, str) and bool(value) and os.path.isabs(value)


def _ro_uri(path: Path) -> str:
    return f"file:{quote(str(path))}?mode=ro"


class SqliteHistorySource:
    """Streams qualifying history records from an Atuin SQLite database.

    Soft-deleted rows are always skipped. Rows with a non-zero exit status are
    skipped unless ``include_failed`` is set. Either filter is dropped when the
    database has no such column.
    """

    def __init__(
        self,
        path: Path,
        *,
        include_failed: bool = False,
        busy_timeout: float = 2.0,
    ) -> None:
        self.path = path
        self.include_failed = include_failed
        self.busy_timeout = busy_timeout
        self._conn: sqlite3.Connection | None = None

    def __enter__(self) -> SqliteHistorySource:
        self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def open(self) -> sqlite3.Connection:
        if self._conn is not None:
            return self._conn
        try:
            conn = sqlite3.connect(_ro_uri(self.path), uri=True, timeout=self.busy_timeout)
        except sqlite3.Error as exc:
            raise DatabaseError(
                "Failed to open history database",
                context={"path": str(self.path), "error": str(exc)},
            ) from exc
        try:
            conn.execute("PRAGMA query_only = ON;")
        except sqlite3.Error as exc:
            conn.close()
            raise DatabaseError(
                "Failed to open history database",
                context={"path": str(self.path), "error": str(exc)},
            ) from exc
        self._conn = conn
        return conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _columns(self, conn: sqlite3.Connection) -> set[str]:
        rows = conn.execute(f"PRAGMA table_info({HISTORY_TABLE})").fetchall()
        return {row[1] for row in rows}

    def build_query(self, columns: set[str]) -> str:
        missing = REQUIRED_COLUMNS - columns
        if missing:
            raise DatabaseError(
                "History database schema mismatch",
                context={"path": str(self.path), "missing": ",".join(sorted(missing))},
            )

        has_exit = "exit" in columns
        exit_column = "exit" if has_exit else "NULL"
        select = f"SELECT cwd, timestamp, {exit_column} FROM {HISTORY_TABLE}"
        clauses: list[str] = []
        if "deleted_at" in columns:
            clauses.append("deleted_at IS NULL")
        if has_exit and not self.include_failed:
            clauses.append("exit = 0")
        if clauses:
            select += " WHERE " + " AND ".join(clauses)
        return select

    def iter_records(self) -> Iterator[HistoryRecord]:
        """Lazily yield records; raises DatabaseError on any read failure."""
        conn = self.open()
        try:
            columns = self._columns(conn)
            if not columns:
                raise DatabaseError(
                    "History database schema mismatch",
                    context={"path": str(self.path), "missing": HISTORY_TABLE},
                )
            cursor = conn.execute(self.build_query(columns))
            skipped = 0
            for cwd, timestamp, exit_status in cursor:
                if not _usable_directory(cwd) or not isinstance(timestamp, int):
                    skipped += 1
                    continue
                yield HistoryRecord(directory=cwd, timestamp=timestamp, exit_status=exit_status)
        except sqlite3.Error as exc:
            raise DatabaseError(
                "Failed to read history database",
                context={"path": str(self.path), "error": str(exc)},
            ) from exc
        except OSError as exc:
            raise DatabaseError(
                "I/O error reading history database",
                context={"path": str(self.path), "error": str(exc)},
            ) from exc

        if skipped:
            logger.debug("Skipped %d history rows without a usable directory", skipped)
