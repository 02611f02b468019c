"""Builder for throwaway databases shaped like Atuin's history.db."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from uuid import uuid4

ATUIN_SCHEMA = """
CREATE TABLE IF NOT EXISTS history (
    id TEXT PRIMARY KEY,
    timestamp INTEGER NOT NULL,
    duration INTEGER NOT NULL,
    exit INTEGER NOT NULL,
    command TEXT NOT NULL,
    cwd TEXT NOT NULL,
    session TEXT NOT NULL,
    hostname TEXT NOT NULL,
    deleted_at INTEGER
);
"""


class HistoryDbBuilder:
    def __init__(self, path: Path, schema: str = ATUIN_SCHEMA) -> None:
        self.path = path
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with sqlite3.connect(self.path) as conn:
            conn.executescript(schema)
        conn.close()

    def add(
        self,
        cwd: str | Path,
        timestamp: int,
        *,
        exit: int = 0,
        deleted_at: int | None = None,
        count: int = 1,
    ) -> HistoryDbBuilder:
        rows = [
            (uuid4().hex, timestamp, 0, exit, "ls", str(cwd), "sess", "host", deleted_at)
            for _ in range(count)
        ]
        with sqlite3.connect(self.path) as conn:
            conn.executemany(
                "INSERT INTO history "
                "(id, timestamp, duration, exit, command, cwd, session, hostname, deleted_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                rows,
            )
        conn.close()
        return self
