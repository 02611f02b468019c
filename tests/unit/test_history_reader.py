"""Tests for core/history.py - read-only SQLite record streaming."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from atuin_z.core.history import HistoryRecord, SqliteHistorySource
from atuin_z.core.result import DatabaseError
from mocks.history_db import HistoryDbBuilder


def _records(path: Path, **kwargs: object) -> list[HistoryRecord]:
    with SqliteHistorySource(path, **kwargs) as source:  # type: ignore[arg-type]
        return list(source.iter_records())


def test_empty_database_yields_nothing(history_db: HistoryDbBuilder) -> None:
    assert _records(history_db.path) == []


def test_streams_every_successful_record(history_db: HistoryDbBuilder) -> None:
    history_db.add("/home/user/a", 100).add("/home/user/a", 200).add("/home/user/b", 300)
    records = _records(history_db.path)
    assert sorted((r.directory, r.timestamp) for r in records) == [
        ("/home/user/a", 100),
        ("/home/user/a", 200),
        ("/home/user/b", 300),
    ]
    assert all(r.exit_status == 0 for r in records)


def test_soft_deleted_rows_are_skipped(history_db: HistoryDbBuilder) -> None:
    history_db.add("/home/user/keep", 100).add("/home/user/gone", 200, deleted_at=250)
    assert [r.directory for r in _records(history_db.path)] == ["/home/user/keep"]


def test_failed_commands_skipped_by_default(history_db: HistoryDbBuilder) -> None:
    history_db.add("/ok", 100).add("/failed", 200, exit=1)
    assert [r.directory for r in _records(history_db.path)] == ["/ok"]


def test_failed_commands_included_when_configured(history_db: HistoryDbBuilder) -> None:
    history_db.add("/ok", 100).add("/failed", 200, exit=127)
    directories = {r.directory for r in _records(history_db.path, include_failed=True)}
    assert directories == {"/ok", "/failed"}


def test_unusable_directories_are_filtered(history_db: HistoryDbBuilder) -> None:
    history_db.add("", 100).add("relative/dir", 200).add("/abs", 300)
    assert [r.directory for r in _records(history_db.path)] == ["/abs"]


def test_missing_file_is_not_created(tmp_path: Path) -> None:
    missing = tmp_path / "absent.db"
    with pytest.raises(DatabaseError):
        _records(missing)
    assert not missing.exists()


def test_corrupt_file_raises_database_error(tmp_path: Path) -> None:
    bogus = tmp_path / "history.db"
    bogus.write_bytes(b"this is not a sqlite database at all" * 100)
    with pytest.raises(DatabaseError):
        _records(bogus)


def test_missing_history_table_is_schema_mismatch(tmp_path: Path) -> None:
    path = tmp_path / "other.db"
    conn = sqlite3.connect(path)
    conn.execute("CREATE TABLE unrelated (x INTEGER)")
    conn.commit()
    conn.close()
    with pytest.raises(DatabaseError, match="schema mismatch"):
        _records(path)


def test_missing_cwd_column_is_schema_mismatch(tmp_path: Path) -> None:
    path = tmp_path / "old.db"
    HistoryDbBuilder(path, schema="CREATE TABLE history (id TEXT, timestamp INTEGER);")
    with pytest.raises(DatabaseError) as excinfo:
        _records(path)
    assert excinfo.value.context["missing"] == "cwd"


def test_minimal_schema_without_optional_columns(tmp_path: Path) -> None:
    path = tmp_path / "min.db"
    HistoryDbBuilder(path, schema="CREATE TABLE history (cwd TEXT, timestamp INTEGER);")
    conn = sqlite3.connect(path)
    conn.execute("INSERT INTO history VALUES ('/x', 5)")
    conn.commit()
    conn.close()
    assert _records(path) == [HistoryRecord(directory="/x", timestamp=5, exit_status=None)]


def test_connection_is_read_only(history_db: HistoryDbBuilder) -> None:
    source = SqliteHistorySource(history_db.path)
    conn = source.open()
    try:
        with pytest.raises(sqlite3.Error):
            conn.execute("DELETE FROM history")
    finally:
        source.close()


def test_build_query_applies_filters_only_for_present_columns(tmp_path: Path) -> None:
    source = SqliteHistorySource(tmp_path / "unused.db")
    assert "WHERE" not in source.build_query({"cwd", "timestamp"})
    query = source.build_query({"cwd", "timestamp", "exit", "deleted_at"})
    assert "deleted_at IS NULL" in query
    assert "exit = 0" in query
