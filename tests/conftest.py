from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest
from rich.console import Console
from typer.testing import CliRunner

ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from mocks.history_db import HistoryDbBuilder  # noqa: E402

NOW_NS = 1_700_000_000 * 1_000_000_000

ENV_VARS = (
    "ATUIN_DB_PATH",
    "ATUIN_DATA_DIR",
    "ATUIN_Z_PWD",
    "ATUIN_Z_CONFIG",
    "ATUIN_Z_LOG_LEVEL",
    "ATUIN_Z_INCLUDE_FAILED",
    "ATUIN_Z_BUSY_TIMEOUT",
    "ATUIN_Z_STAT_WORKERS",
    "ATUIN_Z_PARALLEL_STAT_THRESHOLD",
    "XDG_DATA_HOME",
    "XDG_CONFIG_HOME",
)


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def isolate_env(tmp_path: Path, monkeypatch: Any) -> Path:
    """Point HOME and the XDG dirs at a temp tree so tests never touch user state."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_DATA_HOME", str(home / ".local" / "share"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    return home


@pytest.fixture(autouse=True)
def capture_console(monkeypatch: Any) -> Console:
    """Use an in-memory Rich console for stderr during tests."""
    test_console = Console(record=True, stderr=True)
    import atuin_z.core.console as core_console
    import atuin_z.main as az_main

    monkeypatch.setattr(core_console, "stderr_console", test_console)
    monkeypatch.setattr(az_main, "stderr_console", test_console)
    return test_console


@pytest.fixture
def history_db(tmp_path: Path) -> HistoryDbBuilder:
    """An empty Atuin-shaped history database under the temp dir."""
    return HistoryDbBuilder(tmp_path / "atuin" / "history.db")


@pytest.fixture
def now_ns() -> int:
    return NOW_NS
