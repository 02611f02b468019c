from __future__ import annotations

from typing import Any

import pytest
from typer.testing import CliRunner

import atuin_z.main as az_main
from atuin_z import __version__
from atuin_z.main import app, cli, init_app

runner = CliRunner()


@pytest.fixture
def no_signal_handlers(monkeypatch: Any) -> None:
    monkeypatch.setattr(az_main, "_register_signal_handlers", lambda: None)


def test_app_version() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_help_lists_every_flag() -> None:
    result = runner.invoke(app, ["-h"])
    assert result.exit_code == 0
    assert "Usage:" in result.stdout
    for flag in ("--list", "--rank", "--time", "--current", "--exclude", "--db"):
        assert flag in result.stdout


def test_init_help() -> None:
    result = runner.invoke(init_app, ["--help"])
    assert result.exit_code == 0
    assert "Usage:" in result.stdout


@pytest.mark.parametrize("shell", ["bash", "zsh", "fish"])
def test_cli_routes_init(
    shell: str, no_signal_handlers: None, capsys: pytest.CaptureFixture[str]
) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli(["init", shell])
    assert excinfo.value.code == 0
    out = capsys.readouterr().out
    assert "atuin-z" in out
    assert "ATUIN_Z_PWD" in out


def test_cli_rejects_unknown_shell(no_signal_handlers: None) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli(["init", "tcsh"])
    assert excinfo.value.code == 2


def test_package_entry_point_imports() -> None:
    from atuin_z.__main__ import main

    assert callable(main)
