"""Tests for core/console.py - stderr logging setup."""

from __future__ import annotations

import logging

import pytest
from rich.console import Console

import atuin_z.core.console as core_console
from atuin_z.core.console import setup_logging


def test_verbose_forces_debug() -> None:
    logger = setup_logging(level="ERROR", verbose=True)
    assert logger.level == logging.DEBUG
    assert logger.propagate is False


@pytest.mark.parametrize(("level", "expected"), [("info", logging.INFO), ("bogus", logging.WARNING), (10, 10)])
def test_level_names(level: str | int, expected: int) -> None:
    assert setup_logging(level=level).level == expected


def test_records_go_to_stderr_console(capture_console: Console) -> None:
    assert core_console.stderr_console is capture_console
    setup_logging(level="INFO")
    logging.getLogger("atuin_z.core.exclusions").info("Excluded /tmp/[red]x")
    assert "Excluded /tmp/[red]x" in capture_console.export_text()

