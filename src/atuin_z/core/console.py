"""Stderr console and logging setup.

Results go to stdout through ``typer.echo`` so the shell wrapper can capture
them; everything else (log records, formatted errors) goes to
``stderr_console``.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

stderr_console = Console(stderr=True)


def _level_number(level: str | int) -> int:
    if isinstance(level, int):
        return level
    return logging.getLevelNamesMapping().get(level.upper(), logging.WARNING)


def setup_logging(level: str | int = logging.WARNING, verbose: bool = False) -> logging.Logger:
    """Route log records to ``stderr_console``; ``verbose`` forces DEBUG."""
    threshold = logging.DEBUG if verbose else _level_number(level)

    handler = RichHandler(
        console=stderr_console,
        markup=False,
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.setLevel(threshold)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(threshold)
    root.addHandler(handler)

    app_logger = logging.getLogger("atuin_z")
    app_logger.handlers.clear()
    app_logger.setLevel(threshold)
    app_logger.addHandler(handler)
    app_logger.propagate = False
    return app_logger
