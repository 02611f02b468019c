"""History database path resolution.

Candidates are tried in strict priority order and the first one that yields a
value wins; only the winning candidate is checked on disk:

    1. explicit path (``--db``)
    2. ``ATUIN_DB_PATH``
    3. ``$ATUIN_DATA_DIR/history.db``
    4. ``$XDG_DATA_HOME/atuin/history.db``
    5. ``~/.local/share/atuin/history.db``
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from atuin_z.core.result import ConfigurationError, Err, Ok, Result

logger = logging.getLogger(__name__)

DB_FILENAME = "history.db"


@dataclass(frozen=True, slots=True)
class DatabaseLocation:
    path: Path
    source: str


def _home(env: Mapping[str, str]) -> Path | None:
    home = env.get("HOME")
    if home:
        return Path(home)
    try:
        return Path.home()
    except RuntimeError:
        return None


def _expand(raw: str, env: Mapping[str, str]) -> Path:
    if raw == "~" or raw.startswith("~/"):
        home = _home(env)
        if home is not None:
            return home / raw[2:] if raw != "~" else home
    return Path(raw).expanduser()


def candidate_location(
    explicit: str | Path | None, env: Mapping[str, str]
) -> DatabaseLocation | None:
    """Return the highest-priority candidate without touching the filesystem."""
    if explicit:
        return DatabaseLocation(_expand(str(explicit), env), "--db")

    if db_path := env.get("ATUIN_DB_PATH"):
        return DatabaseLocation(_expand(db_path, env), "ATUIN_DB_PATH")

    if data_dir := env.get("ATUIN_DATA_DIR"):
        return DatabaseLocation(_expand(data_dir, env) / DB_FILENAME, "ATUIN_DATA_DIR")

    if xdg := env.get("XDG_DATA_HOME"):
        return DatabaseLocation(_expand(xdg, env) / "atuin" / DB_FILENAME, "XDG_DATA_HOME")

    home = _home(env)
    if home is None:
        return None
    return DatabaseLocation(home / ".local" / "share" / "atuin" / DB_FILENAME, "default")


def resolve_db_path(
    explicit: str | Path | None, env: Mapping[str, str]
) -> Result[Path, ConfigurationError]:
    """Resolve the history database path, failing if it cannot be read."""
    location = candidate_location(explicit, env)
    if location is None:
        return Err(ConfigurationError("Could not determine the Atuin history database path"))

    context = {"path": str(location.path), "source": location.source}
    if not location.path.is_file():
        return Err(ConfigurationError("Atuin history database not found", context=context))
    if not os.access(location.path, os.R_OK):
        return Err(ConfigurationError("Atuin history database is not readable", context=context))

    logger.debug("Using history database %s (from %s)", location.path, location.source)
    return Ok(location.path)
