"""Persisted exclusion list.

The list lives in ``$XDG_DATA_HOME/atuin-z/exclusions`` (falling back to
``~/.local/share``), one absolute path per line. It belongs to atuin-z alone
and is safe to edit by hand: blank lines and ``#`` comments are ignored.

Writers hold an exclusive ``flock`` on a sibling lock file for the whole
read-modify-write and publish the new content with ``os.replace``, so readers
never observe a partial file and concurrent ``add`` calls never drop entries.
"""

from __future__ import annotations

import fcntl
import logging
import os
import tempfile
from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from pathlib import Path

from atuin_z.core.result import ExclusionStoreError, Result, try_result

logger = logging.getLogger(__name__)

APP_DIR = "atuin-z"
EXCLUSIONS_FILENAME = "exclusions"
LOCK_SUFFIX = ".lock"


class ExclusionSet:
    """Immutable, insertion-ordered set of excluded directory paths."""

    __slots__ = ("_paths",)

    def __init__(self, paths: Iterable[str] = ()) -> None:
        self._paths: dict[str, None] = dict.fromkeys(paths)

    def __contains__(self, path: object) -> bool:
        return path in self._paths

    def __iter__(self) -> Iterator[str]:
        return iter(self._paths)

    def __len__(self) -> int:
        return len(self._paths)

    def __repr__(self) -> str:
        return f"ExclusionSet({list(self._paths)!r})"

    def contains(self, path: str) -> bool:
        return path in self._paths


def exclusions_path(env: Mapping[str, str]) -> Path:
    xdg = env.get("XDG_DATA_HOME")
    if xdg:
        base = Path(xdg).expanduser()
    else:
        home = env.get("HOME")
        base = (Path(home) if home else Path.home()) / ".local" / "share"
    return base / APP_DIR / EXCLUSIONS_FILENAME


def normalize_path(path: str | Path, cwd: str | Path) -> str:
    """Return ``path`` made absolute against ``cwd``, normalized lexically.

    Symlinks are left alone: Atuin records the logical ``$PWD``, and exclusions
    are matched against history paths byte for byte.
    """
    expanded = os.path.expanduser(os.fspath(path))
    return os.path.normpath(os.path.join(os.fspath(cwd), expanded))


def parse_exclusions(text: str) -> ExclusionSet:
    entries = []
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        entries.append(line)
    return ExclusionSet(entries)


class ExclusionStore:
    def __init__(self, path: Path) -> None:
        self.path = path

    @classmethod
    def from_env(cls, env: Mapping[str, str]) -> ExclusionStore:
        return cls(exclusions_path(env))

    @property
    def lock_path(self) -> Path:
        return self.path.with_name(self.path.name + LOCK_SUFFIX)

    def _read_text(self) -> str:
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ""
        except (OSError, UnicodeDecodeError) as exc:
            raise ExclusionStoreError(
                "Failed to read exclusions file",
                context={"path": str(self.path), "error": str(exc)},
            ) from exc

    def load(self) -> ExclusionSet:
        """Read the persisted set; a missing file is an empty set."""
        return parse_exclusions(self._read_text())

    def contains(self, path: str) -> bool:
        return self.load().contains(path)

    def add(self, path: str | Path, cwd: str | Path) -> bool:
        """Exclude ``path``; returns False when it was already excluded."""
        normalized = normalize_path(path, cwd)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self._locked():
                text = self._read_text()
                if normalized in parse_exclusions(text):
                    logger.debug("%s is already excluded", normalized)
                    return False
                if text and not text.endswith("\n"):
                    text += "\n"
                self._write(f"{text}{normalized}\n")
        except OSError as exc:
            raise ExclusionStoreError(
                "Failed to update exclusions file",
                context={"path": str(self.path), "error": str(exc)},
            ) from exc
        logger.debug("Excluded %s", normalized)
        return True

    def add_many(self, paths: Iterable[str | Path], cwd: str | Path) -> list[str]:
        """Exclude several paths, returning the normalized ones that were new."""
        added = []
        for path in paths:
            normalized = normalize_path(path, cwd)
            if self.add(normalized, cwd):
                added.append(normalized)
        return added

    @contextmanager
    def _locked(self) -> Iterator[None]:
        fd = os.open(self.lock_path, os.O_RDWR | os.O_CREAT, 0o644)
        try:
            fcntl.flock(fd, fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(fd, fcntl.LOCK_UN)
        finally:
            os.close(fd)

    def _write(self, text: str) -> None:
        fd, temp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(text)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(temp_name, self.path)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise


def load_exclusions(env: Mapping[str, str]) -> Result[ExclusionSet, ExclusionStoreError]:
    return try_result(ExclusionStore.from_env(env).load, ExclusionStoreError)
