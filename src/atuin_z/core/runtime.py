"""
Immutable per-invocation runtime context for atuin-z.

Process-wide state (environment variables, the working directory, the clock)
is captured once when a command starts and passed explicitly through the
pipeline, so locating, scoring and matching never read globals.

Usage:
    from atuin_z.core.runtime import QueryContext

    ctx = QueryContext.capture(config)
    db = resolve_db_path(None, ctx.env)
    ranked = run_query(ctx, source, options, exclusions)
"""

from __future__ import annotations

import os
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from uuid import uuid4

from atuin_z.core.config import AppConfig

PWD_ENV_VAR = "ATUIN_Z_PWD"


def _resolve_cwd(env: Mapping[str, str]) -> str:
    """Prefer the directory the shell wrapper passed in over the process cwd."""
    pwd = env.get(PWD_ENV_VAR)
    if pwd:
        return os.path.normpath(os.path.abspath(os.path.expanduser(pwd)))
    return os.getcwd()


@dataclass(frozen=True, slots=True)
class QueryContext:
    """Snapshot of everything a query depends on outside its arguments."""

    config: AppConfig
    env: Mapping[str, str]
    cwd: str
    now_ns: int
    trace_id: str = field(default_factory=lambda: f"q-{uuid4().hex[:8]}")

    @classmethod
    def capture(
        cls,
        config: AppConfig,
        env: Mapping[str, str] | None = None,
        cwd: str | None = None,
        now_ns: int | None = None,
    ) -> QueryContext:
        snapshot = MappingProxyType(dict(os.environ if env is None else env))
        return cls(
            config=config,
            env=snapshot,
            cwd=cwd if cwd is not None else _resolve_cwd(snapshot),
            now_ns=now_ns if now_ns is not None else time.time_ns(),
        )

    @property
    def home(self) -> Path:
        home = self.env.get("HOME")
        return Path(home) if home else Path.home()
