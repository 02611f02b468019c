from __future__ import annotations

import logging
import signal
import sys
from pathlib import Path
from types import FrameType

import click
import typer

from . import __version__
from .core.config import AppConfig, load_config
from .core.console import setup_logging, stderr_console
from .core.error_middleware import EXIT_FAILURE, format_error, format_for_cli
from .core.exclusions import ExclusionStore, load_exclusions
from .core.history import SqliteHistorySource
from .core.locator import resolve_db_path
from .core.ranking import QueryOptions, QueryResult, format_listing, run_query
from .core.result import AtuinZError, Err, Ok
from .core.runtime import QueryContext
from .core.scoring import ScoreMode
from .core.shell import Shell, init_script

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}

app = typer.Typer(
    help="Frecency-based directory jumping from Atuin history.",
    add_completion=False,
    context_settings=CONTEXT_SETTINGS,
)
init_app = typer.Typer(add_completion=False, context_settings=CONTEXT_SETTINGS)
logger = logging.getLogger(__name__)


def _handle_signal(signum: int, frame: FrameType | None) -> None:
    raise SystemExit(128 + signum)


def _register_signal_handlers() -> None:
    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


def _fail(exc: Exception, verbose: bool) -> typer.Exit:
    stderr_console.print(format_for_cli(format_error(exc, include_traceback=verbose)))
    return typer.Exit(code=EXIT_FAILURE)


def _score_mode(rank: bool, time: bool) -> ScoreMode:
    if rank and time:
        raise click.UsageError("-r/--rank and -t/--time are mutually exclusive")
    if rank:
        return ScoreMode.FREQUENCY
    if time:
        return ScoreMode.RECENCY
    return ScoreMode.FRECENCY


def _load_settings(config_path: Path | None, verbose: bool) -> AppConfig:
    config, meta = load_config(config_path=config_path)
    setup_logging(level=config.log_level, verbose=verbose)
    if meta.error:
        logger.warning("Ignoring invalid configuration in %s: %s", meta.path, meta.error)
    else:
        logger.debug(
            "Loaded configuration from %s (file loaded: %s, env overrides: %s)",
            meta.path,
            meta.file_loaded,
            sorted(meta.env_overrides),
        )
    return config


def exclude_paths(ctx: QueryContext, paths: list[str]) -> list[str]:
    """Add ``paths`` (or the current directory) to the exclusion list."""
    store = ExclusionStore.from_env(ctx.env)
    added = store.add_many(paths or [ctx.cwd], ctx.cwd)
    for path in added:
        logger.info("Excluded %s", path)
    return added


def rank_directories(
    ctx: QueryContext, db: str | None, options: QueryOptions
) -> QueryResult:
    """Locate the history database and rank its directories."""
    match resolve_db_path(db, ctx.env):
        case Err(err):
            raise err
        case Ok(db_path):
            pass

    match load_exclusions(ctx.env):
        case Err(err):
            raise err
        case Ok(exclusions):
            pass

    with SqliteHistorySource(
        db_path,
        include_failed=ctx.config.include_failed,
        busy_timeout=ctx.config.busy_timeout,
    ) as source:
        return run_query(ctx, source, options, exclusions)


@app.command()
def main(
    keywords: list[str] | None = typer.Argument(
        None, help="Keywords that must all appear in the directory path."
    ),
    list_: bool = typer.Option(False, "--list", "-l", help="List all matches with scores."),
    rank: bool = typer.Option(False, "--rank", "-r", help="Rank by frequency only."),
    time: bool = typer.Option(False, "--time", "-t", help="Rank by recency only."),
    current: bool = typer.Option(
        False, "--current", "-c", help="Restrict to subdirectories of the current directory."
    ),
    exclude: bool = typer.Option(
        False,
        "--exclude",
        "-x",
        help="Exclude the given paths (default: the current directory) from results.",
    ),
    db: str | None = typer.Option(None, "--db", help="Override the history database path."),
    config: Path | None = typer.Option(
        None, "--config", help="Path to an atuin-z config file (TOML or JSON)."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Print the atuin-z version.",
    ),
) -> None:
    """Print the best matching directory, or every match with -l."""
    mode = _score_mode(rank, time)
    settings = _load_settings(config, verbose)
    ctx = QueryContext.capture(settings)
    logger.debug("Query %s from %s", ctx.trace_id, ctx.cwd)

    if exclude:
        try:
            exclude_paths(ctx, keywords or [])
        except AtuinZError as exc:
            raise _fail(exc, verbose) from exc
        return

    options = QueryOptions(
        keywords=tuple(keywords or ()),
        mode=mode,
        list_all=list_,
        restrict_to_cwd=current,
        exclude_cwd=not list_,
    )
    try:
        result = rank_directories(ctx, db, options)
    except AtuinZError as exc:
        raise _fail(exc, verbose) from exc

    if options.list_all:
        for line in format_listing(result.ranked):
            typer.echo(line)
    elif (best := result.best) is not None:
        typer.echo(best.path)


@init_app.command("init")
def init(
    shell: Shell = typer.Argument(..., help="Shell to generate the z function for."),
) -> None:
    """Print the shell function that wraps atuin-z; eval it in your shell rc."""
    typer.echo(init_script(shell), nl=False)


def cli(argv: list[str] | None = None) -> None:
    args = sys.argv[1:] if argv is None else argv
    _register_signal_handlers()
    if args and args[0] == "init":
        init_app(args[1:], prog_name="atuin-z init")
    else:
        app(args, prog_name="atuin-z")


if __name__ == "__main__":
    cli()
