"""Result ordering and query orchestration.

``run_query`` drives a whole ranking pass for one invocation:

    history records -> aggregate -> filter/score -> sort

Ordering is score descending, then most recent visit, then path, so equal
scores always come out in the same order.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field

from atuin_z.core.aggregate import aggregate
from atuin_z.core.exclusions import ExclusionSet
from atuin_z.core.history import HistoryRecord, HistorySource
from atuin_z.core.matching import DirExists, FilterOptions, ScoredDirectory, filter_candidates
from atuin_z.core.runtime import QueryContext
from atuin_z.core.scoring import ScoreMode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueryOptions:
    keywords: tuple[str, ...] = ()
    mode: ScoreMode = ScoreMode.FRECENCY
    list_all: bool = False
    restrict_to_cwd: bool = False
    exclude_cwd: bool = False


@dataclass(frozen=True)
class QueryResult:
    ranked: list[ScoredDirectory] = field(default_factory=list)
    records_read: int = 0
    directories: int = 0

    @property
    def best(self) -> ScoredDirectory | None:
        return select_best(self.ranked)


def sort_key(entry: ScoredDirectory) -> tuple[float, int, str]:
    return (-entry.score, -entry.last_visit, entry.path)


def rank(candidates: Iterable[ScoredDirectory]) -> list[ScoredDirectory]:
    return sorted(candidates, key=sort_key)


def select_best(ranked: Sequence[ScoredDirectory]) -> ScoredDirectory | None:
    return ranked[0] if ranked else None


def format_listing(ranked: Iterable[ScoredDirectory]) -> list[str]:
    return [f"{entry.score:>10.1f}  {entry.path}" for entry in ranked]


def run_query(
    ctx: QueryContext,
    source: HistorySource,
    options: QueryOptions,
    exclusions: ExclusionSet,
    dir_exists: DirExists = os.path.isdir,
) -> QueryResult:
    """Rank every directory in ``source`` for the given query."""
    records_read = 0

    def counted() -> Iterator[HistoryRecord]:
        nonlocal records_read
        for record in source.iter_records():
            records_read += 1
            yield record

    stats = aggregate(counted())
    logger.debug(
        "Aggregated %d records into %d directories (mode=%s, exclusions=%d)",
        records_read,
        len(stats),
        options.mode.value,
        len(exclusions),
    )

    filter_options = FilterOptions(
        cwd=ctx.cwd,
        restrict_to_subtree=options.restrict_to_cwd,
        exclude_cwd=options.exclude_cwd,
        exclusions=exclusions,
        stat_workers=ctx.config.stat_workers,
        parallel_stat_threshold=ctx.config.parallel_stat_threshold,
    )
    candidates = filter_candidates(
        stats.values(),
        options.keywords,
        options.mode,
        ctx.now_ns,
        filter_options,
        dir_exists,
    )
    return QueryResult(
        ranked=rank(candidates),
        records_read=records_read,
        directories=len(stats),
    )
