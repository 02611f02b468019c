"""Keyword matching and candidate filtering.

Pipeline, applied to every aggregated directory:
    1. every keyword must appear in the path (case-insensitive AND)
    2. excluded paths are dropped
    3. with ``restrict_to_subtree``, only strict descendants of cwd survive
    4. with ``exclude_cwd``, the current directory itself is dropped
    5. directories that no longer exist are dropped (checked on every query)
    6. survivors are scored; a last keyword found in the basename multiplies
       the score by ``BASENAME_BONUS``
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from atuin_z.core.aggregate import DirectoryStat
from atuin_z.core.exclusions import ExclusionSet
from atuin_z.core.scoring import ScoreMode, score

logger = logging.getLogger(__name__)

BASENAME_BONUS = 4.0
"""Multiplier for directories whose final component matches the last keyword.

Equal to the frecency weight gap between a visit within the day (2.0) and one
within the week (0.5). At equal recency a basename hit outranks parent-segment
hits with fewer than four times its visits.
"""

DirExists = Callable[[str], bool]


@dataclass(frozen=True, slots=True)
class ScoredDirectory:
    path: str
    score: float
    last_visit: int
    visit_count: int


@dataclass(frozen=True)
class FilterOptions:
    cwd: str | None = None
    restrict_to_subtree: bool = False
    exclude_cwd: bool = False
    exclusions: ExclusionSet = field(default_factory=ExclusionSet)
    stat_workers: int = 8
    parallel_stat_threshold: int = 64


def fold_keywords(keywords: Iterable[str]) -> list[str]:
    return [keyword.casefold() for keyword in keywords if keyword]


def matches_keywords(path: str, folded_keywords: Sequence[str]) -> bool:
    folded = path.casefold()
    return all(keyword in folded for keyword in folded_keywords)


def basename(path: str) -> str:
    return os.path.basename(path.rstrip("/"))


def basename_matches(path: str, folded_keywords: Sequence[str]) -> bool:
    if not folded_keywords:
        return False
    return folded_keywords[-1] in basename(path).casefold()


def is_descendant(path: str, root: str) -> bool:
    """True when ``path`` lies strictly below ``root``."""
    root = root.rstrip("/")
    if not root:
        return path.startswith("/") and path != "/"
    return path.startswith(root + "/") and len(path) > len(root) + 1


def check_existence(
    paths: Sequence[str],
    dir_exists: DirExists = os.path.isdir,
    *,
    workers: int = 8,
    threshold: int = 64,
) -> list[bool]:
    """Stat every path; results are in input order."""
    if len(paths) <= threshold or workers <= 1:
        return [dir_exists(path) for path in paths]
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="atuin-z-stat") as executor:
        return list(executor.map(dir_exists, paths))


def _passes_location_filters(path: str, options: FilterOptions) -> bool:
    if path in options.exclusions:
        return False
    if options.cwd is not None:
        if options.restrict_to_subtree and not is_descendant(path, options.cwd):
            return False
        if options.exclude_cwd and path.rstrip("/") == options.cwd.rstrip("/"):
            return False
    return True


def filter_candidates(
    stats: Iterable[DirectoryStat],
    keywords: Sequence[str],
    mode: ScoreMode,
    now_ns: int,
    options: FilterOptions | None = None,
    dir_exists: DirExists = os.path.isdir,
) -> list[ScoredDirectory]:
    """Match, filter and score candidates; the result is unordered."""
    options = options or FilterOptions()
    folded = fold_keywords(keywords)

    matched = [
        stat
        for stat in stats
        if matches_keywords(stat.path, folded) and _passes_location_filters(stat.path, options)
    ]

    exists = check_existence(
        [stat.path for stat in matched],
        dir_exists,
        workers=options.stat_workers,
        threshold=options.parallel_stat_threshold,
    )

    scored: list[ScoredDirectory] = []
    for stat, present in zip(matched, exists):
        if not present:
            continue
        value = score(stat, now_ns, mode)
        if basename_matches(stat.path, folded):
            value *= BASENAME_BONUS
        scored.append(
            ScoredDirectory(
                path=stat.path,
                score=value,
                last_visit=stat.last_visit,
                visit_count=stat.visit_count,
            )
        )

    logger.debug(
        "%d candidates matched %r; %d exist on disk", len(matched), list(keywords), len(scored)
    )
    return scored
