"""Directory scoring.

Three mutually exclusive modes:
    - FRECENCY: visit count weighted by how long ago the last visit was
    - FREQUENCY: visit count only
    - RECENCY: last visit instant only (seconds since the epoch)

``now`` is always passed in so that a query scores every directory against
the same instant.
"""

from __future__ import annotations

from enum import Enum

from atuin_z.core.aggregate import DirectoryStat

NANOS_PER_SECOND = 1_000_000_000
HOUR_NS = 3600 * NANOS_PER_SECOND
DAY_NS = 24 * HOUR_NS
WEEK_NS = 7 * DAY_NS

# (max age inclusive, weight), checked in ascending order.
RECENCY_BUCKETS: tuple[tuple[int, float], ...] = (
    (HOUR_NS, 4.0),
    (DAY_NS, 2.0),
    (WEEK_NS, 0.5),
)
STALE_WEIGHT = 0.25


class ScoreMode(Enum):
    FRECENCY = "frecency"
    FREQUENCY = "frequency"
    RECENCY = "recency"


def recency_weight(age_ns: int) -> float:
    for limit, weight in RECENCY_BUCKETS:
        if age_ns <= limit:
            return weight
    return STALE_WEIGHT


def score(stat: DirectoryStat, now_ns: int, mode: ScoreMode = ScoreMode.FRECENCY) -> float:
    if mode is ScoreMode.FREQUENCY:
        return float(stat.visit_count)
    if mode is ScoreMode.RECENCY:
        return stat.last_visit / NANOS_PER_SECOND
    return stat.visit_count * recency_weight(now_ns - stat.last_visit)
