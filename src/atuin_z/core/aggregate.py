"""Per-directory visit statistics."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from atuin_z.core.history import HistoryRecord


@dataclass(slots=True)
class DirectoryStat:
    path: str
    visit_count: int
    last_visit: int


def aggregate(records: Iterable[HistoryRecord]) -> dict[str, DirectoryStat]:
    """Collapse a record stream into one stat per exact directory path.

    The stream is consumed once; memory grows with the number of distinct
    directories, not the number of records.
    """
    stats: dict[str, DirectoryStat] = {}
    for record in records:
        stat = stats.get(record.directory)
        if stat is None:
            stats[record.directory] = DirectoryStat(
                path=record.directory, visit_count=1, last_visit=record.timestamp
            )
            continue
        stat.visit_count += 1
        if record.timestamp > stat.last_visit:
            stat.last_visit = record.timestamp
    return stats
