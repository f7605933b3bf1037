"""CSV export helpers for scoring snapshots."""

from __future__ import annotations

import csv
from io import StringIO
from typing import Optional, Sequence

from pypickem.models import BasketballStatLine, FootballStatLine, ScoringRecord


class SnapshotExportError(RuntimeError):
    """Raised when records cannot share one CSV layout."""


_FOOTBALL_COLUMNS = tuple(
    name for name in FootballStatLine.model_fields if name != "precomputed"
)
_BASKETBALL_COLUMNS = tuple(BasketballStatLine.model_fields)
_SPORT_COLUMNS = {"NFL": _FOOTBALL_COLUMNS, "NBA": _BASKETBALL_COLUMNS}
_LINE_COLUMNS = {FootballStatLine: _FOOTBALL_COLUMNS, BasketballStatLine: _BASKETBALL_COLUMNS}


def _stat_columns(records: Sequence[ScoringRecord], sport: Optional[str]) -> tuple[str, ...]:
    kinds = {type(record.stat_line) for record in records}
    if len(kinds) > 1:
        raise SnapshotExportError("records mix football and basketball stat lines")
    if sport is not None:
        key = sport.upper()
        if key not in _SPORT_COLUMNS:
            raise SnapshotExportError(f"No export layout for sport {sport!r}")
        columns = _SPORT_COLUMNS[key]
        if kinds and _LINE_COLUMNS[kinds.pop()] != columns:
            raise SnapshotExportError(f"records do not match the {key} layout")
        return columns
    if not kinds:
        return ()
    return _LINE_COLUMNS[kinds.pop()]


def export_records_to_csv(records: Sequence[ScoringRecord], *, sport: Optional[str] = None) -> str:
    """Render records in presentation order with one column per stat.

    ``sport`` fixes the stat columns, so an empty snapshot still gets the
    right header; without it an empty export has no stat columns.
    """

    columns = _stat_columns(records, sport)
    buffer = StringIO()
    writer = csv.writer(buffer)
    writer.writerow(("rank", "player_id", "name", "team", "period", "points", *columns))
    for rank, record in enumerate(records, start=1):
        stats = record.stat_line.model_dump()
        writer.writerow(
            (
                rank,
                record.player_id,
                record.name,
                record.team or "",
                str(record.period),
                f"{record.points:.2f}",
                *(stats[column] for column in columns),
            )
        )
    return buffer.getvalue()


__all__ = [
    "SnapshotExportError",
    "export_records_to_csv",
]
