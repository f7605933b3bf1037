"""Player pool utilities (aggregation, lineups, export)."""

from .aggregate import (
    AggregateResult,
    MergePolicy,
    PlayerObservation,
    aggregate,
    best_records,
    dedup_players,
    merge_sections,
    sort_records,
)
from .export import export_records_to_csv
from .lineup import LineupError, LineupResult, autofill_lineup, evaluate_lineup

__all__ = [
    "AggregateResult",
    "LineupError",
    "LineupResult",
    "MergePolicy",
    "PlayerObservation",
    "aggregate",
    "autofill_lineup",
    "best_records",
    "dedup_players",
    "evaluate_lineup",
    "export_records_to_csv",
    "merge_sections",
    "sort_records",
]
