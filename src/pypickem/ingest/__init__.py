"""Upstream adapters that fetch raw rows and normalize provider fields."""

from .fields import ABSENT, as_number, normalize_position, resolve
from .basketball import BoxScoreSlate, RosterPool, fetch_box_scores, fetch_rosters
from .football import (
    SeasonSnapshot,
    fetch_season_rows,
    fetch_season_with_fallback,
    observations_for_week,
    players_from_rows,
)

__all__ = [
    "ABSENT",
    "BoxScoreSlate",
    "RosterPool",
    "SeasonSnapshot",
    "as_number",
    "fetch_box_scores",
    "fetch_rosters",
    "fetch_season_rows",
    "fetch_season_with_fallback",
    "normalize_position",
    "observations_for_week",
    "players_from_rows",
    "resolve",
]
