"""Canonical models shared across ingestion, scoring and the API."""

from .period import BasketballPeriod, FootballPeriod, Period
from .player import PlayerIdentity, normalize_name, synthesize_player_id
from .stats import BasketballStatLine, FootballStatLine, ScoringRecord, StatLine

__all__ = [
    "BasketballPeriod",
    "BasketballStatLine",
    "FootballPeriod",
    "FootballStatLine",
    "Period",
    "PlayerIdentity",
    "ScoringRecord",
    "StatLine",
    "normalize_name",
    "synthesize_player_id",
]
