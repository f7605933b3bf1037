"""Pydantic models for API I/O."""

from .pool import NbaPlayersResponse, PlayerResponse, PlayersResponse
from .snapshot import (
    BestWeekEntry,
    ErrorResponse,
    LineupRequest,
    LineupResponse,
    MetaResponse,
    NbaMetaResponse,
    NbaStatsResponse,
    SeasonBestResponse,
    StatsResponse,
)

__all__ = [
    "BestWeekEntry",
    "ErrorResponse",
    "LineupRequest",
    "LineupResponse",
    "MetaResponse",
    "NbaMetaResponse",
    "NbaPlayersResponse",
    "NbaStatsResponse",
    "PlayerResponse",
    "PlayersResponse",
    "SeasonBestResponse",
    "StatsResponse",
]
