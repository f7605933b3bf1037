from __future__ import annotations

import datetime as dt
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from pypickem.models import BasketballStatLine, FootballStatLine


class ErrorResponse(BaseModel):
    error: str


class MetaResponse(BaseModel):
    season: int
    week: int


class NbaMetaResponse(BaseModel):
    date: dt.date


class StatsResponse(BaseModel):
    season: int
    season_used: Optional[int] = None
    week: int
    mode: str
    count: int
    source_url: Optional[str] = None
    parsed_rows: Optional[int] = None
    matched_rows: Optional[int] = None
    stats: Dict[str, FootballStatLine]
    points: Dict[str, float]
    warnings: List[str] = []


class BestWeekEntry(BaseModel):
    player_id: str
    name: str
    team: Optional[str] = None
    week: int
    points: float


class SeasonBestResponse(BaseModel):
    season: int
    season_used: Optional[int] = None
    mode: str
    count: int
    best: List[BestWeekEntry]
    warnings: List[str] = []


class NbaStatsResponse(BaseModel):
    date: dt.date
    count: int
    events: int = 0
    events_processed: int = 0
    stats: Dict[str, BasketballStatLine]
    points: Dict[str, float]
    warnings: List[str] = []


class LineupRequest(BaseModel):
    sport: str = Field(default="NFL")
    season: Optional[int] = None
    week: Optional[int] = Field(default=None, ge=1)
    date: Optional[dt.date] = None
    mode: str = Field(default="ppr")
    picks: Dict[str, Optional[str]] = Field(default_factory=dict)
    autofill: bool = False
    target: Optional[float] = Field(default=None, gt=0)


class LineupResponse(BaseModel):
    sport: str
    picks: Dict[str, Optional[str]]
    slot_points: Dict[str, float]
    total_points: float
    target_points: float
    distance: float
    hit: bool
    complete: bool
    warnings: List[str] = []
