"""Per-player stat lines and the scored record built from them."""

from __future__ import annotations

from typing import Dict, Optional, Union

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from .period import BasketballPeriod, FootballPeriod


class FootballStatLine(BaseModel):
    """Weekly passing/rushing/receiving line. Absent categories are zero."""

    pass_yds: int = Field(default=0, ge=0)
    pass_td: int = Field(default=0, ge=0)
    pass_int: int = Field(default=0, ge=0)
    rush_yds: int = Field(default=0, ge=0)
    rush_td: int = Field(default=0, ge=0)
    rec: int = Field(default=0, ge=0)
    rec_yds: int = Field(default=0, ge=0)
    rec_td: int = Field(default=0, ge=0)
    fum_lost: int = Field(default=0, ge=0)
    # Upstream fantasy totals keyed by scoring mode value ("std", "half", "ppr").
    precomputed: Dict[str, float] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)


class BasketballStatLine(BaseModel):
    """Single-game box score line. ``min`` is informational only."""

    pts: int = Field(default=0, ge=0)
    reb: int = Field(default=0, ge=0)
    ast: int = Field(default=0, ge=0)
    stl: int = Field(default=0, ge=0)
    blk: int = Field(default=0, ge=0)
    tov: int = Field(default=0, ge=0)
    fg3m: int = Field(default=0, ge=0)
    min: float = Field(default=0.0, ge=0.0)

    model_config = ConfigDict(frozen=True)


StatLine = Union[FootballStatLine, BasketballStatLine]


class ScoringRecord(BaseModel):
    player_id: str = Field(..., min_length=1)
    name: str = ""
    team: Optional[str] = None
    period: Union[FootballPeriod, BasketballPeriod]
    points: float
    stat_line: StatLine

    model_config = ConfigDict(frozen=True)
