"""Scoring periods: season/week for football, a calendar date for basketball."""

from __future__ import annotations

import datetime as dt
from typing import Union

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


MAX_REGULAR_WEEK = 18
MAX_WEEK = 22


class FootballPeriod(BaseModel):
    season: int = Field(..., ge=1999, le=2100)
    week: int = Field(..., ge=1, le=MAX_WEEK)

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"{self.season} week {self.week}"


class BasketballPeriod(BaseModel):
    date: dt.date

    model_config = ConfigDict(frozen=True)

    @property
    def compact(self) -> str:
        """Date in the ``YYYYMMDD`` form the scoreboard expects."""
        return self.date.strftime("%Y%m%d")

    def __str__(self) -> str:
        return self.date.isoformat()


Period = Union[FootballPeriod, BasketballPeriod]
