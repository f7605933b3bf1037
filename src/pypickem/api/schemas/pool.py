from __future__ import annotations

import datetime as dt
from typing import List, Optional

from pydantic import BaseModel


class PlayerResponse(BaseModel):
    id: str
    name: str
    position: str
    team: Optional[str] = None


class PlayersResponse(BaseModel):
    season: int
    season_used: Optional[int] = None
    week: Optional[int] = None
    count: int
    source_url: Optional[str] = None
    players: List[PlayerResponse]
    warnings: List[str] = []


class NbaPlayersResponse(BaseModel):
    date: dt.date
    count: int
    teams_tried: int = 0
    rosters_ok: int = 0
    used_fallback_teams: bool = False
    players: List[PlayerResponse]
    warnings: List[str] = []
