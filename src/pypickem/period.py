"""Resolve the scoring period for "now" and probe backward for populated weeks."""

from __future__ import annotations

import datetime as dt
import logging
import re
from typing import Awaitable, Callable, Dict, Optional, Sequence, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pypickem.errors import NoDataFound, PickemError
from pypickem.models import BasketballPeriod, FootballPeriod
from pypickem.models.period import MAX_REGULAR_WEEK, MAX_WEEK


logger = logging.getLogger(__name__)

SEPTEMBER = 9
MONDAY = 0
THURSDAY = 3
WEEK = dt.timedelta(days=7)

META_CACHE_CONTROL = "public, s-maxage=3600, stale-while-revalidate=86400"

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_COMPACT_DATE = re.compile(r"^\d{8}$")


def _utc(now: Optional[dt.datetime]) -> dt.datetime:
    if now is None:
        return dt.datetime.now(dt.timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=dt.timezone.utc)
    return now.astimezone(dt.timezone.utc)


def first_monday_of_september(year: int) -> dt.date:
    first = dt.date(year, SEPTEMBER, 1)
    return first + dt.timedelta(days=(MONDAY - first.weekday()) % 7)


def kickoff_for_season(season: int) -> dt.datetime:
    """Midnight UTC on the first Thursday strictly after Labor Day."""

    labor_day = first_monday_of_september(season)
    offset = (THURSDAY - labor_day.weekday()) % 7 or 7
    kickoff = labor_day + dt.timedelta(days=offset)
    return dt.datetime(kickoff.year, kickoff.month, kickoff.day, tzinfo=dt.timezone.utc)


def _week_since(kickoff: dt.datetime, now: dt.datetime) -> int:
    elapsed = (now - kickoff) // WEEK
    return min(MAX_REGULAR_WEEK, max(1, elapsed + 1))


def current_football_period(now: Optional[dt.datetime] = None) -> FootballPeriod:
    """Season and week for ``now`` (UTC).

    Before a season's kickoff the previous season is reported, with its week
    clamped to the regular-season maximum.
    """

    moment = _utc(now)
    season = moment.year if moment.month >= SEPTEMBER else moment.year - 1
    kickoff = kickoff_for_season(season)
    if moment < kickoff:
        season -= 1
        kickoff = kickoff_for_season(season)
    return FootballPeriod(season=season, week=_week_since(kickoff, moment))


def reference_zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone {name!r}") from exc


def current_basketball_period(
    now: Optional[dt.datetime] = None,
    *,
    timezone: str = "America/New_York",
) -> BasketballPeriod:
    """Today's slate date in the fixed reference timezone."""

    return BasketballPeriod(date=_utc(now).astimezone(reference_zone(timezone)).date())


def parse_date(value: str) -> dt.date:
    """Accept ``YYYY-MM-DD`` or ``YYYYMMDD``; anything else raises ValueError."""

    text = value.strip()
    if _ISO_DATE.match(text):
        return dt.date.fromisoformat(text)
    if _COMPACT_DATE.match(text):
        return dt.datetime.strptime(text, "%Y%m%d").date()
    raise ValueError(f"Invalid date {value!r}; expected YYYY-MM-DD")


def probe_seasons(current_season: int, count: int = 3) -> Tuple[int, ...]:
    """Default probe candidates: the current season, then the ones before it."""

    return tuple(current_season - offset for offset in range(max(1, count)))


def meta_cache_headers(period: FootballPeriod) -> Dict[str, str]:
    return {
        "Cache-Control": META_CACHE_CONTROL,
        "ETag": f'"{period.season}-{period.week}"',
    }


async def probe_latest_football_period(
    has_data: Callable[[FootballPeriod], Awaitable[bool]],
    seasons: Sequence[int],
    *,
    max_week: int = MAX_WEEK,
) -> FootballPeriod:
    """Walk weeks ``max_week..1`` of each season in order; first hit wins.

    ``has_data`` failing with a pipeline error counts as "no data" for that
    period. Raises ``NoDataFound`` once every candidate is exhausted.
    """

    searched = []
    for season in seasons:
        searched.append(season)
        for week in range(min(max_week, MAX_WEEK), 0, -1):
            period = FootballPeriod(season=season, week=week)
            try:
                found = await has_data(period)
            except PickemError as exc:
                logger.debug("Probe of %s failed: %s", period, exc)
                continue
            if found:
                logger.info("Latest populated period is %s", period)
                return period
    raise NoDataFound(searched)


__all__ = [
    "META_CACHE_CONTROL",
    "current_basketball_period",
    "current_football_period",
    "first_monday_of_september",
    "kickoff_for_season",
    "meta_cache_headers",
    "parse_date",
    "probe_latest_football_period",
    "probe_seasons",
]
