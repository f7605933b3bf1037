"""Pipeline entry points: period -> adapter -> field resolver -> aggregator -> scores."""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Union

import httpx

from pypickem.config.roster import get_rules
from pypickem.config.settings import Settings
from pypickem.errors import SourceUnavailable
from pypickem.ingest.basketball import fetch_box_scores, fetch_rosters
from pypickem.ingest.football import (
    SeasonSnapshot,
    fetch_season_rows,
    fetch_season_with_fallback,
    observations_for_week,
    players_from_rows,
    row_week,
)
from pypickem.ingest.http import open_client
from pypickem.models import (
    BasketballPeriod,
    FootballPeriod,
    Period,
    PlayerIdentity,
    ScoringRecord,
    StatLine,
)
from pypickem.period import (
    current_basketball_period,
    current_football_period,
    probe_latest_football_period,
    probe_seasons,
)
from pypickem.pool.aggregate import AggregateResult, PlayerObservation, aggregate, best_records
from pypickem.pool.lineup import LineupResult, autofill_lineup, evaluate_lineup
from pypickem.scoring import ScoringMode


logger = logging.getLogger(__name__)

# A bare season selects the whole season for football pools.
PoolScope = Union[Period, int]


@dataclass
class PlayerPool:
    players: List[PlayerIdentity]
    warnings: List[str] = field(default_factory=list)
    season_used: Optional[int] = None
    source_url: Optional[str] = None
    teams_tried: Optional[int] = None
    rosters_ok: Optional[int] = None
    used_fallback_teams: Optional[bool] = None


@dataclass
class ScoringSnapshot:
    """Per-player stats and points for one period, in presentation order.

    Football snapshots also report the season file they were read from and
    its row counts; basketball snapshots report how many of the slate's games
    were processed, so an off day (zero events) can be told apart from a
    slate whose games all failed.
    """

    records: List[ScoringRecord] = field(default_factory=list)
    players: Dict[str, PlayerIdentity] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
    season_used: Optional[int] = None
    source_url: Optional[str] = None
    parsed_rows: Optional[int] = None
    matched_rows: Optional[int] = None
    events: Optional[int] = None
    events_processed: Optional[int] = None

    @property
    def stats(self) -> Dict[str, StatLine]:
        return {record.player_id: record.stat_line for record in self.records}

    @property
    def points(self) -> Dict[str, float]:
        return {record.player_id: record.points for record in self.records}

    @classmethod
    def from_aggregate(
        cls,
        result: AggregateResult,
        warnings: Sequence[str],
        season_used: Optional[int] = None,
        **diagnostics: Optional[int | str],
    ) -> "ScoringSnapshot":
        return cls(
            records=list(result.records),
            players=dict(result.players),
            warnings=[*warnings, *result.warnings],
            season_used=season_used,
            **diagnostics,
        )


@dataclass
class LineupOutcome:
    result: LineupResult
    snapshot: ScoringSnapshot
    pool: List[PlayerIdentity]
    warnings: List[str] = field(default_factory=list)


def normalize_sport(sport: str) -> str:
    """Upper-cased sport key; unknown sports raise ValueError."""

    key = (sport or "").strip().upper()
    try:
        return get_rules(key).sport
    except KeyError as exc:
        raise ValueError(f"Unsupported sport {sport!r}") from exc


def _fallback_warning(requested: int, snapshot: SeasonSnapshot) -> List[str]:
    if snapshot.season == requested:
        return []
    return [f"No published stats for {requested}; using {snapshot.season}"]


def _football_snapshot(
    requested_season: int,
    season: SeasonSnapshot,
    week: int,
    mode: ScoringMode,
    settings: Settings,
) -> ScoringSnapshot:
    pairs, warnings = observations_for_week(season.rows, week)
    period = FootballPeriod(season=season.season, week=week)
    result = aggregate(
        (observation for _, observation in pairs),
        period=period,
        mode=mode,
        policy=settings.merge_policy,
    )
    matched = sum(1 for row in season.rows if row_week(row) == week)
    logger.info(
        "Scored %d players for %s (%s) from %d/%d rows of %s",
        len(result.records),
        period,
        mode.value,
        matched,
        len(season.rows),
        season.url,
    )
    return ScoringSnapshot.from_aggregate(
        result,
        _fallback_warning(requested_season, season) + warnings,
        season_used=season.season,
        source_url=season.url,
        parsed_rows=len(season.rows),
        matched_rows=matched,
    )


async def get_player_pool(
    sport: str,
    period: PoolScope,
    *,
    settings: Settings | None = None,
    client: httpx.AsyncClient | None = None,
) -> PlayerPool:
    """Selectable players for a period.

    Football accepts a ``FootballPeriod`` or a bare season (every player with
    a row that season). Basketball takes the date's slate rosters.
    """

    settings = settings or Settings()
    sport_key = normalize_sport(sport)

    if sport_key == "NFL":
        if isinstance(period, FootballPeriod):
            season, week = period.season, period.week
        elif isinstance(period, int) and not isinstance(period, bool):
            season, week = period, None
        else:
            raise ValueError("NFL player pools need a season or a FootballPeriod")
        snapshot = await fetch_season_with_fallback(season, settings=settings, client=client)
        players, warnings = players_from_rows(snapshot.rows, week)
        return PlayerPool(
            players=players,
            warnings=_fallback_warning(season, snapshot) + warnings,
            season_used=snapshot.season,
            source_url=snapshot.url,
        )

    if not isinstance(period, BasketballPeriod):
        raise ValueError("NBA player pools need a BasketballPeriod")
    roster = await fetch_rosters(period, settings=settings, client=client)
    return PlayerPool(
        players=roster.players,
        warnings=roster.warnings,
        teams_tried=roster.teams_tried,
        rosters_ok=roster.rosters_ok,
        used_fallback_teams=roster.used_fallback_teams,
    )


async def get_scoring_snapshot(
    sport: str,
    period: Period,
    mode: "ScoringMode | str" = ScoringMode.PPR,
    *,
    settings: Settings | None = None,
    client: httpx.AsyncClient | None = None,
) -> ScoringSnapshot:
    """Stats and fantasy points for every player observed in ``period``.

    A period with no games yet yields empty maps, not an error.
    """

    settings = settings or Settings()
    sport_key = normalize_sport(sport)
    scoring_mode = ScoringMode.parse(mode)

    if sport_key == "NFL":
        if not isinstance(period, FootballPeriod):
            raise ValueError("NFL snapshots need a FootballPeriod")
        season = await fetch_season_with_fallback(period.season, settings=settings, client=client)
        return _football_snapshot(period.season, season, period.week, scoring_mode, settings)

    if not isinstance(period, BasketballPeriod):
        raise ValueError("NBA snapshots need a BasketballPeriod")
    slate = await fetch_box_scores(period, settings=settings, client=client)
    result = aggregate(slate.observations, period=period, mode=scoring_mode, policy=settings.merge_policy)
    logger.info(
        "Scored %d players from %d/%d games on %s",
        len(result.records),
        slate.events_processed,
        slate.events,
        period,
    )
    return ScoringSnapshot.from_aggregate(
        result,
        slate.warnings,
        events=slate.events,
        events_processed=slate.events_processed,
    )


async def get_season_best(
    season: int,
    mode: "ScoringMode | str" = ScoringMode.PPR,
    *,
    settings: Settings | None = None,
    client: httpx.AsyncClient | None = None,
) -> ScoringSnapshot:
    """Each football player's single best week of ``season``.

    Every record keeps the period of the week it came from.
    """

    settings = settings or Settings()
    scoring_mode = ScoringMode.parse(mode)
    snapshot = await fetch_season_with_fallback(season, settings=settings, client=client)
    pairs, warnings = observations_for_week(snapshot.rows, None)

    by_week: Dict[int, List[PlayerObservation]] = {}
    for week, observation in pairs:
        by_week.setdefault(week, []).append(observation)

    weekly: List[ScoringRecord] = []
    players: Dict[str, PlayerIdentity] = {}
    for week in sorted(by_week):
        result = aggregate(
            by_week[week],
            period=FootballPeriod(season=snapshot.season, week=week),
            mode=scoring_mode,
            policy=settings.merge_policy,
        )
        weekly.extend(result.records)
        for player_id, player in result.players.items():
            players.setdefault(player_id, player)

    return ScoringSnapshot(
        records=best_records(weekly),
        players=players,
        warnings=_fallback_warning(season, snapshot) + warnings,
        season_used=snapshot.season,
        source_url=snapshot.url,
        parsed_rows=len(snapshot.rows),
        matched_rows=len(pairs),
    )


async def evaluate_period_lineup(
    sport: str,
    period: Period,
    picks: Mapping[str, Optional[str]],
    mode: "ScoringMode | str" = ScoringMode.PPR,
    *,
    target: Optional[float] = None,
    autofill: bool = False,
    settings: Settings | None = None,
    client: httpx.AsyncClient | None = None,
) -> LineupOutcome:
    """Total a slot -> player id lineup against the target for ``period``.

    Picks are position-checked against the whole selectable pool, so a pool
    player without stats for the period (bye, injury) is valid and scores 0.
    Football reads the season file once for both the pool and the scores.
    """

    settings = settings or Settings()
    sport_key = normalize_sport(sport)
    scoring_mode = ScoringMode.parse(mode)
    warnings: List[str] = []

    if sport_key == "NFL":
        if not isinstance(period, FootballPeriod):
            raise ValueError("NFL lineups need a FootballPeriod")
        season = await fetch_season_with_fallback(period.season, settings=settings, client=client)
        snapshot = _football_snapshot(period.season, season, period.week, scoring_mode, settings)
        pool, _ = players_from_rows(season.rows)
    else:
        if not isinstance(period, BasketballPeriod):
            raise ValueError("NBA lineups need a BasketballPeriod")
        async with open_client(settings, client) as http:
            snapshot = await get_scoring_snapshot(sport_key, period, scoring_mode, settings=settings, client=http)
            try:
                roster = await get_player_pool(sport_key, period, settings=settings, client=http)
                pool = roster.players
                warnings.extend(roster.warnings)
            except SourceUnavailable as exc:
                logger.warning("Rosters unavailable for %s lineup: %s", period, exc.attempts)
                pool = []
                warnings.append("rosters unavailable: positions checked against scored players only")

    known: Dict[str, PlayerIdentity] = {player.id: player for player in pool}
    for player_id, player in snapshot.players.items():
        known.setdefault(player_id, player)

    chosen = dict(picks)
    if autofill:
        chosen = autofill_lineup(list(known.values()), snapshot.points, sport=sport_key)
    result = evaluate_lineup(chosen, snapshot.points, sport=sport_key, players=known, target=target)
    return LineupOutcome(
        result=result,
        snapshot=snapshot,
        pool=pool,
        warnings=[*snapshot.warnings, *warnings],
    )


def get_current_period(
    sport: str,
    now: Optional[dt.datetime] = None,
    *,
    settings: Settings | None = None,
) -> Period:
    settings = settings or Settings()
    if normalize_sport(sport) == "NFL":
        return current_football_period(now)
    return current_basketball_period(now, timezone=settings.reference_timezone)


async def find_latest_period(
    mode: "ScoringMode | str" = ScoringMode.PPR,
    *,
    settings: Settings | None = None,
    client: httpx.AsyncClient | None = None,
    seasons: Sequence[int] | None = None,
    now: Optional[dt.datetime] = None,
) -> FootballPeriod:
    """Most recent football week with scored players.

    Each candidate season file is downloaded at most once per call; a season
    whose sources all fail simply has no data.
    """

    settings = settings or Settings()
    scoring_mode = ScoringMode.parse(mode)
    candidates = tuple(seasons or settings.probe_seasons or probe_seasons(current_football_period(now).season))
    loaded: Dict[int, list] = {}

    async with open_client(settings, client) as http:

        async def load(season: int) -> list:
            if season not in loaded:
                try:
                    snapshot = await fetch_season_rows(season, settings=settings, client=http)
                    loaded[season] = snapshot.rows
                except SourceUnavailable as exc:
                    logger.info("Season %d unavailable during probe: %s", season, exc.attempts)
                    loaded[season] = []
            return loaded[season]

        async def has_data(period: FootballPeriod) -> bool:
            rows = await load(period.season)
            pairs, _ = observations_for_week(rows, period.week)
            result = aggregate((obs for _, obs in pairs), period=period, mode=scoring_mode)
            return bool(result.records)

        return await probe_latest_football_period(has_data, candidates)


__all__ = [
    "LineupOutcome",
    "PlayerPool",
    "ScoringSnapshot",
    "evaluate_period_lineup",
    "find_latest_period",
    "get_current_period",
    "get_player_pool",
    "get_scoring_snapshot",
    "get_season_best",
    "normalize_sport",
]
