"""REST API for pick'em player pools and scoring snapshots."""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from fastapi import FastAPI, HTTPException, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from pypickem.api.schemas import (
    BestWeekEntry,
    LineupRequest,
    LineupResponse,
    MetaResponse,
    NbaMetaResponse,
    NbaPlayersResponse,
    NbaStatsResponse,
    PlayerResponse,
    PlayersResponse,
    SeasonBestResponse,
    StatsResponse,
)
from pypickem.config.settings import Settings
from pypickem.errors import NoDataFound, SourceUnavailable
from pypickem.models import BasketballPeriod, FootballPeriod, PlayerIdentity
from pypickem.period import (
    current_basketball_period,
    current_football_period,
    meta_cache_headers,
    parse_date,
)
from pypickem.pool.lineup import LineupError
from pypickem.scoring import ScoringMode
from pypickem import service


logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _player_response(player: PlayerIdentity) -> PlayerResponse:
    return PlayerResponse(id=player.id, name=player.name, position=player.position, team=player.team)


def _parse_mode(mode: str) -> ScoringMode:
    try:
        return ScoringMode.parse(mode)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _football_period(season: Optional[int], week: Optional[int]) -> FootballPeriod:
    current = current_football_period()
    try:
        return FootballPeriod(
            season=season if season is not None else current.season,
            week=week if week is not None else current.week,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid season/week: {season}/{week}") from exc


def _basketball_period(date: Optional[str], settings: Settings) -> BasketballPeriod:
    if not date:
        return current_basketball_period(timezone=settings.reference_timezone)
    try:
        return BasketballPeriod(date=parse_date(date))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def create_app(
    settings: Settings | None = None,
    client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Build the app; ``client`` is shared by every upstream call when given."""

    app = FastAPI(title="pypickem")
    app.state.settings = settings or Settings.from_env()

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException) -> JSONResponse:
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = "; ".join(
            f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg')}"
            for error in exc.errors()
        )
        return _error(400, details or "Invalid request")

    @app.exception_handler(SourceUnavailable)
    async def source_unavailable(request: Request, exc: SourceUnavailable) -> JSONResponse:
        logger.warning("Upstream unavailable for %s: %s", request.url.path, exc)
        return _error(502, str(exc))

    @app.exception_handler(NoDataFound)
    async def no_data(request: Request, exc: NoDataFound) -> JSONResponse:
        return _error(404, str(exc))

    def current_settings() -> Settings:
        return app.state.settings

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/meta", response_model=MetaResponse)
    async def meta(response: Response) -> MetaResponse:
        period = current_football_period()
        response.headers.update(meta_cache_headers(period))
        return MetaResponse(season=period.season, week=period.week)

    @app.get("/api/nba/meta", response_model=NbaMetaResponse)
    async def nba_meta() -> NbaMetaResponse:
        period = current_basketball_period(timezone=current_settings().reference_timezone)
        return NbaMetaResponse(date=period.date)

    @app.get("/api/players", response_model=PlayersResponse)
    async def players(
        season: Optional[int] = Query(None, ge=1999, le=2100),
        week: Optional[int] = Query(None),
    ) -> PlayersResponse:
        if week is None:
            season_value = season if season is not None else current_football_period().season
            scope: Any = season_value
        else:
            scope = _football_period(season, week)
            season_value = scope.season
        pool = await service.get_player_pool("NFL", scope, settings=current_settings(), client=client)
        return PlayersResponse(
            season=season_value,
            season_used=pool.season_used,
            week=week,
            count=len(pool.players),
            source_url=pool.source_url,
            players=[_player_response(player) for player in pool.players],
            warnings=pool.warnings,
        )

    @app.get("/api/stats", response_model=StatsResponse)
    async def stats(
        season: Optional[int] = Query(None, ge=1999, le=2100),
        week: Optional[int] = Query(None),
        mode: str = Query("ppr"),
    ) -> StatsResponse:
        scoring_mode = _parse_mode(mode)
        period = _football_period(season, week)
        snapshot = await service.get_scoring_snapshot(
            "NFL", period, scoring_mode, settings=current_settings(), client=client
        )
        return StatsResponse(
            season=period.season,
            season_used=snapshot.season_used,
            week=period.week,
            mode=scoring_mode.value,
            count=len(snapshot.records),
            source_url=snapshot.source_url,
            parsed_rows=snapshot.parsed_rows,
            matched_rows=snapshot.matched_rows,
            stats=snapshot.stats,
            points=snapshot.points,
            warnings=snapshot.warnings,
        )

    @app.get("/api/best", response_model=SeasonBestResponse)
    async def season_best(
        season: Optional[int] = Query(None, ge=1999, le=2100),
        mode: str = Query("ppr"),
    ) -> SeasonBestResponse:
        scoring_mode = _parse_mode(mode)
        season_value = season if season is not None else current_football_period().season
        snapshot = await service.get_season_best(
            season_value, scoring_mode, settings=current_settings(), client=client
        )
        return SeasonBestResponse(
            season=season_value,
            season_used=snapshot.season_used,
            mode=scoring_mode.value,
            count=len(snapshot.records),
            best=[
                BestWeekEntry(
                    player_id=record.player_id,
                    name=record.name,
                    team=record.team,
                    week=record.period.week,
                    points=record.points,
                )
                for record in snapshot.records
            ],
            warnings=snapshot.warnings,
        )

    @app.get("/api/auto", response_model=MetaResponse)
    async def auto(mode: str = Query("ppr")) -> MetaResponse:
        scoring_mode = _parse_mode(mode)
        period = await service.find_latest_period(scoring_mode, settings=current_settings(), client=client)
        return MetaResponse(season=period.season, week=period.week)

    @app.get("/api/nba/players", response_model=NbaPlayersResponse)
    async def nba_players(date: Optional[str] = Query(None)) -> NbaPlayersResponse:
        period = _basketball_period(date, current_settings())
        pool = await service.get_player_pool("NBA", period, settings=current_settings(), client=client)
        return NbaPlayersResponse(
            date=period.date,
            count=len(pool.players),
            teams_tried=pool.teams_tried or 0,
            rosters_ok=pool.rosters_ok or 0,
            used_fallback_teams=bool(pool.used_fallback_teams),
            players=[_player_response(player) for player in pool.players],
            warnings=pool.warnings,
        )

    @app.get("/api/nba/stats", response_model=NbaStatsResponse)
    async def nba_stats(date: Optional[str] = Query(None)) -> NbaStatsResponse:
        period = _basketball_period(date, current_settings())
        snapshot = await service.get_scoring_snapshot("NBA", period, settings=current_settings(), client=client)
        return NbaStatsResponse(
            date=period.date,
            count=len(snapshot.records),
            events=snapshot.events or 0,
            events_processed=snapshot.events_processed or 0,
            stats=snapshot.stats,
            points=snapshot.points,
            warnings=snapshot.warnings,
        )

    @app.post("/api/lineup", response_model=LineupResponse)
    async def lineup(request: LineupRequest) -> LineupResponse:
        try:
            sport = service.normalize_sport(request.sport)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        scoring_mode = _parse_mode(request.mode)
        settings = current_settings()
        period: Any
        if sport == "NFL":
            period = _football_period(request.season, request.week)
        else:
            period = (
                BasketballPeriod(date=request.date)
                if request.date
                else current_basketball_period(timezone=settings.reference_timezone)
            )

        try:
            outcome = await service.evaluate_period_lineup(
                sport,
                period,
                request.picks,
                scoring_mode,
                target=request.target,
                autofill=request.autofill,
                settings=settings,
                client=client,
            )
        except LineupError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        result = outcome.result
        return LineupResponse(
            sport=result.sport,
            picks=dict(result.picks),
            slot_points=dict(result.slot_points),
            total_points=result.total_points,
            target_points=result.target_points,
            distance=result.distance,
            hit=result.hit,
            complete=result.complete,
            warnings=outcome.warnings,
        )

    return app


__all__ = ["create_app"]
