import datetime as dt

import pytest

from pypickem.errors import NoDataFound, SourceUnavailable
from pypickem.pool.lineup import LineupError
from pypickem.models import BasketballPeriod, FootballPeriod
from pypickem.service import (
    evaluate_period_lineup,
    find_latest_period,
    get_current_period,
    get_player_pool,
    get_scoring_snapshot,
    get_season_best,
    normalize_sport,
)

from .payloads import ESPN_BASE, RAW_BASE, nfl_csv_gz, roster_entries, scoreboard


WEEK_ONE_ROWS = [
    "00-0000001,W.Out,WR,KC,2024,1,3,40,0,0,0",
    "00-0000001,W.Out,WR,KC,2024,1,5,40,0,0,0",
    "00-0000001,W.Out,WR,KC,2024,1,5,40,0,0,0",
    "00-0000002,Q.Back,QB,BUF,2024,1,0,0,300,3,1",
    "00-0000003,K.Icker,K,BUF,2024,1,0,0,0,0,0",
]
WEEK_TWO_ROWS = [
    "00-0000001,W.Out,WR,KC,2024,2,8,100,0,0,0",
    "00-0000002,Q.Back,QB,BUF,2024,2,0,0,150,0,2",
]


@pytest.mark.anyio
async def test_duplicate_weekly_pulls_take_the_max(settings, mock_http):
    routes = {f"{RAW_BASE}/player_stats_2024.csv.gz": nfl_csv_gz(WEEK_ONE_ROWS + WEEK_TWO_ROWS)}
    async with mock_http(routes) as client:
        snapshot = await get_scoring_snapshot(
            "nfl", FootballPeriod(season=2024, week=1), "ppr", settings=settings, client=client
        )

    assert snapshot.points == {"00-0000002": pytest.approx(22.0), "00-0000001": pytest.approx(9.0)}
    assert snapshot.stats["00-0000001"].rec == 5
    assert [record.player_id for record in snapshot.records] == ["00-0000002", "00-0000001"]
    assert snapshot.season_used == 2024
    assert snapshot.warnings == []
    assert snapshot.source_url == f"{RAW_BASE}/player_stats_2024.csv.gz"
    assert (snapshot.parsed_rows, snapshot.matched_rows) == (7, 5)


@pytest.mark.anyio
async def test_standard_mode_passing_line(settings, mock_http):
    routes = {f"{RAW_BASE}/player_stats_2024.csv.gz": nfl_csv_gz(WEEK_ONE_ROWS)}
    async with mock_http(routes) as client:
        snapshot = await get_scoring_snapshot(
            "NFL", FootballPeriod(season=2024, week=1), "std", settings=settings, client=client
        )
    assert round(snapshot.points["00-0000002"], 2) == 22.00


@pytest.mark.anyio
async def test_week_without_rows_is_empty_not_an_error(settings, mock_http):
    routes = {f"{RAW_BASE}/player_stats_2024.csv.gz": nfl_csv_gz(WEEK_ONE_ROWS)}
    async with mock_http(routes) as client:
        snapshot = await get_scoring_snapshot("NFL", FootballPeriod(season=2024, week=9), settings=settings, client=client)
    assert (snapshot.stats, snapshot.points, snapshot.warnings) == ({}, {}, [])


@pytest.mark.anyio
async def test_every_source_failing_raises(settings, mock_http):
    async with mock_http({}) as client:
        with pytest.raises(SourceUnavailable) as info:
            await get_scoring_snapshot("NFL", FootballPeriod(season=2024, week=1), settings=settings, client=client)
    assert len(info.value.attempts) == 5


@pytest.mark.anyio
async def test_nba_off_day_snapshot_is_empty(settings, mock_http):
    routes = {f"{ESPN_BASE}/scoreboard?dates=20250115": {"events": []}}
    async with mock_http(routes) as client:
        snapshot = await get_scoring_snapshot(
            "NBA", BasketballPeriod(date=dt.date(2025, 1, 15)), settings=settings, client=client
        )
    assert snapshot.stats == {}
    assert snapshot.points == {}
    assert snapshot.warnings == []
    assert (snapshot.events, snapshot.events_processed) == (0, 0)


@pytest.mark.anyio
async def test_nba_pool_survives_one_failed_team(settings, mock_http):
    routes = {
        f"{ESPN_BASE}/scoreboard?dates=20250115": scoreboard(
            [[("1", "BOS"), ("2", "NYK")], [("3", "LAL"), ("4", "GSW")], [("5", "MIA")]]
        ),
        f"{ESPN_BASE}/teams/5": "timeout",
    }
    for team_id, abbr in (("1", "BOS"), ("2", "NYK"), ("3", "LAL"), ("4", "GSW")):
        routes[f"{ESPN_BASE}/teams/{team_id}"] = roster_entries(abbr, [(f"{team_id}0", f"{abbr} Guard", "PG")])

    async with mock_http(routes) as client:
        pool = await get_player_pool("nba", BasketballPeriod(date=dt.date(2025, 1, 15)), settings=settings, client=client)

    assert [player.id for player in pool.players] == ["nba:10", "nba:40", "nba:30", "nba:20"]
    assert pool.warnings == ["team 5 (MIA): timed out"]


@pytest.mark.anyio
async def test_football_pool_for_unpublished_season_reports_season_used(settings, mock_http):
    routes = {f"{RAW_BASE}/player_stats_2024.csv.gz": nfl_csv_gz(WEEK_ONE_ROWS + WEEK_TWO_ROWS)}
    async with mock_http(routes) as client:
        pool = await get_player_pool("NFL", 2025, settings=settings, client=client)

    assert pool.season_used == 2024
    assert pool.warnings == ["No published stats for 2025; using 2024"]
    assert [player.name for player in pool.players] == ["Q.Back", "W.Out"]


@pytest.mark.anyio
async def test_football_pool_rejects_basketball_period(settings):
    with pytest.raises(ValueError):
        await get_player_pool("NFL", BasketballPeriod(date=dt.date(2025, 1, 15)), settings=settings)


@pytest.mark.anyio
async def test_season_best_keeps_each_players_best_week(settings, mock_http):
    routes = {f"{RAW_BASE}/player_stats_2024.csv.gz": nfl_csv_gz(WEEK_ONE_ROWS + WEEK_TWO_ROWS)}
    async with mock_http(routes) as client:
        snapshot = await get_season_best(2024, "ppr", settings=settings, client=client)

    weeks = {record.player_id: record.period.week for record in snapshot.records}
    assert weeks == {"00-0000001": 2, "00-0000002": 1}
    assert snapshot.points["00-0000001"] == pytest.approx(18.0)


@pytest.mark.anyio
async def test_find_latest_period_walks_backward(settings, mock_http):
    routes = {f"{RAW_BASE}/player_stats_2024.csv.gz": nfl_csv_gz(WEEK_ONE_ROWS + WEEK_TWO_ROWS)}
    async with mock_http(routes) as client:
        period = await find_latest_period("ppr", settings=settings, client=client, seasons=[2025, 2024])
        requested = list(client.requested)

    assert period == FootballPeriod(season=2024, week=2)
    assert requested.count(f"{RAW_BASE}/player_stats_2024.csv.gz") == 1
    assert requested.count(f"{RAW_BASE}/player_stats_2025.csv.gz") == 1


@pytest.mark.anyio
async def test_find_latest_period_exhausted(settings, mock_http):
    async with mock_http({}) as client:
        with pytest.raises(NoDataFound):
            await find_latest_period(settings=settings, client=client, seasons=[2024, 2023])


def test_current_period_per_sport(settings):
    now = dt.datetime(2024, 10, 1, 2, 0, tzinfo=dt.timezone.utc)
    assert get_current_period("nfl", now, settings=settings) == FootballPeriod(season=2024, week=4)
    assert get_current_period("NBA", now, settings=settings) == BasketballPeriod(date=dt.date(2024, 9, 30))


def test_unknown_sport_is_value_error():
    with pytest.raises(ValueError):
        normalize_sport("curling")


@pytest.mark.anyio
async def test_lineup_counts_pool_player_without_week_stats_as_zero(settings, mock_http):
    bench = "00-0000009,B.Ench,RB,NYJ,2024,2,2,20,0,0,0"
    routes = {f"{RAW_BASE}/player_stats_2024.csv.gz": nfl_csv_gz(WEEK_ONE_ROWS + [bench])}
    async with mock_http(routes) as client:
        outcome = await evaluate_period_lineup(
            "NFL",
            FootballPeriod(season=2024, week=1),
            {"QB": "00-0000002", "RB": "00-0000009"},
            settings=settings,
            client=client,
        )
        requested = list(client.requested)

    assert outcome.result.slot_points == pytest.approx({"QB": 22.0, "RB": 0.0, "WR": 0.0, "TE": 0.0})
    assert "00-0000009" in [player.id for player in outcome.pool]
    assert outcome.snapshot.matched_rows == 5
    assert len(requested) == 1


@pytest.mark.anyio
async def test_lineup_target_override(settings, mock_http):
    routes = {f"{RAW_BASE}/player_stats_2024.csv.gz": nfl_csv_gz(WEEK_ONE_ROWS)}
    period = FootballPeriod(season=2024, week=1)
    async with mock_http(routes) as client:
        outcome = await evaluate_period_lineup(
            "nfl", period, {}, autofill=True, target=30.5, settings=settings, client=client
        )
        with pytest.raises(LineupError):
            await evaluate_period_lineup("NFL", period, {"WR": "00-0000002"}, settings=settings, client=client)

    assert outcome.result.total_points == pytest.approx(31.0)
    assert outcome.result.target_points == 30.5
    assert outcome.result.hit is True
