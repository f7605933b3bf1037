import dataclasses

import pytest
from httpx import ASGITransport, AsyncClient

from pypickem.api import create_app
from pypickem.period import META_CACHE_CONTROL

from .payloads import ESPN_BASE, RAW_BASE, labelled_box_score, nfl_csv_gz, roster_entries, scoreboard


ROWS = [
    "00-0000001,W.Out,WR,KC,2024,1,3,40,0,0,0",
    "00-0000001,W.Out,WR,KC,2024,1,5,40,0,0,0",
    "00-0000002,Q.Back,QB,BUF,2024,1,0,0,300,3,1",
]
SEASON_URL = f"{RAW_BASE}/player_stats_2024.csv.gz"
# Only plays week 2, so is in the season pool but has no week-1 stats.
BENCH_ROW = "00-0000009,B.Ench,RB,NYJ,2024,2,2,20,0,0,0"


@pytest.fixture
def api(settings, mock_http):
    """Factory for an API client whose upstream is ``mock_http(routes)``."""

    def factory(routes, *, app_settings=None):
        upstream = mock_http(routes)
        app = create_app(app_settings or settings, client=upstream)
        return AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver")

    return factory


@pytest.mark.anyio
async def test_health(api):
    async with api({}) as client:
        response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.anyio
async def test_meta_is_cacheable(api):
    async with api({}) as client:
        response = await client.get("/api/meta")
    assert response.status_code == 200
    body = response.json()
    assert 1 <= body["week"] <= 18
    assert response.headers["cache-control"] == META_CACHE_CONTROL
    assert response.headers["etag"] == f'"{body["season"]}-{body["week"]}"'


@pytest.mark.anyio
async def test_stats_scores_the_requested_week(api):
    async with api({SEASON_URL: nfl_csv_gz(ROWS)}) as client:
        response = await client.get("/api/stats", params={"season": 2024, "week": 1, "mode": "ppr"})

    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 2
    assert body["points"] == {"00-0000002": pytest.approx(22.0), "00-0000001": pytest.approx(9.0)}
    assert body["stats"]["00-0000001"]["rec"] == 5
    assert body["warnings"] == []
    assert (body["source_url"], body["parsed_rows"], body["matched_rows"]) == (SEASON_URL, 3, 3)


@pytest.mark.anyio
@pytest.mark.parametrize(
    "params",
    [
        {"season": 2024, "week": 1, "mode": "quarter"},
        {"season": 2024, "week": 0},
        {"season": 2024, "week": "one"},
        {"season": 1990, "week": 1},
    ],
)
async def test_stats_bad_input_is_400_envelope(api, params):
    async with api({SEASON_URL: nfl_csv_gz(ROWS)}) as client:
        response = await client.get("/api/stats", params=params)
    assert response.status_code == 400
    assert list(response.json()) == ["error"]


@pytest.mark.anyio
async def test_upstream_outage_is_502_envelope(api):
    async with api({}) as client:
        response = await client.get("/api/stats", params={"season": 2024, "week": 1})
    assert response.status_code == 502
    assert "No weekly stats found for 2024" in response.json()["error"]


@pytest.mark.anyio
async def test_players_for_whole_season(api):
    async with api({SEASON_URL: nfl_csv_gz(ROWS)}) as client:
        response = await client.get("/api/players", params={"season": 2024})
    body = response.json()
    assert response.status_code == 200
    assert body["week"] is None
    assert [player["id"] for player in body["players"]] == ["00-0000002", "00-0000001"]


@pytest.mark.anyio
async def test_best_week_view(api):
    async with api({SEASON_URL: nfl_csv_gz(ROWS)}) as client:
        response = await client.get("/api/best", params={"season": 2024, "mode": "std"})
    body = response.json()
    assert response.status_code == 200
    assert [entry["week"] for entry in body["best"]] == [1, 1]
    assert body["mode"] == "std"


@pytest.mark.anyio
async def test_auto_without_any_data_is_404(api, settings):
    probing = dataclasses.replace(settings, probe_seasons=(2024, 2023))
    async with api({}, app_settings=probing) as client:
        response = await client.get("/api/auto")
    assert response.status_code == 404
    assert "error" in response.json()


@pytest.mark.anyio
async def test_auto_finds_latest_week(api, settings):
    probing = dataclasses.replace(settings, probe_seasons=(2024,))
    async with api({SEASON_URL: nfl_csv_gz(ROWS)}, app_settings=probing) as client:
        response = await client.get("/api/auto")
    assert response.json() == {"season": 2024, "week": 1}


@pytest.mark.anyio
async def test_nba_stats_off_day_is_empty_200(api):
    async with api({f"{ESPN_BASE}/scoreboard?dates=20250115": {"events": []}}) as client:
        response = await client.get("/api/nba/stats", params={"date": "2025-01-15"})
    assert response.status_code == 200
    body = response.json()
    assert (body["stats"], body["points"], body["warnings"]) == ({}, {}, [])
    assert body["date"] == "2025-01-15"
    assert (body["events"], body["events_processed"]) == (0, 0)


@pytest.mark.anyio
async def test_nba_bad_date_is_400(api):
    async with api({}) as client:
        response = await client.get("/api/nba/stats", params={"date": "15/01/2025"})
    assert response.status_code == 400
    assert "error" in response.json()


@pytest.mark.anyio
async def test_nba_players_carry_roster_warnings(api):
    routes = {
        f"{ESPN_BASE}/scoreboard?dates=20250115": scoreboard([[("1", "BOS"), ("2", "NYK")]]),
        f"{ESPN_BASE}/teams/1": roster_entries("BOS", [("10", "Bo One", "PG")]),
        f"{ESPN_BASE}/teams/2": 503,
    }
    async with api(routes) as client:
        response = await client.get("/api/nba/players", params={"date": "20250115"})
    body = response.json()
    assert response.status_code == 200
    assert body["count"] == 1
    assert body["players"][0]["id"] == "nba:10"
    assert body["warnings"] == ["team 2 (NYK): HTTP 503"]
    assert (body["teams_tried"], body["rosters_ok"], body["used_fallback_teams"]) == (2, 1, False)


@pytest.mark.anyio
async def test_lineup_autofill_totals_against_target(api):
    async with api({SEASON_URL: nfl_csv_gz(ROWS)}) as client:
        response = await client.post(
            "/api/lineup", json={"sport": "NFL", "season": 2024, "week": 1, "autofill": True}
        )
    body = response.json()
    assert response.status_code == 200
    assert body["picks"] == {"QB": "00-0000002", "RB": None, "WR": "00-0000001", "TE": None}
    assert body["total_points"] == pytest.approx(31.0)
    assert body["distance"] == pytest.approx(-69.0)
    assert body["hit"] is False
    assert body["complete"] is False


@pytest.mark.anyio
async def test_lineup_rejects_wrong_position(api):
    async with api({SEASON_URL: nfl_csv_gz(ROWS)}) as client:
        response = await client.post(
            "/api/lineup",
            json={"sport": "NFL", "season": 2024, "week": 1, "picks": {"RB": "00-0000002"}},
        )
    assert response.status_code == 400
    assert "cannot fill slot RB" in response.json()["error"]


@pytest.mark.anyio
async def test_nba_stats_report_processed_games(api):
    routes = {
        f"{ESPN_BASE}/scoreboard?dates=20250115": scoreboard([[("1", "BOS"), ("2", "NYK")], [("3", "LAL"), ("4", "GSW")]]),
        f"{ESPN_BASE}/summary?event=401": labelled_box_score(
            "BOS", {"starters": [("1", "Jay Tee", "PG", ["30", "8-15", "2-5", "2-2", "1", "4", "5", "6", "1", "0", "2", "3", "+4", "20"])]}
        ),
        f"{ESPN_BASE}/summary?event=402": 500,
    }
    async with api(routes) as client:
        response = await client.get("/api/nba/stats", params={"date": "2025-01-15"})
    body = response.json()
    assert response.status_code == 200
    assert (body["events"], body["events_processed"]) == (2, 1)
    assert list(body["points"]) == ["nba:1"]
    assert body["warnings"] == ["event 402: HTTP 500"]


@pytest.mark.anyio
async def test_lineup_over_target_is_a_hit(api):
    async with api({SEASON_URL: nfl_csv_gz(ROWS)}) as client:
        response = await client.post(
            "/api/lineup",
            json={"season": 2024, "week": 1, "autofill": True, "target": 30},
        )
    body = response.json()
    assert response.status_code == 200
    assert body["target_points"] == 30.0
    assert body["total_points"] == pytest.approx(31.0)
    assert body["hit"] is True


@pytest.mark.anyio
async def test_lineup_rejects_non_positive_target(api):
    async with api({SEASON_URL: nfl_csv_gz(ROWS)}) as client:
        response = await client.post("/api/lineup", json={"season": 2024, "week": 1, "target": 0})
    assert response.status_code == 400
    assert "error" in response.json()


@pytest.mark.anyio
async def test_lineup_accepts_pool_player_without_stats_that_week(api):
    async with api({SEASON_URL: nfl_csv_gz(ROWS + [BENCH_ROW])}) as client:
        pool = await client.get("/api/players", params={"season": 2024})
        response = await client.post(
            "/api/lineup",
            json={"season": 2024, "week": 1, "picks": {"QB": "00-0000002", "RB": "00-0000009"}},
        )

    assert "00-0000009" in [player["id"] for player in pool.json()["players"]]
    body = response.json()
    assert response.status_code == 200
    assert body["slot_points"]["RB"] == 0.0
    assert body["total_points"] == pytest.approx(22.0)


@pytest.mark.anyio
async def test_lineup_still_rejects_players_outside_the_pool(api):
    async with api({SEASON_URL: nfl_csv_gz(ROWS)}) as client:
        response = await client.post(
            "/api/lineup", json={"season": 2024, "week": 1, "picks": {"TE": "00-9999999"}}
        )
    assert response.status_code == 400
    assert "Unknown player" in response.json()["error"]
