import pytest

from pypickem.models import BasketballStatLine, FootballStatLine
from pypickem.scoring import (
    ScoringMode,
    score_basketball,
    score_football,
    score_football_line,
    score_line,
)


FOOTBALL_POSITIVE = ("pass_yds", "pass_td", "rush_yds", "rush_td", "rec_yds", "rec_td")
BASKETBALL_POSITIVE = ("pts", "reb", "ast", "stl", "blk", "fg3m")


def _line() -> FootballStatLine:
    return FootballStatLine(
        pass_yds=251,
        pass_td=2,
        pass_int=1,
        rush_yds=33,
        rush_td=1,
        rec=4,
        rec_yds=47,
        rec_td=0,
        fum_lost=1,
    )


def test_passing_line_scores_22_in_standard():
    line = FootballStatLine(pass_yds=300, pass_td=3, pass_int=1, rec=0)
    assert round(score_football(line, "std"), 2) == 22.00


@pytest.mark.parametrize("mode", list(ScoringMode))
def test_scoring_is_deterministic(mode):
    line = _line()
    assert score_football(line, mode) == score_football(FootballStatLine(**line.model_dump()), mode)
    game = BasketballStatLine(pts=27, reb=9, ast=7, stl=2, blk=1, tov=4, fg3m=3, min=36.5)
    assert score_basketball(game) == score_basketball(game)


@pytest.mark.parametrize("mode", ["std", "half", "ppr"])
def test_empty_lines_score_zero(mode):
    assert score_football(FootballStatLine(), mode) == 0
    assert score_line(BasketballStatLine(), mode) == 0


def test_reception_weights_by_mode():
    line = FootballStatLine(rec=6, rec_yds=80)
    assert score_football(line, "std") == pytest.approx(8.0)
    assert score_football(line, "half") == pytest.approx(11.0)
    assert score_football(line, "ppr") == pytest.approx(14.0)


@pytest.mark.parametrize("field", FOOTBALL_POSITIVE + ("rec",))
@pytest.mark.parametrize("mode", list(ScoringMode))
def test_football_positive_stats_never_lower_score(field, mode):
    base = _line()
    bumped = base.model_copy(update={field: getattr(base, field) + 5})
    assert score_football(bumped, mode) >= score_football(base, mode)


@pytest.mark.parametrize("field", ("pass_int", "fum_lost"))
def test_football_negative_stats_never_raise_score(field):
    base = _line()
    bumped = base.model_copy(update={field: getattr(base, field) + 1})
    assert score_football(bumped, "ppr") < score_football(base, "ppr")


@pytest.mark.parametrize("field", BASKETBALL_POSITIVE)
def test_basketball_positive_stats_never_lower_score(field):
    base = BasketballStatLine(pts=10, reb=5, ast=5, stl=1, blk=1, tov=2, fg3m=2)
    bumped = base.model_copy(update={field: getattr(base, field) + 1})
    assert score_basketball(bumped) > score_basketball(base)


def test_basketball_turnovers_and_minutes():
    base = BasketballStatLine(pts=20, reb=10, ast=5, tov=1, min=30)
    assert score_basketball(base) == pytest.approx(20 + 12 + 7.5 - 1)
    assert score_basketball(base.model_copy(update={"tov": 3})) < score_basketball(base)
    assert score_basketball(base.model_copy(update={"min": 48})) == score_basketball(base)


def test_precomputed_total_is_preferred_for_matching_mode():
    line = FootballStatLine(rec=5, rec_yds=50, precomputed={"ppr": 10.3})
    assert score_football_line(line, "ppr") == pytest.approx(10.3)
    # no precomputed half-ppr value, so it is recomputed
    assert score_football_line(line, "half") == pytest.approx(7.5)
    assert score_football_line(line, "ppr", prefer_precomputed=False) == pytest.approx(10.0)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("standard", ScoringMode.STANDARD),
        ("HALF_PPR", ScoringMode.HALF_PPR),
        ("half-ppr", ScoringMode.HALF_PPR),
        ("full", ScoringMode.PPR),
        (ScoringMode.PPR, ScoringMode.PPR),
    ],
)
def test_mode_parsing(raw, expected):
    assert ScoringMode.parse(raw) is expected


def test_unknown_mode_raises():
    with pytest.raises(ValueError):
        ScoringMode.parse("superflex")
