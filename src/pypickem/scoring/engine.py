"""Fantasy-point formulas for football and basketball stat lines.

Terms are always accumulated in one fixed order (positive terms left to right,
then the negative ones) so equal stat lines yield bit-identical floats.
"""

from __future__ import annotations

from enum import Enum

from pypickem.models import BasketballStatLine, FootballStatLine, StatLine


class ScoringMode(str, Enum):
    STANDARD = "std"
    HALF_PPR = "half"
    PPR = "ppr"

    @property
    def reception_weight(self) -> float:
        return _RECEPTION_WEIGHTS[self]

    @classmethod
    def parse(cls, value: "str | ScoringMode") -> "ScoringMode":
        if isinstance(value, ScoringMode):
            return value
        key = str(value).strip().lower().replace("_", "-")
        if key in _MODE_ALIASES:
            return _MODE_ALIASES[key]
        raise ValueError(f"Unknown scoring mode {value!r}; expected std, half or ppr")


_RECEPTION_WEIGHTS = {
    ScoringMode.STANDARD: 0.0,
    ScoringMode.HALF_PPR: 0.5,
    ScoringMode.PPR: 1.0,
}

_MODE_ALIASES = {
    "std": ScoringMode.STANDARD,
    "standard": ScoringMode.STANDARD,
    "half": ScoringMode.HALF_PPR,
    "half-ppr": ScoringMode.HALF_PPR,
    "ppr": ScoringMode.PPR,
    "full": ScoringMode.PPR,
    "full-ppr": ScoringMode.PPR,
}


def score_football(line: FootballStatLine, mode: "ScoringMode | str" = ScoringMode.PPR) -> float:
    """Recompute football points from counting stats."""

    scoring_mode = ScoringMode.parse(mode)
    points = 0.0
    points += line.pass_yds / 25
    points += line.pass_td * 4
    points += line.rush_yds / 10
    points += line.rush_td * 6
    points += line.rec_yds / 10
    points += line.rec_td * 6
    points += line.rec * scoring_mode.reception_weight
    points -= line.pass_int * 2
    points -= line.fum_lost * 2
    return points


def score_football_line(
    line: FootballStatLine,
    mode: "ScoringMode | str" = ScoringMode.PPR,
    *,
    prefer_precomputed: bool = True,
) -> float:
    """Use the source's own total for ``mode`` when it shipped one."""

    scoring_mode = ScoringMode.parse(mode)
    if prefer_precomputed and scoring_mode.value in line.precomputed:
        return float(line.precomputed[scoring_mode.value])
    return score_football(line, scoring_mode)


def score_basketball(line: BasketballStatLine) -> float:
    # Minutes are display-only and never scored.
    points = 0.0
    points += line.pts
    points += 1.2 * line.reb
    points += 1.5 * line.ast
    points += 3 * line.stl
    points += 3 * line.blk
    points += 0.5 * line.fg3m
    points -= 1 * line.tov
    return points


def score_line(line: StatLine, mode: "ScoringMode | str" = ScoringMode.PPR, *, prefer_precomputed: bool = True) -> float:
    if isinstance(line, FootballStatLine):
        return score_football_line(line, mode, prefer_precomputed=prefer_precomputed)
    if isinstance(line, BasketballStatLine):
        return score_basketball(line)
    raise TypeError(f"Unsupported stat line type {type(line).__name__}")
