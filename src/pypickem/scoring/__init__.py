"""Deterministic fantasy-point formulas."""

from .engine import (
    ScoringMode,
    score_basketball,
    score_football,
    score_football_line,
    score_line,
)

__all__ = [
    "ScoringMode",
    "score_basketball",
    "score_football",
    "score_football_line",
    "score_line",
]
