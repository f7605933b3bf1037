"""Pick'em roster configuration for supported sports."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Set, Tuple


@dataclass(frozen=True)
class RosterRules:
    sport: str
    roster_order: Tuple[str, ...]
    slot_positions: Mapping[str, Set[str]]
    target_points: float
    id_namespace: str

    @property
    def positions(self) -> Set[str]:
        return set().union(*self.slot_positions.values())


_ROSTER_RULES: Dict[str, RosterRules] = {
    "NFL": RosterRules(
        sport="NFL",
        roster_order=("QB", "RB", "WR", "TE"),
        slot_positions={
            "QB": {"QB"},
            "RB": {"RB"},
            "WR": {"WR"},
            "TE": {"TE"},
        },
        target_points=100.0,
        id_namespace="nfl",
    ),
    "NBA": RosterRules(
        sport="NBA",
        roster_order=("C", "PF", "SF", "SG", "PG"),
        slot_positions={
            "C": {"C"},
            "PF": {"PF"},
            "SF": {"SF"},
            "SG": {"SG"},
            "PG": {"PG"},
        },
        target_points=100.0,
        id_namespace="nba",
    ),
}


def iter_rules() -> Iterable[RosterRules]:
    """Return an iterator of all configured rule sets."""

    return _ROSTER_RULES.values()


def get_rules(sport: str) -> RosterRules:
    """Fetch rules for a sport, raising KeyError if missing."""

    key = sport.upper()
    if key not in _ROSTER_RULES:
        raise KeyError(f"No roster rules configured for sport={sport!r}")
    return _ROSTER_RULES[key]
