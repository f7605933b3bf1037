"""Lineup totals against the target threshold, plus best-available auto-fill."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Sequence

from pypickem.config.roster import get_rules
from pypickem.models import PlayerIdentity
from pypickem.pool.aggregate import name_sort_key


class LineupError(ValueError):
    """Raised when picks do not fit the sport's roster slots."""


@dataclass(frozen=True)
class LineupResult:
    sport: str
    picks: Mapping[str, Optional[str]]
    slot_points: Mapping[str, float]
    total_points: float
    target_points: float

    @property
    def distance(self) -> float:
        return self.total_points - self.target_points

    @property
    def hit(self) -> bool:
        """Reaching the target wins; overshooting still counts."""
        return self.total_points >= self.target_points

    @property
    def complete(self) -> bool:
        return all(self.picks.get(slot) for slot in self.slot_points)


def evaluate_lineup(
    picks: Mapping[str, Optional[str]],
    points: Mapping[str, float],
    *,
    sport: str,
    players: Mapping[str, PlayerIdentity] | None = None,
    target: Optional[float] = None,
) -> LineupResult:
    """Total a slot -> player id mapping; players without points count as 0.

    ``players`` is the selectable pool used for position checks. ``target``
    overrides the sport's default threshold.
    """

    rules = get_rules(sport)
    if target is not None and target <= 0:
        raise LineupError(f"Target must be positive; got {target}")
    unknown = sorted(set(picks) - set(rules.roster_order))
    if unknown:
        raise LineupError(f"Unknown {rules.sport} slots: {', '.join(unknown)}")

    chosen = [player_id for player_id in picks.values() if player_id]
    if len(chosen) != len(set(chosen)):
        raise LineupError("A player can fill only one slot")

    slot_points: Dict[str, float] = {}
    total = 0.0
    for slot in rules.roster_order:
        player_id = picks.get(slot)
        if player_id and players is not None:
            player = players.get(player_id)
            if player is None:
                raise LineupError(f"Unknown player {player_id!r} in slot {slot}")
            if player.position not in rules.slot_positions[slot]:
                raise LineupError(f"{player.name} ({player.position}) cannot fill slot {slot}")
        value = float(points.get(player_id, 0.0)) if player_id else 0.0
        slot_points[slot] = value
        total += value

    return LineupResult(
        sport=rules.sport,
        picks={slot: picks.get(slot) for slot in rules.roster_order},
        slot_points=slot_points,
        total_points=total,
        target_points=float(target) if target is not None else rules.target_points,
    )


def autofill_lineup(
    players: Sequence[PlayerIdentity],
    points: Mapping[str, float],
    *,
    sport: str,
) -> Dict[str, Optional[str]]:
    """Best scorer per slot, never reusing a player."""

    rules = get_rules(sport)
    used: set[str] = set()
    picks: Dict[str, Optional[str]] = {}
    for slot in rules.roster_order:
        allowed = rules.slot_positions[slot]
        candidates = sorted(
            (player for player in players if player.position in allowed and player.id not in used),
            key=lambda player: (-points.get(player.id, 0.0), name_sort_key(player.name), player.id),
        )
        picks[slot] = candidates[0].id if candidates else None
        if candidates:
            used.add(candidates[0].id)
    return picks


__all__ = [
    "LineupError",
    "LineupResult",
    "autofill_lineup",
    "evaluate_lineup",
]
