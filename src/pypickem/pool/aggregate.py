"""Merge repeated player observations into one scoring record per player."""

from __future__ import annotations

import locale
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar

from pypickem.models import (
    BasketballStatLine,
    FootballStatLine,
    Period,
    PlayerIdentity,
    ScoringRecord,
    StatLine,
    synthesize_player_id,
)
from pypickem.scoring import ScoringMode, score_line


logger = logging.getLogger(__name__)

TOTALS_LABELS = {"total", "totals"}

_LineT = TypeVar("_LineT", FootballStatLine, BasketballStatLine)


class MergePolicy(str, Enum):
    """How repeated observations of one player in one period are combined.

    ``max`` keeps the highest-scoring observation and is order independent.
    ``first``/``last`` depend on input order by definition.
    """

    MAX = "max"
    SUM = "sum"
    FIRST = "first"
    LAST = "last"


@dataclass(frozen=True)
class PlayerObservation:
    """One normalized stat line for one player as read from one raw record."""

    name: str
    position: str
    stat_line: StatLine
    provider_id: Optional[str] = None
    team: Optional[str] = None
    namespace: str = "nfl"

    @property
    def key(self) -> str:
        if self.provider_id:
            return self.provider_id
        return synthesize_player_id(self.namespace, self.name, self.team)

    def identity(self) -> PlayerIdentity:
        return PlayerIdentity(id=self.key, name=self.name, position=self.position, team=self.team)


@dataclass
class AggregateResult:
    records: List[ScoringRecord]
    players: Dict[str, PlayerIdentity]
    warnings: List[str] = field(default_factory=list)

    @property
    def stats(self) -> Dict[str, StatLine]:
        return {record.player_id: record.stat_line for record in self.records}

    @property
    def points(self) -> Dict[str, float]:
        return {record.player_id: record.points for record in self.records}


def add_lines(left: _LineT, right: _LineT) -> _LineT:
    """Sum two stat lines of the same sport field by field."""

    if type(left) is not type(right):
        raise TypeError("Cannot add stat lines from different sports")
    left_data = left.model_dump()
    right_data = right.model_dump()
    merged: dict = {}
    for name, value in left_data.items():
        if name == "precomputed":
            shared = set(value) & set(right_data[name])
            merged[name] = {mode: value[mode] + right_data[name][mode] for mode in sorted(shared)}
        else:
            merged[name] = value + right_data[name]
    return type(left)(**merged)


def merge_sections(
    sections: Sequence[Tuple[Optional[str], _LineT]],
) -> Tuple[Optional[_LineT], bool]:
    """Collapse an athlete's stat sections into one line.

    A section labelled ``total``/``totals`` wins outright. Otherwise every
    section is summed; the returned flag is True in that case so callers can
    surface the possible double count.
    """

    if not sections:
        return None, False
    for label, line in sections:
        if label and label.strip().lower() in TOTALS_LABELS:
            return line, False
    if len(sections) == 1:
        return sections[0][1], False
    total = sections[0][1]
    for _, line in sections[1:]:
        total = add_lines(total, line)
    return total, True


def _canonical(line: StatLine) -> str:
    return line.model_dump_json()


def _pick(
    current: Tuple[PlayerObservation, float],
    candidate: Tuple[PlayerObservation, float],
    policy: MergePolicy,
    mode: ScoringMode,
) -> Tuple[PlayerObservation, float]:
    if policy is MergePolicy.FIRST:
        return current
    if policy is MergePolicy.LAST:
        return candidate
    if policy is MergePolicy.SUM:
        observation, _ = current
        line = add_lines(observation.stat_line, candidate[0].stat_line)
        merged = PlayerObservation(
            name=observation.name,
            position=observation.position,
            stat_line=line,
            provider_id=observation.provider_id,
            team=observation.team,
            namespace=observation.namespace,
        )
        return merged, score_line(line, mode)
    # Ties on points fall back to the serialized line so arrival order never matters.
    current_rank = (current[1], _canonical(current[0].stat_line))
    candidate_rank = (candidate[1], _canonical(candidate[0].stat_line))
    return candidate if candidate_rank > current_rank else current


def name_sort_key(name: str) -> str:
    return locale.strxfrm(name.casefold())


def sort_records(records: Iterable[ScoringRecord]) -> List[ScoringRecord]:
    """Points descending, then player name ascending."""

    return sorted(records, key=lambda record: (-record.points, name_sort_key(record.name), record.player_id))


def aggregate(
    observations: Iterable[PlayerObservation],
    *,
    period: Period,
    mode: "ScoringMode | str" = ScoringMode.PPR,
    policy: "MergePolicy | str" = MergePolicy.MAX,
) -> AggregateResult:
    """Dedup observations by player key and score one record per player."""

    scoring_mode = ScoringMode.parse(mode)
    merge_policy = MergePolicy(policy)
    chosen: Dict[str, Tuple[PlayerObservation, float]] = {}
    duplicates = 0
    for observation in observations:
        entry = (observation, score_line(observation.stat_line, scoring_mode))
        key = observation.key
        if key in chosen:
            duplicates += 1
            chosen[key] = _pick(chosen[key], entry, merge_policy, scoring_mode)
        else:
            chosen[key] = entry

    if duplicates:
        logger.debug("Merged %d duplicate observations with policy %s", duplicates, merge_policy.value)

    records: List[ScoringRecord] = []
    players: Dict[str, PlayerIdentity] = {}
    for key, (observation, points) in chosen.items():
        players[key] = observation.identity()
        records.append(
            ScoringRecord(
                player_id=key,
                name=observation.name,
                team=observation.team,
                period=period,
                points=points,
                stat_line=observation.stat_line,
            )
        )
    return AggregateResult(records=sort_records(records), players=players)


def dedup_players(players: Iterable[PlayerIdentity]) -> List[PlayerIdentity]:
    """Keep the first identity seen per id."""

    seen: Dict[str, PlayerIdentity] = {}
    for player in players:
        seen.setdefault(player.id, player)
    return list(seen.values())


def best_records(records: Iterable[ScoringRecord]) -> List[ScoringRecord]:
    """Highest-scoring record per player across periods (season best-week view)."""

    best: Dict[str, ScoringRecord] = {}
    for record in records:
        current = best.get(record.player_id)
        if current is None or (record.points, _canonical(record.stat_line)) > (
            current.points,
            _canonical(current.stat_line),
        ):
            best[record.player_id] = record
    return sort_records(best.values())


__all__ = [
    "AggregateResult",
    "MergePolicy",
    "PlayerObservation",
    "TOTALS_LABELS",
    "add_lines",
    "aggregate",
    "best_records",
    "dedup_players",
    "merge_sections",
    "name_sort_key",
    "sort_records",
]
