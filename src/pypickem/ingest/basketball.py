"""ESPN NBA adapter: scoreboard -> per-game box scores / per-team rosters."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

import httpx

from pypickem.config.settings import Settings
from pypickem.errors import MalformedPayload, PartialSourceFailure, SourceUnavailable
from pypickem.ingest.fields import (
    normalize_position,
    resolve,
    resolve_count,
    resolve_number,
    resolve_text,
)
from pypickem.ingest.http import describe_error, fetch_json, gather_settled, open_client
from pypickem.models import BasketballPeriod, BasketballStatLine, PlayerIdentity
from pypickem.pool.aggregate import PlayerObservation, dedup_players, merge_sections, name_sort_key


logger = logging.getLogger(__name__)

ID_PREFIX = "nba:"

# Raw box-score rows carry lower-cased stat names from either payload shape.
ESPN_STAT_FIELDS: Dict[str, Tuple[str, ...]] = {
    "pts": ("points", "pts"),
    "reb": ("rebounds", "totreb", "totalrebounds", "reb"),
    "ast": ("assists", "ast"),
    "stl": ("steals", "stl"),
    "blk": ("blocks", "blk"),
    "tov": ("turnovers", "to", "tov"),
    "fg3m": (
        "threepointfieldgoalsmade",
        "threepointersmade",
        "3ptm",
        "fg3m",
        "3pm",
        "threepointfieldgoalsmade-threepointfieldgoalsattempted",
        "3pt",
    ),
    "min": ("minutes", "min"),
}

ATHLETE_FIELDS: Dict[str, Tuple[str, ...]] = {
    "id": ("id",),
    "name": ("displayName", "fullName", "shortName"),
}

TEAM_ABBR_FIELDS: Tuple[str, ...] = ("abbreviation", "shortDisplayName")


@dataclass
class BoxScoreSlate:
    events: int = 0
    events_processed: int = 0
    observations: List[PlayerObservation] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class RosterPool:
    players: List[PlayerIdentity] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    teams_tried: int = 0
    rosters_ok: int = 0
    used_fallback_teams: bool = False


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _position_text(*candidates: Any) -> str:
    for candidate in candidates:
        if isinstance(candidate, dict):
            value = resolve(candidate, ("abbreviation", "name", "displayName"))
        else:
            value = candidate
        if value:
            return str(value)
    return ""


def scoreboard_url(settings: Settings) -> str:
    return f"{settings.espn_nba_base.rstrip('/')}/scoreboard"


def summary_url(settings: Settings) -> str:
    return f"{settings.espn_nba_base.rstrip('/')}/summary"


def teams_url(settings: Settings) -> str:
    return f"{settings.espn_nba_base.rstrip('/')}/teams"


def team_roster_url(settings: Settings, team_id: str) -> str:
    return f"{teams_url(settings)}/{team_id}"


def event_ids_from_scoreboard(scoreboard: Mapping[str, Any]) -> List[str]:
    ids: List[str] = []
    for event in _as_list(_as_dict(scoreboard).get("events")):
        event_id = resolve_text(_as_dict(event), ("id", "uid"))
        if event_id and event_id not in ids:
            ids.append(event_id)
    return ids


def teams_from_scoreboard(scoreboard: Mapping[str, Any]) -> Dict[str, str]:
    """Team id -> abbreviation for every competitor on the slate."""

    teams: Dict[str, str] = {}
    for event in _as_list(_as_dict(scoreboard).get("events")):
        for competition in _as_list(_as_dict(event).get("competitions")):
            for competitor in _as_list(_as_dict(competition).get("competitors")):
                team = _as_dict(_as_dict(competitor).get("team"))
                team_id = resolve_text(team, ("id",))
                if team_id and team_id not in teams:
                    teams[team_id] = resolve_text(team, TEAM_ABBR_FIELDS, "") or ""
    return teams


def teams_from_league(payload: Mapping[str, Any]) -> Dict[str, str]:
    data = _as_dict(payload)
    sports = _as_list(data.get("sports"))
    leagues = _as_list(_as_dict(sports[0]).get("leagues")) if sports else []
    listing = _as_list(_as_dict(leagues[0]).get("teams")) if leagues else []
    if not listing:
        listing = _as_list(data.get("teams"))
    teams: Dict[str, str] = {}
    for wrapper in listing:
        team = _as_dict(_as_dict(wrapper).get("team")) or _as_dict(wrapper)
        team_id = resolve_text(team, ("id",))
        if team_id:
            teams[team_id] = resolve_text(team, TEAM_ABBR_FIELDS, "") or ""
    return teams


def _athlete_row(
    athlete: Mapping[str, Any],
    *,
    team: str,
    section: Optional[str],
    position: str,
) -> Dict[str, Any]:
    return {
        "athlete_id": resolve_text(athlete, ATHLETE_FIELDS["id"]),
        "athlete_name": resolve_text(athlete, ATHLETE_FIELDS["name"], "") or "",
        "team": team,
        "position": position,
        "section": section,
    }


def _labelled_group_rows(team_block: Mapping[str, Any], team: str) -> Iterator[Dict[str, Any]]:
    """``statistics[]`` groups: shared ``labels``/``names`` plus positional stat arrays."""

    for group in _as_list(team_block.get("statistics")):
        group = _as_dict(group)
        keys = _as_list(group.get("names")) or _as_list(group.get("keys")) or _as_list(group.get("labels"))
        keys = [str(key).strip().lower() for key in keys]
        section = resolve_text(group, ("type", "name"))
        for entry in _as_list(group.get("athletes")):
            entry = _as_dict(entry)
            athlete = _as_dict(entry.get("athlete"))
            row = _athlete_row(
                athlete,
                team=team,
                section=section,
                position=_position_text(athlete.get("position"), entry.get("position")),
            )
            for key, value in zip(keys, _as_list(entry.get("stats"))):
                row.setdefault(key, value)
            yield row


def _named_section_rows(team_block: Mapping[str, Any], team: str) -> Iterator[Dict[str, Any]]:
    """``athletes[].stats[]`` sections of ``{name, value}`` entries."""

    for entry in _as_list(team_block.get("athletes")):
        entry = _as_dict(entry)
        athlete = _as_dict(entry.get("athlete"))
        position = _position_text(athlete.get("position"), entry.get("position"))
        sections = _as_list(entry.get("stats"))
        if not sections:
            yield _athlete_row(athlete, team=team, section=None, position=position)
            continue
        for section in sections:
            section = _as_dict(section)
            row = _athlete_row(
                athlete,
                team=team,
                section=resolve_text(section, ("type", "name", "label")),
                position=position,
            )
            for stat in _as_list(section.get("stats")):
                stat = _as_dict(stat)
                name = resolve_text(stat, ("name", "abbreviation", "label"))
                if name:
                    row.setdefault(name.strip().lower(), resolve(stat, ("value", "displayValue")))
            yield row


def box_score_rows(summary: Mapping[str, Any]) -> List[Dict[str, Any]]:
    """Flatten every athlete stat section found in a game summary."""

    box = _as_dict(_as_dict(summary).get("boxscore"))
    rows: List[Dict[str, Any]] = []
    for team_block in _as_list(box.get("players")):
        team_block = _as_dict(team_block)
        team = resolve_text(_as_dict(team_block.get("team")), TEAM_ABBR_FIELDS, "") or ""
        rows.extend(_labelled_group_rows(team_block, team))
        rows.extend(_named_section_rows(team_block, team))
    return rows


def stat_line_from_row(row: Mapping[str, Any]) -> BasketballStatLine:
    counts = {
        name: resolve_count(row, synonyms)
        for name, synonyms in ESPN_STAT_FIELDS.items()
        if name != "min"
    }
    minutes = max(0.0, resolve_number(row, ESPN_STAT_FIELDS["min"]))
    return BasketballStatLine(min=minutes, **counts)


def observations_from_box_score(
    summary: Mapping[str, Any],
    *,
    source: str = "box score",
) -> Tuple[List[PlayerObservation], List[str]]:
    """One observation per athlete, preferring a totals section over summing."""

    grouped: Dict[str, List[Dict[str, Any]]] = {}
    for row in box_score_rows(summary):
        if not row["athlete_id"] and not row["athlete_name"]:
            continue
        key = row["athlete_id"] or f"{row['athlete_name']}::{row['team']}"
        grouped.setdefault(key, []).append(row)

    observations: List[PlayerObservation] = []
    warnings: List[str] = []
    for rows in grouped.values():
        first = rows[0]
        sections = [(row["section"], stat_line_from_row(row)) for row in rows]
        line, summed = merge_sections(sections)
        if line is None:
            continue
        if summed:
            warnings.append(
                f"{source}: summed {len(sections)} stat sections for {first['athlete_name'] or first['athlete_id']} "
                "(no totals section)"
            )
        observations.append(
            PlayerObservation(
                name=first["athlete_name"] or f"Athlete {first['athlete_id']}",
                position=normalize_position(first["position"], "NBA"),
                stat_line=line,
                provider_id=f"{ID_PREFIX}{first['athlete_id']}" if first["athlete_id"] else None,
                team=first["team"] or None,
                namespace="nba",
            )
        )
    return observations, warnings


def players_from_team_payload(payload: Mapping[str, Any], fallback_abbr: str = "") -> List[PlayerIdentity]:
    """Roster players from whichever of the known roster shapes is present."""

    data = _as_dict(payload)
    team = _as_dict(data.get("team"))
    team_abbr = resolve_text(team, ("abbreviation",)) or resolve_text(data, ("abbreviation",)) or fallback_abbr or "NBA"

    found: List[Tuple[Mapping[str, Any], str]] = []
    for entry in _as_list(_as_dict(team.get("roster")).get("entries")):
        entry = _as_dict(entry)
        athlete = _as_dict(entry.get("player")) or _as_dict(entry.get("athlete")) or entry
        found.append(
            (athlete, _position_text(athlete.get("position"), entry.get("position"), athlete.get("defaultPosition")))
        )
    for group in _as_list(data.get("athletes")):
        group = _as_dict(group)
        for athlete in _as_list(group.get("items")):
            athlete = _as_dict(athlete)
            found.append(
                (athlete, _position_text(athlete.get("position"), group.get("position"), athlete.get("defaultPosition")))
            )
    for athlete in _as_list(team.get("athletes")):
        athlete = _as_dict(athlete)
        found.append((athlete, _position_text(athlete.get("position"), athlete.get("defaultPosition"))))

    players: List[PlayerIdentity] = []
    for athlete, position in found:
        athlete_id = resolve_text(athlete, ATHLETE_FIELDS["id"])
        name = resolve_text(athlete, ATHLETE_FIELDS["name"])
        if not athlete_id or not name:
            continue
        players.append(
            PlayerIdentity(
                id=f"{ID_PREFIX}{athlete_id}",
                name=name,
                position=normalize_position(position, "NBA"),
                team=team_abbr,
            )
        )
    return players


async def fetch_box_scores(
    period: BasketballPeriod,
    *,
    settings: Settings,
    client: httpx.AsyncClient | None = None,
) -> BoxScoreSlate:
    """Scoreboard for the date, then every game summary concurrently.

    An empty slate is not an error. Failed games become warnings; only a
    failed scoreboard or every game failing raises ``SourceUnavailable``.
    """

    async with open_client(settings, client) as http:
        sb_url = scoreboard_url(settings)
        try:
            scoreboard = await fetch_json(http, sb_url, settings=settings, params={"dates": period.compact})
        except (httpx.HTTPError, MalformedPayload) as exc:
            raise SourceUnavailable([(sb_url, describe_error(exc))]) from exc

        event_ids = event_ids_from_scoreboard(scoreboard)
        slate = BoxScoreSlate(events=len(event_ids))
        if not event_ids:
            logger.info("No NBA events on %s", period)
            return slate

        async def fetch_summary(event_id: str) -> Any:
            return await fetch_json(http, summary_url(settings), settings=settings, params={"event": event_id})

        successes, failures = await gather_settled(
            event_ids,
            fetch_summary,
            label=lambda event_id: f"event {event_id}",
            limit=settings.max_concurrency,
        )

    if not successes:
        raise SourceUnavailable([(failure.source, failure.reason) for failure in failures])

    for event_id, summary in successes:
        observations, warnings = observations_from_box_score(summary, source=f"event {event_id}")
        slate.observations.extend(observations)
        slate.warnings.extend(warnings)
        slate.events_processed += 1
    slate.warnings.extend(failure.as_warning() for failure in failures)
    return slate


async def _fetch_rosters(
    http: httpx.AsyncClient,
    teams: Mapping[str, str],
    *,
    settings: Settings,
) -> Tuple[List[PlayerIdentity], List[PartialSourceFailure], int]:
    async def fetch_roster(team_id: str) -> List[PlayerIdentity]:
        payload = await fetch_json(
            http,
            team_roster_url(settings, team_id),
            settings=settings,
            params={"enable": "roster"},
        )
        return players_from_team_payload(payload, teams.get(team_id, ""))

    def label(team_id: str) -> str:
        abbr = teams.get(team_id)
        return f"team {team_id} ({abbr})" if abbr else f"team {team_id}"

    successes, failures = await gather_settled(
        list(teams),
        fetch_roster,
        label=label,
        limit=settings.max_concurrency,
    )
    players: List[PlayerIdentity] = []
    rosters_ok = 0
    for _, roster in successes:
        if roster:
            rosters_ok += 1
            players.extend(roster)
    return players, failures, rosters_ok


async def fetch_rosters(
    period: BasketballPeriod,
    *,
    settings: Settings,
    client: httpx.AsyncClient | None = None,
) -> RosterPool:
    """Rosters for every team on the date's slate.

    Falls back to the full league team list when the slate has no teams or
    every slate roster comes back empty.
    """

    pool = RosterPool()
    attempts: List[Tuple[str, str]] = []
    async with open_client(settings, client) as http:
        teams: Dict[str, str] = {}
        sb_url = scoreboard_url(settings)
        try:
            scoreboard = await fetch_json(http, sb_url, settings=settings, params={"dates": period.compact})
            teams = teams_from_scoreboard(scoreboard)
        except (httpx.HTTPError, MalformedPayload) as exc:
            reason = describe_error(exc)
            attempts.append((sb_url, reason))
            pool.warnings.append(f"scoreboard {period.compact}: {reason}")
            logger.warning("Scoreboard unavailable for %s: %s", period, reason)

        async def league_teams() -> Dict[str, str]:
            url = teams_url(settings)
            try:
                return teams_from_league(await fetch_json(http, url, settings=settings))
            except (httpx.HTTPError, MalformedPayload) as exc:
                attempts.append((url, describe_error(exc)))
                raise SourceUnavailable(attempts) from exc

        if not teams:
            pool.used_fallback_teams = True
            teams = await league_teams()

        players, failures, rosters_ok = await _fetch_rosters(http, teams, settings=settings)
        pool.teams_tried = len(teams)

        if not players and not pool.used_fallback_teams:
            pool.used_fallback_teams = True
            pool.warnings.extend(failure.as_warning() for failure in failures)
            teams = await league_teams()
            players, failures, rosters_ok = await _fetch_rosters(http, teams, settings=settings)
            pool.teams_tried += len(teams)

    if not players and failures and len(failures) == len(teams):
        raise SourceUnavailable(attempts + [(failure.source, failure.reason) for failure in failures])

    pool.rosters_ok = rosters_ok
    pool.warnings.extend(failure.as_warning() for failure in failures)
    deduped = dedup_players(players)
    deduped.sort(key=lambda player: (player.team or "", name_sort_key(player.name), player.id))
    pool.players = deduped
    return pool


__all__ = [
    "BoxScoreSlate",
    "ESPN_STAT_FIELDS",
    "RosterPool",
    "box_score_rows",
    "event_ids_from_scoreboard",
    "fetch_box_scores",
    "fetch_rosters",
    "observations_from_box_score",
    "players_from_team_payload",
    "stat_line_from_row",
    "teams_from_league",
    "teams_from_scoreboard",
]
