"""nflverse weekly player-stats adapter (CSV, optionally gzip-framed)."""

from __future__ import annotations

import csv
import gzip
import io
import logging
import zlib
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import httpx

from pypickem.config.settings import Settings
from pypickem.errors import MalformedPayload, SourceUnavailable
from pypickem.ingest.fields import (
    ABSENT,
    as_count,
    as_number,
    normalize_position,
    resolve,
    resolve_count,
    resolve_text,
)
from pypickem.ingest.http import describe_error, fetch_bytes, open_client
from pypickem.models import FootballStatLine, PlayerIdentity
from pypickem.pool.aggregate import PlayerObservation, dedup_players, name_sort_key


logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"

# Ordered synonyms per canonical field; earlier names win.
NFLVERSE_FIELDS: Dict[str, Tuple[str, ...]] = {
    "player_id": ("player_id", "gsis_id", "gsis_player_id", "gsisid"),
    "name": ("player_name", "player_display_name", "name"),
    "team": ("recent_team", "team", "recent_team_abbr"),
    "position": ("position", "position_group"),
    "week": ("week",),
    "pass_yds": ("passing_yards",),
    "pass_td": ("passing_tds",),
    "pass_int": ("passing_interceptions", "interceptions"),
    "rush_yds": ("rushing_yards",),
    "rush_td": ("rushing_tds",),
    "rec": ("receptions",),
    "rec_yds": ("receiving_yards",),
    "rec_td": ("receiving_tds",),
    "fum_lost": ("fumbles_lost",),
}

# Newer files split lost fumbles by play type instead of one column.
FUMBLE_COMPONENTS: Tuple[str, ...] = (
    "sack_fumbles_lost",
    "rushing_fumbles_lost",
    "receiving_fumbles_lost",
)
FUMBLE_FALLBACK: Tuple[str, ...] = ("fumbles",)

PRECOMPUTED_FIELDS: Dict[str, Tuple[str, ...]] = {
    "std": ("fantasy_points",),
    "half": ("fantasy_points_half_ppr",),
    "ppr": ("fantasy_points_ppr",),
}

_STAT_FIELDS = ("pass_yds", "pass_td", "pass_int", "rush_yds", "rush_td", "rec", "rec_yds", "rec_td")


@dataclass(frozen=True)
class SourceCandidate:
    url: str
    gz: bool


@dataclass(frozen=True)
class SeasonSnapshot:
    """Parsed rows of one season file and where they came from."""

    season: int
    url: str
    rows: List[Dict[str, str]]
    attempts: Tuple[Tuple[str, str], ...] = ()


def season_candidates(season: int, settings: Settings) -> List[SourceCandidate]:
    """Candidate URLs for a season in priority order."""

    raw = settings.nflverse_raw_base.rstrip("/")
    release = settings.nflverse_release_base.rstrip("/")
    release_alt = settings.nflverse_release_base_alt.rstrip("/")
    return [
        SourceCandidate(f"{raw}/player_stats_{season}.csv.gz", gz=True),
        SourceCandidate(f"{release}/stats_player_week_{season}.csv", gz=False),
        SourceCandidate(f"{release}/stats_player_week_{season}.csv.gz", gz=True),
        SourceCandidate(f"{release_alt}/stats_player_week_{season}.csv", gz=False),
        SourceCandidate(f"{release_alt}/stats_player_week_{season}.csv.gz", gz=True),
    ]


def decode_payload(candidate: SourceCandidate, payload: bytes) -> List[Dict[str, str]]:
    """Decompress (when gzip-framed) and parse a CSV payload into rows.

    Compression is detected from the magic bytes; the candidate's ``gz`` flag
    only shows up in logs because hosts mislabel content.
    """

    is_gzip = payload[:2] == GZIP_MAGIC
    if candidate.gz and not is_gzip:
        logger.debug("%s flagged gzip but payload is plain; parsing as text", candidate.url)
    if is_gzip:
        try:
            payload = gzip.decompress(payload)
        except (OSError, EOFError, zlib.error) as exc:
            raise MalformedPayload(candidate.url, f"invalid gzip stream ({exc})") from exc
    try:
        text = payload.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise MalformedPayload(candidate.url, "payload is not UTF-8 text") from exc

    try:
        reader = csv.DictReader(io.StringIO(text, newline=""))
        fieldnames = reader.fieldnames or []
        if "week" not in fieldnames:
            raise MalformedPayload(candidate.url, "CSV header has no 'week' column")
        return [row for row in reader if any(value for value in row.values() if isinstance(value, str))]
    except csv.Error as exc:
        raise MalformedPayload(candidate.url, f"CSV parse error ({exc})") from exc


async def fetch_season_rows(
    season: int,
    *,
    settings: Settings,
    client: httpx.AsyncClient | None = None,
) -> SeasonSnapshot:
    """Try each candidate in order; first that downloads and parses wins."""

    attempts: List[Tuple[str, str]] = []
    async with open_client(settings, client) as http:
        for candidate in season_candidates(season, settings):
            try:
                payload = await fetch_bytes(http, candidate.url, settings=settings)
                rows = decode_payload(candidate, payload)
            except (httpx.HTTPError, MalformedPayload) as exc:
                reason = describe_error(exc)
                logger.debug("Candidate %s failed: %s", candidate.url, reason)
                attempts.append((candidate.url, reason))
                continue
            logger.info("Loaded %d rows for %d from %s", len(rows), season, candidate.url)
            return SeasonSnapshot(season=season, url=candidate.url, rows=rows, attempts=tuple(attempts))
    raise SourceUnavailable(attempts, message=_unavailable_message(season, attempts))


def _unavailable_message(season: int, attempts: Sequence[Tuple[str, str]]) -> str:
    tried = "\n".join(f"- {url}: {reason}" for url, reason in attempts)
    return f"No weekly stats found for {season}. Tried:\n{tried}"


async def fetch_season_with_fallback(
    season: int,
    *,
    settings: Settings,
    client: httpx.AsyncClient | None = None,
) -> SeasonSnapshot:
    """Like ``fetch_season_rows`` but falls back one season when the requested
    season is newer than the last fully published one."""

    async with open_client(settings, client) as http:
        try:
            return await fetch_season_rows(season, settings=settings, client=http)
        except SourceUnavailable as exc:
            if season <= settings.last_published_season:
                raise
            logger.info("No published stats for %d; falling back to %d", season, season - 1)
            try:
                return await fetch_season_rows(season - 1, settings=settings, client=http)
            except SourceUnavailable as fallback_exc:
                attempts = exc.attempts + fallback_exc.attempts
                raise SourceUnavailable(
                    attempts,
                    message=f"{exc}\n{fallback_exc}",
                ) from fallback_exc


def row_week(row: Mapping[str, str]) -> Optional[int]:
    value = resolve(row, NFLVERSE_FIELDS["week"])
    if value is ABSENT:
        return None
    week = as_count(value)
    return week or None


def _fumbles_lost(row: Mapping[str, str]) -> int:
    direct = resolve(row, NFLVERSE_FIELDS["fum_lost"])
    if direct is not ABSENT:
        return as_count(direct)
    components = [resolve(row, (name,)) for name in FUMBLE_COMPONENTS]
    if any(value is not ABSENT for value in components):
        return sum(as_count(value) for value in components)
    return resolve_count(row, FUMBLE_FALLBACK)


def stat_line_from_row(row: Mapping[str, str]) -> FootballStatLine:
    values = {name: resolve_count(row, NFLVERSE_FIELDS[name]) for name in _STAT_FIELDS}
    precomputed = {}
    for mode, synonyms in PRECOMPUTED_FIELDS.items():
        value = resolve(row, synonyms)
        if value is not ABSENT:
            precomputed[mode] = as_number(value)
    return FootballStatLine(fum_lost=_fumbles_lost(row), precomputed=precomputed, **values)


def row_to_observation(row: Mapping[str, str]) -> Optional[PlayerObservation]:
    """Normalize one CSV row; rows outside the QB/RB/WR/TE pool return None."""

    position = normalize_position(resolve(row, NFLVERSE_FIELDS["position"]), "NFL")
    if position is None:
        return None
    return PlayerObservation(
        name=resolve_text(row, NFLVERSE_FIELDS["name"], "Unknown") or "Unknown",
        position=position,
        stat_line=stat_line_from_row(row),
        provider_id=resolve_text(row, NFLVERSE_FIELDS["player_id"]),
        team=resolve_text(row, NFLVERSE_FIELDS["team"]),
        namespace="nfl",
    )


def observations_for_week(
    rows: Iterable[Mapping[str, str]],
    week: Optional[int],
) -> Tuple[List[Tuple[int, PlayerObservation]], List[str]]:
    """Pool-position observations for ``week`` (every week when None).

    Returns ``(week, observation)`` pairs and warnings about rows whose
    identity had to be synthesized from name and team.
    """

    observations: List[Tuple[int, PlayerObservation]] = []
    synthesized = 0
    for row in rows:
        row_wk = row_week(row)
        if row_wk is None or (week is not None and row_wk != week):
            continue
        observation = row_to_observation(row)
        if observation is None:
            continue
        if not observation.provider_id:
            synthesized += 1
        observations.append((row_wk, observation))
    warnings: List[str] = []
    if synthesized:
        scope = f"week {week}" if week is not None else "the season"
        warnings.append(
            f"{synthesized} rows for {scope} missing player_id (identity synthesized from name and team)"
        )
    return observations, warnings


def players_from_rows(rows: Iterable[Mapping[str, str]], week: Optional[int] = None) -> Tuple[List[PlayerIdentity], List[str]]:
    """Unique pool players for a week, or for the whole season, sorted by name."""

    observations, warnings = observations_for_week(rows, week)
    players = dedup_players(observation.identity() for _, observation in observations)
    players.sort(key=lambda player: (name_sort_key(player.name), player.id))
    return players, warnings


__all__ = [
    "GZIP_MAGIC",
    "NFLVERSE_FIELDS",
    "SeasonSnapshot",
    "SourceCandidate",
    "decode_payload",
    "fetch_season_rows",
    "fetch_season_with_fallback",
    "observations_for_week",
    "players_from_rows",
    "row_to_observation",
    "row_week",
    "season_candidates",
    "stat_line_from_row",
]
