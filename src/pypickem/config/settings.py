"""Pipeline settings threaded explicitly into every component."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional, Tuple


logger = logging.getLogger(__name__)

_ENV_PREFIX = "PYPICKEM_"

DEFAULT_NFLVERSE_RAW_BASE = (
    "https://raw.githubusercontent.com/nflverse/nflfastR-data/master/data/player_stats"
)
DEFAULT_NFLVERSE_RELEASE_BASE = (
    "https://github.com/nflverse/nflverse-data/releases/download/player_stats"
)
DEFAULT_NFLVERSE_RELEASE_BASE_ALT = (
    "https://github.com/nflverse/nflverse-data/releases/download/stats_player"
)
DEFAULT_ESPN_NBA_BASE = "https://site.api.espn.com/apis/site/v2/sports/basketball/nba"

MERGE_POLICIES = ("max", "sum", "first", "last")


def _env_str(name: str, default: str, *, legacy: str | None = None) -> str:
    raw = os.getenv(_ENV_PREFIX + name)
    if raw is None and legacy:
        raw = os.getenv(legacy)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def _env_float(name: str, default: float, *, clamp_min: float | None = None) -> float:
    raw = os.getenv(_ENV_PREFIX + name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid float for %s%s: %s; using default %.2f", _ENV_PREFIX, name, raw, default)
        return default
    if clamp_min is not None:
        value = max(clamp_min, value)
    return value


def _env_int(name: str, default: int, *, min_value: int | None = None) -> int:
    raw = os.getenv(_ENV_PREFIX + name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid int for %s%s: %s; using default %d", _ENV_PREFIX, name, raw, default)
        return default
    if min_value is not None:
        value = max(min_value, value)
    return value


def _env_seasons(name: str) -> Optional[Tuple[int, ...]]:
    raw = os.getenv(_ENV_PREFIX + name)
    if not raw:
        return None
    try:
        return tuple(int(part) for part in raw.split(",") if part.strip())
    except ValueError:
        logger.warning("Invalid season list for %s%s: %s; ignoring", _ENV_PREFIX, name, raw)
        return None


@dataclass(frozen=True)
class Settings:
    nflverse_raw_base: str = DEFAULT_NFLVERSE_RAW_BASE
    nflverse_release_base: str = DEFAULT_NFLVERSE_RELEASE_BASE
    nflverse_release_base_alt: str = DEFAULT_NFLVERSE_RELEASE_BASE_ALT
    espn_nba_base: str = DEFAULT_ESPN_NBA_BASE
    timeout_seconds: float = 15.0
    max_concurrency: int = 16
    user_agent: str = "pypickem/0.1"
    merge_policy: str = "max"
    reference_timezone: str = "America/New_York"
    # Seasons newer than this fall back one season when nothing is published yet.
    last_published_season: int = 2024
    probe_seasons: Optional[Tuple[int, ...]] = None
    extra_headers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.merge_policy not in MERGE_POLICIES:
            raise ValueError(
                f"merge_policy must be one of {', '.join(MERGE_POLICIES)}; got {self.merge_policy!r}"
            )
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")

    @classmethod
    def from_env(cls) -> "Settings":
        merge_policy = _env_str("MERGE_POLICY", "max").lower()
        if merge_policy not in MERGE_POLICIES:
            logger.warning("Invalid merge policy %r; using 'max'", merge_policy)
            merge_policy = "max"
        return cls(
            nflverse_raw_base=_env_str(
                "NFLVERSE_RAW_BASE",
                DEFAULT_NFLVERSE_RAW_BASE,
                legacy="NFLVERSE_PLAYER_STATS_RAW_BASE",
            ),
            nflverse_release_base=_env_str(
                "NFLVERSE_RELEASE_BASE",
                DEFAULT_NFLVERSE_RELEASE_BASE,
                legacy="NFLVERSE_PLAYER_STATS_RELEASE_BASE",
            ),
            nflverse_release_base_alt=_env_str(
                "NFLVERSE_RELEASE_BASE_ALT",
                DEFAULT_NFLVERSE_RELEASE_BASE_ALT,
                legacy="NFLVERSE_PLAYER_STATS_RELEASE_BASE_ALT",
            ),
            espn_nba_base=_env_str("ESPN_NBA_BASE", DEFAULT_ESPN_NBA_BASE),
            timeout_seconds=_env_float("TIMEOUT", 15.0, clamp_min=0.5),
            max_concurrency=_env_int("MAX_CONCURRENCY", 16, min_value=1),
            user_agent=_env_str("USER_AGENT", "pypickem/0.1"),
            merge_policy=merge_policy,
            reference_timezone=_env_str("TIMEZONE", "America/New_York"),
            last_published_season=_env_int("LAST_PUBLISHED_SEASON", 2024, min_value=1999),
            probe_seasons=_env_seasons("PROBE_SEASONS"),
        )

    def with_overrides(self, overrides: Mapping[str, Any]) -> "Settings":
        """Return a copy with known fields replaced; unknown keys raise ValueError."""

        known = set(self.__dataclass_fields__)
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ValueError(f"Unknown settings: {', '.join(unknown)}")
        values = dict(overrides)
        if "probe_seasons" in values and values["probe_seasons"] is not None:
            values["probe_seasons"] = tuple(int(season) for season in values["probe_seasons"])
        return replace(self, **values)

    @property
    def request_headers(self) -> dict[str, str]:
        return {"User-Agent": self.user_agent, **self.extra_headers}
