"""Synonym-list field resolution and value coercion for raw provider rows."""

from __future__ import annotations

import math
import re
from typing import Any, Mapping, Optional, Sequence


class _Absent:
    """Sentinel for a field none of whose synonyms carried a value."""

    _instance: "_Absent | None" = None

    def __new__(cls) -> "_Absent":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT: Any = _Absent()

_EMPTY_MARKERS = {"", "--", "-", "—", "–", "NA", "N/A", "NAN", "NULL", "NONE"}
_MADE_ATTEMPTED = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*-\s*\d+(?:\.\d+)?\s*$")
_CLOCK = re.compile(r"^\s*(\d+):(\d{1,2})\s*$")


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip().upper() in _EMPTY_MARKERS
    if isinstance(value, float) and math.isnan(value):
        return True
    return False


def resolve(row: Mapping[str, Any], synonyms: Sequence[str]) -> Any:
    """Return the first present, non-empty value among ``synonyms``.

    The synonym order is authoritative; the row's own key order never matters.
    Returns ``ABSENT`` when no synonym carries a value.
    """

    for key in synonyms:
        if key not in row:
            continue
        value = row[key]
        if _is_empty(value):
            continue
        return value.strip() if isinstance(value, str) else value
    return ABSENT


def resolve_text(row: Mapping[str, Any], synonyms: Sequence[str], default: Optional[str] = None) -> Optional[str]:
    value = resolve(row, synonyms)
    if value is ABSENT:
        return default
    return str(value)


def as_number(value: Any) -> float:
    """Coerce a raw stat value to a float; absent or non-numeric values are 0.

    Handles ``"7-15"`` made-attempted pairs (the made count) and ``"34:12"``
    clock strings (decimal minutes).
    """

    if value is ABSENT or value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else 0.0
    text = str(value).strip().replace(",", "")
    if text.upper() in _EMPTY_MARKERS:
        return 0.0
    pair = _MADE_ATTEMPTED.match(text)
    if pair:
        return float(pair.group(1))
    clock = _CLOCK.match(text)
    if clock:
        return int(clock.group(1)) + int(clock.group(2)) / 60.0
    try:
        number = float(text)
    except ValueError:
        return 0.0
    return number if math.isfinite(number) else 0.0


def as_count(value: Any) -> int:
    """Non-negative integer view of ``as_number``."""

    return max(0, int(round(as_number(value))))


def resolve_number(row: Mapping[str, Any], synonyms: Sequence[str]) -> float:
    return as_number(resolve(row, synonyms))


def resolve_count(row: Mapping[str, Any], synonyms: Sequence[str]) -> int:
    return as_count(resolve(row, synonyms))


_NFL_POSITIONS = {"QB", "RB", "WR", "TE"}
_NFL_ALIASES = {"HB": "RB", "FB": "RB", "TB": "RB"}
_NFL_KEYWORDS = (
    ("QUARTERBACK", "QB"),
    ("RUNNING BACK", "RB"),
    ("HALFBACK", "RB"),
    ("FULLBACK", "RB"),
    ("WIDE RECEIVER", "WR"),
    ("RECEIVER", "WR"),
    ("TIGHT END", "TE"),
)

_NBA_POSITIONS = {"C", "PF", "SF", "SG", "PG"}
_NBA_KEYWORDS = (
    ("CENTER", "C"),
    ("POINT", "PG"),
    ("SHOOT", "SG"),
    ("SG", "SG"),
    ("POWER", "PF"),
    ("PF", "PF"),
    ("SMALL", "SF"),
    ("SF", "SF"),
    ("GUARD", "SG"),
    ("FORWARD", "SF"),
)
_NBA_GENERIC = {"G": "SG", "F": "SF", "C": "C"}
NBA_DEFAULT_POSITION = "SG"


def normalize_position(raw: Any, sport: str) -> Optional[str]:
    """Map a free-text position to the sport's closed slot enum.

    NFL values outside QB/RB/WR/TE return ``None`` so callers can exclude the
    row. NBA values always map; anything unrecognized becomes ``SG``.
    """

    text = "" if raw is None or raw is ABSENT else str(raw).strip().upper()
    sport_key = sport.upper()
    if sport_key == "NFL":
        if text in _NFL_POSITIONS:
            return text
        if text in _NFL_ALIASES:
            return _NFL_ALIASES[text]
        for keyword, position in _NFL_KEYWORDS:
            if keyword in text:
                return position
        return None
    if sport_key == "NBA":
        if text in _NBA_POSITIONS:
            return text
        if text in _NBA_GENERIC:
            return _NBA_GENERIC[text]
        for keyword, position in _NBA_KEYWORDS:
            if keyword in text:
                return position
        tokens = [token for token in re.split(r"[-/,\s]+", text) if token]
        if tokens and tokens[0] in _NBA_GENERIC:
            return _NBA_GENERIC[tokens[0]]
        return NBA_DEFAULT_POSITION
    raise KeyError(f"Unsupported sport {sport!r}")


__all__ = [
    "ABSENT",
    "NBA_DEFAULT_POSITION",
    "as_count",
    "as_number",
    "normalize_position",
    "resolve",
    "resolve_count",
    "resolve_number",
    "resolve_text",
]
