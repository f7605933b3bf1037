"""Player identity shared across ingestion and scoring layers."""

from __future__ import annotations

import re
from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


Position = Literal["QB", "RB", "WR", "TE", "C", "PF", "SF", "SG", "PG"]


class PlayerIdentity(BaseModel):
    """Normalized player identity; ``id`` is unique within one fetch result."""

    id: str = Field(..., min_length=1)
    name: str
    position: Position
    team: Optional[str] = None

    model_config = ConfigDict(frozen=True)


_NAME_SUFFIX_TOKENS = {"jr", "sr", "ii", "iii", "iv", "v"}


def normalize_name(name: str) -> str:
    lowered = name.lower()
    cleaned = re.sub(r"[^a-z0-9]+", " ", lowered)
    tokens = [tok for tok in cleaned.split() if tok and tok not in _NAME_SUFFIX_TOKENS]
    return "".join(tokens)


def synthesize_player_id(namespace: str, name: str, team: Optional[str]) -> str:
    """Stable fallback identity built from ``(name, team)``.

    The ``name:`` marker keeps synthesized ids disjoint from provider ids.
    """

    return f"{namespace}:name:{normalize_name(name)}::{(team or '').upper()}"
