"""Configuration helpers for roster slots and pipeline settings."""

from .roster import RosterRules, get_rules, iter_rules
from .settings import Settings

__all__ = [
    "RosterRules",
    "Settings",
    "get_rules",
    "iter_rules",
]
