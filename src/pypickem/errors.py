"""Error taxonomy shared by adapters, the period resolver and the API."""

from __future__ import annotations

from typing import Iterable, Sequence, Tuple


class PickemError(Exception):
    """Base class for pipeline failures."""


class MalformedPayload(PickemError):
    """A fetched payload could not be parsed as the expected format."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason


class PartialSourceFailure(PickemError):
    """A single sub-fetch (one team, one game) failed.

    Never propagated to callers; adapters convert it to a warning string.
    """

    def __init__(self, source: str, reason: str):
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason

    def as_warning(self) -> str:
        return f"{self.source}: {self.reason}"


class SourceUnavailable(PickemError):
    """Every candidate upstream source failed for the requested period."""

    def __init__(self, attempts: Iterable[Tuple[str, str]], message: str | None = None):
        self.attempts: list[tuple[str, str]] = list(attempts)
        if message is None:
            tried = "\n".join(f"- {source}: {reason}" for source, reason in self.attempts)
            message = "No upstream source succeeded. Tried:\n" + (tried or "- (none)")
        super().__init__(message)


class NoDataFound(PickemError):
    """The backward period probe exhausted its candidates without data."""

    def __init__(self, searched: Sequence[int]):
        self.searched = tuple(searched)
        seasons = ", ".join(str(season) for season in self.searched) or "(none)"
        super().__init__(f"No populated period found in seasons {seasons}")


__all__ = [
    "PickemError",
    "MalformedPayload",
    "PartialSourceFailure",
    "SourceUnavailable",
    "NoDataFound",
]
