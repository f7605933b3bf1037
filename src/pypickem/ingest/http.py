"""Shared async HTTP helpers for upstream adapters.

Every request carries its own timeout; nothing here caches or retries, so
callers control freshness.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Iterable, List, Mapping, Optional, TypeVar

import httpx

from pypickem.config.settings import Settings
from pypickem.errors import MalformedPayload, PartialSourceFailure, PickemError


logger = logging.getLogger(__name__)

T = TypeVar("T")
K = TypeVar("K")


@asynccontextmanager
async def open_client(
    settings: Settings,
    client: httpx.AsyncClient | None = None,
) -> AsyncIterator[httpx.AsyncClient]:
    """Yield ``client`` untouched, or a fresh client that is closed afterwards."""

    if client is not None:
        yield client
        return
    async with httpx.AsyncClient(
        headers=settings.request_headers,
        timeout=httpx.Timeout(settings.timeout_seconds),
        follow_redirects=True,
    ) as owned:
        yield owned


async def fetch_bytes(
    client: httpx.AsyncClient,
    url: str,
    *,
    settings: Settings,
    accept: str = "text/csv,application/octet-stream,application/gzip",
) -> bytes:
    response = await client.get(
        url,
        headers={**settings.request_headers, "Accept": accept},
        timeout=settings.timeout_seconds,
        follow_redirects=True,
    )
    response.raise_for_status()
    return response.content


async def fetch_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    settings: Settings,
    params: Optional[Mapping[str, Any]] = None,
) -> Any:
    response = await client.get(
        url,
        params=params,
        headers={**settings.request_headers, "Accept": "application/json"},
        timeout=settings.timeout_seconds,
        follow_redirects=True,
    )
    response.raise_for_status()
    try:
        return response.json()
    except ValueError as exc:
        raise MalformedPayload(url, "response is not valid JSON") from exc


def describe_error(exc: BaseException) -> str:
    """Short human-readable failure reason for warnings and error envelopes."""

    if isinstance(exc, httpx.HTTPStatusError):
        return f"HTTP {exc.response.status_code}"
    if isinstance(exc, httpx.TimeoutException):
        return "timed out"
    if isinstance(exc, httpx.RequestError):
        return f"{type(exc).__name__}: {exc}" if str(exc) else type(exc).__name__
    if isinstance(exc, (MalformedPayload, PartialSourceFailure)):
        return exc.reason
    return str(exc) or type(exc).__name__


async def gather_settled(
    items: Iterable[K],
    fetch: Callable[[K], Awaitable[T]],
    *,
    label: Callable[[K], str],
    limit: int,
) -> tuple[List[tuple[K, T]], List[PartialSourceFailure]]:
    """Run ``fetch`` for every item concurrently and wait for all of them.

    Upstream failures of one item are returned as ``PartialSourceFailure``
    and never cancel siblings. Results keep the input order.
    """

    semaphore = asyncio.Semaphore(max(1, limit))

    async def run(item: K) -> tuple[K, T | PartialSourceFailure]:
        async with semaphore:
            try:
                return item, await fetch(item)
            except (httpx.HTTPError, PickemError) as exc:
                failure = PartialSourceFailure(label(item), describe_error(exc))
                logger.warning("Skipping %s", failure.as_warning())
                return item, failure

    settled = await asyncio.gather(*(run(item) for item in items))
    successes: List[tuple[K, T]] = []
    failures: List[PartialSourceFailure] = []
    for item, outcome in settled:
        if isinstance(outcome, PartialSourceFailure):
            failures.append(outcome)
        else:
            successes.append((item, outcome))
    return successes, failures
