from __future__ import annotations

from typing import Any, Callable, Mapping

import httpx
import pytest

from pypickem.config.settings import Settings

from .payloads import ESPN_BASE, RAW_BASE, RELEASE_ALT_BASE, RELEASE_BASE


def _respond(request: httpx.Request, reply: Any) -> httpx.Response:
    if callable(reply):
        reply = reply(request)
    if isinstance(reply, httpx.Response):
        return reply
    if isinstance(reply, str) and reply == "timeout":
        raise httpx.ReadTimeout("timed out", request=request)
    if isinstance(reply, int):
        return httpx.Response(reply)
    if isinstance(reply, bytes):
        return httpx.Response(200, content=reply)
    if isinstance(reply, str):
        return httpx.Response(200, text=reply)
    return httpx.Response(200, json=reply)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        nflverse_raw_base=RAW_BASE,
        nflverse_release_base=RELEASE_BASE,
        nflverse_release_base_alt=RELEASE_ALT_BASE,
        espn_nba_base=ESPN_BASE,
        timeout_seconds=2.0,
    )


@pytest.fixture
def mock_http() -> Callable[[Mapping[str, Any]], httpx.AsyncClient]:
    """Build an AsyncClient whose upstream is a URL -> response table.

    Keys match the full URL first, then the URL without its query string.
    Values may be JSON data, bytes, text, a status code, ``"timeout"`` or a
    callable taking the request. Anything unmatched is a 404.
    """

    def factory(routes: Mapping[str, Any]) -> httpx.AsyncClient:
        requested: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            url = str(request.url)
            requested.append(url)
            bare = url.split("?", 1)[0]
            if url in routes:
                return _respond(request, routes[url])
            if bare in routes:
                return _respond(request, routes[bare])
            return httpx.Response(404)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        client.requested = requested  # type: ignore[attr-defined]
        return client

    return factory


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"
