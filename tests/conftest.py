"""Shared fixtures for depfetch tests — no network access (httpx.MockTransport)."""

from __future__ import annotations

from collections.abc import Callable

import httpx
import pytest
from structlog.testing import capture_logs

from depfetch.config import Settings


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _captured_logs():
    """Keep structlog output out of captured stdout (CLI --json, etc.)."""
    with capture_logs() as logs:
        yield logs


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def make_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Build an AsyncClient whose requests are answered by *handler*."""

    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=False)

    return _make
