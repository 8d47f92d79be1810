"""Shared test fixtures and configuration."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
import pytest

from scholarmux.cache.manager import ResultCache
from scholarmux.config.settings import Settings
from scholarmux.core.limiter import ConcurrencyLimiter
from scholarmux.models.article import Article
from scholarmux.models.query import SearchRequest

Handler = Callable[[httpx.Request], httpx.Response]


async def _no_sleep(_: float) -> None:
    return None


@pytest.fixture
def settings() -> Settings:
    """Create a test Settings instance with defaults."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        debug=True,
        sources={"max_retries": 0},
    )


@pytest.fixture
def cache() -> ResultCache:
    return ResultCache()


@pytest.fixture
def limiter() -> ConcurrencyLimiter:
    return ConcurrencyLimiter(2)


@pytest.fixture
def covid_request() -> SearchRequest:
    return SearchRequest(query="covid", sources=["pubmed"])


@pytest.fixture
def wire() -> Callable[..., dict[str, Any]]:
    """Factory for adapter kwargs backed by an ``httpx.MockTransport`` handler.

    Backoff sleeps return immediately.
    """

    def _wire(handler: Handler, **extra: Any) -> dict[str, Any]:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return {"client": client, "cache": ResultCache(), "sleep": _no_sleep, **extra}

    return _wire


@pytest.fixture
def make_article() -> Callable[..., Article]:
    def _make(
        id: str,
        year: str = "2020",
        doi: str | None = None,
        abstract: str = "An abstract.",
        **kw: Any,
    ) -> Article:
        return Article(id=id, title=f"Title {id}", year=year, doi=doi, abstract=abstract, source="Test", **kw)

    return _make
