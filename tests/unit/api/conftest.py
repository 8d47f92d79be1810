"""Fixtures for API tests: an app wired to in-memory sources."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from scholarmux.adapters.ai.adapter import AISearchAdapter
from scholarmux.adapters.base.adapter import SourceAdapter
from scholarmux.adapters.base.exceptions import UpstreamError
from scholarmux.adapters.base.registry import AdapterRegistry
from scholarmux.api.app import create_app
from scholarmux.api.deps import set_aggregator
from scholarmux.config.settings import Settings
from scholarmux.core.aggregator import Aggregator
from scholarmux.models.article import Article
from scholarmux.models.query import SearchRequest
from scholarmux.models.response import SourceResult


class MemorySource(SourceAdapter):
    """Source serving a fixed article list, optionally failing or keyed."""

    def __init__(
        self,
        name: str,
        articles: list[Article] | None = None,
        *,
        error: str | None = None,
        exc: Exception | None = None,
        requires_api_key: bool = False,
        api_key: str | None = None,
    ) -> None:
        super().__init__(api_key=api_key)
        self._name = name
        self.id_prefix = f"{name}-"
        self.source_name = name.capitalize()
        self.requires_api_key = requires_api_key
        self._articles = articles or []
        self._error = error
        self._exc = exc

    @property
    def name(self) -> str:
        return self._name

    async def _search(self, request: SearchRequest) -> SourceResult:
        if self._exc is not None:
            raise self._exc
        return SourceResult(articles=self._articles, error=self._error)

    async def _get_by_id(self, article_id: str) -> Article | None:
        if self._exc is not None:
            raise self._exc
        return next((a for a in self._articles if a.id == article_id), None)


class FakeLLM:
    def __init__(self, provider: str, *replies: object) -> None:
        self.provider = provider
        self.configured = True
        self.chat_raw = AsyncMock(side_effect=list(replies))


@pytest.fixture
def memory_source() -> Callable[..., SourceAdapter]:
    return MemorySource


@pytest.fixture
def registry(make_article: Callable[..., Article]) -> AdapterRegistry:
    registry = AdapterRegistry()
    registry.add(
        MemorySource(
            "alpha",
            [
                make_article("alpha-1", year="2018"),
                make_article("alpha-10.1000/xyz", year="2021", doi="10.1000/xyz"),
            ],
        )
    )
    registry.add(MemorySource("beta", [make_article("beta-1", year="2020")]))
    registry.add(MemorySource("failing", error="Serviço indisponível"))
    registry.add(MemorySource("broken", exc=UpstreamError("Broken API error (503): down", status_code=503)))
    registry.add(MemorySource("keyed", [make_article("keyed-1")], requires_api_key=True))
    return registry


@pytest.fixture
def app_client(settings: Settings) -> Iterator[Callable[[AdapterRegistry], TestClient]]:
    """Factory returning a TestClient over an aggregator built from ``registry``."""

    def _client(registry: AdapterRegistry) -> TestClient:
        app = create_app(settings)
        set_aggregator(Aggregator(registry, default_sources=["alpha"]))
        return TestClient(app)

    yield _client
    set_aggregator(None)


@pytest.fixture
def client(app_client: Callable[[AdapterRegistry], TestClient], registry: AdapterRegistry) -> TestClient:
    return app_client(registry)


@pytest.fixture
def ai_source() -> Callable[..., AISearchAdapter]:
    def _make(*replies: object) -> AISearchAdapter:
        return AISearchAdapter(llm_clients={"openai": FakeLLM("openai", *replies)}, clock=lambda: 1_700_000_000.0)

    return _make
