"""Tests for the shared adapter behaviour: caching, degradation and the registry."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
import pytest

from scholarmux.adapters.base.adapter import SourceAdapter
from scholarmux.adapters.base.exceptions import ParseError, UpstreamError
from scholarmux.adapters.base.registry import AdapterNotFoundError, AdapterRegistry
from scholarmux.models.article import Article
from scholarmux.models.query import SearchRequest
from scholarmux.models.response import SourceResult

API_URL = "https://api.test/items"


class _ItemsAdapter(SourceAdapter):
    """Minimal JSON source used to exercise the base class."""

    id_prefix = "it-"
    source_name = "Items"

    @property
    def name(self) -> str:
        return "items"

    async def _search(self, request: SearchRequest) -> SourceResult:
        data = await self._get_json(API_URL, params={"q": request.query})
        return SourceResult(articles=[self._map(i) for i in data["items"]])

    async def _get_by_id(self, article_id: str) -> Article | None:
        data = await self._get_json(f"{API_URL}/{self.strip_prefix(article_id)}", not_found_ok=True)
        return self._map(data) if data else None

    def _map(self, item: dict[str, Any]) -> Article:
        return Article(id=f"{self.id_prefix}{item['id']}", title=item.get("title"), source=self.source_name)


class _KeyedAdapter(_ItemsAdapter):
    requires_api_key = True


class _Counter:
    def __init__(self, response: Callable[[httpx.Request], httpx.Response]) -> None:
        self.calls = 0
        self._response = response

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        return self._response(request)


def _ok(request: httpx.Request) -> httpx.Response:
    if request.url.path.endswith("/items"):
        return httpx.Response(200, json={"items": [{"id": 1, "title": "One"}, {"id": 2, "title": "Two"}]})
    if request.url.path.endswith("/1"):
        return httpx.Response(200, json={"id": 1, "title": "One"})
    return httpx.Response(404)


# ── Search ───────────────────────────────────────────────────────────────────


class TestSearch:
    @pytest.mark.asyncio
    async def test_maps_and_caches(self, wire: Callable[..., dict[str, Any]], covid_request: SearchRequest) -> None:
        handler = _Counter(_ok)
        adapter = _ItemsAdapter(**wire(handler))
        first = await adapter.search(covid_request)
        second = await adapter.search(covid_request)
        assert [a.id for a in first.articles] == ["it-1", "it-2"]
        assert second.articles == first.articles
        assert handler.calls == 1

    @pytest.mark.asyncio
    async def test_different_parameters_miss_the_cache(self, wire: Callable[..., dict[str, Any]]) -> None:
        handler = _Counter(_ok)
        adapter = _ItemsAdapter(**wire(handler))
        await adapter.search(SearchRequest(query="covid"))
        await adapter.search(SearchRequest(query="covid", year="2020"))
        assert handler.calls == 2

    @pytest.mark.asyncio
    async def test_blank_query_makes_no_request(self, wire: Callable[..., dict[str, Any]]) -> None:
        handler = _Counter(_ok)
        result = await _ItemsAdapter(**wire(handler)).search(SearchRequest(query=""))
        assert result.articles == []
        assert handler.calls == 0

    @pytest.mark.asyncio
    async def test_upstream_error_degrades_to_empty(
        self, wire: Callable[..., dict[str, Any]], covid_request: SearchRequest
    ) -> None:
        adapter = _ItemsAdapter(**wire(lambda r: httpx.Response(500, text="down")))
        result = await adapter.search(covid_request)
        assert result.articles == []
        assert result.ok

    @pytest.mark.asyncio
    async def test_raise_errors_propagates(
        self, wire: Callable[..., dict[str, Any]], covid_request: SearchRequest
    ) -> None:
        adapter = _ItemsAdapter(**wire(lambda r: httpx.Response(503, text="down")))
        with pytest.raises(UpstreamError) as exc_info:
            await adapter.search(covid_request, raise_errors=True)
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_invalid_json_is_a_parse_error(
        self, wire: Callable[..., dict[str, Any]], covid_request: SearchRequest
    ) -> None:
        adapter = _ItemsAdapter(**wire(lambda r: httpx.Response(200, text="<html>")))
        with pytest.raises(ParseError):
            await adapter.search(covid_request, raise_errors=True)

    @pytest.mark.asyncio
    async def test_transport_error_degrades(
        self, wire: Callable[..., dict[str, Any]], covid_request: SearchRequest
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        result = await _ItemsAdapter(**wire(handler)).search(covid_request)
        assert result.articles == []

    @pytest.mark.asyncio
    async def test_degraded_results_are_not_cached(
        self, wire: Callable[..., dict[str, Any]], covid_request: SearchRequest
    ) -> None:
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(500) if len(calls) == 1 else _ok(request)

        adapter = _ItemsAdapter(**wire(handler))
        assert (await adapter.search(covid_request)).articles == []
        assert len((await adapter.search(covid_request)).articles) == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {"items": [{"title": "no id"}]},
            {"items": None},
            [{"id": 1}],
            {"items": [{"id": 1, "title": {"nested": True}}, "not-an-object"]},
        ],
    )
    async def test_unexpected_payload_shape_degrades(
        self, wire: Callable[..., dict[str, Any]], covid_request: SearchRequest, payload: Any
    ) -> None:
        adapter = _ItemsAdapter(**wire(lambda r: httpx.Response(200, json=payload)))
        result = await adapter.search(covid_request)
        assert result.articles == []
        assert result.ok

    @pytest.mark.asyncio
    async def test_unexpected_payload_shape_is_a_parse_error(
        self, wire: Callable[..., dict[str, Any]], covid_request: SearchRequest
    ) -> None:
        adapter = _ItemsAdapter(**wire(lambda r: httpx.Response(200, json={"items": [{"title": "no id"}]})))
        with pytest.raises(ParseError, match="Items returned an unexpected payload"):
            await adapter.search(covid_request, raise_errors=True)


# ── Lookup ───────────────────────────────────────────────────────────────────


class TestGetById:
    @pytest.mark.asyncio
    async def test_found_and_cached(self, wire: Callable[..., dict[str, Any]]) -> None:
        handler = _Counter(_ok)
        adapter = _ItemsAdapter(**wire(handler))
        article = await adapter.get_by_id("it-1")
        again = await adapter.get_by_id("it-1")
        assert article is not None
        assert article.title == "One"
        assert again == article
        assert handler.calls == 1

    @pytest.mark.asyncio
    async def test_not_found(self, wire: Callable[..., dict[str, Any]]) -> None:
        assert await _ItemsAdapter(**wire(_ok)).get_by_id("it-9") is None

    def test_prefix_helpers(self) -> None:
        adapter = _ItemsAdapter()
        assert adapter.owns_id("it-5")
        assert not adapter.owns_id("pm-5")
        assert adapter.strip_prefix("it-5") == "5"
        assert adapter.strip_prefix("pm-5") == "pm-5"


# ── Lifecycle ────────────────────────────────────────────────────────────────


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_owned_client_created_and_closed(self) -> None:
        adapter = _ItemsAdapter()
        assert (await adapter.health_check()).status == "unhealthy"
        await adapter.initialize()
        assert (await adapter.health_check()).status == "healthy"
        await adapter.shutdown()
        assert adapter._client is None

    @pytest.mark.asyncio
    async def test_shared_client_left_open(self) -> None:
        client = httpx.AsyncClient()
        adapter = _ItemsAdapter(client=client)
        await adapter.initialize()
        await adapter.shutdown()
        assert not client.is_closed
        await client.aclose()

    @pytest.mark.asyncio
    async def test_missing_key_reported_as_degraded(self) -> None:
        adapter = _KeyedAdapter(client=httpx.AsyncClient())
        health = await adapter.health_check()
        assert adapter.missing_credentials
        assert health.status == "degraded"
        assert not health.credentials_configured

    def test_key_configured(self) -> None:
        adapter = _KeyedAdapter(api_key="k")
        assert adapter.has_credentials
        assert not adapter.missing_credentials

    def test_blank_key_is_missing(self) -> None:
        assert _KeyedAdapter(api_key="").missing_credentials


# ── Registry ─────────────────────────────────────────────────────────────────


class _LongPrefixAdapter(_ItemsAdapter):
    id_prefix = "it-x-"

    @property
    def name(self) -> str:
        return "items_x"


class TestRegistry:
    @pytest.mark.asyncio
    async def test_register_and_initialize(self) -> None:
        registry = AdapterRegistry()
        registry.register("items", _ItemsAdapter)
        adapter = await registry.initialize_adapter("items", client=httpx.AsyncClient())
        assert registry.get("items") is adapter
        assert "items" in registry
        assert registry.active_adapters == ["items"]

    @pytest.mark.asyncio
    async def test_initialize_unknown(self) -> None:
        with pytest.raises(AdapterNotFoundError):
            await AdapterRegistry().initialize_adapter("nope")

    def test_get_unknown(self) -> None:
        with pytest.raises(AdapterNotFoundError):
            AdapterRegistry().get("nope")

    def test_find_by_id_prefers_longest_prefix(self) -> None:
        registry = AdapterRegistry()
        registry.add(_ItemsAdapter())
        registry.add(_LongPrefixAdapter())
        assert registry.find_by_id("it-x-1").name == "items_x"
        assert registry.find_by_id("it-1").name == "items"
        with pytest.raises(AdapterNotFoundError):
            registry.find_by_id("zz-1")

    @pytest.mark.asyncio
    async def test_health_and_shutdown_all(self) -> None:
        registry = AdapterRegistry()
        registry.add(_ItemsAdapter(client=httpx.AsyncClient()))
        health = await registry.health_check_all()
        assert health["items"].status == "healthy"
        await registry.shutdown_all()
        assert registry.active_adapters == []
