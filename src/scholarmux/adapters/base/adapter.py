"""Base source adapter — Abstract interface for all bibliographic connectors.

Every upstream must implement this interface to take part in aggregation.
The adapter is responsible for:
  1. Translating the canonical request into the upstream's query syntax
  2. Executing it through the retrying fetcher (and the shared limiter
     where the upstream is burst-sensitive)
  3. Mapping the raw payload into ``Article`` records
  4. Degrading gracefully when the upstream is unreachable or unauthorized

The public ``search`` / ``get_by_id`` methods wrap the cache around the
adapter-specific ``_search`` / ``_get_by_id`` hooks.
"""

from __future__ import annotations

import asyncio
import functools
import json
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any, TypeVar
from xml.etree import ElementTree

import httpx
from pydantic import BaseModel, Field

from scholarmux.adapters.base.exceptions import AdapterError, ConfigurationError, ParseError, UpstreamError
from scholarmux.cache.manager import ResultCache, build_cache_key
from scholarmux.core.limiter import ConcurrencyLimiter
from scholarmux.http.retry import fetch_with_retry
from scholarmux.models.article import Article
from scholarmux.models.query import SearchRequest
from scholarmux.models.response import SourceResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

USER_AGENT = "ScholarMux/0.1 (academic article search aggregator)"

# Raised by mapping code on payloads with unexpected shapes; pydantic's ValidationError is a ValueError.
_PAYLOAD_ERRORS = (KeyError, IndexError, TypeError, AttributeError, ValueError)


class AdapterHealth(BaseModel):
    """Health status of a source adapter."""

    status: str = Field(description="Health status: healthy, degraded, unhealthy")
    last_check: str | None = Field(default=None, description="ISO timestamp of last health check")
    requires_api_key: bool = Field(default=False, description="Whether the upstream needs a key")
    credentials_configured: bool = Field(default=True, description="Whether a key is available")
    message: str | None = Field(default=None, description="Additional health message")


class SourceAdapter(ABC):
    """Abstract base class for source adapters.

    Subclasses set ``id_prefix`` and ``source_name`` and implement
    ``name``, ``_search`` and ``_get_by_id``. Override ``_degraded`` to
    replace the empty result returned when the upstream fails.

    Args:
        client: Shared HTTP client. When omitted the adapter creates and owns one.
        cache: Shared result cache. A private one is created when omitted.
        limiter: Shared limiter, used only when ``uses_limiter`` is set.
        api_key: Upstream credential, if the source takes one.
        page_size: Default number of results per request.
        max_retries: Retries on 429 / transport errors.
        initial_retry_delay: First backoff delay in seconds.
        timeout: Per-request deadline in seconds for an owned client.
        sleep: Awaitable used for backoff sleeps.
    """

    id_prefix: str = ""
    source_name: str = ""
    requires_api_key: bool = False
    uses_limiter: bool = False

    def __init__(
        self,
        *,
        client: httpx.AsyncClient | None = None,
        cache: ResultCache | None = None,
        limiter: ConcurrencyLimiter | None = None,
        api_key: str | None = None,
        page_size: int = 20,
        max_retries: int = 3,
        initial_retry_delay: float = 1.0,
        timeout: float = 15.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        **kwargs: Any,
    ) -> None:
        self._client = client
        self._owns_client = client is None
        self._cache = cache if cache is not None else ResultCache()
        self._limiter = limiter
        self._api_key = api_key or None
        self._page_size = page_size
        self._max_retries = max_retries
        self._initial_retry_delay = initial_retry_delay
        self._timeout = timeout
        self._sleep = sleep
        self._extra_kwargs = kwargs
        if self.uses_limiter and self._limiter is None:
            self._limiter = ConcurrencyLimiter()

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique adapter name (e.g. 'pubmed', 'arxiv')."""

    @property
    def has_credentials(self) -> bool:
        return bool(self._api_key)

    @property
    def missing_credentials(self) -> bool:
        """True when the upstream needs a key that is not configured."""
        return self.requires_api_key and not self.has_credentials

    def owns_id(self, article_id: str) -> bool:
        return bool(self.id_prefix) and article_id.startswith(self.id_prefix)

    def strip_prefix(self, article_id: str) -> str:
        return article_id[len(self.id_prefix) :] if self.owns_id(article_id) else article_id

    async def initialize(self) -> None:
        """Create the HTTP client if none was injected."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                headers={"User-Agent": USER_AGENT},
                follow_redirects=True,
            )
            self._owns_client = True
        logger.info("%s adapter initialized", self.source_name or self.name)

    async def shutdown(self) -> None:
        """Close the HTTP client if this adapter owns it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def search(self, request: SearchRequest, *, raise_errors: bool = False) -> SourceResult:
        """Search the upstream, consulting the cache first.

        Transport and payload errors are logged and turned into the
        adapter's degraded result unless ``raise_errors`` is set.

        Args:
            request: Canonical search request.
            raise_errors: Propagate upstream errors instead of degrading.

        Returns:
            The adapter's articles, plus an error message for sources that
            report failures explicitly.
        """
        if request.is_blank:
            return SourceResult()

        key = build_cache_key(self.name, **request.cache_params())
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Cache hit for %s query '%s'", self.name, request.query)
            return SourceResult(articles=cached)

        start = time.monotonic()
        try:
            result = await self._mapped(self._search(request))
        except (httpx.HTTPError, AdapterError) as e:
            logger.warning("%s search failed for '%s': %s", self.name, request.query, e)
            if raise_errors:
                raise
            return self._degraded(request, e)

        if result.ok:
            self._cache.set(key, result.articles)
        logger.info(
            "%s returned %d articles for '%s' in %dms",
            self.name,
            len(result.articles),
            request.query,
            int((time.monotonic() - start) * 1000),
        )
        return result

    async def get_by_id(self, article_id: str) -> Article | None:
        """Fetch one article by its prefixed id, consulting the cache first.

        Returns:
            The article, or None if the upstream does not know it.
        """
        key = build_cache_key(f"{self.name}:article", id=article_id)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Cache hit for %s article %s", self.name, article_id)
            return cached

        article = await self._mapped(self._get_by_id(article_id))
        if article is not None:
            self._cache.set(key, article)
        return article

    async def _mapped(self, hook: Awaitable[T]) -> T:
        """Await an upstream hook, reporting payload-shape failures as ``ParseError``."""
        try:
            return await hook
        except _PAYLOAD_ERRORS as e:
            raise ParseError(f"{self.source_name} returned an unexpected payload: {e!r}") from e

    @abstractmethod
    async def _search(self, request: SearchRequest) -> SourceResult:
        """Run the upstream search and map the payload."""

    @abstractmethod
    async def _get_by_id(self, article_id: str) -> Article | None:
        """Fetch and map a single upstream record."""

    def _degraded(self, request: SearchRequest, error: Exception) -> SourceResult:
        """Result returned when the upstream call fails."""
        return SourceResult()

    async def health_check(self) -> AdapterHealth:
        """Report readiness without calling the upstream."""
        now = datetime.now(UTC).isoformat()
        if self._client is None:
            return AdapterHealth(status="unhealthy", last_check=now, message="HTTP client not initialized")
        if self.missing_credentials:
            return AdapterHealth(
                status="degraded",
                last_check=now,
                requires_api_key=True,
                credentials_configured=False,
                message="API key not configured; serving link-out results only",
            )
        return AdapterHealth(
            status="healthy",
            last_check=now,
            requires_api_key=self.requires_api_key,
            credentials_configured=self.has_credentials or not self.requires_api_key,
        )

    # ── HTTP helpers ──

    async def _fetch(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request through the retrying fetcher and, if enabled, the limiter."""
        if self._client is None:
            raise ConfigurationError(f"{self.name} adapter not initialized.")
        call = functools.partial(
            fetch_with_retry,
            self._client,
            method,
            url,
            max_retries=self._max_retries,
            initial_delay=self._initial_retry_delay,
            sleep=self._sleep,
            **kwargs,
        )
        if self.uses_limiter and self._limiter is not None:
            return await self._limiter.run(call)
        return await call()

    async def _get(self, url: str, *, not_found_ok: bool = False, **kwargs: Any) -> httpx.Response | None:
        response = await self._fetch("GET", url, **kwargs)
        if not_found_ok and response.status_code == 404:
            return None
        if not response.is_success:
            raise UpstreamError(
                f"{self.source_name} API error ({response.status_code}): {response.text[:200]}",
                status_code=response.status_code,
            )
        return response

    async def _get_json(self, url: str, *, not_found_ok: bool = False, **kwargs: Any) -> Any:
        """GET ``url`` and decode a JSON body.

        Raises:
            UpstreamError: On a non-success status (404 excepted when ``not_found_ok``).
            ParseError: If the body is not valid JSON.
        """
        response = await self._get(url, not_found_ok=not_found_ok, **kwargs)
        if response is None:
            return None
        try:
            return response.json()
        except json.JSONDecodeError as e:
            raise ParseError(f"{self.source_name} returned invalid JSON: {e}") from e

    async def _get_xml(self, url: str, *, not_found_ok: bool = False, **kwargs: Any) -> ElementTree.Element | None:
        """GET ``url`` and parse an XML body."""
        response = await self._get(url, not_found_ok=not_found_ok, **kwargs)
        if response is None:
            return None
        try:
            return ElementTree.fromstring(response.content)
        except ElementTree.ParseError as e:
            raise ParseError(f"{self.source_name} returned invalid XML: {e}") from e
