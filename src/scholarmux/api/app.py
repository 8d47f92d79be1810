"""FastAPI application factory and lifecycle management."""

from __future__ import annotations

import asyncio
import contextlib
import importlib
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from scholarmux import __version__
from scholarmux.adapters.base.adapter import USER_AGENT
from scholarmux.adapters.base.registry import AdapterRegistry
from scholarmux.api.deps import set_aggregator
from scholarmux.api.v1.router import router as v1_router
from scholarmux.cache.manager import ResultCache
from scholarmux.config.settings import Settings
from scholarmux.core.aggregator import Aggregator
from scholarmux.core.limiter import ConcurrencyLimiter
from scholarmux.core.llm.client import LLMClient
from scholarmux.observability.logging import setup_logging

logger = logging.getLogger(__name__)

CONFIG_FILE = "scholarmux-config.yaml"


def load_settings() -> Settings:
    """Load settings, preferring ``scholarmux-config.yaml`` in the working directory."""
    yaml_path = Path(CONFIG_FILE)
    if yaml_path.exists():
        logger.info("Loading configuration from %s", yaml_path)
        return Settings.from_yaml(yaml_path)
    return Settings()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings. If None, loads from YAML or environment.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Manage application lifecycle (startup/shutdown)."""
        setup_logging(settings.observability)
        logger.info("Starting ScholarMux v%s", __version__)

        client = httpx.AsyncClient(
            timeout=httpx.Timeout(settings.sources.request_timeout),
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
        )
        cache = ResultCache(ttl_seconds=settings.cache.ttl_seconds)
        limiter = ConcurrencyLimiter(settings.sources.max_concurrent)

        registry = AdapterRegistry()
        await register_adapters(registry, settings, client=client, cache=cache, limiter=limiter)

        aggregator = Aggregator(
            registry,
            default_sources=settings.sources.default_sources,
            dedupe=settings.sources.dedupe_by_doi,
        )
        set_aggregator(aggregator)

        app.state.settings = settings
        app.state.aggregator = aggregator
        app.state.cache = cache

        sweeper: asyncio.Task[None] | None = None
        if settings.cache.sweep_interval_seconds > 0:
            sweeper = asyncio.create_task(_sweep_cache(cache, settings.cache.sweep_interval_seconds))

        logger.info("ScholarMux is ready to serve requests on port %d", settings.server.port)
        yield

        logger.info("Shutting down ScholarMux...")
        if sweeper is not None:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper
        await registry.shutdown_all()
        await client.aclose()
        set_aggregator(None)
        logger.info("ScholarMux shutdown complete")

    app = FastAPI(
        title="ScholarMux",
        description=(
            "Academic article search aggregator: one query fanned out to bibliographic APIs "
            "and language models, normalized into a single article schema."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(v1_router, prefix="/v1")

    return app


async def _sweep_cache(cache: ResultCache, interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        removed = cache.clean_expired()
        if removed:
            logger.debug("Cache sweep removed %d expired entries", removed)


# ── Adapter auto-registration ──

# Maps adapter names to (module_path, class_name) for lazy import
_ADAPTER_MAP: dict[str, tuple[str, str]] = {
    "pubmed": ("scholarmux.adapters.pubmed.adapter", "PubMedAdapter"),
    "arxiv": ("scholarmux.adapters.arxiv.adapter", "ArxivAdapter"),
    "scielo": ("scholarmux.adapters.scielo.adapter", "ScieloAdapter"),
    "core": ("scholarmux.adapters.core.adapter", "CoreAdapter"),
    "europepmc": ("scholarmux.adapters.europepmc.adapter", "EuropePMCAdapter"),
    "scopus": ("scholarmux.adapters.scopus.adapter", "ScopusAdapter"),
    "ieee": ("scholarmux.adapters.ieee.adapter", "IEEEAdapter"),
    "springer": ("scholarmux.adapters.springer.adapter", "SpringerAdapter"),
    "doaj": ("scholarmux.adapters.doaj.adapter", "DOAJAdapter"),
    "crossref": ("scholarmux.adapters.crossref.adapter", "CrossrefAdapter"),
    "openalex": ("scholarmux.adapters.openalex.adapter", "OpenAlexAdapter"),
    "semantic_scholar": ("scholarmux.adapters.semantic_scholar.adapter", "SemanticScholarAdapter"),
    "lancet": ("scholarmux.adapters.lancet.adapter", "LancetAdapter"),
    "ai": ("scholarmux.adapters.ai.adapter", "AISearchAdapter"),
}

# Adapter name -> attribute of CredentialSettings holding its key
_CREDENTIAL_KEYS: dict[str, str] = {
    "scopus": "scopus_api_key",
    "ieee": "ieee_api_key",
    "springer": "springer_api_key",
    "core": "core_api_key",
    "semantic_scholar": "semantic_scholar_api_key",
    "lancet": "elsevier_api_key",
}

_POLITE_POOL_ADAPTERS = {"crossref", "openalex"}


def adapter_kwargs(name: str, settings: Settings) -> dict[str, Any]:
    """Source-specific constructor arguments derived from settings."""
    kwargs: dict[str, Any] = {
        "page_size": settings.sources.page_size,
        "max_retries": settings.sources.max_retries,
        "initial_retry_delay": settings.sources.initial_retry_delay,
        "timeout": settings.sources.request_timeout,
    }
    credential = _CREDENTIAL_KEYS.get(name)
    if credential:
        kwargs["api_key"] = getattr(settings.credentials, credential)
    if name in _POLITE_POOL_ADAPTERS:
        kwargs["contact_email"] = settings.credentials.contact_email
    if name == "ai":
        kwargs["llm_clients"] = {
            provider: LLMClient.for_provider(provider, settings.ai) for provider in ("openai", "gemini")
        }
        kwargs["result_limit"] = settings.ai.result_limit
    return kwargs


async def register_adapters(registry: AdapterRegistry, settings: Settings, **shared: Any) -> None:
    """Register and initialise the adapters listed in ``settings.sources.enabled``.

    ``shared`` carries the process-wide client, cache and limiter handed to
    every adapter.
    """
    for adapter_name in settings.sources.enabled:
        entry = _ADAPTER_MAP.get(adapter_name)
        if entry is None:
            logger.warning("Unknown source '%s' in configuration, skipping", adapter_name)
            continue

        module_path, class_name = entry
        try:
            module = importlib.import_module(module_path)
            adapter_class = getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            logger.warning("Failed to import adapter '%s': %s", adapter_name, e)
            continue

        registry.register(adapter_name, adapter_class)
        try:
            await registry.initialize_adapter(adapter_name, **shared, **adapter_kwargs(adapter_name, settings))
        except Exception:
            logger.warning("Failed to initialise adapter '%s'", adapter_name, exc_info=True)
