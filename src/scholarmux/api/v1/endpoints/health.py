"""Health check endpoints — Service and per-source health."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from scholarmux import __version__
from scholarmux.adapters.base.adapter import AdapterHealth
from scholarmux.api.deps import get_aggregator
from scholarmux.core.aggregator import Aggregator

router = APIRouter()


# ── Response models ──────────────────────────────────────────────────────


class HealthResponse(BaseModel):
    """Service health check response."""

    status: str = Field(description="Health status (e.g. 'healthy')")
    version: str = Field(description="ScholarMux server version")
    service: str = Field(description="Service name ('scholarmux')")
    default_sources: list[str] = Field(description="Sources searched when a request names none")
    active_sources: list[str] = Field(description="Sources currently available")


class SourceHealthResponse(BaseModel):
    """Per-source health check response."""

    sources: dict[str, AdapterHealth] = Field(description="Map of source name to its health status")


# ── Endpoints ────────────────────────────────────────────────────────────


@router.get("/health", response_model=HealthResponse, summary="Service Health Check")
async def health_check(aggregator: Aggregator = Depends(get_aggregator)) -> HealthResponse:
    return HealthResponse(
        status="healthy",
        version=__version__,
        service="scholarmux",
        default_sources=aggregator.default_sources,
        active_sources=aggregator.registry.active_adapters,
    )


@router.get(
    "/health/sources",
    response_model=SourceHealthResponse,
    summary="Source Health Check",
    description="Report readiness and credential status of every active source. No upstream calls are made.",
)
async def source_health(aggregator: Aggregator = Depends(get_aggregator)) -> SourceHealthResponse:
    return SourceHealthResponse(sources=await aggregator.registry.health_check_all())
