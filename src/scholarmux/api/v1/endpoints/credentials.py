"""Credential status endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from scholarmux.api.deps import get_aggregator
from scholarmux.core.aggregator import Aggregator

router = APIRouter(prefix="/credentials")


class KeyStatusResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    api_key_configured: bool = Field(alias="apiKeyConfigured")
    message: str


@router.get("/lancet", response_model=KeyStatusResponse, summary="Elsevier key status")
async def lancet_key_status(aggregator: Aggregator = Depends(get_aggregator)) -> KeyStatusResponse:
    """Whether the Elsevier key used by The Lancet source is configured."""
    configured = "lancet" in aggregator.registry and aggregator.registry.get("lancet").has_credentials
    return KeyStatusResponse(
        api_key_configured=configured,
        message="API key do Elsevier está configurada" if configured else "API key do Elsevier não está configurada",
    )
