"""API v1 Router — Search, source, article, health and credential endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from scholarmux.api.v1.endpoints.articles import router as articles_router
from scholarmux.api.v1.endpoints.credentials import router as credentials_router
from scholarmux.api.v1.endpoints.health import router as health_router
from scholarmux.api.v1.endpoints.search import router as search_router
from scholarmux.api.v1.endpoints.sources import router as sources_router

router = APIRouter(tags=["v1"])
router.include_router(search_router)
router.include_router(sources_router)
router.include_router(articles_router)
router.include_router(credentials_router)
router.include_router(health_router)
