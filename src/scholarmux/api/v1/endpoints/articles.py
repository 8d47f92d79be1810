"""Article endpoints — lookup by prefixed id and AI-generated details."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from scholarmux.adapters.ai.adapter import AISearchAdapter
from scholarmux.adapters.base.registry import AdapterNotFoundError
from scholarmux.api.deps import get_aggregator
from scholarmux.api.errors import NOT_FOUND, error_response
from scholarmux.api.v1.endpoints.sources import fetch_article
from scholarmux.core.aggregator import Aggregator
from scholarmux.core.llm.client import LLMError
from scholarmux.models.query import ArticleDetailsRequest
from scholarmux.models.response import ArticleResponse

logger = logging.getLogger(__name__)

router = APIRouter()

MISSING_ARTICLE_INFO = "Informações do artigo não fornecidas"
AI_DISABLED = "A busca por IA não está habilitada"


@router.get(
    "/articles/{article_id:path}",
    response_model=ArticleResponse,
    response_model_exclude_none=True,
    summary="Get an article by id",
    description="Dispatches to the source that issued the id, based on its prefix (`pm-`, `arxiv-`, `cr-`, ...).",
    responses={
        401: {"description": "The owning source requires an API key that is not configured"},
        404: {"description": "No source owns the id, or the article does not exist"},
        500: {"description": "Upstream error"},
    },
)
async def get_article(
    article_id: str,
    aggregator: Aggregator = Depends(get_aggregator),
) -> ArticleResponse | JSONResponse:
    """Look up an article through the source that owns its prefix."""
    try:
        adapter = aggregator.registry.find_by_id(article_id)
    except AdapterNotFoundError as e:
        return error_response(404, NOT_FOUND, str(e))
    return await fetch_article(adapter, article_id)


@router.post(
    "/article-details",
    response_model=ArticleResponse,
    response_model_exclude_none=True,
    summary="AI article details",
    description=(
        "Ask a language model for the full record (content, keywords, references) "
        "of an article described by a partial `articleInfo`."
    ),
    responses={
        400: {"description": "`articleInfo` missing or without title, DOI or URL"},
        500: {"description": "Model failure"},
    },
)
async def article_details(
    body: ArticleDetailsRequest,
    aggregator: Aggregator = Depends(get_aggregator),
) -> ArticleResponse | JSONResponse:
    """Generate article details with the AI source."""
    info = body.article_info
    if info is None:
        return error_response(400, MISSING_ARTICLE_INFO)

    try:
        adapter = aggregator.registry.get("ai")
    except AdapterNotFoundError:
        return error_response(500, AI_DISABLED)
    if not isinstance(adapter, AISearchAdapter):
        return error_response(500, AI_DISABLED)

    logger.info("Article details requested for: %s", info.title or info.id)
    try:
        article = await adapter.get_article_details(info, body.ai_model)
    except ValueError as e:
        return error_response(400, str(e))
    except LLMError as e:
        return error_response(500, str(e))
    return ArticleResponse(article=article)
