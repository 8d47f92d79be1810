"""Single-source endpoints — search or look up articles on one upstream.

Unlike the aggregate search, these endpoints surface upstream failures as
HTTP errors: there are no other sources to fall back on.
"""

from __future__ import annotations

import logging

import httpx
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from scholarmux.adapters.base.adapter import SourceAdapter
from scholarmux.adapters.base.exceptions import AdapterError, MissingCredentialsError
from scholarmux.adapters.base.registry import AdapterNotFoundError
from scholarmux.api.deps import get_aggregator
from scholarmux.api.errors import (
    ARTICLE_ERROR,
    NOT_FOUND,
    SEARCH_ERROR,
    UNKNOWN_ERROR,
    error_response,
    missing_key_response,
)
from scholarmux.core.aggregator import Aggregator
from scholarmux.models.query import AIModel, SearchRequest, SearchType, SortOrder
from scholarmux.models.response import ArticleListResponse, ArticleResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sources")


@router.get(
    "/{source}/search",
    response_model=ArticleListResponse,
    response_model_exclude_none=True,
    summary="Search one source",
    responses={
        401: {"description": "The source requires an API key that is not configured"},
        404: {"description": "Unknown or disabled source"},
        500: {"description": "Upstream error"},
    },
)
async def search_source(
    source: str,
    q: str = Query(default="", description="Search text"),
    type: SearchType = Query(default="keyword"),
    lang: str = Query(default="all"),
    year: str = Query(default="all"),
    sort: SortOrder = Query(default="relevance"),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
    ai_model: AIModel = Query(default="openai", alias="aiModel"),
    aggregator: Aggregator = Depends(get_aggregator),
) -> ArticleListResponse | JSONResponse:
    """Search a single source, propagating its errors."""
    try:
        adapter = aggregator.registry.get(source)
    except AdapterNotFoundError as e:
        return error_response(404, SEARCH_ERROR, str(e), search=True)

    request = SearchRequest(
        query=q,
        type=type,
        language=lang,
        year=year,
        sort=sort,
        page=page,
        page_size=page_size,
        ai_model=ai_model,
        sources=[source],
    )
    if request.is_blank:
        return ArticleListResponse()
    if adapter.missing_credentials:
        return missing_key_response(adapter, search=True)

    try:
        result = await adapter.search(request, raise_errors=True)
    except (httpx.HTTPError, AdapterError) as e:
        return error_response(500, SEARCH_ERROR, str(e) or UNKNOWN_ERROR, search=True)

    if result.error:
        return error_response(500, SEARCH_ERROR, result.error, search=True)
    return ArticleListResponse(articles=result.articles)


@router.get(
    "/{source}/article/{article_id:path}",
    response_model=ArticleResponse,
    response_model_exclude_none=True,
    summary="Get an article from one source",
    description="Accepts the prefixed id returned by search (e.g. `pm-123`) or the bare upstream id.",
    responses={
        401: {"description": "The source requires an API key that is not configured"},
        404: {"description": "Unknown source or article not found"},
        500: {"description": "Upstream error"},
    },
)
async def get_source_article(
    source: str,
    article_id: str,
    aggregator: Aggregator = Depends(get_aggregator),
) -> ArticleResponse | JSONResponse:
    """Look up one article on a given source."""
    try:
        adapter = aggregator.registry.get(source)
    except AdapterNotFoundError as e:
        return error_response(404, NOT_FOUND, str(e))
    if not adapter.owns_id(article_id):
        article_id = f"{adapter.id_prefix}{article_id}"
    return await fetch_article(adapter, article_id)


async def fetch_article(adapter: SourceAdapter, article_id: str) -> ArticleResponse | JSONResponse:
    """``adapter.get_by_id`` with its failures mapped to HTTP errors."""
    if adapter.missing_credentials:
        return missing_key_response(adapter)
    try:
        article = await adapter.get_by_id(article_id)
    except MissingCredentialsError:
        return missing_key_response(adapter)
    except (httpx.HTTPError, AdapterError) as e:
        logger.warning("Article lookup failed on %s for %s: %s", adapter.name, article_id, e)
        return error_response(500, ARTICLE_ERROR, str(e) or UNKNOWN_ERROR)

    if article is None:
        return error_response(404, NOT_FOUND)
    return ArticleResponse(article=article)
