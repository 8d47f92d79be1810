"""Aggregate search endpoint — one query fanned out to many sources."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from scholarmux.api.deps import get_aggregator
from scholarmux.api.errors import SEARCH_ERROR, UNKNOWN_ERROR, error_response
from scholarmux.core.aggregator import Aggregator
from scholarmux.models.query import AIModel, SearchRequest, SearchType, SortOrder
from scholarmux.models.response import SearchResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/search",
    response_model=SearchResponse,
    response_model_exclude_none=True,
    summary="Multi-source search",
    description=(
        "Search the requested sources concurrently and return the merged, sorted "
        "article list. Sources that failed are listed in `sourceErrors`; the other "
        "sources' results are still returned.\n\n"
        "When `sources` is omitted the configured default set is used."
    ),
    responses={
        500: {"description": "Unexpected failure while merging results"},
    },
)
async def search(
    q: str = Query(default="", description="Search text"),
    type: SearchType = Query(default="keyword", description="Field the query targets"),
    lang: str = Query(default="all", description="Language filter: all, en, pt, es"),
    year: str = Query(default="all", description="Exact year, 'older' or 'all'"),
    sort: SortOrder = Query(default="relevance", description="Sort order"),
    sources: str | None = Query(default=None, description="Comma-separated source names"),
    ai_model: AIModel = Query(default="openai", alias="aiModel", description="Provider for the AI source"),
    specific_sources: str | None = Query(
        default=None,
        alias="specificSources",
        description="Comma-separated journals the AI source is restricted to",
    ),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
    aggregator: Aggregator = Depends(get_aggregator),
) -> SearchResponse | JSONResponse:
    """Run an aggregate search."""
    request = SearchRequest(
        query=q,
        type=type,
        language=lang,
        year=year,
        sort=sort,
        sources=sources,
        ai_model=ai_model,
        specific_sources=specific_sources,
        page=page,
        page_size=page_size,
    )
    if request.is_blank:
        return SearchResponse()

    try:
        result = await aggregator.search(request)
    except Exception as e:
        logger.exception("Aggregate search failed for '%s'", request.query)
        return error_response(500, SEARCH_ERROR, str(e) or UNKNOWN_ERROR, search=True)

    return SearchResponse(articles=result.articles, source_errors=result.source_errors or None)
