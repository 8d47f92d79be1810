"""Aggregator — fans a query out to several sources and merges the results.

The aggregator never fails because one source does: each adapter call is
awaited with ``return_exceptions=True``, and failures are reported in the
``source_errors`` side map of the result instead.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from collections.abc import Sequence

from scholarmux.adapters.base.adapter import SourceAdapter
from scholarmux.adapters.base.registry import AdapterNotFoundError, AdapterRegistry
from scholarmux.models.article import Article
from scholarmux.models.query import SearchRequest, SortOrder
from scholarmux.models.response import AggregateResult, SourceResult

logger = logging.getLogger(__name__)

DEFAULT_SOURCES = ("ai",)

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def year_sort_key(article: Article) -> int:
    """Leading integer of ``article.year``; 0 when there is none (e.g. 'N/A')."""
    match = _LEADING_INT.match(article.year)
    return int(match.group(1)) if match else 0


def sort_articles(articles: list[Article], sort: SortOrder) -> list[Article]:
    """Order merged articles.

    ``relevance`` keeps the concatenation order, so each source's own
    ranking survives. Date orders are stable.
    """
    if sort == "date_desc":
        return sorted(articles, key=year_sort_key, reverse=True)
    if sort == "date_asc":
        return sorted(articles, key=year_sort_key)
    return list(articles)


def dedupe_by_doi(articles: list[Article]) -> list[Article]:
    """Collapse articles sharing a DOI (case-insensitive).

    The first occurrence keeps its position; its record is replaced by a
    later duplicate whose abstract is longer.
    """
    merged: list[Article] = []
    position: dict[str, int] = {}
    for article in articles:
        if not article.doi:
            merged.append(article)
            continue
        key = article.doi.lower()
        if key not in position:
            position[key] = len(merged)
            merged.append(article)
        elif len(article.abstract) > len(merged[position[key]].abstract):
            merged[position[key]] = article
    return merged


class Aggregator:
    """Multi-source search over the adapters in a registry.

    Args:
        registry: Registry holding initialized adapters.
        default_sources: Sources used when a request names none.
        dedupe: Whether to collapse articles sharing a DOI.
    """

    def __init__(
        self,
        registry: AdapterRegistry,
        default_sources: Sequence[str] = DEFAULT_SOURCES,
        dedupe: bool = True,
    ) -> None:
        self.registry = registry
        self.default_sources = list(default_sources)
        self.dedupe = dedupe

    async def search(self, request: SearchRequest) -> AggregateResult:
        """Search every requested source concurrently and merge the results."""
        if request.is_blank:
            return AggregateResult()

        start = time.monotonic()
        names = list(dict.fromkeys(request.sources or self.default_sources))
        errors: dict[str, str] = {}
        selected: list[SourceAdapter] = []
        for name in names:
            try:
                selected.append(self.registry.get(name))
            except AdapterNotFoundError as e:
                logger.warning("Skipping unknown source '%s'", name)
                errors[name] = str(e)

        outcomes: list[SourceResult | BaseException] = await asyncio.gather(
            *(adapter.search(request) for adapter in selected),
            return_exceptions=True,
        )

        articles: list[Article] = []
        for adapter, outcome in zip(selected, outcomes, strict=True):
            if isinstance(outcome, BaseException):
                logger.error("Source '%s' raised during search: %r", adapter.name, outcome)
                errors[adapter.name] = str(outcome) or type(outcome).__name__
                continue
            if outcome.error:
                errors[adapter.name] = outcome.error
            articles.extend(outcome.articles)

        total = len(articles)
        if self.dedupe:
            articles = dedupe_by_doi(articles)
        articles = sort_articles(articles, request.sort)

        logger.info(
            "Aggregate search '%s': %d sources, %d articles (%d before dedupe), %d errors in %dms",
            request.query,
            len(selected),
            len(articles),
            total,
            len(errors),
            int((time.monotonic() - start) * 1000),
        )
        return AggregateResult(articles=articles, source_errors=errors)

    async def get_article(self, article_id: str) -> Article | None:
        """Look up an article through the adapter that issued its id.

        Raises:
            AdapterNotFoundError: If no active source owns the id prefix.
        """
        adapter = self.registry.find_by_id(article_id)
        return await adapter.get_by_id(article_id)
