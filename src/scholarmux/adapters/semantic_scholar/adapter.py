"""Semantic Scholar adapter — Academic Graph API.

A key is optional and only raises the rate limit. Article lookup adds the
TL;DR summary plus reference and citation titles.

API Reference: https://api.semanticscholar.org/api-docs/graph
"""

from __future__ import annotations

import logging
from typing import Any

from scholarmux.adapters.base.adapter import SourceAdapter
from scholarmux.adapters.base.mapping import pick_url
from scholarmux.models.article import Article
from scholarmux.models.query import SearchRequest
from scholarmux.models.response import SourceResult

logger = logging.getLogger(__name__)

_BASE_URL = "https://api.semanticscholar.org/graph/v1"
_SEARCH_FIELDS = "title,abstract,authors,year,venue,url,externalIds,fieldsOfStudy"
_DETAIL_FIELDS = _SEARCH_FIELDS + ",tldr,references.title,references.year,citations.title"


def build_params(request: SearchRequest) -> dict[str, Any]:
    params: dict[str, Any] = {
        "query": request.query,
        "offset": request.offset,
        "limit": request.page_size,
        "fields": _SEARCH_FIELDS,
    }
    if request.is_older:
        params["year"] = "-2017"
    elif request.year_filter:
        params["year"] = request.year_filter
    if request.type == "journal":
        params["venue"] = request.query
    return params


class SemanticScholarAdapter(SourceAdapter):
    """Source adapter for Semantic Scholar."""

    id_prefix = "ss-"
    source_name = "Semantic Scholar"

    def __init__(self, base_url: str = _BASE_URL, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._base_url = base_url.rstrip("/")

    @property
    def name(self) -> str:
        return "semantic_scholar"

    def _headers(self) -> dict[str, str]:
        return {"x-api-key": self._api_key} if self._api_key else {}

    async def _search(self, request: SearchRequest) -> SourceResult:
        data = await self._get_json(
            f"{self._base_url}/paper/search",
            params=build_params(request),
            headers=self._headers(),
        )
        papers = (data or {}).get("data") or []
        return SourceResult(articles=[self.map_to_article(p) for p in papers])

    async def _get_by_id(self, article_id: str) -> Article | None:
        paper_id = self.strip_prefix(article_id)
        data = await self._get_json(
            f"{self._base_url}/paper/{paper_id}",
            params={"fields": _DETAIL_FIELDS},
            headers=self._headers(),
            not_found_ok=True,
        )
        if not data:
            return None
        references = [
            f"{r.get('title')} ({r.get('year')})" if r.get("year") else r.get("title")
            for r in data.get("references") or []
            if r.get("title")
        ]
        tldr = (data.get("tldr") or {}).get("text")
        article = self.map_to_article(data, references=references)
        if not tldr:
            return article
        citations = [c.get("title") for c in data.get("citations") or [] if c.get("title")]
        content = f"<h2>Abstract</h2><p>{article.abstract}</p><h2>TL;DR</h2><p>{tldr}</p>"
        if citations:
            content += f"<h2>Citado por</h2><p>{len(citations)} trabalhos</p>"
        return article.model_copy(update={"content": content})

    def map_to_article(self, paper: dict[str, Any], *, references: list[str] | None = None) -> Article:
        """Map a Semantic Scholar paper to an Article."""
        paper_id = paper.get("paperId", "")
        doi = (paper.get("externalIds") or {}).get("DOI")
        year = paper.get("year")
        return Article(
            id=f"{self.id_prefix}{paper_id}",
            title=paper.get("title"),
            authors=", ".join(a.get("name", "") for a in paper.get("authors") or [] if a.get("name")),
            journal=paper.get("venue"),
            year=str(year) if year else None,
            abstract=paper.get("abstract"),
            keywords=paper.get("fieldsOfStudy") or [],
            references=references or [],
            doi=doi,
            url=pick_url(paper.get("url"), doi=doi, fallback=f"https://www.semanticscholar.org/paper/{paper_id}"),
            source=self.source_name,
        )
