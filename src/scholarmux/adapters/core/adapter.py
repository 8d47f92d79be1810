"""CORE adapter — CORE v3 works API (open-access aggregator).

A key is optional; without one the anonymous quota applies. Requests go
through the shared concurrency limiter.

API Reference: https://api.core.ac.uk/docs/v3
"""

from __future__ import annotations

import logging
from typing import Any

from scholarmux.adapters.base.adapter import SourceAdapter
from scholarmux.adapters.base.mapping import join_authors, language_from_code, pick_url
from scholarmux.models.article import Article
from scholarmux.models.query import SearchRequest
from scholarmux.models.response import SourceResult

logger = logging.getLogger(__name__)

_BASE_URL = "https://api.core.ac.uk/v3"
_NO_PUBLISHER = "Fonte não disponível"
_FIELDS = {"title": "title", "author": "authors", "journal": "publisher"}


def build_query(request: SearchRequest) -> str:
    field = _FIELDS.get(request.type)
    query = f'{field}:"{request.query}"' if field else request.query
    if request.is_older:
        query += " AND yearPublished<2018"
    elif request.year_filter:
        query += f" AND yearPublished:{request.year_filter}"
    return query


class CoreAdapter(SourceAdapter):
    """Source adapter for CORE."""

    id_prefix = "core-"
    source_name = "CORE"
    uses_limiter = True

    def __init__(self, base_url: str = _BASE_URL, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._base_url = base_url.rstrip("/")

    @property
    def name(self) -> str:
        return "core"

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._api_key}"} if self._api_key else {}

    async def _search(self, request: SearchRequest) -> SourceResult:
        params: dict[str, Any] = {
            "q": build_query(request),
            "offset": request.offset,
            "limit": request.page_size,
        }
        if request.sort == "date_desc":
            params["sort"] = "yearPublished:desc"
        elif request.sort == "date_asc":
            params["sort"] = "yearPublished:asc"

        data = await self._get_json(f"{self._base_url}/search/works", params=params, headers=self._headers())
        results = (data or {}).get("results") or []
        return SourceResult(articles=[self.map_to_article(r) for r in results])

    async def _get_by_id(self, article_id: str) -> Article | None:
        work_id = self.strip_prefix(article_id)
        data = await self._get_json(f"{self._base_url}/works/{work_id}", headers=self._headers(), not_found_ok=True)
        return self.map_to_article(data) if data else None

    def map_to_article(self, raw: dict[str, Any]) -> Article:
        """Map a CORE work record to an Article."""
        doi = raw.get("doi")
        fulltext_urls = raw.get("sourceFulltextUrls") or []
        language = raw.get("language") or {}
        language_code = language.get("code") if isinstance(language, dict) else language
        topics = [t if isinstance(t, str) else t.get("name") for t in raw.get("topics") or []]
        return Article(
            id=f"{self.id_prefix}{raw.get('id', '')}",
            title=raw.get("title"),
            authors=join_authors(a.get("name") for a in raw.get("authors") or []),
            journal=raw.get("publisher") or _NO_PUBLISHER,
            year=raw.get("yearPublished"),
            language=language_from_code(language_code),
            abstract=raw.get("abstract"),
            keywords=topics,
            references=[],
            doi=doi,
            url=pick_url(raw.get("downloadUrl"), fulltext_urls[0] if fulltext_urls else None, doi=doi),
            source=self.source_name,
        )
