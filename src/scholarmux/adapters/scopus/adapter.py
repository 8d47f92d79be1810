"""Scopus adapter — Elsevier Scopus Search API.

Requires an API key. Without one, or when the API call fails, search
degrades to a single redirect stub pointing at the Scopus results page.

API Reference: https://dev.elsevier.com/documentation/ScopusSearchAPI.wadl
"""

from __future__ import annotations

import logging
import time
from typing import Any
from urllib.parse import quote_plus

from scholarmux.adapters.base.adapter import SourceAdapter
from scholarmux.adapters.base.mapping import link_out_stub, pick_url, record_stub, year_of
from scholarmux.models.article import Article
from scholarmux.models.query import SearchRequest
from scholarmux.models.response import SourceResult

logger = logging.getLogger(__name__)

_BASE_URL = "https://api.elsevier.com/content/search/scopus"
_JOURNAL = "Scopus - Base de dados de citações e resumos"
_ABOUT = "O Scopus é a maior base de dados de resumos e citações de literatura revisada por pares."

_FIELDS = {"keyword": "TITLE-ABS-KEY", "title": "TITLE", "author": "AUTH", "journal": "SRCTITLE"}
_SORTS = {"relevance": "relevancy", "date_desc": "-coverDate", "date_asc": "+coverDate"}


def build_query(request: SearchRequest) -> str:
    """Build a Scopus boolean query, e.g. ``TITLE-ABS-KEY(covid) AND PUBYEAR = 2020``."""
    query = f"{_FIELDS.get(request.type, 'TITLE-ABS-KEY')}({request.query})"
    if request.is_older:
        query += " AND PUBYEAR < 2018"
    elif request.year_filter:
        query += f" AND PUBYEAR = {request.year_filter}"
    return query


def build_search_url(request: SearchRequest) -> str:
    url = f"https://www.scopus.com/results/results.uri?src=s&st1={quote_plus(request.query)}"
    if request.is_older:
        url += "&publishYear=before+2018"
    elif request.year_filter:
        url += f"&publishYear={request.year_filter}"
    return url


class ScopusAdapter(SourceAdapter):
    """Source adapter for Scopus."""

    id_prefix = "scopus-"
    source_name = "Scopus"
    requires_api_key = True

    def __init__(self, base_url: str = _BASE_URL, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._base_url = base_url

    @property
    def name(self) -> str:
        return "scopus"

    def _headers(self) -> dict[str, str]:
        return {"X-ELS-APIKey": self._api_key or "", "Accept": "application/json"}

    async def _search(self, request: SearchRequest) -> SourceResult:
        if not self.has_credentials:
            logger.warning("Scopus API key not configured, returning link-out result")
            return SourceResult(articles=[self.redirect_stub(request)])

        data = await self._get_json(
            self._base_url,
            params={
                "query": build_query(request),
                "start": request.offset,
                "count": request.page_size,
                "sort": _SORTS[request.sort],
                "view": "COMPLETE",
            },
            headers=self._headers(),
        )
        entries = (data or {}).get("search-results", {}).get("entry") or []
        # An empty result set is reported as a single entry carrying an "error" field.
        entries = [e for e in entries if "error" not in e]
        return SourceResult(articles=[self.map_to_article(e) for e in entries])

    def _degraded(self, request: SearchRequest, error: Exception) -> SourceResult:
        return SourceResult(articles=[self.redirect_stub(request)])

    async def _get_by_id(self, article_id: str) -> Article | None:
        scopus_id = self.strip_prefix(article_id)
        stub = record_stub(
            article_id=article_id,
            site="Scopus",
            url=f"https://www.scopus.com/record/display.uri?eid={scopus_id}",
            journal=_JOURNAL,
            source=self.source_name,
        )
        if not self.has_credentials or scopus_id.startswith("redirect-"):
            return stub

        data = await self._get_json(
            self._base_url,
            params={"query": f"SCOPUS-ID({scopus_id})", "view": "COMPLETE"},
            headers=self._headers(),
        )
        entries = [e for e in (data or {}).get("search-results", {}).get("entry") or [] if "error" not in e]
        return self.map_to_article(entries[0]) if entries else None

    def redirect_stub(self, request: SearchRequest) -> Article:
        return link_out_stub(
            stub_id=f"{self.id_prefix}redirect-{int(time.time() * 1000)}",
            site="Scopus",
            query=request.query,
            url=build_search_url(request),
            journal=_JOURNAL,
            source=self.source_name,
            year=request.year_filter,
            about=_ABOUT,
        )

    def map_to_article(self, entry: dict[str, Any]) -> Article:
        """Map a Scopus search entry to an Article."""
        scopus_id = str(entry.get("dc:identifier") or entry.get("eid") or "").replace("SCOPUS_ID:", "")
        doi = entry.get("prism:doi")
        keywords = [k.strip() for k in (entry.get("authkeywords") or "").split("|") if k.strip()]
        authors = entry.get("author")
        if isinstance(authors, list) and authors:
            author_text = ", ".join(a.get("authname", "") for a in authors if a.get("authname"))
        else:
            author_text = entry.get("dc:creator")
        scopus_link = next(
            (link.get("@href") for link in entry.get("link") or [] if link.get("@ref") == "scopus"),
            None,
        )
        return Article(
            id=f"{self.id_prefix}{scopus_id}",
            title=entry.get("dc:title"),
            authors=author_text,
            journal=entry.get("prism:publicationName"),
            year=year_of(entry.get("prism:coverDate")),
            abstract=entry.get("dc:description"),
            keywords=keywords,
            doi=doi,
            url=pick_url(scopus_link, doi=doi),
            source=self.source_name,
        )
