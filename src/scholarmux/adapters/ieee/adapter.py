"""IEEE Xplore adapter — IEEE Xplore Metadata Search API.

Requires an API key. Without one, or when the API call fails, search
degrades to a redirect stub pointing at the IEEE Xplore results page.

API Reference: https://developer.ieee.org/docs/read/Metadata_API_details
"""

from __future__ import annotations

import logging
import time
from typing import Any
from urllib.parse import quote_plus

from scholarmux.adapters.base.adapter import SourceAdapter
from scholarmux.adapters.base.mapping import link_out_stub, pick_url, record_stub
from scholarmux.models.article import LANGUAGE_EN, Article
from scholarmux.models.query import SearchRequest
from scholarmux.models.response import SourceResult

logger = logging.getLogger(__name__)

_BASE_URL = "https://ieeexploreapi.ieee.org/api/v1/search/articles"
_JOURNAL = "IEEE Xplore - Biblioteca Digital"
_ABOUT = (
    "O IEEE Xplore é uma biblioteca digital que fornece acesso a publicações técnicas "
    "em engenharia elétrica, ciência da computação e eletrônica."
)

_FIELDS = {"keyword": "querytext", "title": "article_title", "author": "author", "journal": "publication_title"}


def build_params(request: SearchRequest, api_key: str) -> dict[str, Any]:
    params: dict[str, Any] = {
        _FIELDS.get(request.type, "querytext"): request.query,
        "start_record": request.offset + 1,
        "max_records": request.page_size,
        "apikey": api_key,
        "format": "json",
    }
    if request.sort != "relevance":
        params["sort_field"] = "publication_year"
        params["sort_order"] = "desc" if request.sort == "date_desc" else "asc"
    if request.is_older:
        params["publication_range"] = "1900_2017"
    elif request.year_filter:
        params["publication_year"] = request.year_filter
    return params


def build_search_url(request: SearchRequest) -> str:
    url = f"https://ieeexplore.ieee.org/search/searchresult.jsp?queryText={quote_plus(request.query)}"
    if request.is_older:
        url += "&ranges=1900_2017_Year"
    elif request.year_filter:
        url += f"&ranges={request.year_filter}_{request.year_filter}_Year"
    return url


class IEEEAdapter(SourceAdapter):
    """Source adapter for IEEE Xplore."""

    id_prefix = "ieee-"
    source_name = "IEEE Xplore"
    requires_api_key = True

    def __init__(self, base_url: str = _BASE_URL, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._base_url = base_url

    @property
    def name(self) -> str:
        return "ieee"

    async def _search(self, request: SearchRequest) -> SourceResult:
        if not self.has_credentials:
            logger.warning("IEEE API key not configured, returning link-out result")
            return SourceResult(articles=[self.redirect_stub(request)])

        data = await self._get_json(self._base_url, params=build_params(request, self._api_key or ""))
        articles = (data or {}).get("articles") or []
        return SourceResult(articles=[self.map_to_article(a) for a in articles])

    def _degraded(self, request: SearchRequest, error: Exception) -> SourceResult:
        return SourceResult(articles=[self.redirect_stub(request)])

    async def _get_by_id(self, article_id: str) -> Article | None:
        article_number = self.strip_prefix(article_id)
        if not self.has_credentials or article_number.startswith("redirect-"):
            return record_stub(
                article_id=article_id,
                site="IEEE Xplore",
                url=f"https://ieeexplore.ieee.org/document/{article_number}",
                journal=_JOURNAL,
                source=self.source_name,
            )

        data = await self._get_json(
            self._base_url,
            params={"article_number": article_number, "apikey": self._api_key, "format": "json"},
        )
        articles = (data or {}).get("articles") or []
        return self.map_to_article(articles[0]) if articles else None

    def redirect_stub(self, request: SearchRequest) -> Article:
        return link_out_stub(
            stub_id=f"{self.id_prefix}redirect-{int(time.time() * 1000)}",
            site="IEEE Xplore",
            query=request.query,
            url=build_search_url(request),
            journal=_JOURNAL,
            source=self.source_name,
            year=request.year_filter,
            about=_ABOUT,
        )

    def map_to_article(self, raw: dict[str, Any]) -> Article:
        """Map an IEEE Xplore article record to an Article."""
        authors = (raw.get("authors") or {}).get("authors") or []
        terms = raw.get("index_terms") or {}
        keywords = (terms.get("ieee_terms") or {}).get("terms") or (terms.get("author_terms") or {}).get("terms") or []
        doi = raw.get("doi")
        year = raw.get("publication_year")
        return Article(
            id=f"{self.id_prefix}{raw.get('article_number', '')}",
            title=raw.get("title"),
            authors=", ".join(a.get("full_name", "") for a in authors if a.get("full_name")),
            journal=raw.get("publication_title"),
            year=str(year) if year else None,
            language=LANGUAGE_EN,
            abstract=raw.get("abstract"),
            keywords=keywords,
            doi=doi,
            url=pick_url(raw.get("html_url"), raw.get("pdf_url"), doi=doi),
            source=self.source_name,
        )
