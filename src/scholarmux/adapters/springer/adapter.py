"""Springer adapter — Springer Nature Metadata API.

Requires an API key. Without one, or when the call fails, search degrades
to a redirect stub pointing at the SpringerLink search page.

Article ids embed the DOI verbatim (``springer-10.1007/...``).

API Reference: https://dev.springernature.com/
"""

from __future__ import annotations

import logging
import time
from typing import Any
from urllib.parse import quote_plus

from scholarmux.adapters.base.adapter import SourceAdapter
from scholarmux.adapters.base.mapping import doi_url, language_from_code, link_out_stub, pick_url, record_stub, year_of
from scholarmux.models.article import Article
from scholarmux.models.query import SearchRequest
from scholarmux.models.response import SourceResult

logger = logging.getLogger(__name__)

_BASE_URL = "https://api.springernature.com/meta/v2/json"
_JOURNAL = "Springer - Editora científica"
_ABOUT = "A Springer é uma das maiores editoras científicas do mundo, com periódicos e livros em todas as áreas."

_FIELDS = {"title": "title", "author": "name", "journal": "journal"}
_LANGUAGES = {"en": "en", "pt": "pt", "es": "es"}


def build_query(request: SearchRequest) -> str:
    """Build a Springer ``q`` expression with constraint terms."""
    field = _FIELDS.get(request.type)
    query = f'{field}:"{request.query}"' if field else request.query
    if request.is_older:
        query += " onlinedatefrom:1900-01-01 onlinedateto:2017-12-31"
    elif request.year_filter:
        query += f" year:{request.year_filter}"
    language = _LANGUAGES.get(request.language_filter or "")
    if language:
        query += f" language:{language}"
    if request.sort != "relevance":
        query += " sort:date"
    return query


def build_search_url(request: SearchRequest) -> str:
    url = f"https://link.springer.com/search?query={quote_plus(request.query)}"
    if request.is_older:
        url += "&date-facet-mode=between&facet-start-year=1900&facet-end-year=2017"
    elif request.year_filter:
        url += f"&date-facet-mode=in&facet-start-year={request.year_filter}&facet-end-year={request.year_filter}"
    return url


def _abstract_text(value: Any) -> str | None:
    # v2 returns either a plain string or {"h1": "Abstract", "p": [...]}.
    if isinstance(value, dict):
        paragraphs = value.get("p")
        if isinstance(paragraphs, list):
            return " ".join(str(p) for p in paragraphs)
        return str(paragraphs) if paragraphs else None
    return value


class SpringerAdapter(SourceAdapter):
    """Source adapter for Springer Nature."""

    id_prefix = "springer-"
    source_name = "Springer"
    requires_api_key = True

    def __init__(self, base_url: str = _BASE_URL, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._base_url = base_url

    @property
    def name(self) -> str:
        return "springer"

    async def _search(self, request: SearchRequest) -> SourceResult:
        if not self.has_credentials:
            logger.warning("Springer API key not configured, returning link-out result")
            return SourceResult(articles=[self.redirect_stub(request)])

        data = await self._get_json(
            self._base_url,
            params={
                "q": build_query(request),
                "s": request.offset + 1,
                "p": request.page_size,
                "api_key": self._api_key,
            },
        )
        records = (data or {}).get("records") or []
        return SourceResult(articles=[self.map_to_article(r) for r in records])

    def _degraded(self, request: SearchRequest, error: Exception) -> SourceResult:
        return SourceResult(articles=[self.redirect_stub(request)])

    async def _get_by_id(self, article_id: str) -> Article | None:
        doi = self.strip_prefix(article_id)
        if not self.has_credentials or doi.startswith("redirect-"):
            return record_stub(
                article_id=article_id,
                site="Springer",
                url=doi_url(doi) if doi.startswith("10.") else "https://link.springer.com/",
                journal=_JOURNAL,
                source=self.source_name,
            )

        data = await self._get_json(self._base_url, params={"q": f"doi:{doi}", "api_key": self._api_key})
        records = (data or {}).get("records") or []
        return self.map_to_article(records[0]) if records else None

    def redirect_stub(self, request: SearchRequest) -> Article:
        return link_out_stub(
            stub_id=f"{self.id_prefix}redirect-{int(time.time() * 1000)}",
            site="Springer",
            query=request.query,
            url=build_search_url(request),
            journal=_JOURNAL,
            source=self.source_name,
            year=request.year_filter,
            about=_ABOUT,
        )

    def map_to_article(self, record: dict[str, Any]) -> Article:
        """Map a Springer metadata record to an Article."""
        doi = record.get("doi")
        identifier = doi or str(record.get("identifier", "")).removeprefix("doi:")
        html_url = next(
            (u.get("value") for u in record.get("url") or [] if isinstance(u, dict) and u.get("format") == "html"),
            None,
        )
        keywords = record.get("keyword") or record.get("subjects") or []
        return Article(
            id=f"{self.id_prefix}{identifier}",
            title=record.get("title"),
            authors=", ".join(c.get("creator", "") for c in record.get("creators") or [] if c.get("creator")),
            journal=record.get("publicationName"),
            year=year_of(record.get("publicationDate")),
            language=language_from_code(record.get("language")),
            abstract=_abstract_text(record.get("abstract")),
            keywords=keywords,
            doi=doi,
            url=pick_url(html_url, doi=doi),
            source=self.source_name,
        )
