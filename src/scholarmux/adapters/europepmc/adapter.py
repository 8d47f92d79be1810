"""Europe PMC adapter — Europe PMC RESTful web service.

Uses ``resultType=core`` so abstracts, keywords and full-text links come back
with the search itself. Article lookup also pulls the reference list.
Requests go through the shared concurrency limiter.

API Reference: https://europepmc.org/RestfulWebService
"""

from __future__ import annotations

import logging
from typing import Any

from scholarmux.adapters.base.adapter import SourceAdapter
from scholarmux.adapters.base.mapping import language_from_code, pick_url
from scholarmux.models.article import Article
from scholarmux.models.query import SearchRequest
from scholarmux.models.response import SourceResult

logger = logging.getLogger(__name__)

_BASE_URL = "https://www.ebi.ac.uk/europepmc/webservices/rest"

_LANGUAGES = {"en": "eng", "pt": "por", "es": "spa"}
_FIELDS = {"title": "TITLE", "author": "AUTH", "journal": "JOURNAL"}
_SORTS = {"date_desc": "P_PDATE_D desc", "date_asc": "P_PDATE_D asc"}


def build_query(request: SearchRequest) -> str:
    """Build a Europe PMC query string with field and filter clauses."""
    field = _FIELDS.get(request.type)
    query = f'{field}:"{request.query}"' if field else f"({request.query})"
    if request.is_older:
        query += " AND PUB_YEAR:[1900 TO 2017]"
    elif request.year_filter:
        query += f" AND PUB_YEAR:{request.year_filter}"
    language = _LANGUAGES.get(request.language_filter or "")
    if language:
        query += f" AND LANG:{language}"
    return query


def format_reference(ref: dict[str, Any]) -> str:
    parts = [
        f"{ref.get('authorString', '')} ({ref.get('pubYear', 's.d.')})".strip(),
        ref.get("title") or "",
        ref.get("journalAbbreviation") or ref.get("journalTitle") or "",
    ]
    return ". ".join(p.rstrip(".") for p in parts if p) + "."


class EuropePMCAdapter(SourceAdapter):
    """Source adapter for Europe PMC."""

    id_prefix = "epmc-"
    source_name = "Europe PMC"
    uses_limiter = True

    def __init__(self, base_url: str = _BASE_URL, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._base_url = base_url.rstrip("/")

    @property
    def name(self) -> str:
        return "europepmc"

    async def _search(self, request: SearchRequest) -> SourceResult:
        params: dict[str, Any] = {
            "query": build_query(request),
            "resultType": "core",
            "pageSize": request.page_size,
            "format": "json",
        }
        if request.sort in _SORTS:
            params["sort"] = _SORTS[request.sort]

        url = f"{self._base_url}/search"
        cursor = "*"
        # Paging is cursor-based only: walk the earlier pages to reach request.page.
        for _ in range(request.page - 1):
            data = await self._get_json(url, params={**params, "cursorMark": cursor})
            next_cursor = (data or {}).get("nextCursorMark")
            if not next_cursor or next_cursor == cursor:
                return SourceResult()
            cursor = next_cursor

        data = await self._get_json(url, params={**params, "cursorMark": cursor})
        results = (data or {}).get("resultList", {}).get("result") or []
        return SourceResult(articles=[self.map_to_article(r) for r in results])

    async def _get_by_id(self, article_id: str) -> Article | None:
        epmc_id = self.strip_prefix(article_id)
        data = await self._get_json(
            f"{self._base_url}/search",
            params={"query": f"EXT_ID:{epmc_id}", "resultType": "core", "format": "json"},
        )
        results = (data or {}).get("resultList", {}).get("result") or []
        if not results:
            return None
        raw = results[0]
        references = await self._references(raw.get("source") or "MED", epmc_id)
        return self.map_to_article(raw, references=references)

    async def _references(self, source: str, epmc_id: str) -> list[str]:
        data = await self._get_json(
            f"{self._base_url}/{source}/{epmc_id}/references",
            params={"format": "json", "pageSize": 100},
            not_found_ok=True,
        )
        refs = (data or {}).get("referenceList", {}).get("reference") or []
        return [format_reference(r) for r in refs]

    def map_to_article(self, raw: dict[str, Any], *, references: list[str] | None = None) -> Article:
        """Map a Europe PMC ``core`` result to an Article."""
        epmc_id = raw.get("id") or raw.get("pmid") or ""
        doi = raw.get("doi")
        full_text = (raw.get("fullTextUrlList") or {}).get("fullTextUrl") or []
        keywords = (raw.get("keywordList") or {}).get("keyword") or []
        journal = raw.get("journalTitle") or ((raw.get("journalInfo") or {}).get("journal") or {}).get("title")
        return Article(
            id=f"{self.id_prefix}{epmc_id}",
            title=raw.get("title"),
            authors=raw.get("authorString"),
            journal=journal,
            year=raw.get("pubYear"),
            language=language_from_code(raw.get("language")),
            abstract=raw.get("abstractText"),
            keywords=keywords,
            references=references or [],
            doi=doi,
            url=pick_url(
                full_text[0].get("url") if full_text else None,
                doi=doi,
                fallback=f"https://europepmc.org/article/{raw.get('source') or 'MED'}/{epmc_id}",
            ),
            source=self.source_name,
        )
