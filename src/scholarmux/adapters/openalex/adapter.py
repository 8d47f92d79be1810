"""OpenAlex adapter — OpenAlex works API.

OpenAlex ships abstracts as an inverted index (word -> positions); the
mapping rebuilds the plain text.

API Reference: https://docs.openalex.org/api-entities/works
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

_BASE_URL = "https://api.openalex.org"
_DOI_PREFIX = "https://doi.org/"
_MAX_CONCEPTS = 5

_SEARCH_FILTERS = {
    "title": "title.search",
    "author": "raw_author_name.search",
    "journal": "primary_location.source.display_name.search",
}
_SORTS = {
    "relevance": "relevance_score:desc",
    "date_desc": "publication_date:desc",
    "date_asc": "publication_date:asc",
}


def build_filter(request: SearchRequest) -> str | None:
    """Build the ``filter`` parameter, e.g. ``from_publication_date:2020-01-01,to_publication_date:2020-12-31``."""
    filters = []
    field = _SEARCH_FILTERS.get(request.type)
    if field:
        filters.append(f"{field}:{request.query}")
    if request.is_older:
        filters.append("to_publication_date:2017-12-31")
    elif request.year_filter:
        y = request.year_filter
        filters.extend([f"from_publication_date:{y}-01-01", f"to_publication_date:{y}-12-31"])
    if request.language_filter:
        filters.append(f"language:{request.language_filter}")
    return ",".join(filters) or None


def rebuild_abstract(inverted_index: dict[str, list[int]] | None) -> str:
    """Reassemble text from an OpenAlex ``abstract_inverted_index``."""
    if not inverted_index:
        return ""
    positioned = [(pos, word) for word, positions in inverted_index.items() for pos in positions]
    return " ".join(word for _, word in sorted(positioned))


class OpenAlexAdapter(SourceAdapter):
    """Source adapter for OpenAlex."""

    id_prefix = "openalex-"
    source_name = "OpenAlex"

    def __init__(self, base_url: str = _BASE_URL, contact_email: str = "", **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._base_url = base_url.rstrip("/")
        self._contact_email = contact_email

    @property
    def name(self) -> str:
        return "openalex"

    async def _search(self, request: SearchRequest) -> SourceResult:
        params: dict[str, Any] = {
            "per-page": request.page_size,
            "page": request.page,
            "sort": _SORTS[request.sort],
        }
        if request.type == "keyword":
            params["search"] = request.query
        filters = build_filter(request)
        if filters:
            params["filter"] = filters
        if self._contact_email:
            params["mailto"] = self._contact_email

        data = await self._get_json(f"{self._base_url}/works", params=params)
        results = (data or {}).get("results") or []
        return SourceResult(articles=[self.map_to_article(w) for w in results])

    async def _get_by_id(self, article_id: str) -> Article | None:
        work_id = self.strip_prefix(article_id)
        data = await self._get_json(f"{self._base_url}/works/{work_id}", not_found_ok=True)
        return self.map_to_article(data) if data else None

    def map_to_article(self, work: dict[str, Any]) -> Article:
        """Map an OpenAlex work to an Article."""
        work_id = str(work.get("id") or "").rsplit("/", 1)[-1]
        doi = work.get("doi")
        if doi and doi.startswith(_DOI_PREFIX):
            doi = doi[len(_DOI_PREFIX) :]
        primary = work.get("primary_location") or {}
        source = primary.get("source") or {}
        landing_pages = [loc.get("landing_page_url") for loc in work.get("locations") or []]
        concepts = [c.get("display_name") for c in (work.get("concepts") or [])[:_MAX_CONCEPTS]]
        year = work.get("publication_year")
        return Article(
            id=f"{self.id_prefix}{work_id}",
            title=work.get("display_name") or work.get("title"),
            authors=", ".join(
                (a.get("author") or {}).get("display_name", "")
                for a in work.get("authorships") or []
                if (a.get("author") or {}).get("display_name")
            ),
            journal=source.get("display_name"),
            year=str(year) if year else None,
            language=language_from_code(work.get("language")),
            abstract=rebuild_abstract(work.get("abstract_inverted_index")),
            keywords=concepts,
            doi=doi,
            url=pick_url(primary.get("landing_page_url"), *landing_pages, doi=doi),
            source=self.source_name,
        )
