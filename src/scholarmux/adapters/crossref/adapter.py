"""Crossref adapter — Crossref REST API (``/works``).

Requests identify the caller through a ``mailto`` User-Agent so they are
routed to Crossref's polite pool. Article ids embed the DOI verbatim
(``cr-10.1000/xyz``).

API Reference: https://api.crossref.org/swagger-ui/index.html
"""

from __future__ import annotations

import logging
import re
from typing import Any
from urllib.parse import quote

from scholarmux.adapters.base.adapter import SourceAdapter
from scholarmux.adapters.base.mapping import first, pick_url
from scholarmux.models.article import LANGUAGE_EN, LANGUAGE_ES, LANGUAGE_PT, Article
from scholarmux.models.query import SearchRequest
from scholarmux.models.response import SourceResult

logger = logging.getLogger(__name__)

_BASE_URL = "https://api.crossref.org"
UNKNOWN_LANGUAGE = "Idioma não especificado"

_LANGUAGES = {"en": LANGUAGE_EN, "pt": LANGUAGE_PT, "es": LANGUAGE_ES}
_QUERY_FIELDS = {
    "keyword": "query",
    "title": "query.bibliographic",
    "author": "query.author",
    "journal": "query.container-title",
}
_JATS_TAG = re.compile(r"<[^>]+>")


def build_filter(request: SearchRequest) -> str:
    """Build the ``filter`` parameter, e.g. ``type:journal-article,from-pub-date:2020-01-01,...``."""
    filters = ["type:journal-article"]
    if request.is_older:
        filters.append("until-pub-date:2017-12-31")
    elif request.year_filter:
        y = request.year_filter
        filters.extend([f"from-pub-date:{y}-01-01", f"until-pub-date:{y}-12-31"])
    return ",".join(filters)


def _date_year(item: dict[str, Any]) -> str | None:
    for field in ("published", "published-print", "published-online", "issued", "created"):
        parts = (item.get(field) or {}).get("date-parts") or []
        if parts and parts[0] and parts[0][0]:
            return str(parts[0][0])
    return None


class CrossrefAdapter(SourceAdapter):
    """Source adapter for Crossref.

    Args:
        contact_email: Address advertised in the User-Agent for the polite pool.
    """

    id_prefix = "cr-"
    source_name = "CrossRef"

    def __init__(self, base_url: str = _BASE_URL, contact_email: str = "", **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._base_url = base_url.rstrip("/")
        self._contact_email = contact_email

    @property
    def name(self) -> str:
        return "crossref"

    def _headers(self) -> dict[str, str]:
        if not self._contact_email:
            return {}
        return {"User-Agent": f"ScholarMux/0.1 (mailto:{self._contact_email})"}

    async def _search(self, request: SearchRequest) -> SourceResult:
        params: dict[str, Any] = {
            _QUERY_FIELDS.get(request.type, "query"): request.query,
            "rows": request.page_size,
            "offset": request.offset,
            "filter": build_filter(request),
        }
        if request.sort == "relevance":
            params["sort"] = "relevance"
        else:
            params["sort"] = "published"
            params["order"] = "desc" if request.sort == "date_desc" else "asc"

        data = await self._get_json(f"{self._base_url}/works", params=params, headers=self._headers())
        items = (data or {}).get("message", {}).get("items") or []
        return SourceResult(articles=[self.map_to_article(i) for i in items])

    async def _get_by_id(self, article_id: str) -> Article | None:
        doi = self.strip_prefix(article_id)
        data = await self._get_json(
            f"{self._base_url}/works/{quote(doi, safe='/')}",
            headers=self._headers(),
            not_found_ok=True,
        )
        item = (data or {}).get("message")
        if not item:
            return None
        references = [r.get("unstructured") for r in item.get("reference") or [] if r.get("unstructured")]
        return self.map_to_article(item, references=references)

    def map_to_article(self, item: dict[str, Any], *, references: list[str] | None = None) -> Article:
        """Map a Crossref work to an Article."""
        doi = item.get("DOI")
        authors = [
            ", ".join(p for p in (a.get("family"), a.get("given")) if p) or a.get("name", "")
            for a in item.get("author") or []
        ]
        abstract = item.get("abstract")
        if abstract:
            abstract = _JATS_TAG.sub(" ", abstract)
            abstract = re.sub(r"\s+", " ", abstract).strip()
        return Article(
            id=f"{self.id_prefix}{doi or ''}",
            title=first(item.get("title")),
            authors=", ".join(a for a in authors if a),
            journal=first(item.get("container-title")),
            year=_date_year(item),
            language=_LANGUAGES.get((item.get("language") or "").lower(), UNKNOWN_LANGUAGE),
            abstract=abstract,
            keywords=item.get("subject") or [],
            references=references or [],
            doi=doi,
            url=pick_url(item.get("URL"), doi=doi),
            source=self.source_name,
        )
