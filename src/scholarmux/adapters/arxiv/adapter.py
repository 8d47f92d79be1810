"""arXiv adapter — Atom feed search API.

Queries ``/api/query`` and parses the Atom response with ElementTree.
arXiv asks clients to keep request bursts low, so calls go through the
shared concurrency limiter.

API Reference: https://info.arxiv.org/help/api/user-manual.html
"""

from __future__ import annotations

import logging
import re
from typing import Any
from xml.etree import ElementTree

from scholarmux.adapters.base.adapter import SourceAdapter
from scholarmux.adapters.base.mapping import join_authors, year_of
from scholarmux.models.article import LANGUAGE_EN, Article
from scholarmux.models.query import SearchRequest
from scholarmux.models.response import SourceResult

logger = logging.getLogger(__name__)

_BASE_URL = "https://export.arxiv.org/api/query"

NAMESPACES = {
    "atom": "http://www.w3.org/2005/Atom",
    "arxiv": "http://arxiv.org/schemas/atom",
}

_FIELD_PREFIXES = {"keyword": "all", "title": "ti", "author": "au", "journal": "jr"}

_SORTS: dict[str, tuple[str, str]] = {
    "relevance": ("relevance", "descending"),
    "date_desc": ("submittedDate", "descending"),
    "date_asc": ("submittedDate", "ascending"),
}

_WHITESPACE = re.compile(r"\s+")


def build_search_query(request: SearchRequest) -> str:
    """Build the ``search_query`` expression for a request."""
    field = _FIELD_PREFIXES.get(request.type, "all")
    expression = f"{field}:{request.query}"
    if request.is_older:
        expression += " AND submittedDate:[199101010000 TO 201712312359]"
    elif request.year_filter and request.year_filter.isdigit():
        y = request.year_filter
        expression += f" AND submittedDate:[{y}01010000 TO {y}12312359]"
    return expression


def _text(entry: ElementTree.Element, path: str) -> str:
    node = entry.find(path, NAMESPACES)
    if node is None or node.text is None:
        return ""
    return _WHITESPACE.sub(" ", node.text).strip()


class ArxivAdapter(SourceAdapter):
    """Source adapter for arXiv.

    Args:
        base_url: Atom API endpoint.
        **kwargs: Passed to ``SourceAdapter``.
    """

    id_prefix = "arxiv-"
    source_name = "arXiv"
    uses_limiter = True

    def __init__(self, base_url: str = _BASE_URL, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._base_url = base_url

    @property
    def name(self) -> str:
        return "arxiv"

    async def _search(self, request: SearchRequest) -> SourceResult:
        sort_by, sort_order = _SORTS[request.sort]
        root = await self._get_xml(
            self._base_url,
            params={
                "search_query": build_search_query(request),
                "start": request.offset,
                "max_results": request.page_size,
                "sortBy": sort_by,
                "sortOrder": sort_order,
            },
        )
        entries = root.findall("atom:entry", NAMESPACES) if root is not None else []
        return SourceResult(articles=[self.map_to_article(e) for e in entries])

    async def _get_by_id(self, article_id: str) -> Article | None:
        arxiv_id = self.strip_prefix(article_id)
        root = await self._get_xml(self._base_url, params={"id_list": arxiv_id}, not_found_ok=True)
        if root is None:
            return None
        for entry in root.findall("atom:entry", NAMESPACES):
            # Unknown ids yield a single entry without a title.
            if _text(entry, "atom:title") and _text(entry, "atom:id"):
                return self.map_to_article(entry)
        return None

    def map_to_article(self, entry: ElementTree.Element) -> Article:
        """Map an Atom ``<entry>`` to an Article."""
        entry_url = _text(entry, "atom:id")
        # http://arxiv.org/abs/2101.00001v2 -> 2101.00001
        arxiv_id = entry_url.rsplit("/", 1)[-1].split("v")[0]

        pdf_url = None
        for link in entry.findall("atom:link", NAMESPACES):
            if link.get("title") == "pdf" or link.get("type") == "application/pdf":
                pdf_url = link.get("href")
                break

        categories = [c.get("term") for c in entry.findall("atom:category", NAMESPACES) if c.get("term")]
        doi = _text(entry, "arxiv:doi") or None

        return Article(
            id=f"{self.id_prefix}{arxiv_id}",
            title=_text(entry, "atom:title"),
            authors=join_authors(_text(a, "atom:name") for a in entry.findall("atom:author", NAMESPACES)),
            journal="arXiv",
            year=year_of(_text(entry, "atom:published")),
            language=LANGUAGE_EN,
            abstract=_text(entry, "atom:summary"),
            keywords=categories,
            doi=doi,
            url=pdf_url or entry_url or None,
            source=self.source_name,
        )
