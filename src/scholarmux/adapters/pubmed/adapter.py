"""PubMed adapter — NCBI E-utilities.

Search is a two-step protocol: ``esearch`` returns PMIDs for the query and
``esummary`` returns their metadata. Article lookup adds an ``efetch`` call
for the abstract and reference list, which the summary endpoint omits.

NCBI throttles bursts aggressively, so every call goes through the shared
concurrency limiter.

API Reference: https://www.ncbi.nlm.nih.gov/books/NBK25501/
"""

from __future__ import annotations

import logging
from typing import Any
from xml.etree import ElementTree

from scholarmux.adapters.base.adapter import SourceAdapter
from scholarmux.adapters.base.mapping import join_authors, language_from_code, year_of
from scholarmux.models.article import Article
from scholarmux.models.query import SearchRequest
from scholarmux.models.response import SourceResult

logger = logging.getLogger(__name__)

_BASE_URL = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils"

_LANGUAGE_TERMS = {
    "en": "English[Language]",
    "pt": "Portuguese[Language]",
    "es": "Spanish[Language]",
}
_FIELD_TAGS = {"title": "[Title]", "author": "[Author]", "journal": "[Journal]"}

_DEFAULT_KEYWORDS = ["medicina", "pesquisa"]
_NO_REFERENCES = "Referências não disponíveis via API"
_MAX_AUTHORS = 3


def build_term(request: SearchRequest) -> str:
    """Translate the canonical request into an E-utilities ``term``."""
    term = request.query
    language = _LANGUAGE_TERMS.get(request.language_filter or "")
    if language:
        term += f" AND {language}"
    if request.is_older:
        term += ' AND ("0001"[PDAT] : "2017"[PDAT])'
    elif request.year_filter:
        term += f' AND "{request.year_filter}"[PDAT]'
    # A field-restricted search replaces the whole term, filters included.
    tag = _FIELD_TAGS.get(request.type)
    if tag:
        term = f"{request.query}{tag}"
    return term


class PubMedAdapter(SourceAdapter):
    """Source adapter for PubMed.

    Args:
        base_url: E-utilities root URL.
        **kwargs: Passed to ``SourceAdapter``.
    """

    id_prefix = "pm-"
    source_name = "PubMed"
    uses_limiter = True

    def __init__(self, base_url: str = _BASE_URL, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._base_url = base_url.rstrip("/")

    @property
    def name(self) -> str:
        return "pubmed"

    async def _search(self, request: SearchRequest) -> SourceResult:
        params: dict[str, Any] = {
            "db": "pubmed",
            "term": build_term(request),
            "retmode": "json",
            "retmax": request.page_size,
            "retstart": request.offset,
        }
        if request.sort != "relevance":
            params["sort"] = "pub_date"

        data = await self._get_json(f"{self._base_url}/esearch.fcgi", params=params)
        ids: list[str] = (data or {}).get("esearchresult", {}).get("idlist", [])
        if not ids:
            return SourceResult()

        summaries = await self._summaries(ids)
        return SourceResult(articles=[self.map_to_article(pmid, summaries[pmid]) for pmid in ids if pmid in summaries])

    async def _get_by_id(self, article_id: str) -> Article | None:
        pmid = self.strip_prefix(article_id)
        summaries = await self._summaries([pmid])
        raw = summaries.get(pmid)
        if raw is None:
            return None

        root = await self._get_xml(
            f"{self._base_url}/efetch.fcgi",
            params={"db": "pubmed", "id": pmid, "retmode": "xml"},
        )
        abstract, references = parse_efetch(root) if root is not None else ("", [])
        return self.map_to_article(pmid, raw, abstract=abstract, references=references or [_NO_REFERENCES])

    async def _summaries(self, ids: list[str]) -> dict[str, dict[str, Any]]:
        data = await self._get_json(
            f"{self._base_url}/esummary.fcgi",
            params={"db": "pubmed", "id": ",".join(ids), "retmode": "json"},
        )
        result = (data or {}).get("result", {})
        # Unknown ids come back as {"uid": ..., "error": "..."}.
        return {
            pmid: result[pmid] for pmid in ids if isinstance(result.get(pmid), dict) and "error" not in result[pmid]
        }

    def map_to_article(
        self,
        pmid: str,
        raw: dict[str, Any],
        *,
        abstract: str | None = None,
        references: list[str] | None = None,
    ) -> Article:
        """Map an ``esummary`` record to an Article."""
        langs = raw.get("lang") or []
        doi = next(
            (a.get("value") for a in raw.get("articleids") or [] if a.get("idtype") == "doi" and a.get("value")),
            None,
        )
        return Article(
            id=f"{self.id_prefix}{pmid}",
            title=raw.get("title"),
            authors=join_authors((a.get("name") for a in raw.get("authors") or []), limit=_MAX_AUTHORS),
            journal=raw.get("fulljournalname") or raw.get("source"),
            year=year_of(raw.get("pubdate")),
            language=language_from_code(langs[0] if langs else None),
            abstract=abstract or raw.get("abstract"),
            keywords=raw.get("keywordlist") or _DEFAULT_KEYWORDS,
            references=references or [],
            doi=doi,
            url=f"https://pubmed.ncbi.nlm.nih.gov/{pmid}/",
            source=self.source_name,
        )


def parse_efetch(root: ElementTree.Element) -> tuple[str, list[str]]:
    """Extract the abstract and reference citations from an efetch document."""
    sections = []
    for node in root.iter("AbstractText"):
        text = "".join(node.itertext()).strip()
        if not text:
            continue
        label = node.get("Label")
        sections.append(f"{label}: {text}" if label else text)
    references = ["".join(c.itertext()).strip() for c in root.iter("Citation")]
    return " ".join(sections), [r for r in references if r]
