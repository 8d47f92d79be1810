"""The Lancet adapter — Elsevier ScienceDirect search restricted to The Lancet.

Unlike the other key-based sources, failures here are reported explicitly
through ``SourceResult.error`` instead of degrading to a link-out result.

API Reference: https://dev.elsevier.com/documentation/ScienceDirectSearchAPI.wadl
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from scholarmux.adapters.base.adapter import SourceAdapter
from scholarmux.adapters.base.exceptions import MissingCredentialsError, UpstreamError
from scholarmux.adapters.base.mapping import pick_url, year_of
from scholarmux.models.article import LANGUAGE_EN, Article
from scholarmux.models.query import SearchRequest
from scholarmux.models.response import SourceResult

logger = logging.getLogger(__name__)

_SEARCH_URL = "https://api.elsevier.com/content/search/sciencedirect"
_ARTICLE_URL = "https://api.elsevier.com/content/article/doi"
_PUBLICATION = "The Lancet"

MISSING_KEY_MESSAGE = "API key do Elsevier não configurada. Configure a variável de ambiente ELSEVIER_API_KEY."
GENERIC_ERROR_MESSAGE = "Erro ao acessar a API do Elsevier."
PARSE_ERROR_MESSAGE = "Erro ao processar a resposta da API do Elsevier. Verifique os logs para mais detalhes."

_STATUS_MESSAGES = {
    401: "Erro de autorização: A API key do Elsevier não tem permissões suficientes para acessar o The Lancet.",
    403: "Acesso negado: Verifique se sua API key tem permissão para acessar o conteúdo do The Lancet.",
    429: "Limite de requisições excedido. Tente novamente mais tarde.",
}


def error_message_for(status_code: int | None) -> str:
    return _STATUS_MESSAGES.get(status_code or 0, GENERIC_ERROR_MESSAGE)


class LancetAdapter(SourceAdapter):
    """Source adapter for The Lancet."""

    id_prefix = "lancet-"
    source_name = "The Lancet"
    requires_api_key = True

    def __init__(self, search_url: str = _SEARCH_URL, article_url: str = _ARTICLE_URL, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._search_url = search_url
        self._article_url = article_url.rstrip("/")

    @property
    def name(self) -> str:
        return "lancet"

    def _headers(self) -> dict[str, str]:
        return {"X-ELS-APIKey": self._api_key or "", "Accept": "application/json"}

    async def _search(self, request: SearchRequest) -> SourceResult:
        if not self.has_credentials:
            logger.error("Elsevier API key not configured")
            return SourceResult(error=MISSING_KEY_MESSAGE)

        query = request.query
        if request.is_older:
            query += " AND PUBYEAR < 2018"
        elif request.year_filter:
            query += f" AND PUBYEAR IS {request.year_filter}"

        data = await self._get_json(
            self._search_url,
            params={
                "query": query,
                "pub": _PUBLICATION,
                "offset": request.offset,
                "count": request.page_size,
                "sort": "date" if request.sort != "relevance" else "relevance",
            },
            headers=self._headers(),
        )
        entries = [e for e in (data or {}).get("search-results", {}).get("entry") or [] if "error" not in e]
        return SourceResult(articles=[self.map_to_article(e) for e in entries])

    def _degraded(self, request: SearchRequest, error: Exception) -> SourceResult:
        if isinstance(error, UpstreamError):
            return SourceResult(error=error_message_for(error.status_code))
        if isinstance(error, httpx.HTTPError):
            return SourceResult(error=GENERIC_ERROR_MESSAGE)
        return SourceResult(error=PARSE_ERROR_MESSAGE)

    async def _get_by_id(self, article_id: str) -> Article | None:
        if not self.has_credentials:
            raise MissingCredentialsError(MISSING_KEY_MESSAGE)

        doi = self.strip_prefix(article_id)
        data = await self._get_json(f"{self._article_url}/{doi}", headers=self._headers(), not_found_ok=True)
        article = (data or {}).get("full-text-retrieval-response")
        return self.map_full_text(doi, article) if article else None

    def map_to_article(self, entry: dict[str, Any]) -> Article:
        """Map a ScienceDirect search entry to an Article."""
        doi = entry.get("prism:doi")
        authors = (entry.get("authors") or {}).get("author") or []
        if isinstance(authors, dict):
            authors = [authors]
        names = [a.get("$", "") if isinstance(a, dict) else str(a) for a in authors]
        link = (entry.get("link") or [{}])[0].get("@href")
        return Article(
            id=f"{self.id_prefix}{doi or entry.get('pii', '')}",
            title=entry.get("dc:title"),
            authors=", ".join(n for n in names if n),
            journal=entry.get("prism:publicationName") or _PUBLICATION,
            year=year_of(entry.get("prism:coverDate")),
            language=LANGUAGE_EN,
            abstract=entry.get("dc:description"),
            keywords=[s.get("$", "") for s in entry.get("subject") or [] if isinstance(s, dict)],
            doi=doi,
            url=pick_url(link, fallback=f"https://www.thelancet.com/journals/lancet/article/{doi}" if doi else None),
            source=self.source_name,
        )

    def map_full_text(self, doi: str, article: dict[str, Any]) -> Article:
        """Map an Article Retrieval API response to an Article."""
        core = article.get("coredata") or {}
        creators = core.get("dc:creator") or []
        if isinstance(creators, dict):
            creators = [creators]
        keywords = core.get("prism:keyword") or ""
        references = [r.get("ref-fulltext") for r in (article.get("references") or {}).get("reference") or []]
        original = article.get("originalText")
        return Article(
            id=f"{self.id_prefix}{doi}",
            title=core.get("dc:title"),
            authors=", ".join(c.get("$", "") for c in creators if isinstance(c, dict)),
            journal=core.get("prism:publicationName") or _PUBLICATION,
            year=year_of(core.get("prism:coverDate")),
            language=LANGUAGE_EN,
            abstract=core.get("dc:description"),
            content=f'<div class="lancet-article">{original}</div>' if isinstance(original, str) else "",
            keywords=[k.strip() for k in keywords.split(",")] if isinstance(keywords, str) else [],
            references=references,
            doi=doi,
            url=core.get("prism:url") or f"https://www.thelancet.com/journals/lancet/article/{doi}",
            source=self.source_name,
        )
