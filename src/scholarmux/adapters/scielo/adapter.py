"""SciELO adapter — link-out only.

SciELO has no public JSON search API, so every search yields a single
redirect stub pointing at the SciELO search page with the filters applied.
"""

from __future__ import annotations

import time
from urllib.parse import urlencode

from scholarmux.adapters.base.adapter import SourceAdapter
from scholarmux.models.article import Article, RedirectStub
from scholarmux.models.query import SearchRequest
from scholarmux.models.response import SourceResult

_SEARCH_URL = "https://search.scielo.org/"
_JOURNAL = "SciELO - Biblioteca Científica Eletrônica Online"
_LANGUAGES = {"pt", "en", "es"}


def build_search_url(request: SearchRequest) -> str:
    params = {"q": request.query}
    if request.language_filter in _LANGUAGES:
        params["la"] = request.language_filter
    if request.year_filter and not request.is_older:
        params["py"] = request.year_filter
    return f"{_SEARCH_URL}?{urlencode(params)}"


class ScieloAdapter(SourceAdapter):
    """Source adapter producing SciELO search-page links."""

    id_prefix = "scielo-"
    source_name = "SciELO"

    @property
    def name(self) -> str:
        return "scielo"

    async def _search(self, request: SearchRequest) -> SourceResult:
        query = request.query
        stub = RedirectStub(
            id=f"{self.id_prefix}search-{int(time.time() * 1000)}",
            title=f'Resultados da SciELO para "{query}"',
            authors="Diversos autores",
            journal=_JOURNAL,
            year=request.year_filter or "Todos os anos",
            language="Diversos",
            abstract=(
                f'Sua pesquisa por "{query}" encontrará resultados na SciELO. '
                'Clique em "Acessar resultados" para ver todos os artigos diretamente no site da SciELO.'
            ),
            content=(
                "<h2>Resultados da SciELO</h2>"
                f'<p>Sua pesquisa por "{query}" encontrará resultados na SciELO.</p>'
                "<p>A SciELO não oferece uma API de busca pública; acesse os resultados diretamente no site.</p>"
            ),
            keywords=[query],
            url=build_search_url(request),
            source=self.source_name,
        )
        return SourceResult(articles=[stub])

    async def _get_by_id(self, article_id: str) -> Article | None:
        return RedirectStub(
            id=article_id,
            title="Artigo da SciELO",
            authors="Informações disponíveis no site da SciELO",
            journal=_JOURNAL,
            year="Informação disponível no site original",
            language="Informação disponível no site original",
            abstract="Para visualizar o resumo completo, acesse o artigo no site da SciELO.",
            url=_SEARCH_URL,
            source=self.source_name,
        )
