"""DOAJ adapter — link-out only.

Every search yields a single redirect stub pointing at the DOAJ article
search page, with the query encoded as DOAJ's Elasticsearch-style
``source`` parameter.
"""

from __future__ import annotations

import json
import time
from urllib.parse import quote

from scholarmux.adapters.base.adapter import SourceAdapter
from scholarmux.adapters.base.mapping import link_out_stub, record_stub
from scholarmux.models.article import Article
from scholarmux.models.query import SearchRequest
from scholarmux.models.response import SourceResult

_JOURNAL = "DOAJ - Directory of Open Access Journals"
_ABOUT = "O DOAJ é um diretório que indexa periódicos de acesso aberto revisados por pares."


def build_search_url(query: str) -> str:
    source = {"query": {"query_string": {"query": query, "default_operator": "AND"}}}
    return f"https://doaj.org/search/articles?source={quote(json.dumps(source, separators=(',', ':')))}"


class DOAJAdapter(SourceAdapter):
    """Source adapter producing DOAJ search-page links."""

    id_prefix = "doaj-"
    source_name = "DOAJ"

    @property
    def name(self) -> str:
        return "doaj"

    async def _search(self, request: SearchRequest) -> SourceResult:
        stub = link_out_stub(
            stub_id=f"{self.id_prefix}redirect-{int(time.time() * 1000)}",
            site="DOAJ",
            query=request.query,
            url=build_search_url(request.query),
            journal=_JOURNAL,
            source=self.source_name,
            year=request.year_filter,
            about=_ABOUT,
        )
        return SourceResult(articles=[stub])

    async def _get_by_id(self, article_id: str) -> Article | None:
        doaj_id = self.strip_prefix(article_id)
        return record_stub(
            article_id=article_id,
            site="DOAJ",
            url=f"https://doaj.org/article/{doaj_id}",
            journal=_JOURNAL,
            source=self.source_name,
        )
