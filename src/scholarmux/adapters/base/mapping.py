"""Shared helpers for mapping upstream payloads to ``Article`` fields."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from scholarmux.models.article import LANGUAGE_EN, LANGUAGE_ES, LANGUAGE_PT, RedirectStub

_LANGUAGE_CODES: dict[str, str] = {
    "por": LANGUAGE_PT,
    "pt": LANGUAGE_PT,
    "spa": LANGUAGE_ES,
    "es": LANGUAGE_ES,
}


def language_from_code(code: str | None, default: str = LANGUAGE_EN) -> str:
    """Map an upstream language code (ISO 639-1 or -2) to a display name."""
    if not code:
        return default
    return _LANGUAGE_CODES.get(code.strip().lower(), default)


def doi_url(doi: str | None) -> str | None:
    if not doi:
        return None
    if doi.startswith("http://") or doi.startswith("https://"):
        return doi
    return f"https://doi.org/{doi}"


def pick_url(*candidates: str | None, doi: str | None = None, fallback: str | None = None) -> str | None:
    """First non-empty upstream URL, then the DOI resolver, then ``fallback``."""
    for candidate in candidates:
        if candidate:
            return candidate
    return doi_url(doi) or fallback


def join_authors(names: Iterable[Any], limit: int | None = None) -> str:
    """Join author names into a display string, skipping blanks."""
    cleaned = [str(n).strip() for n in names if n and str(n).strip()]
    if limit is not None:
        cleaned = cleaned[:limit]
    return ", ".join(cleaned)


def year_of(value: Any) -> str:
    """Leading four characters of a date-ish value ('2021-03-04' -> '2021')."""
    if value is None:
        return ""
    return str(value).strip()[:4]


def first(value: Any) -> Any:
    """First element of a list-valued field, or the value itself."""
    if isinstance(value, list):
        return value[0] if value else None
    return value


def as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def link_out_stub(
    *,
    stub_id: str,
    site: str,
    query: str,
    url: str,
    journal: str,
    source: str,
    year: str | None = None,
    about: str = "",
) -> RedirectStub:
    """Build the redirect stub used when a site's results cannot be fetched directly."""
    paragraphs = [
        f'<p>Sua pesquisa por "{query}" encontrará resultados no {site}.</p>',
        "<p>Devido a limitações de acesso à API, não é possível exibir os resultados detalhados "
        "diretamente nesta aplicação.</p>",
        f'<p>Clique em "Acessar resultados" para visualizar todos os artigos diretamente no site do {site}.</p>',
    ]
    if about:
        paragraphs.append(f"<p>{about}</p>")
    return RedirectStub(
        id=stub_id,
        title=f'Resultados do {site} para "{query}"',
        authors="Diversos autores",
        journal=journal,
        year=year or "Todos os anos",
        language="Diversos",
        abstract=(
            f'Sua pesquisa por "{query}" encontrará resultados no {site}. '
            f'Clique em "Acessar resultados" para ver todos os artigos encontrados diretamente no site do {site}.'
        ),
        content=f"<h2>Resultados do {site}</h2>" + "".join(paragraphs),
        keywords=[query],
        url=url,
        source=source,
    )


def record_stub(*, article_id: str, site: str, url: str, journal: str, source: str) -> RedirectStub:
    """Build the detail stub for a record that can only be viewed on the upstream site."""
    return RedirectStub(
        id=article_id,
        title=f"Artigo do {site}",
        authors=f"Informações disponíveis no site do {site}",
        journal=journal,
        year="Informação disponível no site original",
        language="Informação disponível no site original",
        abstract=f"Para visualizar o resumo completo, acesse o artigo no site do {site}.",
        url=url,
        source=source,
    )
