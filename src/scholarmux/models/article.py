"""Canonical article model shared by every source adapter.

Each upstream returns its own payload shape; adapters map those payloads
into ``Article`` so that the aggregator, the cache and the API only ever see
one schema. ``RedirectStub`` is the link-out variant produced when an
upstream cannot be queried directly.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

TITLE_PLACEHOLDER = "Título não disponível"
AUTHORS_PLACEHOLDER = "Autores não disponíveis"
JOURNAL_PLACEHOLDER = "Revista não disponível"
YEAR_PLACEHOLDER = "Ano não disponível"
ABSTRACT_PLACEHOLDER = "Resumo não disponível"

LANGUAGE_EN = "Inglês"
LANGUAGE_PT = "Português"
LANGUAGE_ES = "Espanhol"

_PLACEHOLDERS: dict[str, str] = {
    "title": TITLE_PLACEHOLDER,
    "authors": AUTHORS_PLACEHOLDER,
    "journal": JOURNAL_PLACEHOLDER,
    "year": YEAR_PLACEHOLDER,
    "abstract": ABSTRACT_PLACEHOLDER,
}


class Article(BaseModel):
    """Normalized article record.

    ``title``, ``authors``, ``journal``, ``year`` and ``abstract`` are always
    renderable strings: blank or missing values are replaced by a localized
    placeholder during validation.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Source-prefixed identifier, e.g. 'pm-123' or 'arxiv-2101.00001'")
    title: str = Field(default=TITLE_PLACEHOLDER, description="Article title")
    authors: str = Field(default=AUTHORS_PLACEHOLDER, description="Comma-separated author names")
    journal: str = Field(default=JOURNAL_PLACEHOLDER, description="Journal, venue or repository")
    year: str = Field(default=YEAR_PLACEHOLDER, description="Publication year as reported upstream")
    language: str = Field(default=LANGUAGE_EN, description="Display language name")
    abstract: str = Field(default=ABSTRACT_PLACEHOLDER, description="Abstract text")
    content: str = Field(default="", description="HTML fragment shown on the article page")
    keywords: list[str] = Field(default_factory=list, description="Keywords or subject terms")
    references: list[str] = Field(default_factory=list, description="Formatted references")
    doi: str | None = Field(default=None, description="Digital Object Identifier")
    url: str | None = Field(default=None, description="Landing page, full text or search page")
    source: str = Field(description="Human-readable upstream name")
    kind: Literal["article", "redirect"] = Field(default="article", description="Record variant")

    @field_validator("title", "authors", "journal", "year", "abstract", mode="before")
    @classmethod
    def _fill_placeholder(cls, v: Any, info: ValidationInfo) -> str:
        if v is None:
            return _PLACEHOLDERS[info.field_name]
        text = str(v).strip()
        return text or _PLACEHOLDERS[info.field_name]

    @field_validator("keywords", "references", mode="before")
    @classmethod
    def _drop_blank_items(cls, v: Any) -> list[str]:
        if not v:
            return []
        return [str(item).strip() for item in v if item is not None and str(item).strip()]

    @field_validator("doi", "url", mode="before")
    @classmethod
    def _empty_to_none(cls, v: Any) -> str | None:
        if v is None:
            return None
        text = str(v).strip()
        return text or None

    def model_post_init(self, __context: Any) -> None:
        if not self.content:
            object.__setattr__(self, "content", f"<h2>Abstract</h2><p>{self.abstract}</p>")

    @property
    def is_redirect(self) -> bool:
        return self.kind == "redirect"


class RedirectStub(Article):
    """Link-out placeholder pointing at an upstream's own search or record page."""

    kind: Literal["redirect"] = "redirect"


class ArticleInfo(BaseModel):
    """Partial article description used to request AI-generated details."""

    id: str | None = None
    title: str | None = None
    authors: str | None = None
    journal: str | None = None
    year: str | None = None
    doi: str | None = None
    url: str | None = None

    @field_validator("year", mode="before")
    @classmethod
    def _year_to_str(cls, v: Any) -> str | None:
        return None if v is None else str(v)

    @property
    def is_identifiable(self) -> bool:
        """True when there is enough to look the article up."""
        return bool(self.title or self.doi or self.url)
