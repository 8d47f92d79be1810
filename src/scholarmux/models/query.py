"""Search request models."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from scholarmux.models.article import ArticleInfo

SearchType = Literal["keyword", "title", "author", "journal"]
SortOrder = Literal["relevance", "date_desc", "date_asc"]
AIModel = Literal["openai", "gemini"]

YEAR_ALL = "all"
YEAR_OLDER = "older"
# "older" means published before this year.
OLDER_CUTOFF_YEAR = 2018


class SearchRequest(BaseModel):
    """Canonical search request fanned out to every selected source."""

    query: str = Field(default="", description="Free-text query; blank queries short-circuit to no results")
    type: SearchType = Field(default="keyword", description="Field the query targets")
    language: str = Field(default="all", description="Language filter: all, en, pt, es")
    year: str = Field(default=YEAR_ALL, description="Exact year, 'older' (before 2018) or 'all'")
    sort: SortOrder = Field(default="relevance", description="Global sort order of the merged list")
    sources: list[str] = Field(default_factory=list, description="Adapter names; empty means the configured default")
    page: int = Field(default=1, ge=1, description="1-based page number passed to each source")
    page_size: int = Field(default=20, ge=1, le=100, description="Results requested from each source")
    ai_model: AIModel = Field(default="openai", description="Provider used by the AI source")
    specific_sources: list[str] = Field(
        default_factory=list,
        description="Journals the AI source should restrict itself to",
    )

    @field_validator("query", "language", "year", mode="before")
    @classmethod
    def _strip(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("sources", "specific_sources", mode="before")
    @classmethod
    def _split_csv(cls, v: Any) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            return [s.strip() for s in v.split(",") if s.strip()]
        return [str(s).strip() for s in v if str(s).strip()]

    @property
    def is_blank(self) -> bool:
        return not self.query

    @property
    def year_filter(self) -> str | None:
        """The year constraint, or None when unfiltered."""
        if not self.year or self.year == YEAR_ALL:
            return None
        return self.year

    @property
    def is_older(self) -> bool:
        return self.year == YEAR_OLDER

    @property
    def language_filter(self) -> str | None:
        if not self.language or self.language == "all":
            return None
        return self.language

    @property
    def offset(self) -> int:
        """Zero-based index of the first result on the requested page."""
        return (self.page - 1) * self.page_size

    def cache_params(self) -> dict[str, Any]:
        """Every parameter that affects a single source's result set."""
        return self.model_dump(exclude={"sources"})


class ArticleDetailsRequest(BaseModel):
    """Body of the AI article-details endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    article_info: ArticleInfo | None = Field(default=None, alias="articleInfo")
    ai_model: AIModel = Field(default="openai", alias="aiModel")
