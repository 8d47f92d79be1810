"""Result containers returned by adapters, the aggregator and the API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from scholarmux.models.article import Article


class SourceResult(BaseModel):
    """Outcome of one adapter search.

    ``error`` is only set by sources that report failures explicitly;
    the others degrade to an empty list or a redirect stub.
    """

    articles: list[Article] = Field(default_factory=list)
    error: str | None = Field(default=None, description="User-facing error message")

    @property
    def ok(self) -> bool:
        return self.error is None


class AggregateResult(BaseModel):
    """Merged articles plus a per-source error map."""

    articles: list[Article] = Field(default_factory=list)
    source_errors: dict[str, str] = Field(default_factory=dict)


class SearchResponse(BaseModel):
    """Payload of the aggregate search endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    articles: list[Article] = Field(default_factory=list, description="Merged and sorted articles")
    source_errors: dict[str, str] | None = Field(
        default=None,
        alias="sourceErrors",
        description="Sources that failed, with their error message",
    )


class ArticleListResponse(BaseModel):
    """Payload of a single-source search endpoint."""

    articles: list[Article] = Field(default_factory=list)


class ArticleResponse(BaseModel):
    """Payload of an article lookup endpoint."""

    article: Article


class ErrorResponse(BaseModel):
    """Error payload. ``articles`` is present on search endpoints only."""

    error: str
    message: str | None = None
    articles: list[Article] | None = None
