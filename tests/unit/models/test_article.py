"""Tests for the canonical article and request models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from scholarmux.models.article import (
    ABSTRACT_PLACEHOLDER,
    AUTHORS_PLACEHOLDER,
    JOURNAL_PLACEHOLDER,
    TITLE_PLACEHOLDER,
    YEAR_PLACEHOLDER,
    Article,
    ArticleInfo,
    RedirectStub,
)
from scholarmux.models.query import ArticleDetailsRequest, SearchRequest
from scholarmux.models.response import SearchResponse, SourceResult

# ── Article ──────────────────────────────────────────────────────────────────


class TestArticle:
    def test_missing_fields_get_placeholders(self) -> None:
        article = Article(id="pm-1", source="PubMed")
        assert article.title == TITLE_PLACEHOLDER
        assert article.authors == AUTHORS_PLACEHOLDER
        assert article.journal == JOURNAL_PLACEHOLDER
        assert article.year == YEAR_PLACEHOLDER
        assert article.abstract == ABSTRACT_PLACEHOLDER

    def test_blank_and_none_become_placeholders(self) -> None:
        article = Article(id="pm-1", source="PubMed", title="   ", authors=None, year="")
        assert article.title == TITLE_PLACEHOLDER
        assert article.authors == AUTHORS_PLACEHOLDER
        assert article.year == YEAR_PLACEHOLDER

    def test_values_are_stripped(self) -> None:
        article = Article(id="pm-1", source="PubMed", title="  A title \n", year=2021)
        assert article.title == "A title"
        assert article.year == "2021"

    def test_content_defaults_to_abstract_fragment(self) -> None:
        article = Article(id="pm-1", source="PubMed", abstract="Some findings.")
        assert article.content == "<h2>Abstract</h2><p>Some findings.</p>"

    def test_explicit_content_is_kept(self) -> None:
        article = Article(id="pm-1", source="PubMed", content="<p>custom</p>")
        assert article.content == "<p>custom</p>"

    def test_blank_list_items_dropped(self) -> None:
        article = Article(id="pm-1", source="PubMed", keywords=["a", "", None, " b "], references=None)
        assert article.keywords == ["a", "b"]
        assert article.references == []

    def test_blank_doi_and_url_are_none(self) -> None:
        article = Article(id="pm-1", source="PubMed", doi="  ", url="")
        assert article.doi is None
        assert article.url is None

    def test_articles_are_immutable(self) -> None:
        article = Article(id="pm-1", source="PubMed")
        with pytest.raises(ValidationError):
            article.title = "changed"  # type: ignore[misc]

    def test_source_is_required(self) -> None:
        with pytest.raises(ValidationError):
            Article(id="pm-1")  # type: ignore[call-arg]

    def test_redirect_stub_kind(self) -> None:
        stub = RedirectStub(id="scopus-search", source="Scopus", url="https://www.scopus.com/results")
        assert stub.kind == "redirect"
        assert stub.is_redirect
        assert not Article(id="pm-1", source="PubMed").is_redirect
        assert isinstance(stub, Article)

    def test_serialises_kind(self) -> None:
        stub = RedirectStub(id="x", source="Scopus")
        assert stub.model_dump()["kind"] == "redirect"


# ── ArticleInfo ──────────────────────────────────────────────────────────────


class TestArticleInfo:
    @pytest.mark.parametrize(
        "fields",
        [{"title": "A title"}, {"doi": "10.1/x"}, {"url": "https://example.org"}],
    )
    def test_identifiable(self, fields: dict) -> None:
        assert ArticleInfo(**fields).is_identifiable

    def test_authors_alone_not_identifiable(self) -> None:
        assert not ArticleInfo(authors="Smith J", year=2020).is_identifiable

    def test_numeric_year_becomes_string(self) -> None:
        assert ArticleInfo(title="x", year=2020).year == "2020"


# ── SearchRequest ────────────────────────────────────────────────────────────


class TestSearchRequest:
    def test_defaults(self) -> None:
        request = SearchRequest()
        assert request.is_blank
        assert request.type == "keyword"
        assert request.sort == "relevance"
        assert request.ai_model == "openai"
        assert request.year_filter is None
        assert request.language_filter is None

    def test_whitespace_query_is_blank(self) -> None:
        assert SearchRequest(query="   ").is_blank

    def test_sources_from_csv(self) -> None:
        request = SearchRequest(query="x", sources="pubmed, arxiv,,scielo ")
        assert request.sources == ["pubmed", "arxiv", "scielo"]

    def test_specific_sources_from_csv(self) -> None:
        request = SearchRequest(query="x", specific_sources="Nature,Science")
        assert request.specific_sources == ["Nature", "Science"]

    def test_year_filters(self) -> None:
        assert SearchRequest(year="2020").year_filter == "2020"
        assert SearchRequest(year="older").is_older
        assert not SearchRequest(year="2020").is_older

    def test_language_filter(self) -> None:
        assert SearchRequest(language="pt").language_filter == "pt"

    def test_offset(self) -> None:
        assert SearchRequest(page=3, page_size=10).offset == 20

    def test_invalid_sort_rejected(self) -> None:
        with pytest.raises(ValidationError):
            SearchRequest(sort="random")  # type: ignore[arg-type]

    def test_page_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            SearchRequest(page=0)


# ── Payloads ─────────────────────────────────────────────────────────────────


class TestPayloads:
    def test_article_details_request_accepts_camel_case(self) -> None:
        body = ArticleDetailsRequest.model_validate({"articleInfo": {"title": "x"}, "aiModel": "gemini"})
        assert body.article_info is not None
        assert body.article_info.title == "x"
        assert body.ai_model == "gemini"

    def test_article_details_request_defaults(self) -> None:
        body = ArticleDetailsRequest.model_validate({})
        assert body.article_info is None
        assert body.ai_model == "openai"

    def test_search_response_alias(self) -> None:
        response = SearchResponse(source_errors={"ai": "boom"})
        assert response.model_dump(by_alias=True)["sourceErrors"] == {"ai": "boom"}

    def test_source_result_ok(self) -> None:
        assert SourceResult().ok
        assert not SourceResult(error="boom").ok
