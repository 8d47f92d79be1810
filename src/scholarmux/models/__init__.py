"""Data models — articles, requests and response envelopes."""

from scholarmux.models.article import Article, ArticleInfo, RedirectStub
from scholarmux.models.query import SearchRequest
from scholarmux.models.response import AggregateResult, SourceResult

__all__ = ["AggregateResult", "Article", "ArticleInfo", "RedirectStub", "SearchRequest", "SourceResult"]
