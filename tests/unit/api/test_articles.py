"""Tests for article lookup by id and AI article details."""

from __future__ import annotations

import json
from collections.abc import Callable

from fastapi.testclient import TestClient

from scholarmux.adapters.ai.adapter import INSUFFICIENT_INFO_MESSAGE, AISearchAdapter, quota_message
from scholarmux.adapters.base.registry import AdapterRegistry
from scholarmux.core.llm.client import QuotaExceededError

DETAILS = {
    "title": "Dengue vaccine trial",
    "authors": "Souza M",
    "journal": "The Lancet",
    "year": "2023",
    "abstract": "A trial.",
    "content": "<h2>Métodos</h2><p>Randomizado.</p>",
    "keywords": ["dengue", "vacina"],
    "references": ["Ref 1"],
    "doi": "10.1016/d1",
}


class TestArticleById:
    def test_dispatch_by_prefix(self, client: TestClient) -> None:
        response = client.get("/v1/articles/alpha-1")
        assert response.status_code == 200
        assert response.json()["article"]["id"] == "alpha-1"

    def test_doi_id(self, client: TestClient) -> None:
        assert client.get("/v1/articles/alpha-10.1000/xyz").status_code == 200

    def test_unknown_prefix(self, client: TestClient) -> None:
        response = client.get("/v1/articles/zz-1")
        assert response.status_code == 404
        assert response.json()["error"] == "Artigo não encontrado"

    def test_unknown_article(self, client: TestClient) -> None:
        assert client.get("/v1/articles/beta-42").status_code == 404

    def test_missing_key(self, client: TestClient) -> None:
        assert client.get("/v1/articles/keyed-1").status_code == 401


class TestArticleDetails:
    def test_missing_article_info(self, client: TestClient) -> None:
        response = client.post("/v1/article-details", json={})
        assert response.status_code == 400
        assert response.json() == {"error": "Informações do artigo não fornecidas"}

    def test_ai_disabled(self, client: TestClient) -> None:
        response = client.post("/v1/article-details", json={"articleInfo": {"title": "x"}})
        assert response.status_code == 500
        assert response.json()["error"] == "A busca por IA não está habilitada"

    def test_details(
        self,
        app_client: Callable[[AdapterRegistry], TestClient],
        registry: AdapterRegistry,
        ai_source: Callable[..., AISearchAdapter],
    ) -> None:
        registry.add(ai_source(json.dumps(DETAILS)))
        body = {"articleInfo": {"id": "ai-openai-1-0", "title": "Dengue vaccine trial", "year": 2023}}
        response = app_client(registry).post("/v1/article-details", json=body)

        assert response.status_code == 200
        article = response.json()["article"]
        assert article["id"] == "ai-openai-1-0"
        assert article["content"] == "<h2>Métodos</h2><p>Randomizado.</p>"
        assert article["keywords"] == ["dengue", "vacina"]
        assert article["references"] == ["Ref 1"]
        assert article["url"] == "https://doi.org/10.1016/d1"

    def test_insufficient_info(
        self,
        app_client: Callable[[AdapterRegistry], TestClient],
        registry: AdapterRegistry,
        ai_source: Callable[..., AISearchAdapter],
    ) -> None:
        registry.add(ai_source())
        response = app_client(registry).post("/v1/article-details", json={"articleInfo": {"authors": "Souza M"}})
        assert response.status_code == 400
        assert response.json()["error"] == INSUFFICIENT_INFO_MESSAGE

    def test_model_failure(
        self,
        app_client: Callable[[AdapterRegistry], TestClient],
        registry: AdapterRegistry,
        ai_source: Callable[..., AISearchAdapter],
    ) -> None:
        registry.add(ai_source(QuotaExceededError("quota", provider="openai")))
        response = app_client(registry).post("/v1/article-details", json={"articleInfo": {"title": "x"}})
        assert response.status_code == 500
        assert response.json()["error"] == quota_message("openai")
