"""AI search adapter — article metadata generated by a language model.

Instead of querying a bibliographic API, this source prompts OpenAI or
Gemini for a JSON list of articles. Output parsing tolerates malformed JSON
(see ``scholarmux.core.llm.parsing``); a failed Gemini call is retried once
with OpenAI. Failures are reported through ``SourceResult.error``.
"""

from __future__ import annotations

import logging
import re
import time
import uuid
from collections import Counter
from collections.abc import Awaitable, Callable, Mapping
from datetime import UTC, datetime
from typing import Any, TypeVar

from scholarmux.adapters.base.adapter import AdapterHealth, SourceAdapter
from scholarmux.adapters.base.mapping import as_list, doi_url, join_authors
from scholarmux.core.llm.client import PROVIDER_LABELS, LLMClient, LLMError, QuotaExceededError
from scholarmux.core.llm.parsing import parse_articles
from scholarmux.core.llm.prompts import SYSTEM_PROMPT, build_details_prompt, build_search_prompt
from scholarmux.models.article import LANGUAGE_EN, Article, ArticleInfo
from scholarmux.models.query import SearchRequest
from scholarmux.models.response import SourceResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

PRIMARY_MODEL = "openai"
FALLBACK_FROM = "gemini"
MAX_KEYWORDS = 5

INSUFFICIENT_INFO_MESSAGE = "Informações insuficientes para buscar detalhes do artigo"

_STOP_WORDS = frozenset(
    """a an the and or but in on at to for with by about as of from is are was were be been
    being have has had do does did will would shall should may might must can could""".split()
)
_WORD = re.compile(r"\b\w+\b")


class ModelOutputError(LLMError):
    """Raised when every parsing strategy fails on a model reply."""


def quota_message(provider: str) -> str:
    return (
        f"Cota da {PROVIDER_LABELS.get(provider, provider)} excedida. "
        "Por favor, verifique seu plano e detalhes de faturamento."
    )


def communication_message(provider: str) -> str:
    return (
        f"Erro ao comunicar com a API de {PROVIDER_LABELS.get(provider, provider)}. "
        "Por favor, tente novamente mais tarde."
    )


def extract_keywords(title: str, abstract: str, limit: int = MAX_KEYWORDS) -> list[str]:
    """Most frequent words longer than three letters, stop words excluded."""
    words = _WORD.findall(f"{title} {abstract}".lower())
    counts = Counter(w for w in words if len(w) > 3 and w not in _STOP_WORDS)
    return [word for word, _ in counts.most_common(limit)]


def _text(value: Any) -> str | None:
    """Non-blank string fields of a model record; other types are dropped."""
    if isinstance(value, str):
        return value.strip() or None
    return None


def absolute_url(url: Any, doi: Any) -> str | None:
    url = _text(url) or doi_url(_text(doi))
    if url and not url.startswith(("http://", "https://")):
        url = f"https://{url}"
    return url


def source_label(model: str) -> str:
    return f"{'Gemini' if model == 'gemini' else 'OpenAI'} Search"


class AISearchAdapter(SourceAdapter):
    """Source adapter backed by chat-completion models.

    Args:
        llm_clients: Clients keyed by model name (``"openai"``, ``"gemini"``).
        result_limit: Number of articles requested per search.
        clock: Returns epoch seconds; used to build article ids.
    """

    id_prefix = "ai-"
    source_name = "AI Search"

    def __init__(
        self,
        llm_clients: Mapping[str, LLMClient] | None = None,
        result_limit: int = 10,
        clock: Callable[[], float] = time.time,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._llm_clients = dict(llm_clients or {})
        self._result_limit = result_limit
        self._clock = clock

    @property
    def name(self) -> str:
        return "ai"

    @property
    def has_credentials(self) -> bool:
        return any(client.configured for client in self._llm_clients.values())

    async def initialize(self) -> None:
        logger.info("AI search adapter initialized with models: %s", ", ".join(sorted(self._llm_clients)) or "none")

    async def shutdown(self) -> None:
        pass

    async def health_check(self) -> AdapterHealth:
        now = datetime.now(UTC).isoformat()
        configured = [name for name, client in self._llm_clients.items() if client.configured]
        if not configured:
            return AdapterHealth(
                status="unhealthy",
                last_check=now,
                requires_api_key=True,
                credentials_configured=False,
                message="No language-model API key configured",
            )
        return AdapterHealth(
            status="healthy",
            last_check=now,
            requires_api_key=True,
            credentials_configured=True,
            message=f"Models available: {', '.join(sorted(configured))}",
        )

    # ── Model access ──

    def _client_for(self, model: str) -> LLMClient:
        client = self._llm_clients.get(model)
        if client is None:
            raise LLMError(f"No client configured for model '{model}'", provider=model)
        return client

    async def _ask(self, model: str, prompt: str) -> list[dict[str, Any]]:
        """Send ``prompt`` to ``model`` and parse the reply into records."""
        text = await self._client_for(model).chat_raw(system_prompt=SYSTEM_PROMPT, user_prompt=prompt)
        outcome = parse_articles(text)
        if not outcome.ok:
            logger.error("Unparseable reply from %s: %s", model, text[:500])
            raise ModelOutputError(
                f"Erro ao analisar resposta do modelo {model}. O modelo retornou um JSON inválido.",
                provider=model,
            )
        return outcome.records

    async def _with_fallback(self, model: str, operation: Callable[[str], Awaitable[T]]) -> tuple[str, T]:
        """Run ``operation(model)``; on a non-quota failure of the fallback model, rerun it once with the primary.

        Returns:
            The model that produced the result, and the result.
        """
        try:
            return model, await operation(model)
        except QuotaExceededError:
            raise
        except LLMError as e:
            if model != FALLBACK_FROM:
                raise
            logger.warning("%s failed (%s); falling back to %s", model, e, PRIMARY_MODEL)
        return PRIMARY_MODEL, await operation(PRIMARY_MODEL)

    @staticmethod
    def _error_message(error: LLMError, model: str) -> str:
        provider = error.provider or model
        if isinstance(error, QuotaExceededError):
            return quota_message(provider)
        if isinstance(error, ModelOutputError):
            return str(error)
        return communication_message(provider)

    # ── Search ──

    async def _search(self, request: SearchRequest) -> SourceResult:
        async def attempt(model: str) -> list[dict[str, Any]]:
            prompt = build_search_prompt(request, model=model, limit=self._result_limit)
            return await self._ask(model, prompt)

        try:
            used_model, records = await self._with_fallback(request.ai_model, attempt)
        except LLMError as e:
            logger.error("AI search failed for '%s': %s", request.query, e)
            return SourceResult(error=self._error_message(e, request.ai_model))

        stamp = int(self._clock() * 1000)
        articles: list[Article] = []
        for index, record in enumerate(records):
            article_id = f"{self.id_prefix}{used_model}-{stamp}-{index}"
            try:
                articles.append(self.map_to_article(record, article_id=article_id, model=used_model))
            except ValueError as e:
                logger.warning("Skipping malformed record %d from %s: %s", index, used_model, e)
        return SourceResult(articles=articles)

    async def _get_by_id(self, article_id: str) -> Article | None:
        # Generated articles are not stored anywhere; details come from get_article_details.
        return None

    # ── Article details ──

    async def get_article_details(self, info: ArticleInfo, model: str = PRIMARY_MODEL) -> Article:
        """Ask a model for full details of the article described by ``info``.

        Raises:
            ValueError: If ``info`` has no title, DOI or URL.
            LLMError: With a user-facing message when every model attempt fails.
        """
        if not info.is_identifiable:
            raise ValueError(INSUFFICIENT_INFO_MESSAGE)

        async def attempt(attempt_model: str) -> list[dict[str, Any]]:
            records = await self._ask(attempt_model, build_details_prompt(info, model=attempt_model))
            if not records:
                raise ModelOutputError(
                    f"Erro ao analisar resposta do modelo {attempt_model}. O modelo não retornou nenhum artigo.",
                    provider=attempt_model,
                )
            return records

        try:
            used_model, records = await self._with_fallback(model, attempt)
        except LLMError as e:
            logger.error("AI article details failed for '%s': %s", info.title or info.doi or info.url, e)
            raise LLMError(self._error_message(e, model), provider=e.provider) from e

        article_id = info.id or f"{self.id_prefix}{used_model}-{int(self._clock() * 1000)}-{uuid.uuid4().hex[:7]}"
        record = records[0]
        return self.map_to_article(
            record,
            article_id=article_id,
            model=used_model,
            content=_text(record.get("content")),
            keywords=record.get("keywords") if isinstance(record.get("keywords"), list) else [],
            references=record.get("references") if isinstance(record.get("references"), list) else [],
        )

    def map_to_article(
        self,
        record: dict[str, Any],
        *,
        article_id: str,
        model: str,
        content: str | None = None,
        keywords: list[str] | None = None,
        references: list[str] | None = None,
    ) -> Article:
        """Map one model-generated record to an Article."""
        title = str(record.get("title") or "")
        abstract = str(record.get("abstract") or "")
        doi = _text(record.get("doi"))
        return Article(
            id=article_id,
            title=title,
            authors=join_authors(as_list(record.get("authors"))),
            journal=record.get("journal"),
            year=record.get("year"),
            language=_text(record.get("language")) or LANGUAGE_EN,
            abstract=abstract,
            content=content or "",
            keywords=keywords if keywords is not None else extract_keywords(title, abstract),
            references=references or [],
            doi=doi,
            url=absolute_url(record.get("url"), doi),
            source=source_label(model),
        )
