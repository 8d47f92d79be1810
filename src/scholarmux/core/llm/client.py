"""LLM Client — wrapper for chat-completion calls used by the AI search source.

Both providers speak the OpenAI chat completions protocol: OpenAI natively
and Gemini through Google's OpenAI-compatible endpoint, so one client class
serves both.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from openai import APIStatusError, AsyncOpenAI

if TYPE_CHECKING:
    from scholarmux.config.settings import AISettings

logger = logging.getLogger(__name__)

_QUOTA_MARKERS = ("quota", "insufficient_quota")

PROVIDER_LABELS = {"openai": "OpenAI", "gemini": "Google"}


class LLMError(Exception):
    """Raised when a model call fails or returns unusable content."""

    def __init__(self, message: str, *, provider: str | None = None) -> None:
        super().__init__(message)
        self.provider = provider


class QuotaExceededError(LLMError):
    """Raised when the provider rejects a call for quota or billing reasons."""


def is_quota_error(error: BaseException) -> bool:
    """Detect quota/billing failures by message, the only signal both providers share."""
    text = str(error).lower()
    body = getattr(error, "body", None)
    if isinstance(body, dict):
        text += " " + str(body).lower()
    return any(marker in text for marker in _QUOTA_MARKERS)


def _diagnose_api_error(e: APIStatusError, provider: str, model: str) -> str:
    """Produce a human-readable diagnosis for common API status errors."""
    code = e.status_code
    env_var = "SCHOLARMUX_AI__GOOGLE_API_KEY" if provider == "gemini" else "SCHOLARMUX_AI__OPENAI_API_KEY"
    if code == 401:
        return f"Authentication failed (HTTP 401): API key is invalid or missing.\n  → Check {env_var}."
    if code == 403:
        return f"Permission denied (HTTP 403): the key has no access to model '{model}'.\n  → Check {env_var}."
    if code == 404:
        return f"Not found (HTTP 404): model '{model}' does not exist for provider '{provider}'."
    if code == 429:
        return f"Rate limited (HTTP 429) by {provider}.\n  → Wait and retry, or check the plan's quota."
    return f"API error (HTTP {code}) from {provider}: {e}\n  → Model: {model}"


class LLMClient:
    """Async chat-completion client for one provider.

    Args:
        provider: ``"openai"`` or ``"gemini"``.
        api_key: Provider API key. Calls fail with ``LLMError`` when empty.
        model: Model name sent with every request.
        base_url: Endpoint override (required for Gemini).
        max_tokens: Completion token limit.
        temperature: Sampling temperature.
    """

    def __init__(
        self,
        *,
        provider: str,
        api_key: str,
        model: str,
        base_url: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.2,
    ) -> None:
        self.provider = provider
        self.model = model
        self._base_url = base_url
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._client: AsyncOpenAI | None = None
        if api_key:
            self._client = AsyncOpenAI(api_key=api_key, base_url=base_url)
            masked_key = api_key[:8] + "..." + api_key[-4:] if len(api_key) > 12 else "***"
            logger.info("LLM client created: provider=%s, model=%s, api_key=%s", provider, model, masked_key)
        else:
            logger.warning("No API key configured for provider '%s'; AI search with it is disabled", provider)

    @classmethod
    def for_provider(cls, provider: str, settings: AISettings) -> LLMClient:
        """Build a client for ``provider`` from AI settings."""
        if provider == "gemini":
            return cls(
                provider="gemini",
                api_key=settings.google_api_key,
                model=settings.gemini_model,
                base_url=settings.gemini_base_url,
                max_tokens=settings.max_tokens,
                temperature=settings.temperature,
            )
        return cls(
            provider="openai",
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            base_url=settings.openai_base_url,
            max_tokens=settings.max_tokens,
            temperature=settings.temperature,
        )

    @property
    def configured(self) -> bool:
        return self._client is not None

    @property
    def label(self) -> str:
        """Display name of the provider company."""
        return PROVIDER_LABELS.get(self.provider, self.provider)

    async def chat_raw(
        self,
        *,
        user_prompt: str,
        system_prompt: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """Send a chat completion request and return the raw text response.

        Raises:
            QuotaExceededError: If the provider reports a quota/billing problem.
            LLMError: For any other failure, including a missing API key.
        """
        if self._client is None:
            raise LLMError(f"API key for provider '{self.provider}' is not configured", provider=self.provider)

        messages: list[dict[str, Any]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_prompt})

        logger.info(
            "LLM chat_raw request: provider=%s, model=%s, prompt_len=%d",
            self.provider,
            self.model,
            len(user_prompt),
        )
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=messages,  # type: ignore[arg-type]
                temperature=temperature if temperature is not None else self._temperature,
                max_tokens=max_tokens or self._max_tokens,
                stream=False,
            )
        except Exception as e:
            if is_quota_error(e):
                logger.error("LLM quota exceeded: provider=%s, error=%s", self.provider, e)
                raise QuotaExceededError(str(e), provider=self.provider) from e
            if isinstance(e, APIStatusError):
                diagnosis = _diagnose_api_error(e, self.provider, self.model)
                logger.error("LLM API error:\n%s", diagnosis)
                raise LLMError(f"LLM API error (HTTP {e.status_code}): {diagnosis}", provider=self.provider) from e
            logger.error(
                "LLM call FAILED: provider=%s, model=%s, error_type=%s, error=%s",
                self.provider,
                self.model,
                type(e).__name__,
                e,
            )
            raise LLMError(f"LLM call failed: {e}", provider=self.provider) from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise LLMError("Model returned empty content", provider=self.provider)

        logger.info(
            "LLM chat_raw response OK: model=%s, usage=%s, content_len=%d",
            response.model,
            response.usage.model_dump() if response.usage else "N/A",
            len(content),
        )
        return content
