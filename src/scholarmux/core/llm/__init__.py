"""Language-model access for the AI search source."""

from scholarmux.core.llm.client import LLMClient, LLMError, QuotaExceededError

__all__ = ["LLMClient", "LLMError", "QuotaExceededError"]
