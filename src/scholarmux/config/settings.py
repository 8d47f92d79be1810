"""Application settings — Pydantic-based configuration with YAML and env var support.

Configuration is loaded from (in order of precedence):
  1. Environment variables (SCHOLARMUX_ prefix)
  2. YAML config file (if specified)
  3. Default values
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode


class ServerSettings(BaseModel):
    """HTTP server configuration."""

    host: str = Field(default="0.0.0.0", description="Server bind address")
    port: int = Field(default=8080, description="Server port")
    workers: int = Field(default=1, description="Number of worker processes")
    cors_origins: list[str] = Field(default=["*"], description="Allowed CORS origins")


class AISettings(BaseModel):
    """Language-model configuration for the AI search source.

    Two providers are supported. Both are reached through the OpenAI chat
    completions protocol; Gemini uses Google's OpenAI-compatible endpoint.
    """

    openai_api_key: str = Field(default="", description="OpenAI API key")
    google_api_key: str = Field(default="", description="Google Generative AI API key")
    openai_model: str = Field(default="gpt-4o", description="Model used for the 'openai' provider")
    gemini_model: str = Field(default="gemini-1.5-pro", description="Model used for the 'gemini' provider")
    openai_base_url: str | None = Field(default=None, description="Override for the OpenAI endpoint")
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta/openai/",
        description="OpenAI-compatible Gemini endpoint",
    )
    max_tokens: int = Field(default=4096, description="Maximum tokens per LLM call")
    temperature: float = Field(default=0.2, description="LLM temperature for generation")
    result_limit: int = Field(default=10, description="Number of articles requested from the model")


class CredentialSettings(BaseModel):
    """Upstream API credentials. Every key is optional."""

    elsevier_api_key: str | None = Field(default=None, description="Elsevier key (The Lancet via ScienceDirect)")
    scopus_api_key: str | None = Field(default=None, description="Scopus search API key")
    ieee_api_key: str | None = Field(default=None, description="IEEE Xplore API key")
    springer_api_key: str | None = Field(default=None, description="Springer Nature metadata API key")
    core_api_key: str | None = Field(default=None, description="CORE API key (raises rate limits)")
    semantic_scholar_api_key: str | None = Field(default=None, description="Semantic Scholar API key")
    contact_email: str = Field(
        default="contato@scholarmux.org",
        description="Contact address sent to polite-pool APIs (Crossref, OpenAlex)",
    )


class SourceSettings(BaseModel):
    """Fan-out and resilience configuration."""

    default_sources: Annotated[list[str], NoDecode] = Field(
        default=["ai"],
        description="Sources used when a request names none",
    )
    enabled: Annotated[list[str], NoDecode] = Field(
        default=[
            "pubmed",
            "arxiv",
            "scielo",
            "core",
            "europepmc",
            "scopus",
            "ieee",
            "springer",
            "doaj",
            "crossref",
            "openalex",
            "semantic_scholar",
            "lancet",
            "ai",
        ],
        description="Adapters registered at startup",
    )
    page_size: int = Field(default=20, description="Default results per source")
    max_concurrent: int = Field(default=2, description="Permits of the shared upstream limiter")
    max_retries: int = Field(default=3, description="Retries on 429 / network errors")
    initial_retry_delay: float = Field(default=1.0, description="First backoff delay in seconds")
    request_timeout: float = Field(default=15.0, description="Per-request deadline in seconds")
    dedupe_by_doi: bool = Field(default=True, description="Collapse aggregate results sharing a DOI")

    @field_validator("default_sources", "enabled", mode="before")
    @classmethod
    def _parse_list(cls, v: Any) -> list[str]:
        """Accept a list, a JSON array string or a comma-separated string (env vars)."""
        if isinstance(v, str) and v.lstrip().startswith("["):
            v = json.loads(v)
        if isinstance(v, str):
            return [s.strip() for s in v.split(",") if s.strip()]
        return list(v)


class CacheSettings(BaseModel):
    """Result cache configuration."""

    ttl_seconds: int = Field(default=1800, description="Entry lifetime in seconds")
    sweep_interval_seconds: int = Field(
        default=0,
        description="Period of the background expiry sweep (0 disables it)",
    )


class ObservabilitySettings(BaseModel):
    """Observability configuration."""

    log_level: str = Field(default="info", description="Log level: debug, info, warning, error")
    log_format: str = Field(default="json", description="Log format: json, console")


class Settings(BaseSettings):
    """Root application settings.

    Configuration is loaded from environment variables with the SCHOLARMUX_ prefix.
    Nested settings use double underscores.

    Example:
        SCHOLARMUX_SERVER__PORT=9090
        SCHOLARMUX_AI__OPENAI_API_KEY=sk-...
        SCHOLARMUX_CREDENTIALS__SCOPUS_API_KEY=...
        SCHOLARMUX_SOURCES__DEFAULT_SOURCES=pubmed,arxiv
    """

    model_config = {
        "env_prefix": "SCHOLARMUX_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    app_name: str = Field(default="ScholarMux", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")

    server: ServerSettings = Field(default_factory=ServerSettings)
    ai: AISettings = Field(default_factory=AISettings)
    credentials: CredentialSettings = Field(default_factory=CredentialSettings)
    sources: SourceSettings = Field(default_factory=SourceSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    @classmethod
    def from_yaml(cls, path: str | Path) -> Settings:
        """Load settings from a YAML configuration file.

        Values from the YAML file are used as defaults; environment variables
        still take precedence.

        Args:
            path: Path to the YAML config file.

        Returns:
            Populated Settings instance.
        """
        import yaml  # type: ignore[import-untyped]

        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)
