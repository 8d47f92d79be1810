"""Adapter-specific exceptions."""


class AdapterError(Exception):
    """Base exception for adapter errors."""


class UpstreamError(AdapterError):
    """Raised when an upstream API answers with a non-success status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ParseError(AdapterError):
    """Raised when an upstream payload cannot be decoded."""


class MissingCredentialsError(AdapterError):
    """Raised when an upstream requires an API key that is not configured."""


class ArticleNotFoundError(AdapterError):
    """Raised when a requested article does not exist upstream."""


class ConfigurationError(AdapterError):
    """Raised when adapter configuration is invalid."""
