"""Outbound HTTP helpers shared by all source adapters."""

from scholarmux.http.retry import fetch_with_retry

__all__ = ["fetch_with_retry"]
