"""Base adapter interface — abstract classes and helpers for source connectors."""

from scholarmux.adapters.base.adapter import AdapterHealth, SourceAdapter
from scholarmux.adapters.base.registry import AdapterNotFoundError, AdapterRegistry

__all__ = ["AdapterHealth", "AdapterNotFoundError", "AdapterRegistry", "SourceAdapter"]
