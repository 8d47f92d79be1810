"""API dependencies — Dependency injection for FastAPI endpoints."""

from __future__ import annotations

from scholarmux.core.aggregator import Aggregator

# Global aggregator instance (set during application lifespan)
_aggregator: Aggregator | None = None


def set_aggregator(aggregator: Aggregator | None) -> None:
    """Set the global aggregator instance (called during app lifespan)."""
    global _aggregator
    _aggregator = aggregator


def get_aggregator() -> Aggregator:
    """Get the global aggregator instance.

    Raises:
        RuntimeError: If the aggregator is not initialized.
    """
    if _aggregator is None:
        raise RuntimeError("ScholarMux aggregator not initialized. Is the server running?")
    return _aggregator
