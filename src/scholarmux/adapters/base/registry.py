"""Adapter Registry — Manages registration and retrieval of source adapters.

The registry maps adapter names to classes and to initialized instances,
and resolves prefixed article ids back to the adapter that issued them.
"""

from __future__ import annotations

import logging
from typing import Any

from scholarmux.adapters.base.adapter import AdapterHealth, SourceAdapter

logger = logging.getLogger(__name__)


class AdapterNotFoundError(Exception):
    """Raised when a requested adapter is not registered."""


class AdapterRegistry:
    """Registry for source adapter classes and instances.

    Example:
        >>> registry = AdapterRegistry()
        >>> registry.register("pubmed", PubMedAdapter)
        >>> await registry.initialize_adapter("pubmed", client=client, cache=cache)
        >>> adapter = registry.get("pubmed")
    """

    def __init__(self) -> None:
        self._classes: dict[str, type[SourceAdapter]] = {}
        self._instances: dict[str, SourceAdapter] = {}

    def register(self, name: str, adapter_class: type[SourceAdapter]) -> None:
        """Register an adapter class under ``name``."""
        if name in self._classes:
            logger.warning("Overwriting existing adapter registration: %s", name)
        self._classes[name] = adapter_class
        logger.info("Registered adapter: %s", name)

    async def initialize_adapter(self, name: str, **kwargs: Any) -> SourceAdapter:
        """Create and initialize an adapter instance.

        Args:
            name: The registered adapter name.
            **kwargs: Passed to the adapter constructor.

        Returns:
            The initialized adapter instance.

        Raises:
            AdapterNotFoundError: If no adapter is registered under this name.
        """
        if name not in self._classes:
            raise AdapterNotFoundError(
                f"No adapter registered with name '{name}'. Available adapters: {list(self._classes.keys())}"
            )

        adapter = self._classes[name](**kwargs)
        await adapter.initialize()
        self._instances[name] = adapter
        logger.info("Initialized adapter: %s", name)
        return adapter

    def add(self, adapter: SourceAdapter) -> None:
        """Register an already-initialized adapter instance."""
        self._classes[adapter.name] = type(adapter)
        self._instances[adapter.name] = adapter

    def get(self, name: str) -> SourceAdapter:
        """Get an initialized adapter by name.

        Raises:
            AdapterNotFoundError: If the adapter is not initialized.
        """
        if name not in self._instances:
            raise AdapterNotFoundError(f"Source '{name}' is not available. Active sources: {self.active_adapters}")
        return self._instances[name]

    def find_by_id(self, article_id: str) -> SourceAdapter:
        """Resolve the adapter that issued a prefixed article id.

        The longest matching prefix wins.

        Raises:
            AdapterNotFoundError: If no active adapter owns the id.
        """
        owners = [a for a in self._instances.values() if a.owns_id(article_id)]
        if not owners:
            raise AdapterNotFoundError(f"No active source recognizes article id '{article_id}'")
        return max(owners, key=lambda a: len(a.id_prefix))

    async def health_check_all(self) -> dict[str, AdapterHealth]:
        """Run health checks on all initialized adapters."""
        results: dict[str, AdapterHealth] = {}
        for name, adapter in self._instances.items():
            try:
                results[name] = await adapter.health_check()
            except Exception as e:
                results[name] = AdapterHealth(status="unhealthy", message=str(e))
        return results

    async def shutdown_all(self) -> None:
        """Gracefully shut down all initialized adapters."""
        for name, adapter in self._instances.items():
            try:
                await adapter.shutdown()
                logger.info("Shut down adapter: %s", name)
            except Exception:
                logger.warning("Error shutting down adapter: %s", name, exc_info=True)
        self._instances.clear()

    def __contains__(self, name: str) -> bool:
        return name in self._instances

    @property
    def registered_adapters(self) -> list[str]:
        """List all registered adapter names."""
        return list(self._classes.keys())

    @property
    def active_adapters(self) -> list[str]:
        """List all initialized adapter names."""
        return list(self._instances.keys())
