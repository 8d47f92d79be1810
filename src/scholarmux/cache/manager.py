"""Result cache — process-wide TTL store for per-source search results.

Entries expire lazily: an expired entry is dropped the first time it is
read. ``clean_expired`` reclaims memory for keys nobody reads again and is
driven by the optional background sweep in the app lifespan.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 30 * 60


def build_cache_key(source: str, **params: Any) -> str:
    """Build a deterministic cache signature for a source query.

    Parameters are serialized as canonical JSON with sorted keys, so the
    order in which they are passed never changes the key while any
    differing value always does.

    Args:
        source: Adapter name or operation namespace (e.g. ``"pubmed"``).
        **params: Every parameter that influences the result.

    Returns:
        A string of the form ``"<source>:<canonical-json>"``.
    """
    payload = json.dumps(params, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)
    return f"{source}:{payload}"


@dataclass
class CacheEntry:
    data: Any
    timestamp: float


class ResultCache:
    """In-memory TTL cache.

    Reads and writes never await, so concurrent requests on the event loop
    see a consistent map (last write wins).

    Args:
        ttl_seconds: Entry lifetime.
        clock: Time source returning seconds since the epoch.
    """

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.time) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.timestamp > self.ttl_seconds:
            del self._entries[key]
            logger.debug("Cache entry expired: %s", key)
            return None
        return entry.data

    def set(self, key: str, data: Any) -> None:
        self._entries[key] = CacheEntry(data=data, timestamp=self._clock())

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()
        logger.info("Result cache cleared")

    def clean_expired(self) -> int:
        """Drop every expired entry.

        Returns:
            Number of entries removed.
        """
        now = self._clock()
        expired = [k for k, e in self._entries.items() if now - e.timestamp > self.ttl_seconds]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.info("Removed %d expired cache entries", len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None
