"""In-process result cache."""

from scholarmux.cache.manager import ResultCache, build_cache_key

__all__ = ["ResultCache", "build_cache_key"]
