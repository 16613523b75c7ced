"""Disk-backed result cache."""

from findr.cache.store import ResultCache, make_cache_key

__all__ = ["ResultCache", "make_cache_key"]
