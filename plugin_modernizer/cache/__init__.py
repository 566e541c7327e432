"""
Cache Module

Generic get-or-fetch-then-persist store shared by every remote dataset.
"""

from .cache_manager import CacheEntry, CacheManager, JsonCacheEntry

__all__ = ['CacheEntry', 'CacheManager', 'JsonCacheEntry']
