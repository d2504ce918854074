"""
공용 유틸리티 모듈.
"""

from .cache import CacheEntry, FIFOCache, TTLCache

__all__ = [
    'CacheEntry',
    'FIFOCache',
    'TTLCache'
]
