"""Cache Module - Caching services."""
from core.cache.match_cache import (
    MatchCacheService,
    CachedResult,
    make_cache_key,
    CACHE_TTL_SECONDS
)

__all__ = [
    'MatchCacheService',
    'CachedResult',
    'make_cache_key',
    'CACHE_TTL_SECONDS'
]
