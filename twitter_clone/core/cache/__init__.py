"""Cache backends."""

from .redis_cache import RedisCache, cache_manager

__all__ = ["RedisCache", "cache_manager"]
