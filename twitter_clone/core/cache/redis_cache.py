"""Redis cache facade with graceful degradation.

When REDIS_URL is unset or the server is unreachable the cache stays disabled and
every call becomes a no-op, so request handling never depends on Redis.
"""

import base64
import json
import logging
import zlib
from typing import Any, Dict, Optional

import redis.asyncio as redis

from twitter_clone.core.config import settings

logger = logging.getLogger(__name__)


class RedisCache:
    """Async Redis client wrapper with tag-based invalidation."""

    def __init__(self):
        self.redis: Optional[redis.Redis] = None
        self.enabled = False
        self.default_ttl = 300
        self.ttl_overrides: Dict[str, int] = {
            "trending": 60,
            "presence": settings.hub_presence_ttl,
        }
        self._compression_threshold = 1024

    async def init_cache(self) -> None:
        """Connect to Redis; stay disabled on any failure."""
        if not settings.redis_url:
            logger.warning("REDIS_URL not set. Caching disabled.")
            return
        try:
            self.redis = redis.from_url(
                settings.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_timeout=5,
            )
            await self.redis.ping()
            self.enabled = True
            logger.info("Redis cache initialized successfully.")
        except Exception as e:
            logger.error(f"Failed to initialize Redis cache: {e}")
            self.enabled = False

    async def close(self) -> None:
        if not self.redis:
            return
        await self.redis.aclose()
        self.redis = None
        self.enabled = False

    async def get(self, key: str) -> Any:
        if not self.enabled or not self.redis:
            return None
        try:
            data = await self.redis.get(key)
            if not data:
                return None
            return self._decode_value(data)
        except Exception as e:
            logger.error(f"Cache get error for key {key}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        if not self.enabled or not self.redis:
            return
        try:
            await self.redis.set(
                key, self._encode_value(value), ex=self._resolve_ttl(key, ttl)
            )
        except Exception as e:
            logger.error(f"Cache set error for key {key}: {e}")

    async def delete(self, key: str) -> None:
        if not self.enabled or not self.redis:
            return
        try:
            await self.redis.delete(key)
        except Exception as e:
            logger.error(f"Cache delete error for key {key}: {e}")

    async def set_with_tags(
        self, key: str, value: Any, tags: list, ttl: Optional[int] = None
    ) -> None:
        """Set a value and record it under each tag for grouped invalidation."""
        if not self.enabled or not self.redis:
            return
        try:
            await self.set(key, value, ttl)
            pipe = self.redis.pipeline()
            for tag in tags:
                tag_key = f"tag:{tag}"
                pipe.sadd(tag_key, key)
                if ttl:
                    pipe.expire(tag_key, ttl)
            await pipe.execute()
        except Exception as e:
            logger.error(f"Cache set_with_tags error for key {key}: {e}")

    async def invalidate_by_tag(self, tag: str) -> None:
        if not self.enabled or not self.redis:
            return
        try:
            tag_key = f"tag:{tag}"
            keys = await self.redis.smembers(tag_key)
            if keys:
                await self.redis.delete(*keys)
            await self.redis.delete(tag_key)
            logger.debug(f"Invalidated cache by tag: {tag}")
        except Exception as e:
            logger.error(f"Cache invalidation by tag error for {tag}: {e}")

    def _encode_value(self, value: Any) -> str:
        """Serialize to JSON, compressing large payloads."""
        serialized = json.dumps(value, default=str).encode("utf-8")
        if len(serialized) >= self._compression_threshold:
            return "1|" + base64.b64encode(zlib.compress(serialized)).decode("ascii")
        return "0|" + serialized.decode("utf-8")

    def _decode_value(self, data: Any) -> Any:
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        if not isinstance(data, str):
            return data
        if data.startswith("1|"):
            return json.loads(zlib.decompress(base64.b64decode(data[2:])))
        if data.startswith("0|"):
            data = data[2:]
        try:
            return json.loads(data)
        except ValueError:
            return None

    def _resolve_ttl(self, key: str, ttl: Optional[int]) -> int:
        if ttl is not None:
            return ttl
        for prefix, override in self.ttl_overrides.items():
            if key.startswith(prefix):
                return override
        return self.default_ttl


cache_manager = RedisCache()
