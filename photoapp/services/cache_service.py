"""Redis cache service for permission snapshots and response caching."""

import json
import logging
from typing import Optional, Any, List
import redis

from photoapp.core.config import settings

logger = logging.getLogger("photoapp.cache")


class CacheService:
    """Redis-backed caching service. Every failure is non-fatal."""

    def __init__(self):
        self._client: Optional[redis.Redis] = None

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.from_url(
                settings.REDIS_URL,
                decode_responses=True,
                max_connections=100,
                socket_connect_timeout=2,
            )
        return self._client

    def get(self, key: str) -> Optional[str]:
        """Get a cached value by key."""
        try:
            return self.client.get(key)
        except redis.RedisError as e:
            logger.debug("Cache get failed for %s: %s", key, e)
            return None

    def set(self, key: str, value: str, ttl_seconds: int = 600) -> None:
        """Set a cached value with TTL."""
        try:
            self.client.setex(key, ttl_seconds, value)
        except redis.RedisError as e:
            logger.debug("Cache set failed for %s: %s", key, e)

    def get_json(self, key: str) -> Optional[Any]:
        """Get and parse a JSON cached value."""
        raw = self.get(key)
        if raw:
            return json.loads(raw)
        return None

    def set_json(self, key: str, value: Any, ttl_seconds: int = 600) -> None:
        """Serialize and cache a JSON value."""
        self.set(key, json.dumps(value, default=str), ttl_seconds)

    def delete(self, *keys: str) -> None:
        """Delete one or more cached keys."""
        if not keys:
            return
        try:
            self.client.delete(*keys)
        except redis.RedisError as e:
            logger.debug("Cache delete failed: %s", e)

    def keys(self, pattern: str) -> List[str]:
        """List keys matching a glob pattern."""
        try:
            return list(self.client.scan_iter(match=pattern, count=500))
        except redis.RedisError as e:
            logger.debug("Cache scan failed for %s: %s", pattern, e)
            return []

    def invalidate_pattern(self, pattern: str) -> int:
        """Delete all keys matching a pattern. Returns how many were found."""
        keys = self.keys(pattern)
        if keys:
            self.delete(*keys)
        return len(keys)

    def health_check(self) -> bool:
        """Check if Redis is reachable."""
        try:
            return bool(self.client.ping())
        except redis.RedisError:
            return False


cache_service = CacheService()
