"""Permission cache: per-user (and per-IP) admin status snapshots.

Entries live in Redis under ``permissions:{user_id}`` or
``permissions:{user_id}:{client_ip}``. Any AdminRole mutation must call
:func:`PermissionCache.invalidate_user` for the affected user.
"""

import logging
from typing import Any, Dict, Optional

from photoapp.core.config import settings
from photoapp.services.cache_service import CacheService, cache_service

logger = logging.getLogger("photoapp.permission_cache")

KEY_PREFIX = "permissions"


class PermissionCache:

    def __init__(self, cache: CacheService, ttl_seconds: int):
        self.cache = cache
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def key(user_id: int, client_ip: Optional[str] = None) -> str:
        if client_ip:
            return f"{KEY_PREFIX}:{user_id}:{client_ip}"
        return f"{KEY_PREFIX}:{user_id}"

    def get(self, user_id: int, client_ip: Optional[str] = None) -> Optional[Dict[str, Any]]:
        return self.cache.get_json(self.key(user_id, client_ip))

    def set(
        self,
        user_id: int,
        data: Dict[str, Any],
        client_ip: Optional[str] = None,
        ttl_seconds: Optional[int] = None,
    ) -> None:
        ttl = ttl_seconds if ttl_seconds is not None else self.ttl_seconds
        if ttl <= 0:
            return
        self.cache.set_json(self.key(user_id, client_ip), data, ttl)

    def invalidate_user(self, user_id: int, client_ip: Optional[str] = None) -> None:
        """Drop one IP-scoped entry, or every entry for the user when no IP is given."""
        if client_ip:
            self.cache.delete(self.key(user_id, client_ip))
            return
        # Separate calls so permissions:1 never matches permissions:12:*
        self.cache.delete(self.key(user_id))
        self.cache.invalidate_pattern(f"{KEY_PREFIX}:{user_id}:*")
        logger.debug("Invalidated permission cache for user %s", user_id)

    def clear_all(self) -> int:
        cleared = self.cache.invalidate_pattern(f"{KEY_PREFIX}:*")
        logger.info("Cleared %d permission cache entries", cleared)
        return cleared

    def stats(self) -> Dict[str, Any]:
        return {
            "total": len(self.cache.keys(f"{KEY_PREFIX}:*")),
            "ttl_seconds": self.ttl_seconds,
            "backend": "redis",
        }


permission_cache = PermissionCache(cache_service, settings.PERMISSION_CACHE_TTL_SECONDS)
