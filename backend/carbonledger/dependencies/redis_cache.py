import json
from typing import Any, Optional, TypeVar, Generic, Callable, Awaitable, Union
import redis.asyncio as redis
from carbonledger.core.config import settings
from carbonledger.core.logging import db_logger

# Type variable for generic cache
T = TypeVar('T')

# Redis connection pool
redis_pool = redis.ConnectionPool.from_url(
    settings.REDIS_URL,
    decode_responses=True,
    max_connections=settings.REDIS_MAX_CONNECTIONS
)


class RedisCache(Generic[T]):
    """Redis cache wrapper with typed operations. Errors degrade to cache misses."""

    def __init__(self, prefix: str = "cache", client: Optional[redis.Redis] = None):
        """
        Initialize Redis cache with a prefix for keys

        Args:
            prefix: Prefix for all keys in this cache instance
            client: Optional Redis client, defaults to one on the shared pool
        """
        self.prefix = prefix
        self.redis = client or redis.Redis(connection_pool=redis_pool)

    def _get_key(self, key: str) -> str:
        """Get prefixed key"""
        return f"{self.prefix}:{key}"

    async def get(self, key: str, default: Optional[T] = None) -> Optional[T]:
        """
        Get a value from cache

        Args:
            key: Cache key
            default: Default value if key doesn't exist

        Returns:
            Cached value or default
        """
        full_key = self._get_key(key)
        try:
            value = await self.redis.get(full_key)
            if value is None:
                return default
            return json.loads(value)
        except Exception as e:
            db_logger.structured(
                "error",
                f"Redis get error: {str(e)}",
                {"key": full_key}
            )
            return default

    async def set(
        self,
        key: str,
        value: T,
        expire: Optional[int] = None
    ) -> bool:
        """
        Set a value in cache

        Args:
            key: Cache key
            value: JSON-serialisable value to cache
            expire: Expiration time in seconds

        Returns:
            True if successful
        """
        full_key = self._get_key(key)
        try:
            await self.redis.set(full_key, json.dumps(value, default=str), ex=expire)
            return True
        except Exception as e:
            db_logger.structured(
                "error",
                f"Redis set error: {str(e)}",
                {"key": full_key}
            )
            return False

    async def delete(self, key: str) -> bool:
        full_key = self._get_key(key)
        try:
            return bool(await self.redis.delete(full_key))
        except Exception as e:
            db_logger.structured(
                "error",
                f"Redis delete error: {str(e)}",
                {"key": full_key}
            )
            return False

    async def clear_matching(self, pattern: str = "*") -> bool:
        """
        Clear all keys under this cache's prefix matching a glob pattern

        Returns:
            True if successful
        """
        match = self._get_key(pattern)
        try:
            cursor = 0
            while True:
                cursor, keys = await self.redis.scan(cursor, match=match)
                if keys:
                    await self.redis.delete(*keys)
                if cursor == 0:
                    break
            return True
        except Exception as e:
            db_logger.structured(
                "error",
                f"Redis clear error: {str(e)}",
                {"pattern": match}
            )
            return False

    async def get_or_set(
        self,
        key: str,
        factory: Callable[[], Awaitable[Union[T, Any]]],
        expire: Optional[int] = None
    ) -> T:
        """
        Get a value from cache or compute and store it

        Args:
            key: Cache key
            factory: Coroutine function producing the value on a miss
            expire: Expiration time in seconds

        Returns:
            Cached value or newly computed value
        """
        cached = await self.get(key)
        if cached is not None:
            return cached

        value = await factory()
        await self.set(key, value, expire=expire)
        return value


# Dashboard rollups are cached per owner: "dashboard:<owner_id>:<view>:<year>"
dashboard_cache = RedisCache[dict]("dashboard")


def get_dashboard_cache() -> Optional[RedisCache]:
    """Dependency for the dashboard rollup cache"""
    return dashboard_cache
