"""CacheStore - Redis protocol for primary cache entries and backups.

Primary cache entries are plain string keys written with a TTL. Backups live
in one Redis hash per host, one field per normalized URI, and never expire;
a field persists until it is overwritten by the next good response.

Redis failures are never fatal here: every operation logs a warning and
degrades to a miss (reads) or a no-op (writes), so a store outage only costs
cache hits.
"""

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from apicache.core.exceptions import StoreUnavailableError

logger = structlog.get_logger(__name__)


class CacheStore:
    """Async Redis adapter for cache and backup entries.

    The adapter keeps no state besides the client and holds no locks, so one
    instance can be shared by every in-flight request.

    Usage:
        ```python
        store = CacheStore(Redis.from_url(settings.redis_url))
        if await store.exists(keys.cache_key):
            body = await store.read(keys.cache_key)
        ```
    """

    def __init__(self, redis: Redis) -> None:
        """Initialize the store.

        Args:
            redis: Async Redis client
        """
        self.redis = redis

    # -------------------------------------------------------------------------
    # Primary cache
    # -------------------------------------------------------------------------

    async def exists(self, cache_key: str) -> bool:
        """Check whether a cache entry is present."""
        try:
            return bool(await self.redis.exists(cache_key))
        except RedisError as e:
            logger.warning(
                "cache_store_unavailable", op="exists", key=cache_key, error=str(e)
            )
            return False

    async def read(self, cache_key: str) -> bytes | None:
        """Read a cached body, None on miss."""
        try:
            return await self.redis.get(cache_key)
        except RedisError as e:
            logger.warning(
                "cache_store_unavailable", op="read", key=cache_key, error=str(e)
            )
            return None

    async def write(self, cache_key: str, body: bytes, ttl: int) -> None:
        """Store a body and (re)apply its TTL in a single SET.

        Args:
            cache_key: Cache key
            body: Raw response body
            ttl: Expiry in seconds
        """
        try:
            await self.redis.set(cache_key, body, ex=ttl)
            logger.debug("cache_set", key=cache_key, ttl=ttl)
        except RedisError as e:
            logger.warning(
                "cache_store_unavailable", op="write", key=cache_key, error=str(e)
            )

    # -------------------------------------------------------------------------
    # Backups
    # -------------------------------------------------------------------------

    async def backup_exists(self, backup_key: str, field: str) -> bool:
        """Check whether a backup body exists for a request hash."""
        try:
            return bool(await self.redis.hexists(backup_key, field))
        except RedisError as e:
            logger.warning(
                "cache_store_unavailable",
                op="backup_exists",
                key=backup_key,
                field=field,
                error=str(e),
            )
            return False

    async def backup_read(self, backup_key: str, field: str) -> bytes | None:
        """Read a backup body, None on miss."""
        try:
            return await self.redis.hget(backup_key, field)
        except RedisError as e:
            logger.warning(
                "cache_store_unavailable",
                op="backup_read",
                key=backup_key,
                field=field,
                error=str(e),
            )
            return None

    async def backup_write(self, backup_key: str, field: str, body: bytes) -> None:
        """Store the last known-good body for a request hash. No TTL."""
        try:
            await self.redis.hset(backup_key, field, body)
        except RedisError as e:
            logger.warning(
                "cache_store_unavailable",
                op="backup_write",
                key=backup_key,
                field=field,
                error=str(e),
            )

    # -------------------------------------------------------------------------
    # Health
    # -------------------------------------------------------------------------

    async def ping(self) -> None:
        """Check connectivity to Redis.

        Raises:
            StoreUnavailableError: If Redis cannot be reached
        """
        try:
            await self.redis.ping()
        except RedisError as e:
            raise StoreUnavailableError(details={"error": str(e)}) from e


# Global Redis client (set at process startup)
_redis_client: Redis | None = None


def set_redis_client(client: Redis) -> None:
    """Register a process-wide Redis client shared by caching clients.

    Usage:
        ```python
        redis = Redis.from_url(settings.redis_url)
        set_redis_client(redis)
        client = CachedAPIClient(get_cache_store(), HttpxTransport(), settings)
        ...
        await client.aclose()
        await redis.aclose()
        ```
    """
    global _redis_client
    _redis_client = client


def get_cache_store() -> CacheStore:
    """Build a CacheStore over the global Redis client."""
    if _redis_client is None:
        raise RuntimeError(
            "Redis client not initialized. Call set_redis_client first."
        )
    return CacheStore(_redis_client)
