"""Read-through caching client for upstream GET APIs.

Cacheable requests (GET to a configured host while caching is on) go
through these states:

    CacheCheck -> cache hit: serve the cached body, upstream untouched
    Validate   -> request validation, errors propagate as is
    Upstream   -> 2xx: cache with the host TTL, store backup, return live
               -> non-2xx: fallback, the live response is the last resort
               -> transport failure: re-raise if backups are disabled,
                  otherwise notify the exception callback and fall back

Everything else is passed straight to the transport.
"""

import asyncio
import inspect
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

import httpx
import structlog
from redis.asyncio import Redis

from apicache.config import CacheSettings, ResponseFormat, get_settings
from apicache.core.exceptions import TRANSPORT_ERRORS, InvalidRequestError
from apicache.core.logging import log_context
from apicache.services.fallback import FallbackResolver
from apicache.services.keys import CacheKeys
from apicache.services.policy import is_cacheable
from apicache.services.store import CacheStore
from apicache.services.transport import (
    HttpxTransport,
    Transport,
    parse_body,
    response_from,
)

logger = structlog.get_logger(__name__)

ExceptionCallback = Callable[[BaseException, str, str], Any]
RequestValidator = Callable[[httpx.Request], None]
ResponseParser = Callable[[httpx.Response, ResponseFormat], Any]

# Task-local override of CacheSettings.read_from_cache
_read_from_cache_ctx: ContextVar[bool | None] = ContextVar(
    "read_from_cache", default=None
)


@contextmanager
def reading_from_cache(enabled: bool = True) -> Iterator[None]:
    """Override cache reads for the current task.

    The previous value is restored on exit, also when the block raises.

    Example:
        with reading_from_cache(False):
            response = await client.get(url)  # always hits the upstream
    """
    token = _read_from_cache_ctx.set(enabled)
    try:
        yield
    finally:
        _read_from_cache_ctx.reset(token)


def validate_request(request: httpx.Request) -> None:
    """Default pre-flight validation: an absolute http(s) URL.

    Raises:
        InvalidRequestError: If the URL cannot be sent
    """
    if request.url.scheme not in ("http", "https") or not request.url.host:
        raise InvalidRequestError(
            url=str(request.url), message="Only absolute http(s) URLs are supported"
        )


class CachedAPIClient:
    """Caching layer in front of an upstream transport.

    Usage:
        ```python
        client = CachedAPIClient.from_settings(settings)
        response = await client.get("https://api.example.com/items", params={"page": 2})
        data = response.json()
        ```
    """

    def __init__(
        self,
        store: CacheStore,
        transport: Transport,
        settings: CacheSettings | None = None,
        *,
        exception_callback: ExceptionCallback | None = None,
        validator: RequestValidator = validate_request,
        parser: ResponseParser = parse_body,
    ) -> None:
        """Initialize the client.

        Args:
            store: Cache store for cache entries and backups
            transport: Upstream transport
            settings: Cache settings, defaults to the process settings
            exception_callback: Called with ``(error, key_name, normalized_uri)``
                when an upstream failure is about to be served from backup.
                May be a coroutine function.
            validator: Pre-flight request validation
            parser: Body parser run eagerly on fresh responses, called with
                the response and the host's ``APIConfig.format``
        """
        self.store = store
        self.transport = transport
        self._settings = settings or get_settings()
        self.exception_callback = exception_callback
        self._validator = validator
        self._parser = parser
        self.fallback = FallbackResolver(
            store,
            stale_ttl=self._settings.cache_stale_backup_time,
            backups_enabled=self._settings.backups_enabled,
        )
        self._owned_redis: Redis | None = None

    @classmethod
    def from_settings(
        cls, settings: CacheSettings | None = None, **kwargs: Any
    ) -> "CachedAPIClient":
        """Build a client with its own Redis connection and HTTP client."""
        settings = settings or get_settings()
        redis = Redis.from_url(settings.redis_url)
        transport = HttpxTransport(httpx.AsyncClient())
        client = cls(CacheStore(redis), transport, settings, **kwargs)
        client._owned_redis = redis
        return client

    async def aclose(self) -> None:
        """Close the transport and any Redis connection this client opened."""
        await self.transport.aclose()
        if self._owned_redis is not None:
            await self._owned_redis.aclose()
            self._owned_redis = None

    async def get(
        self,
        url: str | httpx.URL,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        read_from_cache: bool | None = None,
    ) -> httpx.Response:
        """Issue a GET request through the cache."""
        request = httpx.Request("GET", url, params=params, headers=headers)
        return await self.perform(request, read_from_cache=read_from_cache)

    async def perform(
        self, request: httpx.Request, *, read_from_cache: bool | None = None
    ) -> httpx.Response:
        """Execute a request through the cache.

        Args:
            request: Request to execute
            read_from_cache: Per-call override for serving cached bodies

        Returns:
            Live, cached, or backup-derived response

        Raises:
            InvalidRequestError: If request validation fails
            NoResponseError: If the upstream failed and there is no backup
        """
        settings = self._settings
        if not is_cacheable(
            settings.perform_caching,
            settings.configured_hosts,
            request.url.host,
            request.method,
        ):
            logger.debug("cache_disabled", method=request.method, url=str(request.url))
            return await self.transport.execute(request)

        keys = CacheKeys.for_request(request, settings.apis)
        with log_context(
            normalized_uri=keys.normalized_uri, uri_hash=keys.content_hash
        ):
            if self._reads_cache(read_from_cache):
                body = await self._cached_body(keys)
                if body is not None:
                    logger.info("cache_hit")
                    return response_from(request, body, keys.api.format)

            self._validator(request)

            try:
                response = await asyncio.wait_for(
                    self.transport.execute(request), timeout=settings.timeout_length
                )
                if response.is_success:
                    self._parser(response, keys.api.format)
            except TRANSPORT_ERRORS as e:
                if not settings.backups_enabled:
                    raise
                logger.warning(
                    "upstream_failed", error=str(e), error_type=type(e).__name__
                )
                await self._notify(e, keys)
                return await self.fallback.resolve(keys, request)

            if not response.is_success:
                logger.warning("upstream_bad_status", status_code=response.status_code)
                return await self.fallback.resolve(keys, request, last_resort=response)

            logger.info("cache_stored", ttl=keys.api.expire_in)
            await self.store.write(
                keys.cache_key, response.content, keys.api.expire_in
            )
            if settings.backups_enabled:
                await self.store.backup_write(
                    keys.backup_key, keys.content_hash, response.content
                )
            return response

    # -------------------------------------------------------------------------
    # Private Methods
    # -------------------------------------------------------------------------

    def _reads_cache(self, explicit: bool | None) -> bool:
        if explicit is not None:
            return explicit
        scoped = _read_from_cache_ctx.get()
        if scoped is not None:
            return scoped
        return self._settings.read_from_cache

    async def _cached_body(self, keys: CacheKeys) -> bytes | None:
        if not await self.store.exists(keys.cache_key):
            return None
        # Expired between EXISTS and GET counts as a miss
        return await self.store.read(keys.cache_key)

    async def _notify(self, error: BaseException, keys: CacheKeys) -> None:
        if self.exception_callback is None:
            return
        result = self.exception_callback(error, keys.key_name, keys.normalized_uri)
        if inspect.isawaitable(result):
            await result


# -----------------------------------------------------------------------------
# Dependency Injection
# -----------------------------------------------------------------------------

_cached_client: CachedAPIClient | None = None


def set_cached_client(client: CachedAPIClient) -> None:
    """Set the global caching client during app startup."""
    global _cached_client
    _cached_client = client


def get_cached_client() -> CachedAPIClient:
    """Get the global caching client."""
    if _cached_client is None:
        raise RuntimeError(
            "Caching client not initialized. Call set_cached_client first."
        )
    return _cached_client
