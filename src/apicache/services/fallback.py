"""Fallback to the last known-good body when the upstream fails."""

import httpx
import structlog

from apicache.core.exceptions import NoResponseError
from apicache.services.keys import CacheKeys
from apicache.services.store import CacheStore
from apicache.services.transport import response_from

logger = structlog.get_logger(__name__)


class FallbackResolver:
    """Chooses between a backup, the failed response, or a hard error.

    A backup that gets served is also re-published into the primary cache
    with the short stale TTL. While the upstream is down, requests are then
    answered from cache and the upstream is only retried once that entry
    expires.
    """

    def __init__(
        self, store: CacheStore, stale_ttl: int, backups_enabled: bool = True
    ) -> None:
        """Initialize the resolver.

        Args:
            store: Cache store holding backups
            stale_ttl: TTL in seconds for a re-published backup
            backups_enabled: When False, backups are never consulted
        """
        self.store = store
        self.stale_ttl = stale_ttl
        self.backups_enabled = backups_enabled

    async def resolve(
        self,
        keys: CacheKeys,
        request: httpx.Request,
        last_resort: httpx.Response | None = None,
    ) -> httpx.Response:
        """Resolve a failed upstream call.

        Args:
            keys: Keys of the failed request
            request: The failed request, attached to a synthesized response
            last_resort: Live non-success response, if the upstream answered

        Returns:
            Response built from the backup, or ``last_resort`` as is

        Raises:
            NoResponseError: If there is neither a backup nor a live response
        """
        body = await self._backup_body(keys)
        if body is not None:
            logger.info(
                "backup_served",
                normalized_uri=keys.normalized_uri,
                uri_hash=keys.content_hash,
                ttl=self.stale_ttl,
            )
            await self.store.write(keys.cache_key, body, self.stale_ttl)
            return response_from(request, body, keys.api.format)

        if last_resort is not None:
            logger.info(
                "no_backup_bad_response",
                normalized_uri=keys.normalized_uri,
                uri_hash=keys.content_hash,
                status_code=last_resort.status_code,
            )
            return last_resort

        logger.error(
            "no_response_available",
            normalized_uri=keys.normalized_uri,
            uri_hash=keys.content_hash,
        )
        raise NoResponseError(
            normalized_uri=keys.normalized_uri, key_name=keys.key_name
        )

    async def _backup_body(self, keys: CacheKeys) -> bytes | None:
        if not self.backups_enabled:
            return None
        if not await self.store.backup_exists(keys.backup_key, keys.content_hash):
            return None
        # The field can disappear between HEXISTS and HGET
        return await self.store.backup_read(keys.backup_key, keys.content_hash)
