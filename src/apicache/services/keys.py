"""Cache and backup key derivation.

Cache Key Types:
    - api-cache:{key_name}:{hash} - Primary cache entry (host expire_in TTL)
    - api-cache:{key_name}        - Backup hash, field {hash} (no TTL)

``hash`` is the MD5 hex digest of the normalized URI, which keeps keys short
for arbitrarily long query strings.
"""

import hashlib
from collections.abc import Mapping
from functools import cached_property

import httpx

from apicache.config import APIConfig
from apicache.core.exceptions import ConfigurationError
from apicache.services.uri import normalize_uri

KEY_PREFIX = "api-cache"


class CacheKeys:
    """Keys for one request, each computed at most once.

    Usage:
        ```python
        keys = CacheKeys.for_request(request, settings.apis)
        await store.read(keys.cache_key)
        ```
    """

    def __init__(self, url: str | httpx.URL, api: APIConfig) -> None:
        self.url = url
        self.api = api

    @classmethod
    def for_request(
        cls, request: httpx.Request, apis: Mapping[str, APIConfig]
    ) -> "CacheKeys":
        """Build keys for a request from the host's configuration.

        Raises:
            ConfigurationError: If the request host has no configuration
        """
        host = request.url.host
        try:
            api = apis[host]
        except KeyError:
            raise ConfigurationError(host=host) from None
        return cls(request.url, api)

    @property
    def key_name(self) -> str:
        return self.api.key_name

    @cached_property
    def normalized_uri(self) -> str:
        return normalize_uri(self.url)

    @cached_property
    def content_hash(self) -> str:
        """128-bit MD5 hex digest of the normalized URI."""
        return hashlib.md5(self.normalized_uri.encode("utf-8")).hexdigest()

    @cached_property
    def cache_key(self) -> str:
        """Primary cache key (e.g., "api-cache:weather:9e107d9d372bb682...")."""
        return f"{KEY_PREFIX}:{self.key_name}:{self.content_hash}"

    @cached_property
    def backup_key(self) -> str:
        """Backup hash key shared by every request to the host."""
        return f"{KEY_PREFIX}:{self.key_name}"
