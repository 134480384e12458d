"""Services package for apicache.

This module exports the caching client and its collaborators.
"""

from apicache.services.client import (
    CachedAPIClient,
    get_cached_client,
    reading_from_cache,
    set_cached_client,
    validate_request,
)
from apicache.services.fallback import FallbackResolver
from apicache.services.keys import CacheKeys
from apicache.services.policy import is_cacheable
from apicache.services.store import CacheStore, get_cache_store, set_redis_client
from apicache.services.transport import (
    HttpxTransport,
    Transport,
    parse_body,
    response_from,
)
from apicache.services.uri import normalize_uri

__all__ = [
    # Client
    "CachedAPIClient",
    "get_cached_client",
    "reading_from_cache",
    "set_cached_client",
    "validate_request",
    # Fallback
    "FallbackResolver",
    # Keys
    "CacheKeys",
    "normalize_uri",
    # Policy
    "is_cacheable",
    # Store
    "CacheStore",
    "get_cache_store",
    "set_redis_client",
    # Transport
    "HttpxTransport",
    "Transport",
    "parse_body",
    "response_from",
]
