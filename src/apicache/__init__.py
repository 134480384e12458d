"""Read-through Redis cache with last-known-good fallback for upstream APIs."""

from apicache.config import APIConfig, CacheSettings, ResponseFormat, get_settings
from apicache.core.exceptions import (
    APICacheError,
    InvalidRequestError,
    NoResponseError,
    TransportError,
)
from apicache.services import CachedAPIClient, reading_from_cache

__version__ = "0.1.0"

__all__ = [
    "APICacheError",
    "APIConfig",
    "CacheSettings",
    "CachedAPIClient",
    "InvalidRequestError",
    "NoResponseError",
    "ResponseFormat",
    "TransportError",
    "get_settings",
    "reading_from_cache",
]
