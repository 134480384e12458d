"""Exception hierarchy for apicache.

This module defines a consistent exception hierarchy that enables:
- Structured error details with machine-readable codes
- A single classification of upstream failures (``TRANSPORT_ERRORS``)

Only ``InvalidRequestError`` and ``NoResponseError`` (and upstream failures
when backups are disabled) ever reach a caller. Store failures are absorbed
by the cache store and treated as misses.

Usage:
    from apicache.core.exceptions import NoResponseError

    try:
        response = await client.get("https://api.example.com/items")
    except NoResponseError as e:
        logger.error("items_unavailable", **e.to_dict()["error"])
"""

import asyncio
from typing import Any

import httpx


class APICacheError(Exception):
    """Base exception for all apicache errors.

    Attributes:
        code: Machine-readable error code (e.g., "NO_RESPONSE_AVAILABLE")
        message: Human-readable error message
        details: Additional error details (optional)
    """

    code: str = "INTERNAL_ERROR"
    message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: str | None = None,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Override default message
            code: Override default error code
            details: Additional error details
        """
        if message:
            self.message = message
        if code:
            self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a structured error payload."""
        error: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            error["details"] = self.details
        return {"error": error}


# =============================================================================
# Request Errors
# =============================================================================


class InvalidRequestError(APICacheError):
    """Raised when a request fails pre-flight validation."""

    code: str = "INVALID_REQUEST"
    message: str = "Invalid request"

    def __init__(self, url: str | None = None, message: str | None = None) -> None:
        """Initialize with the offending URL."""
        details: dict[str, Any] = {}
        if url:
            details["url"] = url
        super().__init__(message=message, details=details if details else None)


class ConfigurationError(APICacheError):
    """Raised when a host has no cache configuration."""

    code: str = "CONFIGURATION_ERROR"
    message: str = "Host is not configured for caching"

    def __init__(self, host: str | None = None, message: str | None = None) -> None:
        """Initialize with the unconfigured host."""
        details: dict[str, Any] = {}
        if host:
            details["host"] = host
            if not message:
                message = f"No cache configuration for host {host}"
        super().__init__(message=message, details=details if details else None)


# =============================================================================
# Upstream Errors
# =============================================================================


class TransportError(APICacheError):
    """Raised by transports for network, timeout or body parsing failures."""

    code: str = "TRANSPORT_FAILURE"
    message: str = "Upstream request failed"


class NoResponseError(APICacheError):
    """Raised when there is no cache entry, no backup and no usable response."""

    code: str = "NO_RESPONSE_AVAILABLE"
    message: str = (
        "Bad response from API server or timeout occurred "
        "and no backup was in the cache"
    )

    def __init__(
        self,
        normalized_uri: str | None = None,
        key_name: str | None = None,
        message: str | None = None,
    ) -> None:
        """Initialize with the request identity."""
        details: dict[str, Any] = {}
        if normalized_uri:
            details["normalized_uri"] = normalized_uri
        if key_name:
            details["key_name"] = key_name
        super().__init__(message=message, details=details if details else None)


# =============================================================================
# Store Errors
# =============================================================================


class StoreUnavailableError(APICacheError):
    """Failure talking to the key-value store.

    Never raised on the request path; kept for callers that talk to the
    store directly.
    """

    code: str = "STORE_UNAVAILABLE"
    message: str = "Cache store is unavailable"


# Failures of the upstream call that are recovered through backups. Socket
# errors from any transport surface as OSError. Body parse errors surface as
# ValueError (json.JSONDecodeError is a subclass).
TRANSPORT_ERRORS: tuple[type[BaseException], ...] = (
    TransportError,
    httpx.HTTPError,
    asyncio.TimeoutError,
    OSError,
    ValueError,
)
