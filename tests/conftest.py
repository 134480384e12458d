"""Pytest configuration and fixtures for apicache tests.

This module provides reusable fixtures for:
- Settings with one configured upstream host
- An in-memory stand-in for the async Redis client
- Upstream transports driven by ``httpx.MockTransport``
"""

from collections.abc import AsyncGenerator, Callable
from typing import Any

import httpx
import pytest

from apicache.config import APIConfig, CacheSettings
from apicache.services.client import CachedAPIClient
from apicache.services.store import CacheStore
from apicache.services.transport import HttpxTransport

API_HOST = "api.example.com"
API_URL = f"https://{API_HOST}/v1/items"
FRESH_TTL = 3600
STALE_TTL = 300


# =============================================================================
# Redis Double
# =============================================================================


class InMemoryRedis:
    """Subset of ``redis.asyncio.Redis`` used by CacheStore.

    Records TTLs instead of expiring keys and counts every call, so tests can
    assert on both stored state and store traffic.
    """

    def __init__(self) -> None:
        self.values: dict[str, bytes] = {}
        self.ttls: dict[str, int] = {}
        self.hashes: dict[str, dict[str, bytes]] = {}
        self.calls: list[str] = []

    async def exists(self, *names: str) -> int:
        self.calls.append("exists")
        return sum(1 for name in names if name in self.values)

    async def get(self, name: str) -> bytes | None:
        self.calls.append("get")
        return self.values.get(name)

    async def set(self, name: str, value: bytes, ex: int | None = None) -> bool:
        self.calls.append("set")
        self.values[name] = value
        if ex is None:
            self.ttls.pop(name, None)
        else:
            self.ttls[name] = ex
        return True

    async def hexists(self, name: str, key: str) -> bool:
        self.calls.append("hexists")
        return key in self.hashes.get(name, {})

    async def hget(self, name: str, key: str) -> bytes | None:
        self.calls.append("hget")
        return self.hashes.get(name, {}).get(key)

    async def hset(self, name: str, key: str, value: bytes) -> int:
        self.calls.append("hset")
        self.hashes.setdefault(name, {})[key] = value
        return 1

    async def ping(self) -> bool:
        self.calls.append("ping")
        return True


# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture
def test_settings() -> CacheSettings:
    """Caching on, one configured host, backups enabled."""
    return CacheSettings(
        perform_caching=True,
        apis={API_HOST: APIConfig(key_name="example", expire_in=FRESH_TTL)},
        read_from_cache=True,
        backups_enabled=True,
        timeout_length=1.0,
        cache_stale_backup_time=STALE_TTL,
    )


@pytest.fixture
def no_backup_settings(test_settings: CacheSettings) -> CacheSettings:
    """Same as test_settings with backups disabled."""
    return test_settings.model_copy(update={"backups_enabled": False})


# =============================================================================
# Store Fixtures
# =============================================================================


@pytest.fixture
def fake_redis() -> InMemoryRedis:
    """Create an empty in-memory Redis."""
    return InMemoryRedis()


@pytest.fixture
def store(fake_redis: InMemoryRedis) -> CacheStore:
    """Create a CacheStore over the in-memory Redis."""
    return CacheStore(fake_redis)  # type: ignore[arg-type]


# =============================================================================
# Upstream Fixtures
# =============================================================================


class Upstream:
    """Scripted upstream API that records the requests it receives."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.handler: Callable[[httpx.Request], httpx.Response] = lambda request: (
            httpx.Response(200, json={"items": []})
        )

    def respond_with(self, status_code: int = 200, **kwargs: Any) -> None:
        self.handler = lambda request: httpx.Response(status_code, **kwargs)

    def fail_with(self, error: Exception) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise error

        self.handler = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)


@pytest.fixture
def upstream() -> Upstream:
    """Create a scripted upstream answering 200 with an empty item list."""
    return Upstream()


@pytest.fixture
async def transport(upstream: Upstream) -> AsyncGenerator[HttpxTransport, None]:
    """Create an HttpxTransport that talks to the scripted upstream."""
    transport = HttpxTransport(
        httpx.AsyncClient(transport=httpx.MockTransport(upstream))
    )
    yield transport
    await transport.aclose()


@pytest.fixture
def client(
    store: CacheStore, transport: HttpxTransport, test_settings: CacheSettings
) -> CachedAPIClient:
    """Create a CachedAPIClient wired to the fakes."""
    return CachedAPIClient(store, transport, test_settings)
