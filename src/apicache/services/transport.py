"""Upstream transport used by the caching client.

The caching layer only needs one operation from the network side: send a
request, get a response back. ``HttpxTransport`` provides it over an
``httpx.AsyncClient``; anything else implementing ``Transport`` can be
injected instead (tests use ``httpx.MockTransport``).
"""

import json
from typing import Any, Protocol

import httpx

from apicache.config import ResponseFormat


class Transport(Protocol):
    """Executes a request against the upstream API."""

    async def execute(self, request: httpx.Request) -> httpx.Response: ...

    async def aclose(self) -> None: ...


class HttpxTransport:
    """Transport over an ``httpx.AsyncClient``.

    Usage:
        ```python
        transport = HttpxTransport(httpx.AsyncClient(timeout=10))
        response = await transport.execute(httpx.Request("GET", url))
        ```
    """

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        """Initialize the transport.

        Args:
            client: HTTP client to send requests with. A default client is
                created if omitted.
        """
        self._client = client or httpx.AsyncClient()

    async def execute(self, request: httpx.Request) -> httpx.Response:
        """Send the request and read the full body."""
        return await self._client.send(request)

    async def aclose(self) -> None:
        """Close the HTTP client."""
        if not self._client.is_closed:
            await self._client.aclose()


CONTENT_TYPES: dict[ResponseFormat, str] = {
    ResponseFormat.JSON: "application/json",
    ResponseFormat.TEXT: "text/plain; charset=utf-8",
}


def parse_body(response: httpx.Response, fmt: ResponseFormat | None = None) -> Any:
    """Default body parser.

    Args:
        response: Response to parse
        fmt: Body format of the host. When omitted the content type decides,
            JSON for ``*json*`` types and text otherwise.

    Raises:
        ValueError: If a JSON body cannot be decoded
    """
    if fmt is None:
        content_type = response.headers.get("content-type", "")
        fmt = ResponseFormat.JSON if "json" in content_type else ResponseFormat.TEXT
    if fmt is ResponseFormat.JSON:
        return json.loads(response.content)
    return response.content.decode("utf-8", errors="replace")


def response_from(
    request: httpx.Request,
    body: bytes,
    fmt: ResponseFormat = ResponseFormat.JSON,
) -> httpx.Response:
    """Build a successful response around a stored body.

    The content type is set from the host's body format, so ``parse_body``,
    ``.json()`` and ``.text`` read a cached body the way they read the live
    one it was stored from.
    """
    return httpx.Response(
        200,
        content=body,
        headers={"content-type": CONTENT_TYPES[fmt]},
        request=request,
    )
