"""Canonical string form of request URIs.

Two requests that differ only in query parameter order, a trailing slash,
scheme/host case, default port, or percent-escape case normalize to the
same string, and so share cache and backup entries.
"""

import re

import httpx

from apicache.core.exceptions import InvalidRequestError

_PERCENT_ESCAPE = re.compile(r"%[0-9a-fA-F]{2}")


def _upper_escapes(value: str) -> str:
    return _PERCENT_ESCAPE.sub(lambda match: match.group(0).upper(), value)


def sort_query_params(query: str) -> str:
    """Sort ``&``-delimited query parameters lexicographically.

    Args:
        query: Raw query string without the leading ``?``

    Returns:
        Sorted query string, empty when there are no parameters
    """
    return "&".join(sorted(param for param in query.split("&") if param))


def normalize_uri(uri: str | httpx.URL) -> str:
    """Build the canonical string for a request URI.

    Steps:
        1. Sort query parameters
        2. Strip trailing slashes from the path
        3. Lowercase scheme and host
        4. Percent-encode unsafe characters and uppercase existing escapes,
           drop userinfo, fragment and the scheme's default port

    The result is stable: ``normalize_uri(normalize_uri(u)) == normalize_uri(u)``.

    Args:
        uri: Absolute request URI

    Returns:
        Normalized URI string (e.g., "https://api.example.com/items?a=1&b=2")

    Raises:
        InvalidRequestError: If the URI cannot be parsed or is not absolute
    """
    try:
        url = httpx.URL(uri)
    except httpx.InvalidURL as e:
        raise InvalidRequestError(url=str(uri), message=f"Invalid URI: {e}") from e

    if not url.scheme or not url.host:
        raise InvalidRequestError(url=str(uri), message="URI must be absolute")

    host = url.raw_host.decode("ascii").lower()
    if ":" in host:
        host = f"[{host}]"
    authority = host if url.port is None else f"{host}:{url.port}"

    # raw_path carries the query; split it back off
    path = url.raw_path.decode("ascii").split("?", 1)[0]
    path = _upper_escapes(path).rstrip("/") or "/"
    query = sort_query_params(_upper_escapes(url.query.decode("ascii")))

    normalized = f"{url.scheme.lower()}://{authority}{path}"
    if query:
        normalized = f"{normalized}?{query}"
    return normalized
