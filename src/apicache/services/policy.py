"""Decides whether a request goes through the cache at all."""

from collections.abc import Container


def is_cacheable(
    caching_enabled: bool,
    configured_hosts: Container[str],
    request_host: str,
    request_method: str,
) -> bool:
    """Check if a request is eligible for the cache and backup machinery.

    Args:
        caching_enabled: Global caching switch
        configured_hosts: Hosts with an APIConfig
        request_host: Host of the outgoing request
        request_method: HTTP method of the outgoing request

    Returns:
        True only for GET requests to a configured host while caching is on
    """
    return (
        caching_enabled
        and request_host in configured_hosts
        and request_method.upper() == "GET"
    )
