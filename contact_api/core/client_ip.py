"""Caller address resolution honoring a trusted proxy chain."""

from __future__ import annotations

import ipaddress
import logging
from typing import Iterable, Sequence

from fastapi import Request

logger = logging.getLogger(__name__)

IPNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network

# Headers consulted, in order, when the peer is a trusted proxy
FORWARDED_HEADERS: tuple[str, ...] = ("X-Forwarded-For", "X-Real-IP")

UNKNOWN_CLIENT = "unknown"


def parse_trusted_proxies(values: Iterable[str]) -> list[IPNetwork]:
    """Parse proxy addresses and CIDR ranges into networks.

    Examples:
        >>> parse_trusted_proxies(["127.0.0.1", "10.0.0.0/8"])
        [IPv4Network('127.0.0.1/32'), IPv4Network('10.0.0.0/8')]

    Raises:
        ValueError: If an entry is neither an address nor a network.
    """
    return [ipaddress.ip_network(value.strip(), strict=False) for value in values]


def _parse_ip(value: str) -> ipaddress.IPv4Address | ipaddress.IPv6Address | None:
    try:
        return ipaddress.ip_address(value)
    except ValueError:
        return None


def is_trusted_proxy(address: str, trusted: Sequence[IPNetwork]) -> bool:
    ip = _parse_ip(address)
    if ip is None:
        return False
    return any(ip in network for network in trusted)


def _client_from_header(header_value: str, trusted: Sequence[IPNetwork]) -> str | None:
    """Walk a forwarding header right-to-left, skipping trusted hops.

    Each proxy appends the address it received the request from, so the
    rightmost untrusted entry is the closest hop that cannot be vouched for.
    Returns None when the header holds an unparsable entry before a client is
    found.
    """
    items = [item.strip() for item in header_value.split(",")]
    for index in range(len(items) - 1, -1, -1):
        candidate = items[index]
        if _parse_ip(candidate) is None:
            return None
        if index == 0 or not is_trusted_proxy(candidate, trusted):
            return candidate
    return None


def resolve_client_ip(request: Request, trusted_proxies: Sequence[IPNetwork]) -> str:
    """Return the caller's network address for rate limiting.

    Forwarding headers are only believed when the socket peer is itself a
    trusted proxy; otherwise the peer address is returned as-is.

    Args:
        request: Incoming request.
        trusted_proxies: Networks whose forwarding headers are honored.

    Returns:
        The resolved client address, or "unknown" when the peer is absent.
    """
    peer = request.client.host if request.client else None
    if not peer:
        return UNKNOWN_CLIENT

    if not trusted_proxies or not is_trusted_proxy(peer, trusted_proxies):
        return peer

    for header in FORWARDED_HEADERS:
        header_value = request.headers.get(header)
        if not header_value:
            continue
        client = _client_from_header(header_value, trusted_proxies)
        if client:
            return client

    return peer
