"""
Outbound request security - SSRF protection for the media relay
"""

import asyncio
import ipaddress
import socket
from typing import List, Optional
from aiohttp.abc import AbstractResolver
from aiohttp.resolver import ThreadedResolver
from loguru import logger
from yarl import URL

from .exceptions import RelayBlockedError


# Not globally routable (IPv4); 224.0.0.0/3 covers multicast and everything reserved above it
BLOCKED_IPV4_RANGES = [
    ipaddress.ip_network("0.0.0.0/8"),        # "This" network
    ipaddress.ip_network("10.0.0.0/8"),       # Private
    ipaddress.ip_network("100.64.0.0/10"),    # Carrier-grade NAT
    ipaddress.ip_network("127.0.0.0/8"),      # Loopback
    ipaddress.ip_network("169.254.0.0/16"),   # Link-local
    ipaddress.ip_network("172.16.0.0/12"),    # Private
    ipaddress.ip_network("192.168.0.0/16"),   # Private
    ipaddress.ip_network("198.18.0.0/15"),    # Benchmarking
    ipaddress.ip_network("224.0.0.0/3"),      # Multicast + reserved
]

BLOCKED_IPV6_RANGES = [
    ipaddress.ip_network("::1/128"),          # Loopback
    ipaddress.ip_network("::/128"),           # Unspecified
    ipaddress.ip_network("fe80::/10"),        # Link-local
    ipaddress.ip_network("fc00::/7"),         # Unique local
    ipaddress.ip_network("2001:db8::/32"),    # Documentation
]

DNS_TIMEOUT = 5.0


def is_ip_literal(host: str) -> bool:
    try:
        ipaddress.ip_address(host.strip("[]"))
        return True
    except ValueError:
        return False


def is_private_address(ip: str) -> bool:
    """
    True unless ``ip`` is a globally routable IPv4/IPv6 literal

    Unparseable input and unknown families count as private (fail closed).
    IPv4-mapped IPv6 addresses are judged by their embedded IPv4 address.
    """
    if not ip or not isinstance(ip, str):
        return True
    try:
        addr = ipaddress.ip_address(ip.strip().strip("[]"))
    except ValueError:
        return True

    if isinstance(addr, ipaddress.IPv4Address):
        return any(addr in network for network in BLOCKED_IPV4_RANGES)
    if isinstance(addr, ipaddress.IPv6Address):
        if addr.ipv4_mapped is not None:
            return is_private_address(str(addr.ipv4_mapped))
        return any(addr in network for network in BLOCKED_IPV6_RANGES)
    return True


def is_blocked_hostname(hostname: str) -> bool:
    """localhost, *.localhost and *.local never leave the relay"""
    host = (hostname or "").strip().rstrip(".").lower()
    if not host:
        return True
    return host == "localhost" or host.endswith(".localhost") or host.endswith(".local")


class RelayGuard:
    """
    Decide whether a client-supplied URL may be fetched on the server's behalf

    Every rejection raises the same ``RelayBlockedError`` so callers cannot
    learn which rule fired; the rule is only logged at debug level.
    """

    def __init__(self, resolver: Optional[AbstractResolver] = None, dns_timeout: float = DNS_TIMEOUT):
        self._resolver = resolver
        self.dns_timeout = dns_timeout

    def _reject(self, reason: str, raw_url: str) -> RelayBlockedError:
        logger.debug(f"Relay guard blocked {raw_url[:200]!r}: {reason}")
        return RelayBlockedError()

    async def check(self, raw_url: str) -> URL:
        """
        Validate ``raw_url`` before any network access

        Returns:
            The parsed URL, which is what the relay must fetch

        Raises:
            RelayBlockedError
        """
        if not raw_url or not isinstance(raw_url, str):
            raise self._reject("empty", str(raw_url))

        try:
            url = URL(raw_url.strip())
            # Accessing the port validates it
            url.port
        except (ValueError, TypeError):
            raise self._reject("unparseable", raw_url)

        if not url.is_absolute() or not url.raw_host:
            raise self._reject("not absolute", raw_url)
        if url.user is not None or url.password is not None:
            raise self._reject("credentials", raw_url)
        if url.scheme != "https":
            raise self._reject(f"scheme {url.scheme!r}", raw_url)

        host = url.raw_host.rstrip(".").lower()
        if is_blocked_hostname(host):
            raise self._reject("hostname", raw_url)

        if is_ip_literal(host):
            if is_private_address(host):
                raise self._reject("private ip literal", raw_url)
            return url

        addresses = await self.resolve_addresses(host)
        if not addresses:
            raise self._reject("dns lookup failed", raw_url)
        # One private answer poisons the whole set
        if any(is_private_address(address) for address in addresses):
            raise self._reject("resolves to private address", raw_url)
        return url

    async def resolve_addresses(self, host: str) -> List[str]:
        """All addresses for ``host``; empty on resolution failure"""
        resolver = self._resolver or ThreadedResolver()
        try:
            results = await asyncio.wait_for(
                resolver.resolve(host, 0, socket.AF_UNSPEC),
                timeout=self.dns_timeout,
            )
        except (OSError, asyncio.TimeoutError) as e:
            logger.debug(f"DNS resolution failed for {host}: {e}")
            return []
        finally:
            if self._resolver is None:
                await resolver.close()
        return [result["host"] for result in results]


class GuardedResolver(ThreadedResolver):
    """
    Connector resolver that refuses private addresses at connect time

    Closes the gap between the guard's lookup and the connection's own
    lookup (DNS rebinding).
    """

    async def resolve(self, host: str, port: int = 0, family: socket.AddressFamily = socket.AF_INET):
        hosts = await super().resolve(host, port, family)
        if not hosts or any(is_private_address(h["host"]) for h in hosts):
            logger.warning(f"Refusing connection to {host}: private network address")
            raise OSError(f"Blocked private network address for {host}")
        return hosts
