"""Host address discovery.

Four independent lookups (local/public, IPv4/IPv6) run concurrently, each
bounded by the same timeout. A lookup that fails, hangs or answers with the
wrong address family leaves its field empty; nothing here raises to the
caller.
"""

import asyncio
import ipaddress
import logging
import socket
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Union

import dns.asyncresolver
import dns.exception
import psutil
import requests

from .config import (
    DNS_LOOKUP_TIMEOUT,
    IPIFY_URL_V4,
    IPIFY_URL_V6,
    LOOKUP_TIMEOUT,
    MYIP_HOSTNAME,
    OPENDNS_RESOLVERS_V4,
    OPENDNS_RESOLVERS_V6,
)

logger = logging.getLogger(__name__)

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
Lookup = Callable[[], Awaitable[Optional[IPAddress]]]


@dataclass(frozen=True)
class HostInfo:
    local_ipv4: Optional[ipaddress.IPv4Address] = None
    public_ipv4: Optional[ipaddress.IPv4Address] = None
    local_ipv6: Optional[ipaddress.IPv6Address] = None
    public_ipv6: Optional[ipaddress.IPv6Address] = None


# Local lookups

def pick_local_address(family: int) -> Optional[IPAddress]:
    """Return the first usable address of ``family`` on an interface that is up.

    Loopback, link-local, multicast and unspecified addresses are skipped.
    """
    stats = psutil.net_if_stats()
    for name, addrs in psutil.net_if_addrs().items():
        st = stats.get(name)
        if st is not None and not st.isup:
            continue
        for a in addrs:
            if a.family != family or not a.address:
                continue
            # IPv6 addresses may carry a zone suffix, e.g. fe80::1%eth0
            try:
                ip = ipaddress.ip_address(a.address.split('%', 1)[0])
            except ValueError:
                continue
            if ip.is_loopback or ip.is_link_local or ip.is_multicast or ip.is_unspecified:
                continue
            return ip
    return None


async def local_ipv4() -> Optional[IPAddress]:
    return await asyncio.to_thread(pick_local_address, socket.AF_INET)


async def local_ipv6() -> Optional[IPAddress]:
    return await asyncio.to_thread(pick_local_address, socket.AF_INET6)


# Public lookups

async def opendns_lookup(rdtype: str, nameservers: list[str], lifetime: float = LOOKUP_TIMEOUT) -> IPAddress:
    """Ask OpenDNS which address our query came from."""
    resolver = dns.asyncresolver.Resolver(configure=False)
    resolver.nameservers = list(nameservers)
    resolver.lifetime = lifetime
    answer = await resolver.resolve(MYIP_HOSTNAME, rdtype)
    return ipaddress.ip_address(answer[0].address)


def ipify_lookup(url: str, timeout: float = LOOKUP_TIMEOUT) -> IPAddress:
    r = requests.get(url, timeout=timeout)
    r.raise_for_status()
    return ipaddress.ip_address(r.text.strip())


async def _public_address(rdtype: str, nameservers: list[str], url: str) -> Optional[IPAddress]:
    try:
        return await opendns_lookup(rdtype, nameservers, lifetime=DNS_LOOKUP_TIMEOUT)
    except (dns.exception.DNSException, OSError, ValueError) as e:
        logger.debug("OpenDNS %s lookup failed, trying %s: %s", rdtype, url, e)
    return await asyncio.to_thread(ipify_lookup, url)


async def public_ipv4() -> Optional[IPAddress]:
    return await _public_address('A', OPENDNS_RESOLVERS_V4, IPIFY_URL_V4)


async def public_ipv6() -> Optional[IPAddress]:
    return await _public_address('AAAA', OPENDNS_RESOLVERS_V6, IPIFY_URL_V6)


@dataclass(frozen=True)
class Lookups:
    local_ipv4: Lookup = local_ipv4
    public_ipv4: Lookup = public_ipv4
    local_ipv6: Lookup = local_ipv6
    public_ipv6: Lookup = public_ipv6


async def _bounded(name: str, lookup: Lookup, expected: type, timeout: float) -> Optional[IPAddress]:
    try:
        result = await asyncio.wait_for(lookup(), timeout)
    except asyncio.TimeoutError:
        logger.debug("%s lookup timed out after %ss", name, timeout)
        return None
    except Exception as e:
        logger.debug("%s lookup failed: %s", name, e)
        return None
    if isinstance(result, str):
        try:
            result = ipaddress.ip_address(result)
        except ValueError:
            return None
    if not isinstance(result, expected):
        if result is not None:
            logger.debug("%s lookup returned %r, ignoring", name, result)
        return None
    return result


async def resolve(timeout: float = LOOKUP_TIMEOUT, lookups: Optional[Lookups] = None) -> HostInfo:
    """Run all four lookups concurrently and collect whatever succeeded."""
    lookups = lookups or Lookups()
    v4, v6 = ipaddress.IPv4Address, ipaddress.IPv6Address
    local_v4, public_v4, local_v6, public_v6 = await asyncio.gather(
        _bounded('local IPv4', lookups.local_ipv4, v4, timeout),
        _bounded('public IPv4', lookups.public_ipv4, v4, timeout),
        _bounded('local IPv6', lookups.local_ipv6, v6, timeout),
        _bounded('public IPv6', lookups.public_ipv6, v6, timeout),
    )
    return HostInfo(
        local_ipv4=local_v4,
        public_ipv4=public_v4,
        local_ipv6=local_v6,
        public_ipv6=public_v6,
    )


def describe(info: HostInfo) -> list[tuple[bool, str]]:
    """Status lines for ``info`` as ``(found, line)`` pairs, in display order."""
    rows = [
        ('Local IPv4', info.local_ipv4),
        ('Public IPv4', info.public_ipv4),
        ('Local IPv6', info.local_ipv6),
        ('Public IPv6', info.public_ipv6),
    ]
    lines = []
    for label, ip in rows:
        if ip is not None:
            lines.append((True, f"{label}: {ip}"))
        else:
            lines.append((False, f"Failed to get {label.lower().replace('ipv', 'IPv')}"))
    return lines
