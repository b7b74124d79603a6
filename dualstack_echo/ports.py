"""Dual-stack port availability scanning.

Every candidate in the range is probed at once; results are then read back
in ascending port order, so the lowest free port wins no matter which probe
finishes first. The probe sockets are closed before the caller binds for
real, so a port reported free may be taken in between.
"""

import asyncio
import logging
import os
import socket
from typing import Awaitable, Callable, Optional

from .config import LISTEN_BACKLOG, UNSPECIFIED_IPV4, UNSPECIFIED_IPV6

logger = logging.getLogger(__name__)

Probe = Callable[[int], Awaitable[bool]]


def open_listener(family: int, port: int, host: Optional[str] = None) -> socket.socket:
    """Bind and listen on ``host:port`` (the unspecified address by default).

    IPv6 sockets are made v6-only so an IPv4 listener can share the port.
    Raises OSError if the bind fails; the socket is closed in that case.
    """
    if host is None:
        host = UNSPECIFIED_IPV6 if family == socket.AF_INET6 else UNSPECIFIED_IPV4
    s = socket.socket(family, socket.SOCK_STREAM)
    try:
        if os.name == 'posix':
            s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        if family == socket.AF_INET6:
            s.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_V6ONLY, 1)
        s.bind((host, port))
        s.listen(LISTEN_BACKLOG)
        s.setblocking(False)
    except BaseException:
        s.close()
        raise
    return s


async def check_port(family: int, port: int) -> bool:
    try:
        with open_listener(family, port):
            return True
    except OSError:
        return False


async def is_available(port: int) -> bool:
    """True only if both the IPv4 and the IPv6 bind succeed on ``port``."""
    ipv4_ok, ipv6_ok = await asyncio.gather(
        check_port(socket.AF_INET, port),
        check_port(socket.AF_INET6, port),
    )
    return ipv4_ok and ipv6_ok


async def find_available_port(start: int, end: int, probe: Probe = is_available) -> Optional[int]:
    """Return the lowest port in ``[start, end]`` free on both stacks, or None."""
    ports = list(range(start, end + 1))
    tasks = [asyncio.create_task(probe(p)) for p in ports]
    try:
        for port, task in zip(ports, tasks):
            await asyncio.wait((task,))
            if task.cancelled():
                logger.debug("Probe for port %d was aborted", port)
                continue
            exc = task.exception()
            if exc is not None:
                logger.debug("Probe for port %d failed: %s", port, exc)
                continue
            if task.result():
                return port
        return None
    finally:
        pending = [t for t in tasks if not t.done()]
        for t in pending:
            t.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
