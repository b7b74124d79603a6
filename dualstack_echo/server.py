"""IPv4/IPv6 echo listeners and their accept loops."""

import asyncio
import logging
import socket

from .config import BUFFER_SIZE
from .ports import open_listener

logger = logging.getLogger(__name__)


class BindError(RuntimeError):
    """A listener could not be bound on a port the scan reported free."""

    def __init__(self, port: int, family: str, cause: OSError):
        super().__init__(f"Failed to bind {family} listener on port {port}: {cause}")
        self.port = port
        self.family = family
        self.cause = cause


def bind_pair(port: int) -> tuple[socket.socket, socket.socket]:
    """Open the IPv4 and IPv6 listeners on ``port``.

    Either bind failing means another process took the port after the scan.
    """
    try:
        listener4 = open_listener(socket.AF_INET, port)
    except OSError as e:
        raise BindError(port, 'IPv4', e) from e
    try:
        listener6 = open_listener(socket.AF_INET6, port)
    except OSError as e:
        listener4.close()
        raise BindError(port, 'IPv6', e) from e
    return listener4, listener6


def _format_addr(addr) -> str:
    host, port = addr[0], addr[1]
    if ':' in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


async def handle_client(conn: socket.socket, addr) -> None:
    """Echo everything received on ``conn`` until the peer closes it."""
    loop = asyncio.get_running_loop()
    peer = _format_addr(addr)
    logger.info("New connection from: %s", peer)
    conn.setblocking(False)
    with conn:
        while True:
            try:
                data = await loop.sock_recv(conn, BUFFER_SIZE)
            except OSError as e:
                logger.error("Error reading from %s: %s", peer, e)
                break
            if not data:
                logger.info("Connection closed by: %s", peer)
                break
            logger.info("Received %d bytes from %s", len(data), peer)
            try:
                await loop.sock_sendall(conn, data)
            except OSError as e:
                logger.error("Failed to write to %s: %s", peer, e)
                break


async def serve(listener: socket.socket, label: str) -> None:
    """Accept connections forever, one echo task per connection."""
    loop = asyncio.get_running_loop()
    handlers: set[asyncio.Task] = set()
    logger.info("%s server listening on %s", label, _format_addr(listener.getsockname()))
    while True:
        try:
            conn, addr = await loop.sock_accept(listener)
        except OSError as e:
            logger.error("%s accept error: %s", label, e)
            # no backoff, just yield to the event loop
            await asyncio.sleep(0)
            continue
        task = asyncio.create_task(handle_client(conn, addr))
        handlers.add(task)
        task.add_done_callback(handlers.discard)


async def serve_forever(listener4: socket.socket, listener6: socket.socket) -> None:
    await asyncio.gather(
        serve(listener4, 'IPv4'),
        serve(listener6, 'IPv6'),
    )
