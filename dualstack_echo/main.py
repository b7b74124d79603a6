import asyncio
import logging
import sys

from .addresses import HostInfo, describe, resolve
from .config import PORT_RANGE_END, PORT_RANGE_START
from .logging_setup import configure_logging
from .ports import find_available_port
from .server import BindError, bind_pair, serve_forever

logger = logging.getLogger(__name__)


def report_host_info(info: HostInfo) -> None:
    for found, line in describe(info):
        if found:
            logger.info(line)
        else:
            logger.warning(line)


async def run(start: int = PORT_RANGE_START, end: int = PORT_RANGE_END) -> int:
    """Discover addresses, pick a dual-stack port and echo on it.

    Only returns (with a non-zero status) when startup fails; once the
    listeners are up this serves forever.
    """
    info = await resolve()
    report_host_info(info)

    port = await find_available_port(start, end)
    if port is None:
        logger.error("No available port found in range %d-%d", start, end)
        return 1
    logger.info("Found available port: %d", port)

    try:
        listener4, listener6 = bind_pair(port)
    except BindError as e:
        logger.error("%s", e)
        return 1

    logger.info("Servers started on port %d", port)
    await serve_forever(listener4, listener6)
    return 0


def main() -> None:
    configure_logging()
    try:
        code = asyncio.run(run())
    except KeyboardInterrupt:
        code = 0
    sys.exit(code)
