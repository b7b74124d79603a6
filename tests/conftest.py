"""Pytest configuration and shared socket fixtures."""

import logging
import random
import socket

import pytest

from dualstack_echo import logging_setup
from dualstack_echo.ports import open_listener


def _ipv6_supported() -> bool:
    if not socket.has_ipv6:
        return False
    try:
        with socket.socket(socket.AF_INET6, socket.SOCK_STREAM) as s:
            s.bind(('::1', 0))
        return True
    except OSError:
        return False


IPV6_SUPPORTED = _ipv6_supported()

requires_ipv6 = pytest.mark.skipif(not IPV6_SUPPORTED, reason="host cannot bind IPv6")


def _block_is_free(start: int, count: int) -> bool:
    opened = []
    try:
        for port in range(start, start + count):
            opened.append(open_listener(socket.AF_INET, port))
            opened.append(open_listener(socket.AF_INET6, port))
        return True
    except OSError:
        return False
    finally:
        for s in opened:
            s.close()


@pytest.fixture
def free_block():
    """Return a function giving the first port of ``count`` consecutive dual-stack free ports."""
    if not IPV6_SUPPORTED:
        pytest.skip("host cannot bind IPv6")

    def _find(count: int = 5) -> int:
        for _ in range(200):
            start = random.randint(20000, 60000 - count)
            if _block_is_free(start, count):
                return start
        raise RuntimeError(f"no block of {count} free ports found")

    return _find


@pytest.fixture
def occupy():
    """Hold a listening socket on a port for the duration of a test."""
    held = []

    def _occupy(family: int, port: int) -> socket.socket:
        s = open_listener(family, port)
        held.append(s)
        return s

    yield _occupy
    for s in held:
        s.close()


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers installed by configure_logging so they don't outlive a test's capture."""
    yield
    logger = logging.getLogger(logging_setup.LOGGER_NAME)
    logger.handlers.clear()
    logger.propagate = True
    logging_setup._configured = False
