"""Port resolution for the SSR server.

Precedence (first match wins):
1. an explicit non-zero port number
2. the deploy-time override (``PORT`` in the environment)
3. a free port inside the configured ``[low, high]`` range
4. any free port from ``DEFAULT_SEARCH_START`` upwards
"""
from __future__ import annotations

import contextlib
import logging
import socket

from ssg_helper.core.config.models import MAX_PORT, MIN_PORT, PortRange, PortSpec
from ssg_helper.core.exceptions import PortResolutionError

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_START = 8000


def is_port_free(port: int, *, host: str = "127.0.0.1") -> bool:
    """Return True when ``host:port`` can be bound right now."""
    with contextlib.closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        try:
            s.bind((host, port))
        except OSError:
            return False
    return True


def find_free_port(port_range: PortRange | None = None, *, host: str = "127.0.0.1") -> int:
    """Return the first bindable port in ``port_range`` (inclusive).

    Without a range the search covers ``DEFAULT_SEARCH_START``..65535.
    """
    search = port_range or PortRange(DEFAULT_SEARCH_START, MAX_PORT)
    for port in search:
        if is_port_free(port, host=host):
            return port
    raise PortResolutionError(
        f"No available ports in range [{search.low}, {search.high}]",
        context={"range": [search.low, search.high], "host": host},
    )


def validate_port(port: int) -> int:
    if isinstance(port, bool) or not isinstance(port, int):
        raise PortResolutionError(f"Invalid port: {port!r}", context={"port": port})
    if not (MIN_PORT <= port <= MAX_PORT):
        raise PortResolutionError(
            f"Invalid port {port}: must be between {MIN_PORT} and {MAX_PORT}",
            context={"port": port},
        )
    return port


def resolve_port(spec: PortSpec, *, env_port: int | None = None, host: str = "127.0.0.1") -> int:
    """Resolve the port the SSR server will listen on.

    ``env_port`` is the deploy-time override. It beats a range or an absent
    port, but not an explicit port number.
    """
    if isinstance(spec, int) and not isinstance(spec, bool) and spec != 0:
        source = "explicit"
        port = spec
    elif env_port:
        source = "environment"
        port = env_port
    elif isinstance(spec, PortRange):
        source = f"free in [{spec.low}, {spec.high}]"
        port = find_free_port(spec, host=host)
    else:
        source = "free"
        port = find_free_port(host=host)

    validate_port(port)
    logger.info("Resolved server port %s (%s)", port, source)
    return port


__all__ = [
    "DEFAULT_SEARCH_START",
    "is_port_free",
    "find_free_port",
    "validate_port",
    "resolve_port",
]
