"""
Ephemeral port selection for the loopback redirect endpoint.
"""

import socket
from typing import NamedTuple

from .constants import LOOPBACK_CALLBACK, LOOPBACK_HOST
from .utils import PortAllocationError


class RedirectEndpoint(NamedTuple):
    """The port the listener binds and the redirect URI that points at it."""

    port: int
    uri: str


def build_endpoint(port: int) -> RedirectEndpoint:
    """
    Build the redirect endpoint for a port.

    Args:
        port: TCP port in the 1-65535 range

    Returns:
        RedirectEndpoint whose URI embeds the port

    Raises:
        ValueError: If the port is out of range
    """
    if not 1 <= port <= 65535:
        raise ValueError(f"Invalid port: {port}")
    return RedirectEndpoint(port, LOOPBACK_CALLBACK.format(port=port))


def allocate_port(host: str = LOOPBACK_HOST) -> int:
    """
    Find a random, unused loopback port.

    The OS picks the port (bind to port 0), and the socket is released
    right away. The port is only guaranteed free at the time of the call.

    Args:
        host: Interface to bind

    Returns:
        The port number assigned by the OS

    Raises:
        PortAllocationError: If no loopback port could be bound
    """
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind((host, 0))
            s.listen(1)
            return s.getsockname()[1]
    except OSError as e:
        raise PortAllocationError(f"Could not allocate a loopback port on {host}: {str(e)}") from e
