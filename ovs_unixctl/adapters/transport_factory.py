"""
Transport factory

Creates transport instances (Unix socket, loopback) from a type name and a
configuration mapping, so callers can pick the mechanism from configuration.
"""

from typing import Any, Dict

from ovs_unixctl.adapters.loopback import LoopbackTransport
from ovs_unixctl.adapters.transport_interface import TransportInterface
from ovs_unixctl.adapters.unix_socket import UnixSocketTransport


class TransportType:
    """Transport type constants"""
    UNIX = "unix"
    LOOPBACK = "loopback"


class TransportFactory:
    """Factory building transport instances"""

    @staticmethod
    def create_transport(transport_type: str, config: Dict[str, Any] = None) -> TransportInterface:
        """Create a transport

        Args:
            transport_type: Transport type, "unix" or "loopback"
            config: Transport parameters. "unix" requires "socket_path" and
                accepts "timeout"; "loopback" accepts "handler" and "name".

        Returns:
            TransportInterface: The transport instance

        Raises:
            ValueError: Unknown transport type or missing parameter
        """
        if config is None:
            config = {}

        if transport_type.lower() == TransportType.UNIX:
            socket_path = config.get("socket_path")
            if not socket_path:
                raise ValueError("unix transport requires a socket_path")
            return UnixSocketTransport(socket_path, timeout=config.get("timeout"))
        elif transport_type.lower() == TransportType.LOOPBACK:
            return LoopbackTransport(
                handler=config.get("handler"),
                name=config.get("name", "loopback"),
            )
        else:
            raise ValueError(f"Invalid transport type: {transport_type}")
