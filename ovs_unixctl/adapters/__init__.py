"""
Transport Module

Transports providing a unified connect/send/receive interface:
- unix_socket: Unix domain control socket of a running daemon
- loopback: in-process handler, for tests and embedding

The RPC client depends only on TransportInterface and ConnectionInterface.
"""

from .transport_factory import TransportFactory, TransportType
from .transport_interface import ConnectionInterface, TransportInterface
from .loopback import LoopbackTransport
from .unix_socket import UnixSocketTransport

__all__ = [
    "TransportFactory",
    "TransportType",
    "ConnectionInterface",
    "TransportInterface",
    "LoopbackTransport",
    "UnixSocketTransport",
]
