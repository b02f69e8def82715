"""
OVS unixctl client

Talks to the control socket of Open vSwitch daemons using their JSON-RPC
dialect:

1. Socket discovery: {run_dir}/{target}.pid -> {run_dir}/{target}.{pid}.ctl
2. Transports: Unix domain socket, in-process loopback
3. JSON-RPC client: request ids, response correlation, error classification
4. Command wrappers: list-commands, version, arbitrary commands

All requests are traced and counted through OpenTelemetry.
"""

__version__ = "0.1.0"

from ovs_unixctl.errors import (  # noqa: E402
    CommandError,
    ControlSocketNotFound,
    ProtocolError,
    RpcTimeoutError,
    SerializeError,
    SocketError,
    UnixctlError,
)
from ovs_unixctl.locator import find_socket, find_socket_at  # noqa: E402
from ovs_unixctl.rpc import Client, Request, Response  # noqa: E402
from ovs_unixctl.unixctl import OvsUnixCtl  # noqa: E402

__all__ = [
    "CommandError",
    "ControlSocketNotFound",
    "ProtocolError",
    "RpcTimeoutError",
    "SerializeError",
    "SocketError",
    "UnixctlError",
    "find_socket",
    "find_socket_at",
    "Client",
    "Request",
    "Response",
    "OvsUnixCtl",
]
