"""
OVS unixctl interface

Runs well-known control commands against an Open vSwitch daemon
(ovs-vswitchd, ovsdb-server, ovn-northd, ...) and parses their textual
replies.
"""

import logging
import re
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from ovs_unixctl.adapters.transport_factory import TransportFactory, TransportType
from ovs_unixctl.config import DEFAULT_TARGET, DEFAULT_TIMEOUT, UnixctlConfig
from ovs_unixctl.errors import ProtocolError
from ovs_unixctl.locator import find_socket
from ovs_unixctl.rpc.client import Client
from ovs_unixctl.rpc.messages import Response

logger = logging.getLogger(__name__)

COMMANDS_BANNER = "The available commands are:\n"

# e.g. "ovs-vswitchd (Open vSwitch) 3.1.0" or "... 2.17.9-1ubuntu0.1"
_VERSION_RE = re.compile(r"^(?P<daemon>\S+) \(Open vSwitch\) (?P<version>\S+)")


class OvsUnixCtl:
    """
    OVS Unix control interface.

    Usage:
        with OvsUnixCtl.with_target("ovsdb-server") as ctl:
            major, minor, micro, patch = ctl.version()
            print(ctl.run("memory/show"))
    """

    def __init__(self, client: Optional[Client] = None):
        """
        Args:
            client: JSON-RPC client to use. Without one, the control socket of
                ovs-vswitchd is looked up in the default run directory.
        """
        if client is None:
            client = Client.unix(find_socket(DEFAULT_TARGET), timeout=DEFAULT_TIMEOUT)
        self.client = client

    @classmethod
    def with_target(cls,
                    target: str,
                    run_dir: Optional[Union[str, Path]] = None,
                    timeout: Optional[float] = DEFAULT_TIMEOUT) -> "OvsUnixCtl":
        """Connect to a daemon found through its pidfile, e.g. "ovsdb-server"."""
        return cls(Client.unix(find_socket(target, run_dir), timeout=timeout))

    @classmethod
    def unix(cls, path: Union[str, Path], timeout: Optional[float] = None) -> "OvsUnixCtl":
        """Connect to an explicit control socket path."""
        return cls(Client.unix(path, timeout=timeout))

    @classmethod
    def from_config(cls, config: UnixctlConfig) -> "OvsUnixCtl":
        if config.transport.lower() == TransportType.UNIX:
            transport = TransportFactory.create_transport(TransportType.UNIX, {
                "socket_path": config.resolve_socket(),
                "timeout": config.timeout,
            })
        else:
            transport = TransportFactory.create_transport(config.transport, {"name": config.target})
        logger.debug(f"Using transport {transport} for {config.target}")
        return cls(Client(transport))

    def __enter__(self) -> "OvsUnixCtl":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self.client.close()

    @staticmethod
    def _expect_result(response: Response) -> str:
        if response.result is None:
            raise ProtocolError("expected result")
        return response.result

    def list_commands(self) -> List[Tuple[str, str]]:
        """Run "list-commands" and return (command, arguments) pairs

        Raises:
            ProtocolError: The reply is missing or not a command listing
        """
        text = self._expect_result(self.client.call("list-commands", result_type=str))
        if not text.startswith(COMMANDS_BANNER):
            raise ProtocolError("unexpected response format")

        commands = []
        for line in text[len(COMMANDS_BANNER):].splitlines():
            parts = line.strip().split(None, 1)
            if not parts:
                continue
            args = parts[1].strip() if len(parts) > 1 else ""
            commands.append((parts[0], args))
        return commands

    def version(self) -> Tuple[int, int, int, str]:
        """Version of the running daemon as (major, minor, micro, patch)

        The patch component is whatever follows the first "-" or the fourth
        dotted component, and is empty for plain X.Y.Z versions.

        Raises:
            ProtocolError: The reply is missing or not a version banner
        """
        text = self._expect_result(self.client.call("version", result_type=str))
        lines = text.strip().splitlines()
        match = _VERSION_RE.match(lines[0]) if lines else None
        if match is None:
            raise ProtocolError("unexpected version string")

        parts = re.split(r"[.-]", match.group("version"), maxsplit=3)
        if len(parts) not in (3, 4):
            raise ProtocolError("failed to unpack version string")

        try:
            major, minor, micro = (int(p) for p in parts[:3])
        except ValueError:
            raise ProtocolError(f"invalid version number: {match.group('version')}")

        patch = parts[3] if len(parts) == 4 else ""
        return major, minor, micro, patch

    def run(self, cmd: str, params: Sequence[str] = ()) -> Optional[str]:
        """Run an arbitrary command and return its textual result."""
        return self.client.call_params(cmd, list(params), result_type=str).result
