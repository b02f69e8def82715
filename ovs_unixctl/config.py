"""
Configuration settings for the unixctl client
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from ovs_unixctl.locator import default_run_dir, find_socket

DEFAULT_TARGET = "ovs-vswitchd"
DEFAULT_TIMEOUT = 5.0

_TRUE_VALUES = ("1", "true", "yes", "on")


def parse_timeout(value: Optional[str]) -> Optional[float]:
    """Parse a timeout in seconds; empty or 0 means no timeout."""
    if value is None or not value.strip():
        return None
    try:
        timeout = float(value)
    except ValueError:
        raise ValueError(f"Invalid timeout: {value!r}")
    if timeout < 0:
        raise ValueError(f"Invalid timeout: {value!r}")
    return timeout or None


@dataclass
class UnixctlConfig:
    """Where to find the daemon and how to talk to it"""
    target: str = DEFAULT_TARGET
    run_dir: Path = field(default_factory=default_run_dir)
    # Explicit control socket, skips pidfile discovery when set
    socket_path: Optional[Path] = None
    timeout: Optional[float] = DEFAULT_TIMEOUT
    transport: str = "unix"  # unix, loopback

    # Tracing configuration
    enable_tracing: bool = False
    service_name: str = "ovs-unixctl"
    otlp_endpoint: Optional[str] = None

    @classmethod
    def from_env(cls) -> "UnixctlConfig":
        """Create config from environment variables"""
        socket_path = os.getenv("OVS_UNIXCTL_SOCKET")
        timeout = os.getenv("OVS_UNIXCTL_TIMEOUT")
        return cls(
            target=os.getenv("OVS_UNIXCTL_TARGET", DEFAULT_TARGET),
            run_dir=default_run_dir(),
            socket_path=Path(socket_path) if socket_path else None,
            timeout=DEFAULT_TIMEOUT if timeout is None else parse_timeout(timeout),
            transport=os.getenv("OVS_UNIXCTL_TRANSPORT", "unix"),
            enable_tracing=os.getenv("OVS_UNIXCTL_TRACING", "").lower() in _TRUE_VALUES,
            otlp_endpoint=os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT"),
        )

    def resolve_socket(self) -> Path:
        """Control socket path, discovered from the pidfile unless configured."""
        if self.socket_path is not None:
            return Path(self.socket_path)
        return find_socket(self.target, self.run_dir)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for diagnostics"""
        return {
            "target": self.target,
            "run_dir": str(self.run_dir),
            "socket_path": str(self.socket_path) if self.socket_path else None,
            "timeout": self.timeout,
            "transport": self.transport,
            "enable_tracing": self.enable_tracing,
            "service_name": self.service_name,
        }
