"""
Tests for client configuration
"""
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from ovs_unixctl.config import DEFAULT_TIMEOUT, UnixctlConfig, parse_timeout
from ovs_unixctl.errors import ControlSocketNotFound
from ovs_unixctl.locator import DEFAULT_RUN_DIR


class TestParseTimeout:

    @pytest.mark.parametrize("value, expected", [
        ("5", 5.0),
        ("0.25", 0.25),
        ("0", None),
        ("", None),
        (None, None),
    ])
    def test_valid(self, value, expected):
        assert parse_timeout(value) == expected

    @pytest.mark.parametrize("value", ["-1", "soon"])
    def test_invalid(self, value):
        with pytest.raises(ValueError, match="Invalid timeout"):
            parse_timeout(value)


class TestUnixctlConfig:
    """Environment driven configuration"""

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            config = UnixctlConfig.from_env()
        assert config.target == "ovs-vswitchd"
        assert config.run_dir == DEFAULT_RUN_DIR
        assert config.socket_path is None
        assert config.timeout == DEFAULT_TIMEOUT
        assert config.transport == "unix"
        assert not config.enable_tracing
        assert config.otlp_endpoint is None

    def test_from_env(self):
        with patch.dict(os.environ, {
            "OVS_UNIXCTL_TARGET": "ovsdb-server",
            "OVS_RUNDIR": "/run/ovs",
            "OVS_UNIXCTL_SOCKET": "/run/ovs/db.ctl",
            "OVS_UNIXCTL_TIMEOUT": "0",
            "OVS_UNIXCTL_TRANSPORT": "loopback",
            "OVS_UNIXCTL_TRACING": "true",
            "OTEL_EXPORTER_OTLP_ENDPOINT": "http://localhost:4317",
        }, clear=True):
            config = UnixctlConfig.from_env()
        assert config.target == "ovsdb-server"
        assert config.run_dir == Path("/run/ovs")
        assert config.socket_path == Path("/run/ovs/db.ctl")
        assert config.timeout is None
        assert config.transport == "loopback"
        assert config.enable_tracing
        assert config.otlp_endpoint == "http://localhost:4317"

    def test_invalid_timeout_in_env(self):
        with patch.dict(os.environ, {"OVS_UNIXCTL_TIMEOUT": "forever"}):
            with pytest.raises(ValueError):
                UnixctlConfig.from_env()

    def test_explicit_socket_skips_discovery(self, tmp_path):
        config = UnixctlConfig(run_dir=tmp_path, socket_path=Path("/run/x.ctl"))
        assert config.resolve_socket() == Path("/run/x.ctl")

    def test_socket_discovered_from_pidfile(self, tmp_path):
        (tmp_path / "ovs-vswitchd.pid").write_text("31\n")
        (tmp_path / "ovs-vswitchd.31.ctl").touch()
        config = UnixctlConfig(run_dir=tmp_path)
        assert config.resolve_socket() == tmp_path / "ovs-vswitchd.31.ctl"

    def test_discovery_failure(self, tmp_path):
        with pytest.raises(ControlSocketNotFound):
            UnixctlConfig(run_dir=tmp_path).resolve_socket()

    def test_to_dict(self):
        config = UnixctlConfig(target="ovn-northd", run_dir=Path("/run/ovn"), timeout=1.5)
        assert config.to_dict() == {
            "target": "ovn-northd",
            "run_dir": "/run/ovn",
            "socket_path": None,
            "timeout": 1.5,
            "transport": "unix",
            "enable_tracing": False,
            "service_name": "ovs-unixctl",
        }
