"""
Control socket discovery

OVS daemons started with --pidfile write ``{run_dir}/{target}.pid`` and
listen on ``{run_dir}/{target}.{pid}.ctl``. The run directory comes from
OVS_RUNDIR, or defaults to /var/run/openvswitch.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union

from ovs_unixctl.errors import ControlSocketNotFound, ProtocolError, SocketError

logger = logging.getLogger(__name__)

RUN_DIR_ENV = "OVS_RUNDIR"
DEFAULT_RUN_DIR = Path("/var/run/openvswitch")


def default_run_dir() -> Path:
    """Run directory from the environment, or the well-known default."""
    value = os.environ.get(RUN_DIR_ENV)
    if not value:
        return DEFAULT_RUN_DIR
    try:
        # Undecodable bytes come back as lone surrogates
        value.encode("utf-8")
    except UnicodeEncodeError:
        logger.warning(f"{RUN_DIR_ENV} is not valid text, using {DEFAULT_RUN_DIR}")
        return DEFAULT_RUN_DIR
    return Path(value)


def find_socket_at(target: str, run_dir: Union[str, Path]) -> Path:
    """Resolve the control socket of a daemon inside a run directory

    Args:
        target: Daemon name, e.g. "ovs-vswitchd" or "ovsdb-server"
        run_dir: Directory holding the pidfile and the control socket

    Returns:
        Path: ``{run_dir}/{target}.{pid}.ctl``

    Raises:
        ControlSocketNotFound: The pidfile or the control socket does not exist
        SocketError: The pidfile exists but cannot be read
        ProtocolError: The pidfile is empty
    """
    run_dir = Path(run_dir)
    pidfile_path = run_dir / f"{target}.pid"
    logger.debug(f"Reading pidfile {pidfile_path}")

    try:
        pid = pidfile_path.read_text().strip()
    except FileNotFoundError as e:
        raise ControlSocketNotFound(f"pidfile not found: {pidfile_path}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise SocketError(f"failed to read pidfile {pidfile_path}: {e}") from e

    if not pid:
        raise ProtocolError(f"pidfile is empty: {pidfile_path}")

    sock_path = run_dir / f"{target}.{pid}.ctl"
    if not sock_path.exists():
        raise ControlSocketNotFound(
            f"failed to find control socket for target {target}: {sock_path}"
        )

    logger.debug(f"Found control socket {sock_path} for {target}")
    return sock_path


def find_socket(target: str, run_dir: Optional[Union[str, Path]] = None) -> Path:
    """Resolve the control socket of a daemon, defaulting the run directory."""
    if run_dir is None:
        run_dir = default_run_dir()
    return find_socket_at(target, run_dir)
