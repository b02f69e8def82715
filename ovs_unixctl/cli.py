"""
ovs-unixctl - send a control command to a running Open vSwitch daemon

Usage:
    ovs-unixctl list-commands
    ovs-unixctl -t ovsdb-server version
    ovs-unixctl vlog/set unixctl:dbg
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from ovs_unixctl import __version__
from ovs_unixctl.config import UnixctlConfig, parse_timeout
from ovs_unixctl.errors import CommandError, UnixctlError
from ovs_unixctl.telemetry.tracer import setup_tracer
from ovs_unixctl.unixctl import OvsUnixCtl

logger = logging.getLogger(__name__)

# Exit codes, as used by ovs-appctl
EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_COMMAND_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ovs-unixctl",
        description="Send a control command to a running Open vSwitch daemon",
    )
    parser.add_argument("-t", "--target", help="Daemon name (default: ovs-vswitchd)")
    parser.add_argument("--rundir", type=Path, help="Run directory holding pidfiles and sockets")
    parser.add_argument("-s", "--socket", type=Path, help="Explicit control socket path")
    parser.add_argument("-T", "--timeout", help="Timeout in seconds, 0 waits forever")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log protocol traffic")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("command", help="Command to run, e.g. list-commands")
    parser.add_argument("args", nargs="*", help="Command arguments")
    return parser


def load_config(args: argparse.Namespace) -> UnixctlConfig:
    """Environment configuration overridden by command line options."""
    config = UnixctlConfig.from_env()
    if args.target:
        config.target = args.target
    if args.rundir:
        config.run_dir = args.rundir
    if args.socket:
        config.socket_path = args.socket
    if args.timeout is not None:
        config.timeout = parse_timeout(args.timeout)
    return config


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        config = load_config(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    logger.debug(f"Configuration: {config.to_dict()}")

    if config.enable_tracing:
        setup_tracer(config.service_name, config.otlp_endpoint)

    try:
        with OvsUnixCtl.from_config(config) as ctl:
            result = ctl.run(args.command, args.args)
    except CommandError as e:
        print(e.error.rstrip("\n"), file=sys.stderr)
        print(f"ovs-unixctl: {config.target}: server returned an error", file=sys.stderr)
        return EXIT_COMMAND_ERROR
    except UnixctlError as e:
        print(f"ovs-unixctl: {config.target}: {e}", file=sys.stderr)
        return EXIT_FAILURE

    if result:
        sys.stdout.write(result if result.endswith("\n") else result + "\n")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
