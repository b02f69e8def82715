"""
Error taxonomy

Every failure raised by this package is a subclass of UnixctlError. The set is
closed: protocol violations, (de)serialization failures, socket I/O failures,
timeouts and errors reported by the daemon for a specific command.
"""

import json
import socket
from typing import Optional, Sequence


class UnixctlError(Exception):
    """Base class for all unixctl client errors."""
    # Short label used in logs and metric attributes
    kind = "unknown"


class ProtocolError(UnixctlError):
    """The JSON-RPC exchange was malformed or violated the request/response contract."""
    kind = "protocol"

    def __init__(self, message: str):
        super().__init__(f"jsonrpc protocol error: {message}")
        self.message = message


class SerializeError(UnixctlError):
    """A payload could not be encoded to, or decoded from, valid JSON."""
    kind = "serialize"

    def __init__(self, message: str):
        super().__init__(f"(de/)serialization error: {message}")
        self.message = message


class SocketError(UnixctlError):
    """Transport level failure: connect refused, broken pipe, read error, peer hangup."""
    kind = "socket"

    def __init__(self, message: str):
        super().__init__(f"input/output socket error: {message}")
        self.message = message


class ControlSocketNotFound(SocketError):
    """The pidfile or the control socket of a daemon does not exist."""


class RpcTimeoutError(UnixctlError):
    """The configured timeout expired while connecting or waiting for a reply."""
    kind = "timeout"

    def __init__(self, message: str = "connection timeout"):
        super().__init__(message)
        self.message = message


class CommandError(UnixctlError):
    """The daemon returned an error for a command."""
    kind = "command"

    def __init__(self, method: str, params: Sequence[str], error: str):
        self.method = method
        self.params = format_params(params)
        self.error = error
        super().__init__(f"command {method}({self.params}) returns error: {error}")


def format_params(params: Optional[Sequence[str]]) -> str:
    """Render a parameter list the way it appears in error messages."""
    if not params:
        return ""
    return ", ".join(str(p) for p in params)


def _io_cause(exc: BaseException) -> Optional[OSError]:
    # Walk the explicit and implicit cause chain looking for an OS-level error
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, OSError):
            return current
        current = current.__cause__ or current.__context__
    return None


def classify_error(exc: BaseException) -> UnixctlError:
    """Map an arbitrary exception raised while talking to a daemon onto the taxonomy.

    The classification looks at the underlying cause rather than the place the
    error surfaced: a JSON decoding error triggered by a broken connection is a
    socket error, not a serialization error.

    Args:
        exc: The exception to classify

    Returns:
        UnixctlError: The matching error (``exc`` itself if it already is one)
    """
    if isinstance(exc, UnixctlError):
        return exc

    io_error = _io_cause(exc)
    if io_error is not None:
        if isinstance(io_error, socket.timeout):
            return RpcTimeoutError()
        if isinstance(io_error, FileNotFoundError):
            return ControlSocketNotFound(str(io_error))
        return SocketError(str(io_error))

    if isinstance(exc, (json.JSONDecodeError, UnicodeError, TypeError, ValueError)):
        return SerializeError(str(exc))

    return SocketError(str(exc))
