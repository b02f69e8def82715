"""
Unix domain socket transport

Connects to a daemon's control socket and exchanges JSON documents over a
stream socket. One document per write, no extra framing: documents are
reassembled on the receiving side by JsonStreamDecoder.
"""

import logging
import socket
from pathlib import Path
from typing import Any, Optional, Union

from ovs_unixctl.adapters.transport_interface import ConnectionInterface, TransportInterface
from ovs_unixctl.errors import (
    ControlSocketNotFound,
    RpcTimeoutError,
    SocketError,
    classify_error,
)
from ovs_unixctl.utils.serialization import (
    INCOMPLETE,
    MAX_MESSAGE_SIZE,
    JsonStreamDecoder,
    encode_message,
)

logger = logging.getLogger(__name__)

# Bytes requested from the socket per read
RECV_CHUNK_SIZE = 65536


class UnixSocketConnection(ConnectionInterface):
    """A connected Unix stream socket"""

    def __init__(self, sock: socket.socket, path: str, max_message_size: int = MAX_MESSAGE_SIZE):
        self._sock = sock
        self.path = path
        self._decoder = JsonStreamDecoder(max_size=max_message_size)

    @property
    def closed(self) -> bool:
        return self._sock is None

    def _socket(self) -> socket.socket:
        if self._sock is None:
            raise SocketError(f"connection to {self.path} is closed")
        return self._sock

    def send(self, message: Any) -> None:
        data = encode_message(message)
        sock = self._socket()
        try:
            sock.sendall(data)
        except socket.timeout as e:
            logger.error(f"Timed out writing to {self.path}")
            raise RpcTimeoutError() from e
        except OSError as e:
            logger.error(f"Failed to write to {self.path}: {e}")
            raise SocketError(str(e)) from e
        logger.debug(f"Sent {len(data)} bytes to {self.path}")

    def receive(self) -> Any:
        sock = self._socket()
        while True:
            message = self._decoder.next_message()
            if message is not INCOMPLETE:
                return message

            try:
                chunk = sock.recv(RECV_CHUNK_SIZE)
            except socket.timeout as e:
                logger.error(f"Timed out waiting for a reply from {self.path}")
                raise RpcTimeoutError() from e
            except OSError as e:
                logger.error(f"Failed to read from {self.path}: {e}")
                raise classify_error(e) from e

            if not chunk:
                if self._decoder.pending:
                    raise SocketError(
                        f"connection closed by {self.path} in the middle of a message"
                    )
                raise SocketError(f"connection closed by {self.path}")
            self._decoder.feed(chunk)

    def close(self) -> None:
        if self._sock is None:
            return
        try:
            self._sock.close()
        finally:
            self._sock = None
            logger.debug(f"Closed connection to {self.path}")


class UnixSocketTransport(TransportInterface):
    """Transport reaching a daemon through its Unix control socket"""

    def __init__(self, path: Union[str, Path], timeout: Optional[float] = None):
        """
        Args:
            path: Filesystem path of the control socket
            timeout: Connect/read/write timeout in seconds, None or 0 blocks
                indefinitely
        """
        self.path = str(path)
        # A zero timeout would make the socket non-blocking
        self.timeout = timeout or None

    def describe(self) -> str:
        return f"unix:{self.path}"

    def connect(self) -> UnixSocketConnection:
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.settimeout(self.timeout)
            sock.connect(self.path)
        except socket.timeout as e:
            sock.close()
            logger.error(f"Timed out connecting to {self.path} after {self.timeout}s")
            raise RpcTimeoutError() from e
        except FileNotFoundError as e:
            sock.close()
            logger.error(f"Control socket {self.path} does not exist")
            raise ControlSocketNotFound(str(e)) from e
        except OSError as e:
            sock.close()
            logger.error(f"Failed to connect to {self.path}: {e}")
            raise SocketError(str(e)) from e

        logger.info(f"Connected to {self.describe()}")
        return UnixSocketConnection(sock, self.path)
