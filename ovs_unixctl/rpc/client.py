"""
JSON-RPC client

Sends unixctl requests over a transport and correlates the replies. The
protocol is half-duplex: one request is outstanding per connection, and the
reply must carry the id of that request.

Two failure layers are kept apart. send_request only enforces the protocol
contract and returns responses even when the daemon reported an error;
call and call_params additionally turn a daemon error into CommandError.
"""

import logging
import threading
import time
from pathlib import Path
from typing import Optional, Sequence, Type, TypeVar, Union

from ovs_unixctl.adapters.transport_interface import ConnectionInterface, TransportInterface
from ovs_unixctl.adapters.unix_socket import UnixSocketTransport
from ovs_unixctl.errors import (
    CommandError,
    ProtocolError,
    SerializeError,
    SocketError,
    UnixctlError,
    classify_error,
)
from ovs_unixctl.rpc.messages import Request, Response
from ovs_unixctl.telemetry.metrics import increment_counter, record_latency
from ovs_unixctl.telemetry.tracer import create_span

logger = logging.getLogger(__name__)

R = TypeVar("R")


class Client:
    """
    JSON-RPC client owning one lazily established connection.

    Usage:
        client = Client.unix("/var/run/openvswitch/ovs-vswitchd.1234.ctl", timeout=5)
        response = client.call("version", result_type=str)
        print(response.result)

    Request ids start at 1 and are allocated atomically, so a client may be
    shared between threads for id allocation. The connection itself is not
    locked: concurrent calls on one client must be serialized by the caller.
    """

    def __init__(self, transport: TransportInterface):
        """
        Args:
            transport: Transport used to reach the daemon
        """
        self.transport = transport
        self._connection: Optional[ConnectionInterface] = None
        self._next_id = 1
        self._id_lock = threading.Lock()
        self._failure: Optional[UnixctlError] = None
        self._closed = False

    @classmethod
    def unix(cls, socket_path: Union[str, Path], timeout: Optional[float] = None) -> "Client":
        """Create a client using a Unix socket transport

        Args:
            socket_path: Path of the daemon's control socket
            timeout: Connect/read timeout in seconds, None blocks indefinitely
        """
        return cls(UnixSocketTransport(socket_path, timeout=timeout))

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __del__(self):
        self.close()

    @property
    def connected(self) -> bool:
        return getattr(self, "_connection", None) is not None

    def close(self) -> None:
        """Close the connection. The client cannot be used afterwards."""
        connection = getattr(self, "_connection", None)
        self._closed = True
        if connection is None:
            return
        self._connection = None
        try:
            connection.close()
        except OSError as e:
            logger.warning(f"Error while closing connection to {self.transport}: {e}")

    def _allocate_id(self) -> int:
        with self._id_lock:
            request_id = self._next_id
            self._next_id += 1
        return request_id

    def build_request(self, method: str, params: Sequence[str] = ()) -> Request:
        """Build a request for a method, allocating a fresh id."""
        return Request(method=method, params=[str(p) for p in params], id=self._allocate_id())

    def _ensure_connected(self) -> ConnectionInterface:
        if self._closed:
            raise SocketError(f"client for {self.transport} is closed")
        if self._connection is None:
            try:
                self._connection = self.transport.connect()
            except OSError as e:
                raise classify_error(e) from e
        return self._connection

    def send_request(self, request: Request, result_type: Optional[Type[R]] = None) -> Response[R]:
        """Send a request and wait for the matching response

        Args:
            request: Request to send
            result_type: Expected type of a non-null result

        Returns:
            Response: The response, whose ``error`` may be set by the daemon

        Raises:
            ProtocolError: The response has no id or a different id, or the
                client is unusable after an earlier failure
            SerializeError: The response is not valid JSON or the result has
                an unexpected type
            SocketError: The transport failed
            RpcTimeoutError: The daemon did not answer in time
        """
        if self._failure is not None:
            raise ProtocolError(
                f"client is unusable after an earlier failure: {self._failure}"
            ) from self._failure

        attributes = {
            "rpc.system": "jsonrpc",
            "rpc.method": request.method,
            "rpc.jsonrpc.request_id": request.id,
            "server.address": str(self.transport),
        }
        with create_span("unixctl.request", attributes):
            increment_counter("unixctl.client.requests", 1, {"method": request.method})
            start_time = time.time()
            try:
                response = self._exchange(request)
            except UnixctlError as e:
                increment_counter("unixctl.client.errors", 1, {"type": e.kind, "method": request.method})
                raise

            latency_ms = (time.time() - start_time) * 1000
            record_latency("unixctl.client.latency", latency_ms, {"method": request.method})
            logger.debug(f"Received response to {request.method} (id={request.id}), latency: {latency_ms:.2f}ms")

            if (result_type is not None and response.result is not None
                    and not isinstance(response.result, result_type)):
                error = SerializeError(
                    f"expected {result_type.__name__} result for {request.method}, "
                    f"got {type(response.result).__name__}"
                )
                increment_counter("unixctl.client.errors", 1, {"type": error.kind, "method": request.method})
                raise error

            if response.is_error:
                increment_counter("unixctl.client.errors", 1, {"type": "command", "method": request.method})
            else:
                increment_counter("unixctl.client.success", 1, {"method": request.method})

        return response

    def _exchange(self, request: Request) -> Response:
        connection = self._ensure_connected()

        # From here on the stream position is tied to this request
        try:
            logger.debug(f"Sending request: {request.to_dict()}")
            connection.send(request)
            response = Response.from_dict(connection.receive())

            if response.id is None:
                logger.error(f"Response to {request.method} carries no id")
                raise ProtocolError("no id present in response")
            if response.id != request.id:
                logger.error(f"Response id mismatch: {response.id} != {request.id}")
                raise ProtocolError(f"id mismatch: expected {request.id}, got {response.id}")
        except UnixctlError as e:
            self._failure = e
            raise
        except OSError as e:
            error = classify_error(e)
            self._failure = error
            raise error from e

        return response

    def call_params(self,
                    method: str,
                    params: Sequence[str],
                    result_type: Optional[Type[R]] = None) -> Response[R]:
        """Call a method with parameters

        Raises:
            CommandError: The daemon returned an error for this command
            UnixctlError: Any failure raised by send_request
        """
        request = self.build_request(method, params)
        response = self.send_request(request, result_type)
        if response.is_error:
            logger.error(f"Command {method} failed: {response.error}")
            raise CommandError(method, request.params, response.error)
        return response

    def call(self, method: str, result_type: Optional[Type[R]] = None) -> Response[R]:
        """Call a method without parameters."""
        return self.call_params(method, [], result_type)
