"""
Loopback transport

An in-memory transport for tests and for embedding a fake daemon in the same
process. Every message still goes through the JSON codec, so the client
exercises exactly the same encode/decode path as with a real socket.

Usage:
    def handler(request):
        return {"result": "pong", "error": None, "id": request["id"]}

    client = Client(LoopbackTransport(handler))
    client.call("ping").result  # "pong"
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from ovs_unixctl.adapters.transport_interface import ConnectionInterface, TransportInterface
from ovs_unixctl.errors import RpcTimeoutError, SocketError
from ovs_unixctl.utils.serialization import (
    INCOMPLETE,
    JsonStreamDecoder,
    decode_message,
    encode_message,
)

logger = logging.getLogger(__name__)

# A handler receives the decoded request and returns the reply: a document,
# raw bytes (sent verbatim), or None for no reply at all.
LoopbackHandler = Callable[[Any], Any]


def echo_handler(request: Any) -> Dict[str, Any]:
    """Reply with the request itself as the result."""
    request_id = request.get("id") if isinstance(request, dict) else None
    return {"result": request, "error": None, "id": request_id}


class LoopbackConnection(ConnectionInterface):
    """Connection whose peer is a Python callable"""

    def __init__(self, transport: "LoopbackTransport"):
        self._transport = transport
        self._decoder = JsonStreamDecoder()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, message: Any) -> None:
        if self._closed:
            raise SocketError("loopback connection is closed")

        request = decode_message(encode_message(message))
        self._transport.record(request)

        reply = self._transport.handler(request)
        if reply is None:
            return
        if isinstance(reply, (bytes, bytearray)):
            self._decoder.feed(bytes(reply))
        else:
            self._decoder.feed(encode_message(reply))

    def receive(self) -> Any:
        if self._closed:
            raise SocketError("loopback connection is closed")
        message = self._decoder.next_message()
        if message is INCOMPLETE:
            raise RpcTimeoutError("no reply pending on loopback connection")
        return message

    def close(self) -> None:
        self._closed = True


class LoopbackTransport(TransportInterface):
    """Transport whose target is an in-process handler"""

    def __init__(self, handler: Optional[LoopbackHandler] = None, name: str = "loopback"):
        self.handler = handler or echo_handler
        self.name = name
        self.sent: List[Any] = []
        self.connect_count = 0
        self._lock = threading.Lock()

    def record(self, request: Any) -> None:
        with self._lock:
            self.sent.append(request)

    def describe(self) -> str:
        return f"loopback:{self.name}"

    def connect(self) -> LoopbackConnection:
        with self._lock:
            self.connect_count += 1
        logger.info(f"Connected to {self.describe()}")
        return LoopbackConnection(self)
