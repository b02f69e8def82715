"""
Transport interface

Defines the interface every transport (Unix socket, loopback) implements.
The RPC client only ever talks to these interfaces, so the underlying
mechanism can be swapped without touching request/response handling.
"""

import abc
from typing import Any


class ConnectionInterface(abc.ABC):
    """An established, stateful connection able to exchange JSON documents"""

    @abc.abstractmethod
    def send(self, message: Any) -> None:
        """Serialize one message and write it to the peer

        Args:
            message: JSON-serializable object or an object exposing ``to_dict``

        Raises:
            SerializeError: The message cannot be encoded
            SocketError: The write failed
            RpcTimeoutError: The write did not complete in time
        """
        pass

    @abc.abstractmethod
    def receive(self) -> Any:
        """Block until one complete JSON document is available and decode it

        Returns:
            The decoded document

        Raises:
            SerializeError: The peer sent malformed JSON
            SocketError: The read failed or the peer closed the connection
            RpcTimeoutError: No complete document arrived in time
        """
        pass

    @abc.abstractmethod
    def close(self) -> None:
        """Close the connection and release its resources"""
        pass


class TransportInterface(abc.ABC):
    """Knows how to reach a target and open connections to it"""

    @abc.abstractmethod
    def connect(self) -> ConnectionInterface:
        """Open a new connection to the target

        Raises:
            SocketError: The connection could not be established
            RpcTimeoutError: Connecting took longer than the configured timeout
        """
        pass

    @abc.abstractmethod
    def describe(self) -> str:
        """Human readable description of the target, used in logs"""
        pass

    def __str__(self) -> str:
        return self.describe()
