"""
JSON serialization tools

Encodes messages for the wire and reassembles JSON documents from a byte
stream. unixctl peers do not delimit messages: a document may arrive split
across several reads, and several documents may arrive in one read.
"""

import json
import re
from typing import Any, List

from ovs_unixctl.errors import SerializeError

# Largest single document accepted from a peer (16 MiB)
MAX_MESSAGE_SIZE = 16 * 1024 * 1024

# Returned by JsonStreamDecoder.next_message when more bytes are needed
INCOMPLETE = object()

_WHITESPACE = b" \t\r\n"
_SCALAR_END = re.compile(rb"[ \t\r\n{\[\"]")
_NUMBER_PREFIX = re.compile(rb"-?[0-9][-+0-9.eE]*\Z|-\Z")
_LITERALS = (b"true", b"false", b"null")

_QUOTE = ord('"')
_BACKSLASH = ord("\\")
_OPENERS = (ord("{"), ord("["))
_CLOSERS = (ord("}"), ord("]"))


def encode_message(message: Any) -> bytes:
    """Serialize one message to UTF-8 JSON bytes

    Args:
        message: JSON-serializable object (or an object exposing ``to_dict``)

    Returns:
        bytes: Encoded document, without any trailing delimiter

    Raises:
        SerializeError: The message is not JSON serializable
    """
    if hasattr(message, "to_dict"):
        message = message.to_dict()
    try:
        return json.dumps(message, separators=(",", ":")).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise SerializeError(str(e)) from e


def decode_message(data: bytes) -> Any:
    """Deserialize exactly one complete JSON document

    Raises:
        SerializeError: The data is not valid UTF-8 JSON, or is nested
            deeper than the parser supports
    """
    try:
        return json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise SerializeError(str(e)) from e
    except RecursionError as e:
        raise SerializeError("document nested too deeply") from e


def _check_scalar_prefix(token: bytes) -> None:
    # Fail as soon as a bare token can no longer become a number or literal,
    # rather than waiting for a delimiter that may never come
    if any(literal.startswith(token) for literal in _LITERALS):
        return
    if _NUMBER_PREFIX.match(token):
        return
    raise SerializeError(f"invalid JSON token: {token[:32]!r}")


class JsonStreamDecoder:
    """Incremental decoder turning a byte stream into JSON documents.

    Document boundaries are found by tracking bracket depth outside of string
    literals, so a document is only handed to the JSON parser once it is
    complete. UTF-8 continuation bytes never collide with the ASCII
    delimiters, which lets the scan work on raw bytes.
    """

    def __init__(self, max_size: int = MAX_MESSAGE_SIZE):
        self.max_size = max_size
        self._buffer = bytearray()
        self._reset_scan()

    def _reset_scan(self) -> None:
        self._pos = 0
        self._depth = 0
        self._in_string = False
        self._escape = False

    @property
    def pending(self) -> int:
        """Number of buffered bytes not yet consumed by a document."""
        return len(self._buffer)

    def feed(self, data: bytes) -> None:
        self._buffer.extend(data)

    def next_message(self) -> Any:
        """Pop the next complete document from the buffer

        Returns:
            The decoded document, or INCOMPLETE when more data is needed

        Raises:
            SerializeError: The document is malformed or too large
        """
        if self._pos == 0:
            start = 0
            while start < len(self._buffer) and self._buffer[start] in _WHITESPACE:
                start += 1
            del self._buffer[:start]
            if not self._buffer:
                return INCOMPLETE
            if self._buffer[0] not in _OPENERS and self._buffer[0] != _QUOTE:
                return self._next_scalar()

        end = self._scan()
        if end is None:
            self._check_size()
            return INCOMPLETE

        document = bytes(self._buffer[:end])
        del self._buffer[:end]
        self._reset_scan()
        return decode_message(document)

    def _scan(self):
        buf = self._buffer
        for i in range(self._pos, len(buf)):
            c = buf[i]
            if self._in_string:
                if self._escape:
                    self._escape = False
                elif c == _BACKSLASH:
                    self._escape = True
                elif c == _QUOTE:
                    self._in_string = False
                    if self._depth == 0:
                        return i + 1
            elif c == _QUOTE:
                self._in_string = True
            elif c in _OPENERS:
                self._depth += 1
            elif c in _CLOSERS:
                self._depth -= 1
                if self._depth <= 0:
                    return i + 1
        self._pos = len(buf)
        return None

    def _next_scalar(self) -> Any:
        # Bare numbers and literals end at the next delimiter
        match = _SCALAR_END.search(self._buffer)
        end = match.start() if match is not None else len(self._buffer)
        token = bytes(self._buffer[:end])
        _check_scalar_prefix(token)
        if match is None:
            self._check_size()
            return INCOMPLETE
        del self._buffer[:end]
        return decode_message(token)

    def _check_size(self) -> None:
        if len(self._buffer) > self.max_size:
            raise SerializeError(
                f"message exceeds maximum size of {self.max_size} bytes"
            )

    def drain(self) -> List[Any]:
        """Pop every complete document currently buffered."""
        messages = []
        while True:
            message = self.next_message()
            if message is INCOMPLETE:
                return messages
            messages.append(message)
