"""
JSON-RPC message types

unixctl speaks a JSON-RPC 1.0 style dialect: requests carry a method name, a
list of string parameters and an integer id; responses carry a result, an
error string and the id of the request they answer.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, TypeVar

from ovs_unixctl.errors import ProtocolError

R = TypeVar("R")


@dataclass
class Request:
    """A JSON-RPC request."""
    # Name of the command
    method: str
    # Command arguments, always strings on the wire
    params: List[str] = field(default_factory=list)
    # Identifier echoed back in the response
    id: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "method": self.method,
            "params": [str(p) for p in self.params],
            "id": self.id,
        }


@dataclass
class Response(Generic[R]):
    """A JSON-RPC response.

    ``result`` and ``error`` are not mutually exclusive on the wire. A
    response carrying an error is a failed command even when a result is
    present too.
    """
    result: Optional[R] = None
    error: Optional[str] = None
    id: Optional[int] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_dict(self) -> Dict[str, Any]:
        return {"result": self.result, "error": self.error, "id": self.id}

    @classmethod
    def from_dict(cls, data: Any) -> "Response":
        """Build a response from a decoded JSON document

        Raises:
            ProtocolError: The document is not a JSON-RPC response object
        """
        if not isinstance(data, dict):
            raise ProtocolError(f"response must be an object, got {type(data).__name__}")

        error = data.get("error")
        if error is not None and not isinstance(error, str):
            # Some daemons send structured errors; keep their text form
            error = str(error)

        response_id = data.get("id")
        if response_id is not None and (
            isinstance(response_id, bool) or not isinstance(response_id, int)
        ):
            raise ProtocolError(f"invalid response id: {response_id!r}")

        return cls(result=data.get("result"), error=error, id=response_id)
