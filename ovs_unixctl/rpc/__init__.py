"""
JSON-RPC Implementation Module

- messages: Request and Response types
- client: the request/response correlation client

Request-response semantics are independent of the underlying transport.
"""

from .client import Client
from .messages import Request, Response

__all__ = ["Client", "Request", "Response"]
