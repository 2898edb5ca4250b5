"""Transport-agnostic protocol layer.

Defines the request/response protocol shared by every transport:
- Requests: client -> server, one JSON document with a caller-chosen request_id
- Responses: server -> client, exactly one per request, echoing the request_id
- Dispatcher: resolves a decoded request into its response

The codec turns raw bytes into requests and responses back into bytes.
"""

from .codec import decode, encode, undecodable
from .dispatcher import CommandDispatcher
from .requests import Calculation, CommandKind, Request
from .responses import ErrorResponse, OkResponse, Response, parse_response

__all__ = [
    "Calculation",
    "CommandDispatcher",
    "CommandKind",
    "ErrorResponse",
    "OkResponse",
    "Request",
    "Response",
    "decode",
    "encode",
    "parse_response",
    "undecodable",
]
