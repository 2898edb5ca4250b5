"""Command server - JSON request/response commands over a raw TCP stream.

Components:
- protocol: request/response models, codec and the CommandDispatcher
- evaluator: arithmetic for the calculate command
- metrics: shared per-command timing statistics
- server: asyncio TCP front end, one task per connection
"""

from .config import ServerConfig
from .errors import CommandError, CommandServerError, DecodeError, DivisionByZeroError
from .evaluator import Operation, evaluate
from .metrics import CommandStats, MetricsAggregator, MetricsSnapshot
from .protocol import (
    CommandDispatcher,
    CommandKind,
    ErrorResponse,
    OkResponse,
    Request,
    Response,
)
from .server import CommandServer

__version__ = "0.1.0"

__all__ = [
    "CommandDispatcher",
    "CommandError",
    "CommandKind",
    "CommandServer",
    "CommandServerError",
    "CommandStats",
    "DecodeError",
    "DivisionByZeroError",
    "ErrorResponse",
    "MetricsAggregator",
    "MetricsSnapshot",
    "OkResponse",
    "Operation",
    "Request",
    "Response",
    "ServerConfig",
    "evaluate",
]
