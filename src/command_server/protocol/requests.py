"""Request definitions for the protocol layer.

A request is one JSON document sent by a client:

    {
        "request_id": "0b9c6a55-5d1f-4e55-9a55-0c1f1f5d7a10",
        "command": "calculate",
        "payload": {"operation": "add", "a": 1, "b": 2}
    }

The envelope (`request_id` and `command`) is validated up front. The
payload is only validated when the command runs, so a bad payload is
reported against the known request_id instead of as an anonymous error.
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, StrictFloat, ValidationError

from ..errors import CommandError
from ..evaluator import Operation


class CommandKind(str, Enum):
    """All supported command tags.

    Also used as the metrics key, so different echo payloads share one
    set of statistics.
    """

    PING = "ping"
    ECHO = "echo"
    TIME = "time"
    CALCULATE = "calculate"
    BATCH = "batch"


class Calculation(BaseModel):
    """Payload of a calculate command."""

    operation: Operation
    a: StrictFloat
    b: StrictFloat


class Request(BaseModel):
    """A command request from a client.

    `request_id` is chosen by the caller and echoed in every response to
    this request. The server does not check it for uniqueness.
    """

    model_config = ConfigDict(frozen=True)

    request_id: uuid.UUID
    command: CommandKind
    payload: Any = None

    @property
    def kind(self) -> CommandKind:
        return self.command

    def calculation(self) -> Calculation:
        """Get the typed calculate payload.

        Raises:
            CommandError: If the payload is missing or malformed
        """
        if self.payload is None:
            raise CommandError("missing `payload` field")
        try:
            return Calculation.model_validate(self.payload)
        except ValidationError as e:
            raise CommandError(f"invalid calculate payload: {describe_validation_error(e)}") from e

    def batch_items(self) -> list[Any]:
        """Get the raw batch elements, each still an undecoded document.

        Raises:
            CommandError: If the payload is not an array
        """
        if not isinstance(self.payload, list):
            raise CommandError("batch payload must be an array of requests")
        return list(self.payload)

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the JSON-compatible wire shape."""
        data = self.model_dump(mode="json")
        if self.payload is None and self.command != CommandKind.ECHO:
            del data["payload"]
        return data

    # Convenience factories

    @classmethod
    def create(
        cls,
        command: str | CommandKind,
        payload: Any = None,
        request_id: uuid.UUID | str | None = None,
    ) -> Request:
        """Factory method for creating requests."""
        return cls(
            request_id=request_id or uuid.uuid4(),
            command=command,
            payload=payload,
        )

    @classmethod
    def ping(cls, request_id: uuid.UUID | str | None = None) -> Request:
        return cls.create(CommandKind.PING, request_id=request_id)

    @classmethod
    def echo(cls, value: Any, request_id: uuid.UUID | str | None = None) -> Request:
        return cls.create(CommandKind.ECHO, value, request_id=request_id)

    @classmethod
    def time(cls, request_id: uuid.UUID | str | None = None) -> Request:
        return cls.create(CommandKind.TIME, request_id=request_id)

    @classmethod
    def calculate(
        cls,
        operation: str | Operation,
        a: float,
        b: float,
        request_id: uuid.UUID | str | None = None,
    ) -> Request:
        """Create a calculate request."""
        op = operation.value if isinstance(operation, Operation) else operation
        return cls.create(
            CommandKind.CALCULATE,
            {"operation": op, "a": a, "b": b},
            request_id=request_id,
        )

    @classmethod
    def batch(
        cls,
        items: list[Request],
        request_id: uuid.UUID | str | None = None,
    ) -> Request:
        """Create a batch request wrapping already-built requests."""
        return cls.create(
            CommandKind.BATCH,
            [item.to_wire() for item in items],
            request_id=request_id,
        )


def describe_validation_error(error: ValidationError) -> str:
    """Flatten a pydantic ValidationError into one line of text."""
    parts = []
    for detail in error.errors():
        location = ".".join(str(loc) for loc in detail["loc"])
        parts.append(f"{location}: {detail['msg']}" if location else detail["msg"])
    return "; ".join(parts)


def readable_request_id(document: Any) -> uuid.UUID | None:
    """Best-effort extraction of a request_id from an invalid document."""
    if not isinstance(document, dict):
        return None
    value = document.get("request_id")
    if not isinstance(value, str):
        return None
    try:
        return uuid.UUID(value)
    except ValueError:
        return None
