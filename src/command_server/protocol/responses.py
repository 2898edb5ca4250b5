"""Response definitions for the protocol layer.

Every request produces exactly one response. The `status` field is the
discriminant between the two shapes:

    {"request_id": "<uuid>", "status": "ok", "response": <any JSON>}
    {"request_id": "<uuid or null>", "status": "error", "error": "<message>"}
"""

from __future__ import annotations

import uuid
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter


class OkResponse(BaseModel):
    """Successful outcome of a command."""

    request_id: uuid.UUID
    status: Literal["ok"] = "ok"
    response: Any = None

    def is_error(self) -> bool:
        return False

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class ErrorResponse(BaseModel):
    """Failed outcome of a command.

    `request_id` is None only when it could not be read from the input.
    """

    request_id: uuid.UUID | None = None
    status: Literal["error"] = "error"
    error: str

    def is_error(self) -> bool:
        return True

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


Response = Annotated[OkResponse | ErrorResponse, Field(discriminator="status")]

response_adapter: TypeAdapter[OkResponse | ErrorResponse] = TypeAdapter(Response)


def parse_response(data: dict[str, Any] | str | bytes) -> OkResponse | ErrorResponse:
    """Parse a response document received from a server."""
    if isinstance(data, dict):
        return response_adapter.validate_python(data)
    return response_adapter.validate_json(data)
