"""Wire codec: bytes <-> protocol models.

Decoding happens in two steps so that unparsable input and a malformed
envelope produce distinct messages. Neither step ever sees the payload
content beyond the generic JSON parse.

The JSON parser accepts nesting far deeper than the response serializer
can write back, so decoded documents are also checked against
MAX_DOCUMENT_DEPTH.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from ..errors import DecodeError
from .requests import Request, describe_validation_error
from .responses import ErrorResponse, OkResponse

logger = logging.getLogger(__name__)

# UTF-8 encoding for all JSON operations
ENCODING = "utf-8"

# Responses mirror the nesting of their request plus a couple of levels;
# pydantic-core refuses to serialize beyond 255.
MAX_DOCUMENT_DEPTH = 200


def document_depth(document: Any, limit: int | None = None) -> int:
    """Nesting depth of a decoded JSON value (scalars are 0).

    Stops early once `limit` is exceeded and returns the first depth past it.
    """
    deepest = 0
    stack: list[tuple[Any, int]] = [(document, 1)]
    while stack:
        value, depth = stack.pop()
        if isinstance(value, dict):
            children = value.values()
        elif isinstance(value, list):
            children = value
        else:
            continue
        deepest = max(deepest, depth)
        if limit is not None and deepest > limit:
            return deepest
        stack.extend((child, depth + 1) for child in children)
    return deepest


def decode(data: bytes, max_depth: int = MAX_DOCUMENT_DEPTH) -> Request:
    """Decode one request document.

    Raises:
        DecodeError: If the bytes are not JSON, nest deeper than `max_depth`,
            or are not a valid request envelope
    """
    try:
        document = json.loads(data)
    except (ValueError, RecursionError) as e:
        logger.debug(f"Received data is not a valid JSON: {e}")
        raise DecodeError("request is not a valid JSON") from e

    if document_depth(document, max_depth) > max_depth:
        raise DecodeError(f"request nesting exceeds maximum depth of {max_depth}")

    try:
        return Request.model_validate(document)
    except ValidationError as e:
        logger.debug(f"Received data is not a valid request: {e}")
        raise DecodeError(f"invalid request: {describe_validation_error(e)}") from e


def encode(response: OkResponse | ErrorResponse) -> bytes:
    """Encode a response as UTF-8 JSON.

    Non-finite floats are written as null. Payloads within
    MAX_DOCUMENT_DEPTH always serialize.

    Raises:
        PydanticSerializationError: If the response nests too deeply
    """
    return response.model_dump_json().encode(ENCODING)


def undecodable(error: Exception) -> ErrorResponse:
    """Build the response for input that never became a Request."""
    return ErrorResponse(request_id=None, error=str(error))
