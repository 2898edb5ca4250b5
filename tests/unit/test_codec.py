"""Unit tests for the wire codec."""

import json
import math
import uuid

import pytest
from pydantic_core import PydanticSerializationError

from command_server.errors import DecodeError
from command_server.protocol import CommandKind, ErrorResponse, OkResponse, decode, encode, undecodable
from command_server.protocol.codec import MAX_DOCUMENT_DEPTH, document_depth

REQUEST_ID = "0b9c6a55-5d1f-4e55-9a55-0c1f1f5d7a10"


class TestDecode:
    """Test bytes -> Request."""

    def test_decode_ping(self):
        request = decode(json.dumps({"request_id": REQUEST_ID, "command": "ping"}).encode())

        assert request.kind == CommandKind.PING
        assert request.request_id == uuid.UUID(REQUEST_ID)

    def test_decode_utf8_payload(self):
        data = json.dumps(
            {"request_id": REQUEST_ID, "command": "echo", "payload": "héllo 世界"},
            ensure_ascii=False,
        ).encode("utf-8")

        assert decode(data).payload == "héllo 世界"

    @pytest.mark.parametrize("data", [b"", b"{", b"not json", b"\xff\xfe\x00"])
    def test_invalid_json(self, data):
        with pytest.raises(DecodeError, match="request is not a valid JSON"):
            decode(data)

    @pytest.mark.parametrize(
        "document",
        [
            {"command": "ping"},
            {"request_id": "123", "command": "ping"},
            {"request_id": REQUEST_ID, "command": "unknown"},
            [],
            "ping",
        ],
    )
    def test_invalid_envelope(self, document):
        with pytest.raises(DecodeError, match="invalid request"):
            decode(json.dumps(document).encode())


class TestEncode:
    """Test Response -> bytes."""

    def test_encode_ok(self):
        response = OkResponse(request_id=uuid.UUID(REQUEST_ID), response={"result": 0.30000000000000004})

        assert json.loads(encode(response)) == {
            "request_id": REQUEST_ID,
            "status": "ok",
            "response": {"result": 0.30000000000000004},
        }

    def test_encode_non_finite_floats(self):
        """Infinity and NaN results still produce valid JSON."""
        response = OkResponse(request_id=uuid.UUID(REQUEST_ID), response={"result": math.inf, "nan": math.nan})

        data = json.loads(encode(response))
        assert data["response"] == {"result": None, "nan": None}

    def test_encode_nested_batch(self):
        inner = OkResponse(request_id=uuid.UUID(REQUEST_ID), response="pong").to_wire()
        outer = OkResponse(request_id=uuid.UUID(REQUEST_ID), response=[inner, [inner]])

        assert json.loads(encode(outer))["response"][1][0]["response"] == "pong"


class TestUndecodable:
    """Test the error response for input that never became a request."""

    def test_request_id_is_null(self):
        response = undecodable(DecodeError("request is not a valid JSON"))

        assert isinstance(response, ErrorResponse)
        assert response.request_id is None
        assert json.loads(encode(response)) == {
            "request_id": None,
            "status": "error",
            "error": "request is not a valid JSON",
        }


# =============================================================================
# Tests: Nesting Depth
# =============================================================================


def nested_list(depth: int) -> list:
    """Build a list nested `depth` levels deep."""
    value: list = []
    for _ in range(depth - 1):
        value = [value]
    return value


def deep_echo_document(payload_depth: int) -> bytes:
    """An echo request whose payload nests `payload_depth` lists deep."""
    payload = "[" * payload_depth + "]" * payload_depth
    return f'{{"request_id": "{REQUEST_ID}", "command": "echo", "payload": {payload}}}'.encode()


class TestDocumentDepth:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(1, 0), ("x", 0), (None, 0), ([], 1), ({}, 1), ({"a": [1, {"b": []}]}, 3), ([[], [[[]]]], 4)],
    )
    def test_depth(self, value, expected):
        assert document_depth(value) == expected

    def test_stops_past_limit(self):
        assert document_depth(nested_list(1000), limit=10) == 11


class TestDepthLimit:
    """Decoded documents must stay within what encode can write back."""

    def test_deep_echo_rejected(self):
        with pytest.raises(DecodeError, match=f"maximum depth of {MAX_DOCUMENT_DEPTH}"):
            decode(deep_echo_document(300))

    def test_custom_limit(self):
        with pytest.raises(DecodeError, match="maximum depth of 5"):
            decode(deep_echo_document(5), max_depth=5)

    def test_echo_at_limit_round_trips(self):
        """The deepest accepted request still produces an encodable response."""
        request = decode(deep_echo_document(MAX_DOCUMENT_DEPTH - 1))
        response = OkResponse(request_id=request.request_id, response=request.payload)

        data = json.loads(encode(response))

        assert document_depth(data["response"]) == MAX_DOCUMENT_DEPTH - 1

    def test_encode_beyond_serializer_depth_raises(self):
        response = OkResponse(request_id=uuid.UUID(REQUEST_ID), response=nested_list(300))

        with pytest.raises(PydanticSerializationError):
            encode(response)
