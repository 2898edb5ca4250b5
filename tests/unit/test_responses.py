"""Unit tests for the Response models."""

import json
import uuid

import pytest
from pydantic import ValidationError

from command_server.protocol import ErrorResponse, OkResponse, parse_response

REQUEST_ID = uuid.UUID("6f1c2b1e-3c1a-4f7e-9c55-2b8f0a7d1e11")


class TestOkResponse:
    """Test success responses."""

    def test_wire_shape(self):
        response = OkResponse(request_id=REQUEST_ID, response="pong")

        assert response.to_wire() == {
            "request_id": str(REQUEST_ID),
            "status": "ok",
            "response": "pong",
        }
        assert response.is_error() is False

    def test_null_response_is_kept(self):
        """A null result is still serialized explicitly."""
        data = json.loads(OkResponse(request_id=REQUEST_ID, response=None).model_dump_json())

        assert "response" in data
        assert data["response"] is None

    def test_request_id_required(self):
        with pytest.raises(ValidationError):
            OkResponse(response="pong")


class TestErrorResponse:
    """Test error responses."""

    def test_wire_shape(self):
        response = ErrorResponse(request_id=REQUEST_ID, error="division by zero")

        assert response.to_wire() == {
            "request_id": str(REQUEST_ID),
            "status": "error",
            "error": "division by zero",
        }
        assert response.is_error() is True

    def test_unknown_request_id_is_null(self):
        data = json.loads(ErrorResponse(error="request is not a valid JSON").model_dump_json())

        assert data["request_id"] is None


class TestParseResponse:
    """Test discriminated parsing by status."""

    def test_parse_ok(self):
        response = parse_response({"request_id": str(REQUEST_ID), "status": "ok", "response": [1]})

        assert isinstance(response, OkResponse)
        assert response.response == [1]

    def test_parse_error_from_bytes(self):
        response = parse_response(b'{"request_id": null, "status": "error", "error": "bad"}')

        assert isinstance(response, ErrorResponse)
        assert response.request_id is None
        assert response.error == "bad"

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError):
            parse_response({"request_id": str(REQUEST_ID), "status": "maybe"})
