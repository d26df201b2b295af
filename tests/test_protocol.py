"""Tests for the response envelope and error taxonomy."""

import pytest
from pydantic import ValidationError

from gcal_mcp.protocol import (
    BadRequestError,
    ErrorCode,
    NotFoundError,
    ProtocolError,
    ProtocolRequest,
    ProtocolResponse,
    UnauthorizedError,
)


class TestProtocolResponse:
    """Test the success/error envelope invariant."""

    def test_ok_carries_data_without_error(self):
        response = ProtocolResponse.ok({"items": []})

        assert response.success is True
        assert response.error is None
        assert response.to_dict() == {"success": True, "data": {"items": []}}
        assert response.http_status == 200

    def test_fail_carries_error_without_data(self):
        response = ProtocolResponse.fail(
            ErrorCode.NOT_FOUND, "Endpoint /nope not found"
        )

        assert response.success is False
        assert response.to_dict() == {
            "success": False,
            "error": {"code": "NOT_FOUND", "message": "Endpoint /nope not found"},
        }
        assert response.http_status == 404

    def test_fail_keeps_details(self):
        response = ProtocolResponse.fail(
            ErrorCode.INTERNAL_ERROR, "Failed to fetch calendar list", "boom"
        )

        assert response.to_dict()["error"]["details"] == "boom"

    def test_success_with_error_is_rejected(self):
        error = ProtocolError(code=ErrorCode.BAD_REQUEST, message="bad")

        with pytest.raises(ValidationError):
            ProtocolResponse(success=True, error=error)

    def test_failure_without_error_is_rejected(self):
        with pytest.raises(ValidationError):
            ProtocolResponse(success=False)

    def test_success_with_null_data_is_allowed(self):
        assert ProtocolResponse.ok(None).to_dict() == {"success": True}


class TestErrorCode:
    @pytest.mark.parametrize(
        ("code", "status"),
        [
            (ErrorCode.BAD_REQUEST, 400),
            (ErrorCode.UNAUTHORIZED, 401),
            (ErrorCode.FORBIDDEN, 403),
            (ErrorCode.NOT_FOUND, 404),
            (ErrorCode.INTERNAL_ERROR, 500),
            (ErrorCode.SERVICE_UNAVAILABLE, 503),
        ],
    )
    def test_http_status(self, code, status):
        assert code.http_status == status

    def test_exceptions_map_to_codes(self):
        assert BadRequestError("x").to_response().error.code is ErrorCode.BAD_REQUEST
        assert UnauthorizedError("x").to_response().error.code is ErrorCode.UNAUTHORIZED
        assert NotFoundError("x").to_response().error.code is ErrorCode.NOT_FOUND


class TestProtocolRequest:
    def test_defaults(self):
        request = ProtocolRequest(endpoint="/calendars")

        assert request.method == "GET"
        assert request.parameters == {}
        assert request.param("missing", "fallback") == "fallback"

    def test_is_immutable(self):
        request = ProtocolRequest(endpoint="/calendars")

        with pytest.raises(ValidationError):
            request.endpoint = "/events"
