"""Request/response envelope and error taxonomy of the MCP gateway."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ErrorCode(str, Enum):
    """Closed set of failure codes a dispatched request can produce."""

    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self]


_HTTP_STATUS = {
    ErrorCode.BAD_REQUEST: 400,
    ErrorCode.UNAUTHORIZED: 401,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.INTERNAL_ERROR: 500,
    ErrorCode.SERVICE_UNAVAILABLE: 503,
}


class ProtocolError(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: ErrorCode
    message: str
    details: Any | None = None


class ProtocolRequest(BaseModel):
    """A single inbound call, built by a transport binding."""

    model_config = ConfigDict(frozen=True)

    endpoint: str = Field(description="Literal endpoint path, e.g. '/events/upcoming'.")
    method: str = Field(default="GET", description="HTTP verb the caller used.")
    parameters: dict[str, Any] = Field(default_factory=dict)

    def param(self, name: str, default: Any = None) -> Any:
        return self.parameters.get(name, default)


class ProtocolResponse(BaseModel):
    """
    Uniform envelope returned for every dispatched request.

    Exactly one of ``data`` and ``error`` is meaningful: a successful response
    never carries an error and a failed one always does.
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    data: Any | None = None
    error: ProtocolError | None = None

    @model_validator(mode="after")
    def check_envelope(self) -> "ProtocolResponse":
        if self.success and self.error is not None:
            raise ValueError("a successful response cannot carry an error")
        if not self.success and self.error is None:
            raise ValueError("a failed response must carry an error")
        return self

    @classmethod
    def ok(cls, data: Any = None) -> "ProtocolResponse":
        return cls(success=True, data=data)

    @classmethod
    def fail(
        cls, code: ErrorCode, message: str, details: Any | None = None
    ) -> "ProtocolResponse":
        return cls(
            success=False,
            error=ProtocolError(code=code, message=message, details=details),
        )

    @property
    def http_status(self) -> int:
        if self.error is None:
            return 200
        return self.error.code.http_status

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class ProtocolException(Exception):
    """Raised inside handlers; converted to a failed envelope by the dispatcher."""

    code = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, details: Any | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_response(self) -> ProtocolResponse:
        return ProtocolResponse.fail(self.code, self.message, self.details)


class BadRequestError(ProtocolException):
    code = ErrorCode.BAD_REQUEST


class UnauthorizedError(ProtocolException):
    code = ErrorCode.UNAUTHORIZED


class NotFoundError(ProtocolException):
    code = ErrorCode.NOT_FOUND


class EndpointParameter(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: str
    description: str
    required: bool = False


class EndpointReturn(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    description: str


class EndpointDescriptor(BaseModel):
    """Static metadata describing one supported operation."""

    model_config = ConfigDict(frozen=True)

    path: str
    method: str
    description: str
    parameters: tuple[EndpointParameter, ...] = ()
    returns: EndpointReturn


class ServerInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    version: str
    endpoints: tuple[EndpointDescriptor, ...]

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")
