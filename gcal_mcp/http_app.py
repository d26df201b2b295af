"""HTTP binding: maps Starlette requests onto the protocol dispatcher."""

from __future__ import annotations

import contextlib
import json
import time
from datetime import datetime, timezone
from typing import Any, AsyncIterator

from loguru import logger
from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from .bootstrap import Services, report_auth_status
from .protocol import ErrorCode, ProtocolRequest, ProtocolResponse
from .registry import AUTH_CALLBACK

MCP_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


def _envelope(response: ProtocolResponse, status_code: int | None = None) -> JSONResponse:
    return JSONResponse(
        response.to_dict(),
        status_code=status_code if status_code is not None else response.http_status,
    )


def _bad_request(message: str) -> JSONResponse:
    return _envelope(ProtocolResponse.fail(ErrorCode.BAD_REQUEST, message))


async def _read_json_object(request: Request) -> dict[str, Any]:
    """Decode the body as a JSON object; an empty body reads as ``{}``."""
    body = await request.body()
    if not body.strip():
        return {}
    payload = json.loads(body)
    if not isinstance(payload, dict):
        raise ValueError("Request body must be a JSON object")
    return payload


async def _log_requests(request: Request, call_next: Any) -> Response:
    logger.debug(f"{request.method} {request.url}")
    return await call_next(request)


def create_app(services: Services) -> Starlette:
    """Return the Starlette app exposing the protocol over plain HTTP."""
    settings = services.settings
    dispatcher = services.dispatcher
    started = time.monotonic()

    async def server_info(request: Request) -> JSONResponse:
        return JSONResponse(dispatcher.get_server_info().to_dict())

    async def handle_request(request: Request) -> JSONResponse:
        if request.method == "GET":
            parameters: dict[str, Any] = dict(request.query_params)
        else:
            try:
                parameters = await _read_json_object(request)
            except ValueError as exc:
                return _bad_request(f"Invalid JSON body: {exc}")

        response = await dispatcher.process_request(
            ProtocolRequest(
                endpoint=f"/{request.path_params['endpoint']}",
                method=request.method,
                parameters=parameters,
            )
        )
        return _envelope(response)

    async def handle_auth_callback(request: Request) -> JSONResponse:
        code = request.query_params.get("code")
        if not code:
            return _bad_request("Authorization code is required")

        response = await dispatcher.process_request(
            ProtocolRequest(endpoint=AUTH_CALLBACK, method="POST", parameters={"code": code})
        )
        return _envelope(response, status_code=200 if response.success else 400)

    async def handle_direct_auth(request: Request) -> JSONResponse:
        try:
            credentials = await _read_json_object(request)
        except ValueError as exc:
            return _bad_request(f"Invalid JSON body: {exc}")

        email = credentials.get("email")
        password = credentials.get("password")
        cookies = credentials.get("cookies")
        if not email and not cookies:
            return _bad_request("Email or cookies are required for direct authentication")

        if cookies:
            success = await services.direct.authenticate_with_cookies(cookies)
        elif email and password:
            success = await services.direct.authenticate_with_credentials(email, password)
        else:
            return _bad_request("Invalid authentication parameters")

        if not success:
            return _envelope(
                ProtocolResponse.fail(ErrorCode.UNAUTHORIZED, "Authentication failed")
            )
        return JSONResponse(
            {"success": True, "data": {"message": "Direct authentication successful"}}
        )

    async def health(request: Request) -> JSONResponse:
        return JSONResponse(
            {
                "status": "ok",
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "uptime": round(time.monotonic() - started, 3),
                "version": settings.server_version,
            }
        )

    async def http_error(request: Request, exc: HTTPException) -> JSONResponse:
        if exc.status_code == 404:
            return _envelope(
                ProtocolResponse.fail(
                    ErrorCode.NOT_FOUND, f"Route {request.url.path} not found"
                )
            )
        return JSONResponse(
            {
                "success": False,
                "error": {"code": str(exc.status_code), "message": exc.detail},
            },
            status_code=exc.status_code,
        )

    async def server_error(request: Request, exc: Exception) -> JSONResponse:
        logger.opt(exception=exc).error(
            f"Unhandled error on {request.method} {request.url.path}"
        )
        details = str(exc) if settings.is_development else None
        return _envelope(
            ProtocolResponse.fail(
                ErrorCode.INTERNAL_ERROR, "Internal server error", details
            )
        )

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        logger.info(f"MCP server starting in {settings.environment} mode")
        logger.info(f"Server ID: {settings.server_id}")
        logger.info(f"Server Name: {settings.server_name}")
        await report_auth_status(services)
        try:
            yield
        finally:
            logger.info("MCP server stopped")

    middleware = []
    if settings.is_development:
        middleware.append(Middleware(BaseHTTPMiddleware, dispatch=_log_requests))

    return Starlette(
        routes=[
            Route("/mcp/info", server_info, methods=["GET"]),
            Route("/mcp/{endpoint:path}", handle_request, methods=MCP_METHODS),
            Route("/auth/callback", handle_auth_callback, methods=["GET"]),
            Route("/auth/direct", handle_direct_auth, methods=["POST"]),
            Route("/health", health, methods=["GET"]),
        ],
        middleware=middleware,
        exception_handlers={HTTPException: http_error, Exception: server_error},
        lifespan=lifespan,
    )
