from __future__ import annotations

import logging
import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from gateway.errors import GatewayError

logger = logging.getLogger(__name__)

INVALID_BODY_MESSAGE = "Invalid request body"


def _request_id(request: Request) -> str:
    return request.headers.get("X-Request-ID") or str(uuid.uuid4())


def register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers for the FastAPI application."""

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
        request_id = _request_id(request)
        status = getattr(exc, "http_status", 500)
        code = getattr(exc, "code", "gateway_error")
        message = getattr(exc, "message", str(exc))

        logger.debug(
            "Gateway error",
            extra={"code": code, "status": status, "request_id": request_id},
        )
        return JSONResponse(
            status_code=status,
            content={"error": message, "code": code},
            headers={"X-Request-ID": request_id},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        request_id = _request_id(request)
        return JSONResponse(
            status_code=400,
            content={"error": INVALID_BODY_MESSAGE, "code": "invalid_body"},
            headers={"X-Request-ID": request_id},
        )
