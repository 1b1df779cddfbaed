"""
Shared API Middleware
======================

Common middleware and exception handlers for the FastAPI application.

Every failure leaves the service as a JSON body with ``success: false``
and HTTP 500.
"""

import time
import uuid
from typing import Callable
from datetime import datetime, timezone

from fastapi import Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from starlette.middleware.base import BaseHTTPMiddleware
from fastapi.responses import JSONResponse

from core import ApplicationException
from shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Adds correlation ID to requests for tracing.

    The ID is taken from the incoming header when present and echoed back.
    Unhandled errors are turned into the 500 body here, inside the middleware,
    so that response carries the header too.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER, str(uuid.uuid4()))
        request.state.correlation_id = correlation_id

        try:
            response = await call_next(request)
        except Exception as e:
            response = await global_exception_handler(request, e)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs every request with its status code and latency."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = getattr(request.state, "correlation_id", "unknown")
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "Request failed",
                extra={
                    "correlation_id": correlation_id,
                    "method": request.method,
                    "url": str(request.url),
                    "error": str(e),
                    "response_time_ms": int((time.perf_counter() - start_time) * 1000)
                }
            )
            raise

        logger.info(
            "Request completed",
            extra={
                "correlation_id": correlation_id,
                "method": request.method,
                "url": str(request.url),
                "status_code": response.status_code,
                "response_time_ms": int((time.perf_counter() - start_time) * 1000)
            }
        )
        return response


async def application_exception_handler(
    request: Request, exc: ApplicationException
) -> JSONResponse:
    """Application errors that escaped a route become a 500 with their message."""
    logger.error(
        "Application error",
        extra={
            "correlation_id": getattr(request.state, "correlation_id", "unknown"),
            "path": request.url.path,
            "error_type": type(exc).__name__,
            "error": exc.message,
        }
    )
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": exc.message}
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed or mistyped request bodies are reported like any other failure."""
    details = jsonable_encoder(exc.errors())
    logger.error(
        "Invalid request body",
        extra={
            "correlation_id": getattr(request.state, "correlation_id", "unknown"),
            "path": request.url.path,
            "errors": details,
        }
    )
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Invalid request body", "details": details}
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Global exception handler for unhandled exceptions.

    Internal details are logged but not returned to the caller.
    """
    correlation_id = getattr(request.state, "correlation_id", "unknown")

    logger.error(
        "Unhandled error",
        exc_info=exc,
        extra={
            "correlation_id": correlation_id,
            "url": str(request.url),
            "method": request.method,
            "error_type": type(exc).__name__,
            "error": str(exc)
        }
    )

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
            "correlation_id": correlation_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    )
