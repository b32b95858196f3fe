"""API middleware: CORS, request logging and error handling.

Starlette runs middleware last-added-first, so with the order used in
``main.py`` the request passes RequestLogging -> ErrorHandling -> route,
and RequestLoggingMiddleware sees the final status code even when
ErrorHandlingMiddleware replaced an exception with a JSON body.
"""

from __future__ import annotations

import time

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from src.api.schemas import ErrorResponse
from src.utils.errors import (
    EmbeddingError,
    KnowledgeAssistantError,
    LLMError,
    RetrievalError,
    VectorStoreError,
)
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

# Failures of a remote dependency rather than of this service.
_UPSTREAM_ERRORS = (EmbeddingError, VectorStoreError, RetrievalError, LLMError)


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware; all origins are allowed unless *allowed_origins* is given."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status code, and duration."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start = time.perf_counter()
        response: Response | None = None

        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            status_code = response.status_code if response else 500
            _logger.info(
                "http_request",
                method=request.method,
                path=str(request.url.path),
                status=status_code,
                duration_ms=duration_ms,
            )


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


def error_status(exc: Exception) -> int:
    """HTTP status for an exception escaping a route: 502 upstream, 500 otherwise."""
    return 502 if isinstance(exc, _UPSTREAM_ERRORS) else 500


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Turn escaping exceptions into sanitized :class:`ErrorResponse` bodies.

    Application errors keep their message; anything else is reported as
    ``InternalError`` with no detail.  Stack traces stay in the logs.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except KnowledgeAssistantError as exc:
            _logger.error(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                path=str(request.url.path),
            )
            body = ErrorResponse(error=type(exc).__name__, detail=exc.message)
            return JSONResponse(status_code=error_status(exc), content=body.model_dump())
        except Exception:
            _logger.exception("unhandled_error", path=str(request.url.path))
            body = ErrorResponse(error="InternalError")
            return JSONResponse(status_code=500, content=body.model_dump())
