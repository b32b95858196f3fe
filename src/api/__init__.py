"""Knowledge-assistant API layer: routes, schemas and middleware."""

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router
from src.api.schemas import (
    AskRequest,
    AskResponse,
    ErrorResponse,
    ForgetDocumentResponse,
    HealthResponse,
    ProcessedFilesResponse,
    ProcessResponse,
    SearchRequest,
    SearchResponse,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
    "AskRequest",
    "AskResponse",
    "ErrorResponse",
    "ForgetDocumentResponse",
    "HealthResponse",
    "ProcessedFilesResponse",
    "ProcessResponse",
    "SearchRequest",
    "SearchResponse",
]
