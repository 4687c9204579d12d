"""
Centralized error handling utilities for the application.
This module maps devassist exceptions to consistent HTTP and SSE errors.
"""

import json
from typing import Dict, Optional, Tuple

from fastapi.responses import JSONResponse
from starlette.requests import Request

from devassist.utils.custom_exceptions import (
    ArchiveError, ExchangeInProgressError, ImportFormatError,
    InsufficientProjectsError, MissingCredentialError, NoActiveProjectError,
    NoFilesLoadedError, ProjectNotFoundError, StoreUnavailableError, SwitchInProgressError,
)
from devassist.utils.logging_utils import logger
from devassist.utils.throttle_handler import is_retryable_error

# Error type constants
ERROR_CONFIG = "config_error"
ERROR_NOT_FOUND = "not_found"
ERROR_CONFLICT = "conflict"
ERROR_VALIDATION = "validation_error"
ERROR_QUOTA = "quota_exceeded"
ERROR_STORAGE = "storage_error"
ERROR_UPSTREAM = "upstream_error"

# (error type, status code) per exception class, most specific first
_ERROR_MAP = [
    (MissingCredentialError, ERROR_CONFIG, 428),
    (ProjectNotFoundError, ERROR_NOT_FOUND, 404),
    (NoActiveProjectError, ERROR_CONFLICT, 409),
    (ExchangeInProgressError, ERROR_CONFLICT, 409),
    (SwitchInProgressError, ERROR_CONFLICT, 409),
    (InsufficientProjectsError, ERROR_VALIDATION, 422),
    (ImportFormatError, ERROR_VALIDATION, 422),
    (NoFilesLoadedError, ERROR_VALIDATION, 422),
    (ArchiveError, ERROR_VALIDATION, 422),
    (StoreUnavailableError, ERROR_STORAGE, 503),
]


def classify_error(exc: Exception) -> Tuple[str, int]:
    """Return the error type and HTTP status for an exception."""
    for exc_type, error_type, status_code in _ERROR_MAP:
        if isinstance(exc, exc_type):
            return error_type, status_code
    if is_retryable_error(exc):
        return ERROR_QUOTA, 429
    return ERROR_UPSTREAM, 502


def create_json_response(
    error_type: str, detail: str, status_code: int = 500, headers: Optional[Dict[str, str]] = None
) -> JSONResponse:
    content = {"error": {"type": error_type, "detail": detail}}
    return JSONResponse(content=content, status_code=status_code, headers=headers)


def create_sse_error_event(exc: Exception) -> str:
    """Format an exception raised mid-stream as a server-sent event."""
    error_type, _ = classify_error(exc)
    return f"data: {json.dumps({'type': 'error', 'error': error_type, 'content': str(exc)})}\n\n"


async def handle_request_exception(request: Request, exc: Exception) -> JSONResponse:
    """Exception handler registered for DevAssistError and upstream failures."""
    error_type, status_code = classify_error(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({status_code}): {exc}")

    headers = None
    if isinstance(exc, MissingCredentialError):
        headers = {"Link": "</api/v1/settings>; rel=\"settings\""}
    return create_json_response(error_type, str(exc), status_code, headers)
