"""Standardized error responses."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from beachwatch.common.config_loader import AppConfig
from beachwatch.common.errors import (
    BeachwatchError,
    FetchError,
    QueryValidationError,
    UpstreamClientError,
    UpstreamPayloadError,
    ValidationError,
)
from beachwatch.common.logging import get_logger, log_event

logger = get_logger("api")

# First match wins, so subclasses come before their bases.
ERROR_STATUS: tuple[tuple[type[BeachwatchError], int, str], ...] = (
    (QueryValidationError, 400, "Invalid query parameters"),
    (ValidationError, 502, "Invalid data format from upstream API"),
    (UpstreamClientError, 502, "Upstream API rejected the request"),
    (UpstreamPayloadError, 502, "Upstream API returned an unreadable payload"),
    (FetchError, 503, "Failed to fetch beach data"),
    (BeachwatchError, 500, "Internal error"),
)


class ErrorResponse(BaseModel):
    """Standard error response model."""
    error: str
    details: Optional[str] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "error": "Failed to fetch beach data",
                "details": "Retries exhausted after 4 attempts: Server error from upstream: HTTP 503",
            }
        }
    }


def classify_error(exc: BeachwatchError) -> tuple[int, str]:
    for error_type, status_code, message in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code, message
    return 500, "Internal error"


def error_response(status_code: int, error: str, details: str | None, config: AppConfig) -> JSONResponse:
    body = ErrorResponse(error=error, details=None if config.is_production else details)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def register_error_handlers(app: FastAPI, config: AppConfig) -> None:
    @app.exception_handler(BeachwatchError)
    async def handle_beachwatch_error(request: Request, exc: BeachwatchError) -> JSONResponse:
        status_code, message = classify_error(exc)
        # Client input errors stay out of the error log.
        level = logging.DEBUG if isinstance(exc, QueryValidationError) else logging.ERROR
        log_event(
            logger,
            f"{request.method} {request.url.path} failed: {exc}",
            level=level,
            component="api",
            event="REQUEST_FAIL",
            status="error",
            error_code=exc.error_code,
        )
        return error_response(status_code, message, str(exc), config)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = describe_validation_errors(exc.errors())
        log_event(
            logger,
            f"{request.method} {request.url.path} rejected: {details}",
            level=logging.DEBUG,
            component="api",
            event="REQUEST_FAIL",
            status="error",
            error_code=QueryValidationError.error_code,
        )
        return error_response(400, "Invalid query parameters", details, config)


def describe_validation_errors(errors) -> str:
    """Summarise framework validation errors by location and message; input values are left out."""
    parts = []
    for error in errors:
        location = ".".join(str(part) for part in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts)
