"""Exception handlers mapping errors to structured JSON.

Provides:
- Handler for NeuralTTSError returning its code, message and details
- Handler for RequestValidationError (Pydantic) returning friendly messages
- Handler for generic Exception logging full traceback, returning safe 500
- Response format: {"error": {"code": "...", "message": "...", "details": {...}, "request_id": "..."}}
"""

import traceback
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from neural_tts.exceptions import BusyError, NeuralTTSError
from neural_tts.utils.logging import get_log_context, get_logger

logger = get_logger("api")

VALIDATION_ERROR_CODE = "TTS_E010"


def _get_request_id() -> str | None:
    return get_log_context().get("request_id")


def _build_error_response(
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
    request_id: str | None = None,
) -> dict[str, Any]:
    """Build standardized error response structure."""
    error_body: dict[str, Any] = {
        "code": code,
        "message": message,
    }
    if details:
        error_body["details"] = details
    if request_id:
        error_body["request_id"] = request_id
    return {"error": error_body}


def _headers(request_id: str | None) -> dict[str, str]:
    return {"X-Request-ID": request_id} if request_id else {}


async def tts_exception_handler(
    request: Request,
    exc: NeuralTTSError,
) -> JSONResponse:
    """Handle NeuralTTSError and subclasses."""
    request_id = _get_request_id()

    log = logger.error if exc.http_status >= 500 else logger.warning
    log(
        "TTS error",
        error_code=exc.error_code,
        error_message=exc.message,
        http_status=exc.http_status,
        details=exc.details,
        path=request.url.path,
    )

    headers = _headers(request_id)
    if isinstance(exc, BusyError):
        headers["Retry-After"] = "1"

    return JSONResponse(
        status_code=exc.http_status,
        content=_build_error_response(
            code=exc.error_code,
            message=exc.message,
            details=exc.details,
            request_id=request_id,
        ),
        headers=headers,
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Handle Pydantic validation errors with friendly messages."""
    request_id = _get_request_id()

    errors: list[dict[str, Any]] = []
    for error in exc.errors():
        loc = error.get("loc", ())
        field_parts = [str(part) for part in loc if part != "body"]
        field = ".".join(field_parts) if field_parts else "unknown"
        errors.append({
            "field": field,
            "message": error.get("msg", "Invalid value"),
            "type": error.get("type", "value_error"),
        })

    logger.warning(
        "Validation error",
        path=request.url.path,
        error_count=len(errors),
        fields=[e["field"] for e in errors],
    )

    if len(errors) == 1:
        message = f"Validation error: {errors[0]['message']} (field: {errors[0]['field']})"
    else:
        message = f"Validation failed with {len(errors)} errors"

    return JSONResponse(
        status_code=400,
        content=_build_error_response(
            code=VALIDATION_ERROR_CODE,
            message=message,
            details={"validation_errors": errors},
            request_id=request_id,
        ),
        headers=_headers(request_id),
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """Handle Starlette HTTP exceptions (unknown routes, wrong methods)."""
    request_id = _get_request_id()

    code_map = {
        404: "TTS_E020",
        405: "TTS_E021",
    }

    logger.warning(
        "HTTP exception",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=_build_error_response(
            code=code_map.get(exc.status_code, "TTS_E000"),
            message=str(exc.detail) if exc.detail else "An error occurred",
            request_id=request_id,
        ),
        headers=_headers(request_id),
    )


def make_generic_exception_handler(debug: bool):
    """Build the catch-all handler; ``debug`` includes the traceback."""

    async def generic_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        request_id = _get_request_id()

        logger.exception(
            "Unhandled exception",
            error_type=type(exc).__name__,
            error=str(exc),
            path=request.url.path,
            method=request.method,
        )

        if debug:
            content = _build_error_response(
                code="TTS_E000",
                message=str(exc),
                details={
                    "type": type(exc).__name__,
                    "traceback": traceback.format_exc().split("\n"),
                },
                request_id=request_id,
            )
        else:
            content = _build_error_response(
                code="TTS_E000",
                message="An unexpected error occurred. Please try again later.",
                request_id=request_id,
            )

        return JSONResponse(status_code=500, content=content, headers=_headers(request_id))

    return generic_exception_handler


def register_exception_handlers(app: FastAPI, debug: bool = False) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(NeuralTTSError, tts_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, make_generic_exception_handler(debug))
