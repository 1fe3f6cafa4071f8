"""API middleware components."""

from neural_tts.api.middleware.error_handler import (
    http_exception_handler,
    register_exception_handlers,
    tts_exception_handler,
    validation_exception_handler,
)
from neural_tts.api.middleware.request_context import RequestContextMiddleware

__all__ = [
    "register_exception_handlers",
    "tts_exception_handler",
    "validation_exception_handler",
    "http_exception_handler",
    "RequestContextMiddleware",
]
