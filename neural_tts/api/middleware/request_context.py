"""Request context middleware.

Extracts or generates an X-Request-ID, binds it to the logging context for
everything the request triggers, and echoes it in the response.
"""

import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from neural_tts.utils.logging import LogContext, get_logger

logger = get_logger("api")


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Sets ``request_id`` in the log context and times each request."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        start = time.perf_counter()

        with LogContext(request_id=request_id, method=request.method, path=request.url.path):
            logger.debug("Request started")
            try:
                response = await call_next(request)
            except Exception as exc:
                logger.error(
                    "Request failed with exception",
                    error_type=type(exc).__name__,
                    duration_ms=round((time.perf_counter() - start) * 1000, 2),
                )
                raise

            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            response.headers["X-Request-ID"] = request_id
            response.headers["X-Request-Duration-Ms"] = f"{duration_ms:.2f}"

            # Streams are logged when they start, not when they end
            logger.info(
                "Request completed",
                status_code=response.status_code,
                duration_ms=duration_ms,
            )
            return response
