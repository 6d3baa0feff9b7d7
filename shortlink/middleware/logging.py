"""
Request logging middleware for FastAPI using Loguru.

Every request gets a request id (taken from the X-Request-ID header or
generated) that is bound to the loguru context for the duration of the
request and echoed back on the response.
"""

import time
import uuid

from fastapi import Request, Response
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log one line per request with method, path, status and duration."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        start_time = time.perf_counter()

        with logger.contextualize(request_id=request_id):
            try:
                response = await call_next(request)
            except Exception:
                duration_ms = (time.perf_counter() - start_time) * 1000
                logger.bind(duration_ms=round(duration_ms, 2)).exception(
                    f"{request.method} {request.url.path} failed"
                )
                raise

            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.bind(
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
                client_host=request.client.host if request.client else None,
            ).info(f"{request.method} {request.url.path} {response.status_code}")

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
