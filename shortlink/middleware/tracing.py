"""Custom tracing middleware for the shortlink application."""

import time
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
from starlette.responses import Response

from opentelemetry.trace import SpanKind
from shortlink.core.telemetry import get_tracer, get_meter

tracer = get_tracer("shortlink.middleware")
meter = get_meter("shortlink.middleware")

request_counter = meter.create_counter(
    name="shortlink.http.requests",
    description="Number of HTTP requests",
    unit="1",
)

request_duration = meter.create_histogram(
    name="shortlink.http.duration",
    description="Duration of HTTP requests",
    unit="ms",
)


class TracingMiddleware(BaseHTTPMiddleware):
    """Middleware that adds custom spans and metrics for each request."""

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)

    async def dispatch(self, request: Request, call_next) -> Response:
        start_time = time.perf_counter()

        method = request.method

        with tracer.start_as_current_span(method, kind=SpanKind.SERVER) as span:
            response = await call_next(request)

            # Routing has run by now; the template keeps short codes out of attributes
            route = request.scope.get("route")
            path = getattr(route, "path", "unmatched")
            span.update_name(f"{method} {path}")

            attributes = {
                "http.method": method,
                "http.route": path,
                "http.status_code": response.status_code,
            }
            span.set_attributes(attributes)

            duration_ms = (time.perf_counter() - start_time) * 1000
            request_counter.add(1, attributes)
            request_duration.record(duration_ms, attributes)

            return response
