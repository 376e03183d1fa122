"""Per-request context: request id, access log and latency histogram"""

import time
import uuid
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from client_tracker.infrastructure.observability.logging import log_request
from client_tracker.infrastructure.observability.metrics import request_duration_histogram

REQUEST_ID_HEADER = "X-Request-ID"


def route_template(request: Request) -> str:
    """Matched route path (e.g. /v1/payments/{payment_id}/pay) so ids don't explode label cardinality"""
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Tag each request with an id and record how it went.

    The caller's X-Request-ID is reused when present so a payment action can be
    followed from the client through the transition log. Requests that raise
    past the exception handlers are logged with status 500 before re-raising.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = time.perf_counter()

        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
        finally:
            duration = time.perf_counter() - start_time
            path = route_template(request)
            request_duration_histogram.labels(method=request.method, endpoint=path, status=status).observe(duration)
            log_request(
                request_id=request_id,
                method=request.method,
                path=path,
                status=status,
                duration_ms=duration * 1000,
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
