"""Request tracing and latency middleware"""

import re
import time
import uuid
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from safespend.infrastructure.observability.metrics import request_duration_histogram

REQUEST_ID_HEADER = "X-Request-ID"
_VALID_REQUEST_ID = re.compile(r"[A-Za-z0-9._:-]{1,128}")

UNMATCHED_ENDPOINT = "unmatched"


def resolve_request_id(incoming: str | None) -> str:
    """Reuse a caller's request id when it is well-formed, otherwise mint one"""
    if incoming and _VALID_REQUEST_ID.fullmatch(incoming):
        return incoming
    return str(uuid.uuid4())


def endpoint_label(request: Request, status_code: int) -> str:
    """
    Route template for the metrics label.

    Unrouted 404s collapse into one label so arbitrary paths cannot grow
    the histogram's label set.
    """
    route = request.scope.get("route")
    if route is not None:
        return getattr(route, "path", request.url.path)
    if status_code == 404:
        return UNMATCHED_ENDPOINT
    return request.url.path


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach a request id to request.state and echo it on the response"""

    async def dispatch(self, request: Request, call_next):
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class MetricsMiddleware(BaseHTTPMiddleware):
    """Observe request latency by method, route and status; failures count as 500"""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            request_duration_histogram.labels(
                method=request.method,
                endpoint=endpoint_label(request, status_code),
                status=status_code,
            ).observe(time.perf_counter() - started)
