"""Request correlation, access logging and latency metrics."""

from __future__ import annotations

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from prometheus_client import Histogram
from starlette.middleware.base import BaseHTTPMiddleware

from ..logs import request_logger

REQUEST_ID_HEADER = "X-Request-ID"

REQUEST_LATENCY = Histogram(
    "hrms_http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "route", "status"],
)


def _route_template(request: Request) -> str:
    # templated path keeps label cardinality bounded
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Assigns or propagates ``X-Request-ID`` and logs one line per request."""

    def __init__(self, app, *, exclude_paths: tuple[str, ...] = ("/healthz", "/metrics")) -> None:
        super().__init__(app)
        self._exclude_paths = exclude_paths

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        log = request_logger(request_id)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            log.exception("%s %s failed", request.method, request.url.path)
            raise

        elapsed = time.perf_counter() - started
        REQUEST_LATENCY.labels(request.method, _route_template(request), str(response.status_code)).observe(elapsed)
        response.headers[REQUEST_ID_HEADER] = request_id
        if request.url.path not in self._exclude_paths:
            log.info(
                "%s %s -> %d in %.1fms",
                request.method,
                request.url.path,
                response.status_code,
                elapsed * 1000,
            )
        return response
