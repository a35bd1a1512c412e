from __future__ import annotations

import logging
import time

from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger("rms.api.access")

HTTP_REQUESTS = Counter(
    "rms_http_requests_total",
    "HTTP requests served, by route template",
    ["method", "route", "status_code"],
)
HTTP_LATENCY = Histogram(
    "rms_http_request_duration_seconds",
    "HTTP request latency, by route template",
    ["method", "route"],
)

# probes and scrapes are counted but only logged at debug level
_QUIET_PREFIXES = ("/health", "/metrics")


def _route_template(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", "<unmatched>")


def _observe(request: Request, status_code: int, started: float) -> float:
    elapsed = time.perf_counter() - started
    route = _route_template(request)
    HTTP_REQUESTS.labels(
        method=request.method, route=route, status_code=str(status_code)
    ).inc()
    HTTP_LATENCY.labels(method=request.method, route=route).observe(elapsed)
    return round(elapsed * 1000, 2)


class AccessLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "request_error",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": 500,
                    "duration_ms": _observe(request, 500, started),
                },
            )
            raise

        fields = {
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": _observe(request, response.status_code, started),
        }
        level = logging.DEBUG if request.url.path.startswith(_QUIET_PREFIXES) else logging.INFO
        logger.log(level, "request_complete", extra=fields)
        return response
