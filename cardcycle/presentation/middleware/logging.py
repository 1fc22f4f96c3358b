"""Request/response logging middleware with timing and HTTP metrics."""

import time
from typing import Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from cardcycle.core.metrics import record_http_request
from .request_context import get_request_id

logger = structlog.get_logger(__name__)


def _route_template(request: Request) -> str:
    """
    Templated path of the matched route, so metric labels don't grow per ID.

    A route's own path may omit the prefixes of routers it was included
    through; those are recovered from the concrete request path. Unmatched
    requests keep their raw path.
    """
    path = request.scope.get("path") or request.url.path
    route = request.scope.get("route")
    template = getattr(route, "path_format", None)
    if template is None:
        return path

    concrete = template
    for name, value in request.scope.get("path_params", {}).items():
        concrete = concrete.replace("{" + name + "}", str(value))
    if path.endswith(concrete):
        return path[: len(path) - len(concrete)] + template
    return template


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs request start, completion, and duration."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        method = request.method
        path = request.url.path
        query = str(request.query_params) if request.query_params else None

        log = logger.bind(
            request_id=get_request_id(),
            method=method,
            path=path,
        )

        log.info("request_started", query=query)

        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.perf_counter() - start_time
            record_http_request(method, _route_template(request), 500, duration)
            log.error(
                "request_failed",
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=round(duration * 1000, 2),
            )
            raise

        duration = time.perf_counter() - start_time
        if path != "/metrics":
            record_http_request(method, _route_template(request), response.status_code, duration)

        log.info(
            "request_completed",
            status_code=response.status_code,
            duration_ms=round(duration * 1000, 2),
        )

        return response
