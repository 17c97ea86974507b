# rentez/middleware/structured_logging.py
from __future__ import annotations

import logging
import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

log = logging.getLogger("rentez.request")

# static files and health probes would drown the request log
QUIET_PREFIXES = ("/uploads/", "/api/health")


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """One log record per API request; 5xx at ERROR, 4xx at WARNING."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if path.startswith(QUIET_PREFIXES):
            return await call_next(request)

        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            if status_code >= 500:
                level = logging.ERROR
            elif status_code >= 400:
                level = logging.WARNING
            else:
                level = logging.INFO
            log.log(
                level,
                "%s %s -> %d",
                request.method,
                path,
                status_code,
                extra={
                    "method": request.method,
                    "path": path,
                    "status_code": status_code,
                    "latency_ms": round((time.perf_counter() - started) * 1000, 1),
                    "user_email": request.headers.get("X-User-Email"),
                },
            )
