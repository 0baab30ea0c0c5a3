"""
DevCamper Backend — Access Log Middleware
===========================================

What:  One log line per request on the `devcamper.access` logger.
How:   Measures wall time around the downstream app and logs method, path,
       status, duration, request id and client address. Level follows the
       status class: 5xx → ERROR, 4xx → WARNING, otherwise INFO.

Request bodies and headers are never logged (passwords, bearer tokens).
/health is skipped; probes hit it every few seconds.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.middleware.request_id import request_id_var

logger = logging.getLogger("devcamper.access")

SKIPPED_PATHS = {"/health"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in SKIPPED_PATHS:
            return await call_next(request)

        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000

        status = response.status_code
        if status >= 500:
            level = logging.ERROR
        elif status >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO

        rid = request_id_var.get("")
        client_ip = request.client.host if request.client else "unknown"
        logger.log(
            level,
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
