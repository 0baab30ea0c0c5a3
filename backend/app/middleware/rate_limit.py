"""
DevCamper Backend — Rate Limiting Middleware
==============================================

What:  Per-IP sliding window limit (default 100 requests / 10 minutes).
How:   Keeps each client's request timestamps for the last window; a request
       that would exceed the limit is answered 429 with Retry-After and the
       standard error body. State is in-process, so limits are per worker.

Excluded: /health and the OpenAPI documentation routes.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.config import settings

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    # Inactive clients are dropped every this many recorded requests
    CLEANUP_EVERY = 1000

    def __init__(
        self,
        app,
        max_requests: Optional[int] = None,
        window_seconds: Optional[int] = None,
    ):
        super().__init__(app)
        self.max_requests = max_requests or settings.rate_limit_requests
        self.window_seconds = window_seconds or settings.rate_limit_window
        self._requests: Dict[str, List[float]] = defaultdict(list)
        self._recorded = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        window_start = now - self.window_seconds

        recent = [ts for ts in self._requests[client_ip] if ts > window_start]
        self._requests[client_ip] = recent

        if len(recent) >= self.max_requests:
            retry_after = int(recent[0] + self.window_seconds - now) + 1
            logger.warning(
                "Rate limit exceeded for %s: %d requests in %ds",
                client_ip, len(recent), self.window_seconds,
            )
            return JSONResponse(
                status_code=429,
                content={
                    "success": False,
                    "error": "Too many requests, please try again later",
                },
                headers={"Retry-After": str(retry_after)},
            )

        recent.append(now)
        self._recorded += 1
        if self._recorded % self.CLEANUP_EVERY == 0:
            self._cleanup_inactive(window_start)

        return await call_next(request)

    def _cleanup_inactive(self, window_start: float) -> None:
        inactive = [
            ip for ip, stamps in self._requests.items()
            if not stamps or stamps[-1] < window_start
        ]
        for ip in inactive:
            del self._requests[ip]
        if inactive:
            logger.debug("Dropped %d inactive rate-limit entries", len(inactive))
