"""
EcoAdmin Backend: Request Logging Middleware
=============================================

What:  One access-log line per HTTP request.
How:   Measures the time spent in the rest of the stack and logs method,
       path, status, duration and client address, tagged with the request id.
       The level follows the status: 5xx → ERROR, 4xx → WARNING, else INFO.

What we log vs what we don't (privacy):
    Log:        method, path, status, duration, IP, request ID
    Don't log:  request bodies (names, emails, phone numbers), image bytes
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from ecoadmin.middleware.request_id import request_id_var

logger = logging.getLogger("ecoadmin.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    # Polled every few seconds by orchestrators
    QUIET_PATHS = {"/api/health"}

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in self.QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        method = request.method
        rid = request_id_var.get("")

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )

        return response
