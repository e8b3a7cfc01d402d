"""
GrocerHub Backend — Request Logging Middleware
================================================

What:  One access log line per HTTP request on the `grocerhub.access` logger.
       Carries method, path, status, duration, request ID and client IP,
       both in the message and as `extra` fields for structured handlers.
Level: 5xx → ERROR, 4xx → WARNING, everything else → INFO.

Health-check and documentation paths are not logged. Request and response bodies
are never logged: carts carry addresses and phone numbers, store payloads
carry API keys.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from grocerhub.middleware.request_id import request_id_var

logger = logging.getLogger("grocerhub.access")

QUIET_PATHS = frozenset({"/health", "/docs", "/redoc", "/openapi.json"})


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            # Unhandled errors are turned into a 500 further out
            self._log(request, 500, started)
            raise

        self._log(request, response.status_code, started)
        return response

    @staticmethod
    def _log(request: Request, status_code: int, started: float) -> None:
        duration_ms = (time.perf_counter() - started) * 1000
        rid = request_id_var.get("")
        client_ip = request.client.host if request.client else "unknown"
        logger.log(
            _level_for(status_code),
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            request.url.path,
            status_code,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": request.url.path,
                "status": status_code,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
