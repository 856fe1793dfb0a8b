"""HTTP middleware for interface entry layer."""

from __future__ import annotations

from time import perf_counter
from typing import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from project_utility.context import ContextBridge
from project_utility.telemetry import emit as telemetry_emit

REQUEST_ID_HEADER = "X-Request-ID"


class FastAPIRequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = ContextBridge.set_request_id(request.headers.get(REQUEST_ID_HEADER))
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        start = perf_counter()
        response: Response | None = None
        try:
            response = await call_next(request)
            return response
        finally:
            latency_ms = round((perf_counter() - start) * 1000, 3)
            status_code = getattr(response, "status_code", 500)
            telemetry_emit(
                "http.request",
                level="info" if status_code < 500 else "error",
                request_id=ContextBridge.request_id(),
                path=request.url.path,
                method=request.method,
                payload={"status_code": status_code, "latency_ms": latency_ms},
            )


__all__ = ["FastAPIRequestIDMiddleware", "LoggingMiddleware", "REQUEST_ID_HEADER"]
