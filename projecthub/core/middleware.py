"""
ProjectHub - HTTP Middleware

Request correlation and access logging, response security headers and a cap
on request body size.
"""

import time
from typing import Callable, FrozenSet
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response, JSONResponse
from starlette.types import ASGIApp

from projecthub.core.logging_config import (
    logger,
    set_request_id,
    set_project_id,
    clear_log_context,
    generate_request_id,
)


# Probes and docs are not worth an access-log line
QUIET_PATHS: FrozenSet[str] = frozenset({
    "/",
    "/health",
    "/api/health",
    "/favicon.ico",
    "/docs",
    "/redoc",
    "/openapi.json",
})

SLOW_REQUEST_MS = 1000

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


def should_skip_logging(path: str) -> bool:
    return path in QUIET_PATHS


def extract_project_id(path: str) -> str:
    """Pull the project id out of /api/projects/<id>/... paths"""
    _, marker, rest = path.partition("/projects/")
    if not marker:
        return ""
    project_id = rest.split("/", 1)[0]
    return "" if project_id in ("", "stats") else project_id


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Tags each request with an id (the client's X-Request-ID or a fresh one),
    exposes it in the log context and echoes it back together with
    X-Response-Time. Completed requests are logged at a level that follows the
    status code; requests slower than SLOW_REQUEST_MS get an extra warning.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        set_request_id(request_id)
        set_project_id(extract_project_id(request.url.path))

        path = request.url.path
        quiet = should_skip_logging(path)
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.exception(
                f"Unhandled error on {request.method} {path} after {elapsed_ms:.1f}ms",
                extra={"event_type": "http_request_error", "http_path": path}
            )
            raise
        else:
            elapsed_ms = (time.perf_counter() - started) * 1000
            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{elapsed_ms:.2f}ms"

            if not quiet:
                logger.log_request(
                    request.method,
                    path,
                    response.status_code,
                    elapsed_ms,
                    client_ip=request.client.host if request.client else "unknown",
                )
                if elapsed_ms > SLOW_REQUEST_MS:
                    logger.warning(
                        f"Slow request: {request.method} {path} took {elapsed_ms:.0f}ms",
                        extra={"event_type": "slow_request", "duration_ms": elapsed_ms}
                    )
            return response
        finally:
            clear_log_context()


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds SECURITY_HEADERS to every response"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers[name] = value
        return response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Rejects bodies whose declared Content-Length exceeds ``max_size`` bytes with 413"""

    def __init__(self, app: ASGIApp, max_size: int = 1024 * 1024):
        super().__init__(app)
        self.max_size = max_size

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        declared = request.headers.get("content-length", "")
        if declared.isdigit() and int(declared) > self.max_size:
            logger.warning(
                f"Rejected {declared} byte body on {request.url.path} (limit {self.max_size})",
                extra={"event_type": "request_too_large", "content_length": int(declared)}
            )
            return JSONResponse(
                status_code=413,
                content={
                    "success": False,
                    "error": {
                        "code": "REQUEST_TOO_LARGE",
                        "message": f"Request body too large. Maximum size is {self.max_size} bytes",
                        "details": {"max_size": self.max_size},
                    },
                },
            )

        return await call_next(request)


__all__ = [
    "RequestLoggingMiddleware",
    "SecurityHeadersMiddleware",
    "RequestSizeLimitMiddleware",
    "QUIET_PATHS",
    "SECURITY_HEADERS",
    "should_skip_logging",
    "extract_project_id",
]
