"""
Request Context Middleware.

Every log line written while serving a request carries ``request_id``,
``method`` and ``path``. Requests addressed to one project or one alert also
carry ``project_id`` / ``alert_id``, so a project's submission, edits and
re-analysis runs can be followed through the logs.

The caller's X-Request-ID is reused (cut to 64 characters) or a UUID4 is
minted; it is echoed back with X-Response-Time.
"""

import re
import time
import uuid

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger(__name__)

MAX_REQUEST_ID_LENGTH = 64

_RESOURCE_PATH = re.compile(r"^/api/v1/(projects|alerts)/([0-9a-fA-F-]{36})(?:/|$)")
_RESOURCE_KEYS = {"projects": "project_id", "alerts": "alert_id"}


def resource_context(path: str) -> dict[str, str]:
    """Log fields identifying the project or alert a path addresses."""
    match = _RESOURCE_PATH.match(path)
    if match is None:
        return {}
    return {_RESOURCE_KEYS[match.group(1)]: match.group(2).lower()}


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request_id = request_id[:MAX_REQUEST_ID_LENGTH]
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            **resource_context(request.url.path),
        )

        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = round((time.perf_counter() - start) * 1000, 2)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{elapsed_ms}ms"

        logger.info("request_completed", status=response.status_code, elapsed_ms=elapsed_ms)
        return response
