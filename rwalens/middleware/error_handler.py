"""
Error handling.

- ErrorHandlerMiddleware: outermost catch-all. Returns structured JSON with an
  error_id that correlates with the server log. Never leaks tracebacks.
- validation_exception_handler: request payload/query errors → HTTP 400 with
  field-level details.
- http_exception_handler: HTTPException → {"error": detail}
"""

import traceback
import uuid

import structlog
from fastapi import Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger(__name__)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Catches everything the routes did not handle.

    {
      "error": "human-readable message",
      "error_id": "uuid for log correlation",
      "status": 500
    }
    """

    def __init__(self, app, debug: bool = False):
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            error_id = str(uuid.uuid4())
            logger.error(
                "unhandled_exception",
                error_id=error_id,
                path=request.url.path,
                method=request.method,
                error=str(exc),
                traceback=traceback.format_exc(),
            )

            body: dict = {
                "error": "An internal error occurred. Please try again later.",
                "error_id": error_id,
                "status": 500,
            }
            if self.debug:
                body["debug_hint"] = type(exc).__name__

            return JSONResponse(status_code=500, content=body)


def _field_name(loc: tuple) -> str:
    # Drop the "body"/"query"/"path" prefix
    parts = [str(p) for p in loc[1:]] if len(loc) > 1 else [str(p) for p in loc]
    return ".".join(parts)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"field": _field_name(tuple(err.get("loc", ()))), "message": err.get("msg", "Invalid value")}
        for err in exc.errors()
    ]
    logger.info("request_validation_failed", path=request.url.path, fields=[d["field"] for d in details])
    return JSONResponse(status_code=400, content={"error": "Validation failed", "details": details})


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )
