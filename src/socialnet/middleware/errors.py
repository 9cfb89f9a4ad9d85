"""Error envelope — the single place where errors become HTTP responses.

Learn: Every failure leaves the API in the same shape:

    {"statusCode": 404, "message": "...", "success": false, "errors": [...]}

plus a "stack" field outside production. Typed ApiErrors keep their
status and message. Request validation failures become 400s. Anything
untyped is logged and reported as a generic 500, so internals never
leak in production responses.

Starlette routes exception handlers for plain `Exception` through
ServerErrorMiddleware, which re-raises after responding. The last-resort
catch is a middleware instead, so the envelope is the final word.
"""

import traceback
from typing import Any, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from socialnet.config import Settings
from socialnet.errors import ApiError

logger = structlog.get_logger()


def _show_stack(request: Request) -> bool:
    return getattr(request.app.state, "show_error_stack", False)


def error_response(
    status_code: int,
    message: str,
    errors: Optional[list[Any]] = None,
    exc: Optional[BaseException] = None,
    headers: Optional[dict] = None,
    show_stack: bool = False,
) -> JSONResponse:
    body = {
        "statusCode": status_code,
        "message": message,
        "success": False,
        "errors": errors or [],
    }
    if exc is not None and show_stack:
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=status_code, content=body, headers=headers)


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    log = logger.warning if exc.status_code < 500 else logger.error
    log("api.error", status=exc.status_code, message=exc.message, path=request.url.path)
    return error_response(
        exc.status_code, exc.message, exc.errors, exc, show_stack=_show_stack(request)
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(p) for p in err.get("loc", ()) if p != "body"),
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    message = errors[0]["message"] if errors else "Invalid request"
    logger.info("api.validation_error", path=request.url.path, errors=len(errors))
    return error_response(400, message, errors)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(
        exc.status_code,
        str(exc.detail),
        headers=getattr(exc, "headers", None),
    )


class ErrorEnvelopeMiddleware(BaseHTTPMiddleware):
    """Turn any unhandled exception into a 500 envelope."""

    def __init__(self, app, show_stack: bool = False):
        super().__init__(app)
        self.show_stack = show_stack

    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            logger.exception("api.unhandled_error", path=request.url.path)
            return error_response(500, "Something went wrong", exc=exc, show_stack=self.show_stack)


def register_error_handlers(app: FastAPI, settings: Settings) -> None:
    """Install the envelope handlers. Stacks are included outside production."""
    show_stack = not settings.is_production
    app.state.show_error_stack = show_stack
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_middleware(ErrorEnvelopeMiddleware, show_stack=show_stack)
