"""
Error taxonomy and the JSON error envelope.

Every failure leaves the API as { "error": "...", "details": "..." (optional) }.
- BulletinError subclasses: raised by the store / state machine, mapped to 4xx.
- HTTPException (404 from routers, 405 from routing): wrapped as-is.
- RequestValidationError: malformed or missing body -> 400.
- Anything else: 500 with a one-line diagnostic; full traceback stays in the server log.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

MAX_DETAIL_LENGTH = 200


class BulletinError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(BulletinError):
    """Missing or malformed client input (including ids that are not UUIDs)."""
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidTransitionError(BulletinError):
    status_code = status.HTTP_409_CONFLICT


def error_body(error: str, details: str | None = None) -> dict:
    body = {"error": error}
    if details:
        body["details"] = details
    return body


def short_detail(exc: BaseException) -> str:
    """Single line, bounded: never leak a multi-line driver error to the client."""
    text = str(exc).strip()
    line = text.splitlines()[0] if text else exc.__class__.__name__
    return line[:MAX_DETAIL_LENGTH]


async def _bulletin_error_handler(request: Request, exc: BulletinError):
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.details))


async def _http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(detail),
        headers=getattr(exc, "headers", None),
    )


async def _request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    details = None
    if errors:
        first = errors[0]
        loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        details = f"{loc}: {first.get('msg')}" if loc else first.get("msg")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Invalid request", details),
    )


async def _unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal server error", short_detail(exc)),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BulletinError, _bulletin_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
