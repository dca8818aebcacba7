"""
API error taxonomy and the handlers that render it.

Every failure a request can hit ends up as one of these, with a message that
is safe to show to the caller.
"""
import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ApiError(HTTPException):
    status_code = 500
    message = "Server error"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(status_code=status_code or self.status_code, detail=message or self.message)


class ValidationError(ApiError):
    status_code = 400
    message = "Invalid request"


class DuplicateUser(ApiError):
    status_code = 400
    message = "User already exists"


class InvalidCredentials(ApiError):
    # Same message for unknown email and wrong password
    status_code = 400
    message = "Invalid credentials"


class Unauthenticated(ApiError):
    status_code = 401
    message = "Not authenticated"


class Forbidden(ApiError):
    status_code = 403
    message = "Admin access required"


class NotFound(ApiError):
    status_code = 404
    message = "Not found"


class PaymentFailed(ApiError):
    status_code = 402
    message = "Payment failed"


class ServerError(ApiError):
    status_code = 500
    message = "Server error"


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return ValidationError.message
    first = errors[0]
    field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
    msg = first.get("msg", "invalid value")
    return f"{field}: {msg}" if field else msg


async def api_error_handler(request: Request, exc: ApiError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=exc.headers)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in exc.errors()]
    return JSONResponse(status_code=400, content={"detail": _validation_message(exc), "errors": errors})


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": ServerError.message})


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
