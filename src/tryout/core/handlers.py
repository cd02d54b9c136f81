"""
Exception Handlers

Render every failure in the response envelope {success: false, message, error}.

- ServiceError and subclasses: their own message, code and status
- Request validation: HTTP 400 VALIDATION_ERROR with a field-specific message
- HTTPException (unknown route, wrong method...): its status and detail
- SQLAlchemyError: logged with traceback, answered with a generic StorageError
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from tryout.core.errors import ServiceError, StorageError
from tryout.core.schemas import ErrorResponse

logger = logging.getLogger(__name__)

DEFAULT_MISSING_MESSAGE = "Semua field harus diisi."
DEFAULT_INVALID_MESSAGE = "Data yang dikirim tidak valid."

# Endpoint-specific wording when a required field is absent or empty
MISSING_FIELD_MESSAGES = {
    "/login-participant": "Email dan password harus diisi.",
    "/auth/login": "Email dan password harus diisi.",
    "/send-otp": "Email dan nama harus diisi.",
    "/send-password": "Email harus diisi.",
}

FIELD_MESSAGES = {
    "email": "Format email tidak valid.",
    "tanggal_lahir": "Format tanggal lahir tidak valid.",
}

MISSING_TYPES = {"missing", "string_too_short"}


def error_response(status_code: int, message: str, error_code: str) -> JSONResponse:
    body = ErrorResponse(message=message, error=error_code)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def _missing_message(request: Request) -> str:
    path = request.url.path
    if path.endswith("/send-otp") and request.query_params.get("action") == "verify":
        return "Email dan OTP harus diisi."
    for suffix, message in MISSING_FIELD_MESSAGES.items():
        if path.endswith(suffix):
            return message
    return DEFAULT_MISSING_MESSAGE


def validation_message(request: Request, errors: list[dict]) -> str:
    """
    Pick one user-facing message for a list of pydantic errors.

    Missing fields win over format problems so the user fills the form first.
    """
    if any(_is_missing(error) for error in errors):
        return _missing_message(request)

    for error in errors:
        loc = error.get("loc") or ()
        field = loc[-1] if loc else None

        if field in FIELD_MESSAGES:
            return FIELD_MESSAGES[field]
        if error.get("type") == "value_error":
            message = str(error.get("msg", ""))
            return message.removeprefix("Value error, ") or DEFAULT_INVALID_MESSAGE

    return DEFAULT_INVALID_MESSAGE


def _is_missing(error: dict) -> bool:
    if error.get("type") in MISSING_TYPES:
        return True
    # Blank strings fail format validators (EmailStr) before any length check
    value = error.get("input")
    return isinstance(value, str) and not value.strip()


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    return error_response(exc.status_code, exc.message, exc.error_code)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = list(exc.errors())
    message = validation_message(request, errors)
    logger.info(f"Rejected input on {request.url.path}: {message}")
    return error_response(400, message, "VALIDATION_ERROR")


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        error_code = "NOT_FOUND"
    elif exc.status_code == 405:
        error_code = "METHOD_NOT_ALLOWED"
    else:
        error_code = "HTTP_ERROR"

    response = error_response(exc.status_code, str(exc.detail), error_code)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(f"Database error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    error = StorageError()
    return error_response(error.status_code, error.message, error.error_code)


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all envelope handlers to the application."""
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(SQLAlchemyError, storage_error_handler)
