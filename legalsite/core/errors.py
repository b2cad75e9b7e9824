"""
Error taxonomy and global exception handlers.

Client errors (400) carry a one-line, user-correctable message. Server errors
are logged with their traceback and answered with a generic string so that
database or transport details never reach the browser.

Usage:
    # In main.py
    from legalsite.core.errors import register_exception_handlers
    register_exception_handlers(app)
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

ROUTE_NOT_FOUND = "Route not found"
INTERNAL_SERVER_ERROR = "Internal server error"
SOMETHING_WENT_WRONG = "Something went wrong!"


class ContactError(Exception):
    """A contact submission was rejected; the message is shown to the user."""

    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid contact submission"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        self.message = message or self.message


class MissingFieldError(ContactError):
    message = "Name, email, subject, and message are required"


class InvalidCaptchaError(ContactError):
    message = "Invalid captcha code. Please try again."


class InvalidEmailError(ContactError):
    message = "Invalid email address"


class StoreFailure(Exception):
    """The submission could not be persisted."""


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(ContactError)
    async def contact_error_handler(request: Request, exc: ContactError):
        logger.info(
            "Contact submission rejected kind=%s path=%s",
            type(exc).__name__,
            request.url.path,
        )
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(StoreFailure)
    async def store_failure_handler(request: Request, exc: StoreFailure):
        logger.error(
            "Contact form error on %s %s",
            request.method,
            request.url.path,
            exc_info=exc,
        )
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_SERVER_ERROR)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            return error_response(exc.status_code, ROUTE_NOT_FOUND)
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.info("Request validation failed on %s: %s", request.url.path, exc.errors())
        return error_response(status.HTTP_400_BAD_REQUEST, "Invalid request")

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all handler for unhandled exceptions.

        The full traceback stays in the server log; the client only ever sees
        a generic message, regardless of DEBUG.
        """
        logger.error(
            "Unhandled exception on %s %s",
            request.method,
            request.url.path,
            exc_info=exc,
        )
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, SOMETHING_WENT_WRONG)
