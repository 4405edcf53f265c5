"""
Error handling middleware.

Every failure is written back as the plain-text error message with the
default 200 status; clients do not get structured error codes.
"""

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..exceptions import BaseCustomException, PlaidApiException
from ..utils.logger import get_logger

logger = get_logger(__name__)


async def plaid_api_exception_handler(
    request: Request, exc: PlaidApiException
) -> PlainTextResponse:
    """Handle Plaid API specific exceptions."""
    if exc.plaid_error:
        log_message = (
            f"Plaid API error at {request.url}: "
            f"Code='{exc.plaid_error.error_code}', "
            f"RequestID='{exc.plaid_error.request_id}'"
        )
    else:
        log_message = f"Plaid API error at {request.url}: {exc.detail}"

    logger.warning(log_message)
    return PlainTextResponse(str(exc.detail))


async def custom_exception_handler(
    request: Request, exc: BaseCustomException
) -> PlainTextResponse:
    """Handle custom exceptions."""
    logger.warning(f"Custom error ({exc.status_code}) at {request.url}: {exc.detail}")
    return PlainTextResponse(str(exc.detail))


async def custom_http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> PlainTextResponse:
    """Handle HTTP exceptions."""
    logger.warning(f"HTTP {exc.status_code} error at {request.url}: {exc.detail}")
    # Unknown routes keep their 404 so typos are still visible.
    if exc.status_code == 404:
        return PlainTextResponse(str(exc.detail), status_code=404)
    return PlainTextResponse(str(exc.detail))


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> PlainTextResponse:
    """Handle validation errors."""
    logger.warning(f"Validation error at {request.url}: {exc.errors()}")
    return PlainTextResponse(str(exc))


async def general_exception_handler(request: Request, exc: Exception) -> PlainTextResponse:
    """Handle general exceptions."""
    logger.error(f"Unhandled error at {request.url}: {str(exc)}", exc_info=exc)
    return PlainTextResponse(str(exc))


def add_exception_handlers(app: FastAPI) -> None:
    """Add exception handlers to the application."""
    app.add_exception_handler(PlaidApiException, plaid_api_exception_handler)
    app.add_exception_handler(BaseCustomException, custom_exception_handler)
    app.add_exception_handler(StarletteHTTPException, custom_http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
