"""
Custom exception classes.
"""

import json
from fastapi import HTTPException
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError
from plaid.exceptions import ApiException

from .constants import PlaidErrorCodes
from .models.plaid import PlaidError

# Marker that precedes the JSON body in descriptive plaid-python errors.
_BODY_MARKER = "HTTP response body: "


class BaseCustomException(HTTPException):
    """Base custom exception."""

    def __init__(
        self,
        status_code: int,
        detail: Any = None,
        headers: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(status_code, detail, headers)


class MissingSessionValueError(BaseCustomException):
    """An endpoint needs an identifier no earlier call has stored."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            status_code=400,
            detail=f"No {name} available yet. Link an account or run the matching create call first.",
        )


class PollTimeoutError(BaseCustomException):
    """A polled Plaid product never became ready within the attempt budget."""

    def __init__(self, attempts: int, detail: Optional[str] = None):
        self.attempts = attempts
        super().__init__(
            status_code=504,
            detail=detail
            or f"Timed out when polling for an asset report after {attempts} attempts.",
        )


class TransferSetupError(BaseCustomException):
    """The ACH transfer created after a token exchange could not be set up."""

    def __init__(self, detail: str):
        super().__init__(status_code=502, detail=detail)


def plaid_error_from_exception(exc: ApiException) -> Optional[PlaidError]:
    """
    Parse the error object out of a plaid-python ApiException.

    The body is either clean JSON or a descriptive HTTP error message that
    contains the JSON after "HTTP response body: ". Returns None when no
    error object can be recovered.
    """
    raw_body = exc.body
    if isinstance(raw_body, bytes):
        raw_body = raw_body.decode("utf-8", errors="replace")
    if not raw_body:
        return None

    if _BODY_MARKER in raw_body:
        raw_body = raw_body.split(_BODY_MARKER, 1)[1]

    try:
        return PlaidError.model_validate_json(raw_body)
    except (ValueError, PydanticValidationError, json.JSONDecodeError):
        return None


class PlaidApiException(BaseCustomException):
    """
    Custom exception for Plaid API errors.

    Wraps plaid-python's ApiException and keeps the parsed `plaid_error`
    around so handlers and retry predicates can look at the error code.
    """

    def __init__(self, original_exception: ApiException):
        self.original_exception = original_exception
        self.plaid_error: Optional[PlaidError] = plaid_error_from_exception(
            original_exception
        )

        if self.plaid_error:
            detail_message = (
                f"Plaid Error: {self.plaid_error.error_code} - "
                f"{self.plaid_error.error_message} "
                f"(Request ID: {self.plaid_error.request_id})"
            )
        else:
            detail_message = (
                f"Failed to parse Plaid API error. Raw response: {original_exception.body}"
            )

        status_code = original_exception.status or 500
        super().__init__(status_code=status_code, detail=detail_message)

    @property
    def error_code(self) -> Optional[str]:
        return self.plaid_error.error_code if self.plaid_error else None


def is_product_not_ready(exc: BaseException) -> bool:
    """True when Plaid reports the requested product is still being prepared."""
    if isinstance(exc, PlaidApiException):
        return exc.error_code == PlaidErrorCodes.PRODUCT_NOT_READY
    if isinstance(exc, ApiException):
        plaid_error = plaid_error_from_exception(exc)
        return bool(plaid_error) and (
            plaid_error.error_code == PlaidErrorCodes.PRODUCT_NOT_READY
        )
    return False
