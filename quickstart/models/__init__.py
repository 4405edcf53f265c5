"""
Pydantic models for the application.
"""

from .plaid import (
    PlaidError,
    SyncResult,
    AccessTokenResponse,
    LinkTokenResponse,
    PublicTokenResponse,
    InfoResponse,
    LatestTransactionsResponse,
)

__all__ = [
    "PlaidError",
    "SyncResult",
    "AccessTokenResponse",
    "LinkTokenResponse",
    "PublicTokenResponse",
    "InfoResponse",
    "LatestTransactionsResponse",
]
