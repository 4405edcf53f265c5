"""
Plaid-related Pydantic models.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class PlaidError(BaseModel):
    """An error object returned by the Plaid API."""

    error_type: str
    error_code: str
    error_code_reason: Optional[str] = None
    error_message: str
    display_message: Optional[str] = None
    request_id: Optional[str] = None
    causes: Optional[List[Dict[str, Any]]] = None
    status: Optional[int] = None
    documentation_url: Optional[str] = None
    suggested_action: Optional[str] = None

    class Config:
        extra = "ignore"


class SyncResult(BaseModel):
    """Every change accumulated from a full /transactions/sync pagination run."""

    added: List[Dict[str, Any]] = Field(default_factory=list)
    modified: List[Dict[str, Any]] = Field(default_factory=list)
    removed: List[Dict[str, Any]] = Field(default_factory=list)
    next_cursor: Optional[str] = None
    pages: int = 0


class AccessTokenResponse(BaseModel):
    access_token: str
    item_id: str


class LinkTokenResponse(BaseModel):
    link_token: str


class PublicTokenResponse(BaseModel):
    public_token: str


class InfoResponse(BaseModel):
    item_id: Optional[str] = None
    access_token: Optional[str] = None
    products: List[str]


class LatestTransactionsResponse(BaseModel):
    latest_transactions: List[Dict[str, Any]]
