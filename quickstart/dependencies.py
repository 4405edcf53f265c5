"""
Application dependencies.
"""

from fastapi import Request

from .session import QuickstartSession
from .services.plaid_service import PlaidService


def get_session(request: Request) -> QuickstartSession:
    """Get the session context held by the running application."""
    return request.app.state.session


def get_plaid_service(request: Request) -> PlaidService:
    """Get Plaid service bound to the application's client and settings."""
    return PlaidService(request.app.state.plaid_client, request.app.state.settings)
