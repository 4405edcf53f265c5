"""
Service modules for the application.
"""

from .plaid_service import PlaidService, create_plaid_client, latest_transactions

__all__ = [
    "PlaidService",
    "create_plaid_client",
    "latest_transactions",
]
