"""
Session context shared by the Plaid endpoints.

The identifiers live in memory only. In production, store them in a secure
persistent data store keyed by the end user.
"""

import threading
from typing import Dict, Optional

from .utils.logger import get_logger

logger = get_logger(__name__)


class QuickstartSession:
    """Identifiers produced by earlier calls and consumed by later ones."""

    def __init__(self):
        self._lock = threading.Lock()
        self.access_token: Optional[str] = None
        self.item_id: Optional[str] = None
        self.payment_id: Optional[str] = None
        # Only relevant for the ACH Transfer product.
        self.transfer_id: Optional[str] = None

    def set_item(self, access_token: str, item_id: str) -> None:
        """Overwrite the linked item; every public token exchange replaces it."""
        with self._lock:
            self.access_token = access_token
            self.item_id = item_id
        logger.info(f"Session now linked to item {item_id}")

    def set_payment(self, payment_id: str) -> None:
        with self._lock:
            self.payment_id = payment_id
        logger.info(f"Session payment id set to {payment_id}")

    def set_transfer(self, transfer_id: str) -> None:
        with self._lock:
            self.transfer_id = transfer_id
        logger.info(f"Session transfer id set to {transfer_id}")

    def snapshot(self) -> Dict[str, Optional[str]]:
        with self._lock:
            return {
                "access_token": self.access_token,
                "item_id": self.item_id,
                "payment_id": self.payment_id,
                "transfer_id": self.transfer_id,
            }

    def clear(self) -> None:
        with self._lock:
            self.access_token = None
            self.item_id = None
            self.payment_id = None
            self.transfer_id = None
