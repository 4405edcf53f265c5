"""
Helpers for turning plaid-python objects into JSON-safe values.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from .logger import get_logger

logger = get_logger(__name__)


def to_jsonable(obj: Any) -> Any:
    """Convert Plaid API objects to JSON-serializable values."""
    if obj is None or isinstance(obj, (str, bool, int, float)):
        return obj
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Decimal):
        return float(obj)
    if isinstance(obj, Enum):
        return to_jsonable(obj.value)
    if isinstance(obj, dict):
        return {str(key): to_jsonable(value) for key, value in obj.items()}
    if isinstance(obj, (list, tuple, set)):
        return [to_jsonable(item) for item in obj]
    if hasattr(obj, "to_dict"):
        # plaid-python models
        return to_jsonable(obj.to_dict())
    if hasattr(obj, "value"):
        # plaid-python enum-like ModelSimple types
        return to_jsonable(obj.value)

    logger.debug(f"Falling back to str() for {type(obj).__name__}")
    return str(obj)
