"""
Utility modules for the application.
"""

from .logger import get_logger, setup_logging
from .serialization import to_jsonable

__all__ = [
    "get_logger",
    "setup_logging",
    "to_jsonable",
]
