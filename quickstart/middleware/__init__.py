"""
Middleware modules for the application.
"""

from .cors import add_cors_middleware
from .error_handler import add_exception_handlers
from .logging import add_logging_middleware

__all__ = [
    "add_cors_middleware",
    "add_exception_handlers",
    "add_logging_middleware",
]
