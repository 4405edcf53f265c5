"""
Constants module for the application.
Centralizes all hardcoded values for better maintainability.
"""

# Re-export all constants for easy access
from .plaid import *
from .api import *
