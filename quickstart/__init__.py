"""
Plaid Quickstart API

A small FastAPI server that walks through Plaid Link, token exchange and the
product endpoints for a single linked item.
"""

__version__ = "1.0.0"
