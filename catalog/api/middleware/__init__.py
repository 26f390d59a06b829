"""
Middleware
Custom middleware for the catalog API.
"""

from .logging import RequestLoggingMiddleware

__all__ = [
    "RequestLoggingMiddleware",
]
