"""
Search Errors
Exceptions raised by the catalog search engine.
"""

from typing import Optional


class CatalogSearchError(Exception):
    """Base exception for catalog search errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class InvalidArgumentError(CatalogSearchError):
    """Raised for structurally malformed requests (negative limit, unknown sort key, ...)."""


class StoreUnavailableError(CatalogSearchError):
    """Raised when the underlying query execution fails."""
