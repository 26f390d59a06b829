"""
Dependency Injection
FastAPI dependencies for the catalog store and search service.
"""

import logging
from fastapi import Depends, Request
from sqlalchemy.engine import Engine

from ..config import CatalogSettings, get_settings
from ..db.session import create_catalog_engine
from ..search import CatalogStore, ProductSearchService

logger = logging.getLogger(__name__)

# Database engine
_engine = None


def get_db_engine() -> Engine:
    """Get database engine (singleton)."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_catalog_engine(settings)
        logger.info(f"Database engine created: {settings.database_url.split('@')[-1]}")
    return _engine


def reset_db_engine() -> None:
    """Dispose of the engine (on shutdown and in tests)."""
    global _engine
    if _engine is not None:
        _engine.dispose()
        _engine = None


def get_catalog_store(settings: CatalogSettings = Depends(get_settings)) -> CatalogStore:
    """Catalog store over the shared engine."""
    return CatalogStore(get_db_engine(), max_workers=settings.query_workers)


def get_search_service(
    store: CatalogStore = Depends(get_catalog_store),
    settings: CatalogSettings = Depends(get_settings),
) -> ProductSearchService:
    """
    Get search service instance.

    Use as FastAPI dependency:
        @router.get("/endpoint")
        def endpoint(service: ProductSearchService = Depends(get_search_service)):
            ...
    """
    return ProductSearchService(store, settings=settings)


def get_request_id(request: Request) -> str:
    """Request ID assigned by RequestLoggingMiddleware."""
    return getattr(request.state, "request_id", "-")
