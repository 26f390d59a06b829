"""
Health Check Endpoints
Liveness and database status.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict
from fastapi import APIRouter, Depends, status

from ...config import CatalogSettings, get_settings
from ...search import CatalogSearchError, CatalogStore
from ..dependencies import get_catalog_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check() -> Dict[str, str]:
    """Basic health check."""
    return {"status": "healthy", "timestamp": _now()}


@router.get("/status", status_code=status.HTTP_200_OK)
def status_check(
    settings: CatalogSettings = Depends(get_settings),
    store: CatalogStore = Depends(get_catalog_store),
) -> Dict[str, Any]:
    """
    Detailed status check.

    Reports "degraded" when the catalog database does not answer.
    """
    status_info = {
        "status": "healthy",
        "timestamp": _now(),
        "version": settings.version,
        "components": {},
    }

    try:
        store.ping()
        status_info["components"]["database"] = {
            "status": "healthy",
            "url": settings.database_url.split("@")[-1],  # Hide credentials
        }
    except CatalogSearchError as e:
        logger.error(f"Database health check failed: {e.message}")
        status_info["components"]["database"] = {"status": "unhealthy", "error": e.message}
        status_info["status"] = "degraded"

    return status_info
