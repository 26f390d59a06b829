"""
Integration test fixtures
"""

import pytest
from fastapi.testclient import TestClient

from catalog.api.dependencies import get_catalog_store, get_search_service
from catalog.api.main import create_app
from catalog.config import get_settings


@pytest.fixture
def api_client(store, service, settings):
    """TestClient whose dependencies resolve to the seeded test catalog."""
    app = create_app()
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_catalog_store] = lambda: store
    app.dependency_overrides[get_search_service] = lambda: service

    with TestClient(app) as client:
        yield client
