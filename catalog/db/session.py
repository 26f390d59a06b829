"""
Database Session
Engine and session factory built from catalog settings.
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from ..config import CatalogSettings


def create_catalog_engine(settings: CatalogSettings) -> Engine:
    """Create an engine for the catalog database."""
    if settings.database_url.startswith("sqlite"):
        # SQLite pools do not take sizing arguments
        return create_engine(
            settings.database_url,
            connect_args={"check_same_thread": False},
        )

    return create_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,  # Verify connections before using
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    """Create a session factory bound to the engine."""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
