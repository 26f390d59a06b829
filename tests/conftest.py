"""
Pytest configuration and shared fixtures

Every test gets its own SQLite file database seeded with a small catalog:

    prod-mouse        Wireless Mouse      Acme  Electronics  25.00   color black+grey, material plastic
    prod-mouse-pro    Wireless Mouse Pro  Acme  Electronics  150.00  color black, memory 8, featured
    prod-keyboard     Gaming Keyboard     Bolt  Electronics  120.00  color black, memory 16, no rating
    prod-stand        Laptop Stand        Bolt  Electronics  200.00  color white
    prod-cookbook     Python Cookbook     Acme  Books        45.00   no attributes
    prod-monitor      Draft Monitor       Bolt  Electronics  10.00   draft, color black
    prod-headphones   Deleted Headphones  Acme  Electronics  80.00   soft-deleted, color black
    prod-webcam       Hidden Webcam       Bolt  Electronics  60.00   hidden, color black, memory 8
"""

from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from catalog.config import CatalogSettings
from catalog.db import (
    Attribute,
    AttributeValue,
    AttributeValueMap,
    Base,
    Brand,
    Category,
    Product,
    ProductCategoryMap,
    create_catalog_engine,
    create_session_factory,
)
from catalog.search import CatalogStore, ProductSearchService

BRANDS = [
    ("brand-acme", "Acme"),
    ("brand-bolt", "Bolt"),
]

CATEGORIES = [
    ("cat-electronics", "Electronics"),
    ("cat-books", "Books"),
]

ATTRIBUTES = [
    # id, code, name, type, filterable, position
    ("attr-color", "color", "Color", "enum", True, 1),
    ("attr-memory", "memory_gb", "Memory (GB)", "number", True, 2),
    ("attr-material", "material", "Material", "text", False, 3),
]

ATTRIBUTE_DISPLAY_VALUES = [
    ("attr-color", "black", "Black"),
    ("attr-color", "white", "White"),
]

PRODUCTS = [
    dict(
        id="prod-mouse", sku="WM-001", name="Wireless Mouse", brand_id="brand-acme",
        price=Decimal("25.00"), average_rating=Decimal("4.50"), review_count=10,
        description="Compact two-button mouse", created_at=datetime(2024, 1, 5),
        category="cat-electronics",
        attributes=[("attr-color", "black"), ("attr-color", "grey"), ("attr-material", "plastic")],
    ),
    dict(
        id="prod-mouse-pro", sku="WM-PRO", name="Wireless Mouse Pro", brand_id="brand-acme",
        price=Decimal("150.00"), average_rating=Decimal("4.80"), review_count=50,
        is_featured=True, created_at=datetime(2024, 1, 10),
        category="cat-electronics",
        attributes=[("attr-color", "black"), ("attr-memory", "8")],
    ),
    dict(
        id="prod-keyboard", sku="KB-100", name="Gaming Keyboard", brand_id="brand-bolt",
        price=Decimal("120.00"), average_rating=None, review_count=0,
        description="Mechanical keys. Pairs with any wireless mouse", created_at=datetime(2024, 1, 3),
        category="cat-electronics",
        attributes=[("attr-color", "black"), ("attr-memory", "16")],
    ),
    dict(
        id="prod-stand", sku="LS-200", name="Laptop Stand", brand_id="brand-bolt",
        price=Decimal("200.00"), average_rating=Decimal("3.90"), review_count=5,
        is_new=True, created_at=datetime(2024, 1, 8),
        category="cat-electronics",
        attributes=[("attr-color", "white")],
    ),
    dict(
        id="prod-cookbook", sku="BK-PY", name="Python Cookbook", brand_id="brand-acme",
        price=Decimal("45.00"), average_rating=Decimal("4.20"), review_count=30,
        is_bestseller=True, created_at=datetime(2024, 1, 2),
        category="cat-books",
        attributes=[],
    ),
    dict(
        id="prod-monitor", sku="MN-300", name="Draft Monitor", brand_id="brand-bolt",
        price=Decimal("10.00"), status="draft", created_at=datetime(2024, 1, 1),
        category="cat-electronics",
        attributes=[("attr-color", "black")],
    ),
    dict(
        id="prod-headphones", sku="HP-050", name="Deleted Headphones", brand_id="brand-acme",
        price=Decimal("80.00"), deleted_at=datetime(2024, 2, 1), created_at=datetime(2024, 1, 9),
        category="cat-electronics",
        attributes=[("attr-color", "black")],
    ),
    dict(
        id="prod-webcam", sku="WC-060", name="Hidden Webcam", brand_id="brand-bolt",
        price=Decimal("60.00"), visibility="hidden", average_rating=Decimal("4.00"),
        review_count=2, created_at=datetime(2024, 1, 4),
        category="cat-electronics",
        attributes=[("attr-color", "black"), ("attr-memory", "8")],
    ),
]


def add_product(session: Session, **fields) -> Product:
    """Insert a product with its category link and attribute values."""
    fields = dict(fields)
    category = fields.pop("category", None)
    attributes = fields.pop("attributes", [])
    fields.setdefault("slug", fields["sku"].lower())
    fields.setdefault("status", "active")
    fields.setdefault("visibility", "visible")

    product = Product(**fields)
    session.add(product)
    if category:
        if session.get(Category, category) is None:
            session.add(Category(id=category, name=category, slug=category))
        session.add(ProductCategoryMap(product_id=product.id, category_id=category, is_primary=True))
    for attribute_id, value in attributes:
        session.add(AttributeValueMap(product_id=product.id, attribute_id=attribute_id, value=value))
    return product


def seed_catalog(session: Session) -> None:
    """Insert the catalog described in the module docstring."""
    for brand_id, name in BRANDS:
        session.add(Brand(id=brand_id, name=name, slug=name.lower()))
    for category_id, name in CATEGORIES:
        session.add(Category(id=category_id, name=name, slug=name.lower()))
    for attribute_id, code, name, attr_type, filterable, position in ATTRIBUTES:
        session.add(
            Attribute(
                id=attribute_id, code=code, name=name, type=attr_type,
                is_filterable=filterable, position=position,
            )
        )
    for attribute_id, value, display in ATTRIBUTE_DISPLAY_VALUES:
        session.add(AttributeValue(attribute_id=attribute_id, value=value, display_value=display))
    session.flush()

    for product in PRODUCTS:
        add_product(session, **product)
    session.commit()


@pytest.fixture
def settings(tmp_path):
    """Settings pointing at a per-test SQLite database."""
    return CatalogSettings(
        database_url=f"sqlite:///{tmp_path / 'catalog.db'}",
        query_workers=4,
    )


@pytest.fixture
def empty_engine(settings):
    """Engine with the catalog schema and no rows."""
    engine = create_catalog_engine(settings)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def catalog_engine(empty_engine):
    """Engine over the seeded catalog."""
    SessionLocal = create_session_factory(empty_engine)
    with SessionLocal() as session:
        seed_catalog(session)
    return empty_engine


@pytest.fixture
def store(catalog_engine, settings):
    return CatalogStore(catalog_engine, max_workers=settings.query_workers)


@pytest.fixture
def service(store, settings):
    return ProductSearchService(store, settings=settings)


@pytest.fixture
def add_products(empty_engine):
    """Insert products into the empty catalog."""

    SessionLocal = create_session_factory(empty_engine)

    def _add(*products):
        with SessionLocal() as session:
            for fields in products:
                add_product(session, **fields)
                session.flush()
            session.commit()

    return _add
