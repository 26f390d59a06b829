"""
Database ORM Models
SQLAlchemy ORM models for catalog tables.
"""

from .models import (
    Base,
    Product,
    Category,
    Brand,
    ProductCategoryMap,
    Attribute,
    AttributeValue,
    AttributeValueMap,
    AttributeType,
    ProductStatus,
    ProductVisibility,
)
from .session import create_catalog_engine, create_session_factory

__all__ = [
    "Base",
    "Product",
    "Category",
    "Brand",
    "ProductCategoryMap",
    "Attribute",
    "AttributeValue",
    "AttributeValueMap",
    "AttributeType",
    "ProductStatus",
    "ProductVisibility",
    "create_catalog_engine",
    "create_session_factory",
]
