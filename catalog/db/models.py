"""
SQLAlchemy ORM Models
Catalog tables read by the search engine.
"""

from __future__ import annotations

import uuid
from enum import Enum

from sqlalchemy import (
    Column, String, Integer, Boolean, TIMESTAMP,
    ForeignKey, Numeric, Text, Index, UniqueConstraint
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


def _uuid() -> str:
    return str(uuid.uuid4())


class ProductStatus(str, Enum):
    """Lifecycle status of a product."""

    DRAFT = "draft"
    ACTIVE = "active"
    INACTIVE = "inactive"
    ARCHIVED = "archived"


class ProductVisibility(str, Enum):
    """Where a product may be shown."""

    VISIBLE = "visible"
    HIDDEN = "hidden"
    CATALOG = "catalog"
    SEARCH = "search"


class AttributeType(str, Enum):
    """Kinds of value an attribute can hold."""

    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ENUM = "enum"


class Category(Base):
    """Product category."""
    __tablename__ = 'product_categories'

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=True, unique=True)
    is_active = Column(Boolean, nullable=False, default=True)

    def __repr__(self):
        return f"<Category(id={self.id}, name={self.name})>"


class Brand(Base):
    """Product brand."""
    __tablename__ = 'product_brands'

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=True, unique=True)
    is_active = Column(Boolean, nullable=False, default=True)

    def __repr__(self):
        return f"<Brand(id={self.id}, name={self.name})>"


class Product(Base):
    """
    Product model.

    Fixed columns of the catalog; dynamic properties live in
    AttributeValueMap rows.
    """
    __tablename__ = 'products'

    id = Column(String(36), primary_key=True, default=_uuid)

    # Core product info
    sku = Column(String(100), nullable=False, unique=True)
    name = Column(String(255), nullable=False, index=True)
    slug = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    short_description = Column(Text, nullable=True)

    brand_id = Column(String(36), ForeignKey('product_brands.id'), nullable=True, index=True)
    product_type_id = Column(String(100), nullable=True,
                             comment='Product type: simple, configurable, bundle, ...')

    # Lifecycle
    status = Column(String(32), nullable=False, default=ProductStatus.DRAFT.value, index=True)
    visibility = Column(String(32), nullable=False, default=ProductVisibility.VISIBLE.value)

    # Pricing
    price = Column(Numeric(12, 2), nullable=False, default=0, index=True)

    # Flags
    is_featured = Column(Boolean, nullable=False, default=False)
    is_new = Column(Boolean, nullable=False, default=False)
    is_bestseller = Column(Boolean, nullable=False, default=False)
    has_variants = Column(Boolean, nullable=False, default=False)
    in_stock = Column(Boolean, nullable=False, default=True)

    # Reviews
    average_rating = Column(Numeric(3, 2), nullable=True)
    review_count = Column(Integer, nullable=False, default=0)

    # Timestamps
    created_at = Column(TIMESTAMP, nullable=False, server_default=func.now())
    updated_at = Column(TIMESTAMP, nullable=False, server_default=func.now(), onupdate=func.now())
    deleted_at = Column(TIMESTAMP, nullable=True, comment='Soft-delete marker')

    # Relationships
    brand = relationship("Brand")
    category_links = relationship("ProductCategoryMap", back_populates="product",
                                  cascade="all, delete-orphan")
    attribute_values = relationship("AttributeValueMap", back_populates="product",
                                    cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_products_status_visibility', 'status', 'visibility'),
    )

    def __repr__(self):
        return f"<Product(id={self.id}, sku={self.sku}, name={self.name})>"


class ProductCategoryMap(Base):
    """Product to category membership."""
    __tablename__ = 'product_category_map'

    id = Column(String(36), primary_key=True, default=_uuid)
    product_id = Column(String(36), ForeignKey('products.id', ondelete='CASCADE'),
                        nullable=False, index=True)
    category_id = Column(String(36), ForeignKey('product_categories.id', ondelete='CASCADE'),
                         nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    is_primary = Column(Boolean, nullable=False, default=False)

    product = relationship("Product", back_populates="category_links")
    category = relationship("Category")

    __table_args__ = (
        UniqueConstraint('product_id', 'category_id', name='uq_product_category'),
    )


class Attribute(Base):
    """
    Dynamic attribute definition.

    Only attributes with is_filterable set contribute facets.
    """
    __tablename__ = 'product_attributes'

    id = Column(String(36), primary_key=True, default=_uuid)
    code = Column(String(100), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    type = Column(String(32), nullable=False, default=AttributeType.TEXT.value)
    is_filterable = Column(Boolean, nullable=False, default=True)
    is_searchable = Column(Boolean, nullable=False, default=True)
    position = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<Attribute(id={self.id}, code={self.code})>"


class AttributeValue(Base):
    """Display lookup for a raw attribute value."""
    __tablename__ = 'product_attribute_values'

    id = Column(String(36), primary_key=True, default=_uuid)
    attribute_id = Column(String(36), ForeignKey('product_attributes.id', ondelete='CASCADE'),
                          nullable=False)
    value = Column(String(255), nullable=False)
    display_value = Column(String(255), nullable=True)
    position = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        Index('idx_attribute_values_lookup', 'attribute_id', 'value'),
    )


class AttributeValueMap(Base):
    """
    EAV row: one populated attribute value of one product.

    The same (attribute_id, value) pair is usually shared by many products.
    """
    __tablename__ = 'product_attribute_value_map'

    id = Column(String(36), primary_key=True, default=_uuid)
    product_id = Column(String(36), ForeignKey('products.id', ondelete='CASCADE'),
                        nullable=False, index=True)
    attribute_id = Column(String(36), ForeignKey('product_attributes.id', ondelete='CASCADE'),
                          nullable=False)
    value = Column(Text, nullable=True)

    product = relationship("Product", back_populates="attribute_values")
    attribute = relationship("Attribute")

    __table_args__ = (
        Index('idx_attribute_value_map_pair', 'attribute_id', 'value'),
    )
