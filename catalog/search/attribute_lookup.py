"""
Attribute Lookup
Products carrying an exact attribute value.
"""

import logging
from typing import List

from sqlalchemy import and_, select

from ..db.models import Attribute, AttributeValueMap, Product
from .predicates import PRODUCT_COLUMNS, active_products
from .results import ProductRecord
from .store import CatalogStore

logger = logging.getLogger(__name__)


class AttributeLookup:
    """Exact (attribute code, value) lookups over the EAV value map."""

    def __init__(self, store: CatalogStore):
        self.store = store

    def find_by_attribute(self, attribute_code: str, value: str) -> List[ProductRecord]:
        """Active products whose attribute `attribute_code` equals value, ordered by name."""
        matching = (
            select(AttributeValueMap.product_id)
            .join(
                Attribute,
                and_(Attribute.id == AttributeValueMap.attribute_id, Attribute.code == attribute_code),
            )
            .where(AttributeValueMap.value == value)
            .distinct()
            .subquery("matching")
        )

        stmt = (
            select(*PRODUCT_COLUMNS)
            .join(matching, matching.c.product_id == Product.id)
            .where(*active_products())
            .order_by(Product.name.asc(), Product.id.asc())
        )

        rows = self.store.execute(stmt)
        logger.debug(f"{len(rows)} products with {attribute_code}={value}")
        return [ProductRecord.from_row(row) for row in rows]
