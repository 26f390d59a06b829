"""
Similarity Matcher
Rank products by the number of (attribute, value) pairs they share with a
source product.
"""

import logging
from typing import List

from sqlalchemy import and_, func, or_, select

from ..db.models import AttributeValueMap, Product
from .predicates import PRODUCT_COLUMNS, active_products, active_visible_products
from .results import ProductRecord, SimilarProduct
from .store import CatalogStore

logger = logging.getLogger(__name__)


class SimilarityMatcher:
    """
    Attribute-overlap similarity over the EAV value map.

    Overlap is symmetric, but a product never appears in its own list.
    """

    def __init__(self, store: CatalogStore):
        self.store = store

    def source_pairs(self, product_id: str) -> List[tuple]:
        """Distinct populated (attribute_id, value) pairs of a product."""
        stmt = (
            select(AttributeValueMap.attribute_id, AttributeValueMap.value)
            .where(
                AttributeValueMap.product_id == product_id,
                AttributeValueMap.value.is_not(None),
            )
            .distinct()
        )
        return [(row.attribute_id, row.value) for row in self.store.execute(stmt)]

    def find_similar(self, product_id: str, limit: int = 10) -> List[SimilarProduct]:
        """
        Find active products sharing the most attribute values with product_id.

        Args:
            product_id: Source product
            limit: Maximum number of results

        Returns:
            Products ordered by shared pairs, then rating (nulls last), then id.
            Empty when the source has no attribute values or does not exist.
        """
        pairs = self.source_pairs(product_id)
        if not pairs:
            logger.debug(f"Product {product_id} has no attribute values; no similar products")
            return []

        shared = or_(
            *(
                and_(AttributeValueMap.attribute_id == attribute_id, AttributeValueMap.value == value)
                for attribute_id, value in pairs
            )
        )
        overlap = (
            select(
                AttributeValueMap.product_id.label("product_id"),
                func.count(AttributeValueMap.id).label("match_count"),
            )
            .where(shared, AttributeValueMap.product_id != product_id)
            .group_by(AttributeValueMap.product_id)
            .subquery("overlap")
        )

        stmt = (
            select(*PRODUCT_COLUMNS, overlap.c.match_count)
            .join(overlap, overlap.c.product_id == Product.id)
            .where(*active_products())
            .order_by(
                overlap.c.match_count.desc(),
                Product.average_rating.desc().nulls_last(),
                Product.id.asc(),
            )
            .limit(limit)
        )

        rows = self.store.execute(stmt)
        logger.info(
            f"Found {len(rows)} similar products for {product_id}",
            extra={"source_pairs": len(pairs), "limit": limit},
        )

        return [SimilarProduct.model_validate(dict(row._mapping)) for row in rows]

    def find_related(self, product_id: str, limit: int = 10) -> List[ProductRecord]:
        """
        Other active, visible products of the same brand.

        Featured products come first, then higher rated ones.
        """
        brand_id = self.store.scalar(
            select(Product.brand_id).where(Product.id == product_id)
        )
        if brand_id is None:
            return []

        stmt = (
            select(*PRODUCT_COLUMNS)
            .where(
                *active_visible_products(),
                Product.brand_id == brand_id,
                Product.id != product_id,
            )
            .order_by(
                Product.is_featured.desc(),
                Product.average_rating.desc().nulls_last(),
                Product.id.asc(),
            )
            .limit(limit)
        )

        return [ProductRecord.from_row(row) for row in self.store.execute(stmt)]
