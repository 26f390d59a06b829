"""
Facet Computation
Aggregate counts over active, visible products for filter UIs.
"""

import logging
import time
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Tuple

from sqlalchemy import and_, distinct, func, select

from ..db.models import (
    Attribute,
    AttributeValue,
    AttributeValueMap,
    Brand,
    Category,
    Product,
    ProductCategoryMap,
)
from .predicates import active_visible_products
from .results import (
    AttributeFacet,
    AttributeFacetValue,
    FacetValue,
    PriceRangeFacet,
    SearchFacets,
)
from .store import CatalogStore

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def price_bucket_bounds(
    min_price: Decimal, max_price: Decimal, bucket_count: int
) -> List[Tuple[Decimal, Decimal]]:
    """
    Split [min_price, max_price] into equal-width buckets.

    Bounds are rounded to cents and the last bucket always ends at
    max_price. A zero-width range yields a single bucket.
    """
    if max_price <= min_price:
        return [(min_price, max_price)]

    width = (max_price - min_price) / bucket_count
    edges = [
        (min_price + width * i).quantize(CENT, rounding=ROUND_HALF_UP)
        for i in range(bucket_count)
    ]
    edges.append(max_price)

    return [(edges[i], edges[i + 1]) for i in range(bucket_count)]


class FacetComputer:
    """
    Computes category, brand, price-range and attribute facets.

    Facets describe the active, visible catalog as a whole; they do not
    narrow with the filters of the current search.
    """

    def __init__(self, store: CatalogStore, facet_limit: int = 20, price_bucket_count: int = 5):
        """
        Initialize facet computer.

        Args:
            store: Catalog store
            facet_limit: Maximum categories/brands reported
            price_bucket_count: Number of equal-width price buckets
        """
        self.store = store
        self.facet_limit = facet_limit
        self.price_bucket_count = price_bucket_count

    def compute(self) -> SearchFacets:
        """Compute all four facet families as independent round trips."""
        start_time = time.time()

        categories, brands, price_ranges, attributes = self.store.gather(
            self.category_facets,
            self.brand_facets,
            self.price_range_facets,
            self.attribute_facets,
        )

        logger.info(
            f"Facets computed in {(time.time() - start_time) * 1000:.2f}ms",
            extra={
                "categories": len(categories),
                "brands": len(brands),
                "price_ranges": len(price_ranges),
                "attributes": len(attributes),
            },
        )

        return SearchFacets(
            categories=categories,
            brands=brands,
            price_ranges=price_ranges,
            attributes=attributes,
        )

    def category_facets(self) -> List[FacetValue]:
        """Top categories by number of products."""
        product_count = func.count(distinct(Product.id)).label("product_count")
        stmt = (
            select(Category.id, Category.name, product_count)
            .select_from(Product)
            .join(ProductCategoryMap, ProductCategoryMap.product_id == Product.id)
            .join(Category, Category.id == ProductCategoryMap.category_id)
            .where(*active_visible_products())
            .group_by(Category.id, Category.name)
            .order_by(product_count.desc(), Category.name.asc(), Category.id.asc())
            .limit(self.facet_limit)
        )

        return [
            FacetValue(id=row.id, name=row.name, count=row.product_count)
            for row in self.store.execute(stmt)
        ]

    def brand_facets(self) -> List[FacetValue]:
        """Top brands by number of products."""
        product_count = func.count(distinct(Product.id)).label("product_count")
        stmt = (
            select(Brand.id, Brand.name, product_count)
            .select_from(Product)
            .join(Brand, Brand.id == Product.brand_id)
            .where(*active_visible_products())
            .group_by(Brand.id, Brand.name)
            .order_by(product_count.desc(), Brand.name.asc(), Brand.id.asc())
            .limit(self.facet_limit)
        )

        return [
            FacetValue(id=row.id, name=row.name, count=row.product_count)
            for row in self.store.execute(stmt)
        ]

    def price_range_facets(self) -> List[PriceRangeFacet]:
        """Equal-width price buckets over the live price range; empty buckets omitted."""
        bounds_stmt = select(func.min(Product.price), func.max(Product.price)).where(
            *active_visible_products()
        )
        rows = self.store.execute(bounds_stmt)
        if not rows or rows[0][0] is None:
            return []

        min_price = Decimal(str(rows[0][0]))
        max_price = Decimal(str(rows[0][1]))
        buckets = price_bucket_bounds(min_price, max_price, self.price_bucket_count)

        def count_bucket(index: int, low: Decimal, high: Decimal):
            last = index == len(buckets) - 1
            upper = Product.price <= high if last else Product.price < high
            stmt = select(func.count(Product.id)).where(
                *active_visible_products(), and_(Product.price >= low, upper)
            )
            return lambda: self.store.scalar(stmt)

        counts = self.store.gather(
            *(count_bucket(i, low, high) for i, (low, high) in enumerate(buckets))
        )

        return [
            PriceRangeFacet(min=float(low), max=float(high), count=int(count))
            for (low, high), count in zip(buckets, counts)
            if count
        ]

    def attribute_facets(self) -> List[AttributeFacet]:
        """
        Value counts per filterable attribute.

        Display values come from the lookup table when present. Attributes are
        ordered by position, values by count descending.
        """
        product_count = func.count(distinct(AttributeValueMap.product_id)).label("product_count")
        display_value = func.coalesce(
            func.max(AttributeValue.display_value), AttributeValueMap.value
        ).label("display_value")

        stmt = (
            select(
                Attribute.id,
                Attribute.code,
                Attribute.name,
                Attribute.type,
                AttributeValueMap.value,
                display_value,
                product_count,
            )
            .select_from(Attribute)
            .join(AttributeValueMap, AttributeValueMap.attribute_id == Attribute.id)
            .join(Product, Product.id == AttributeValueMap.product_id)
            .outerjoin(
                AttributeValue,
                and_(
                    AttributeValue.attribute_id == Attribute.id,
                    AttributeValue.value == AttributeValueMap.value,
                ),
            )
            .where(
                Attribute.is_filterable.is_(True),
                AttributeValueMap.value.is_not(None),
                *active_visible_products(),
            )
            .group_by(
                Attribute.id,
                Attribute.code,
                Attribute.name,
                Attribute.type,
                Attribute.position,
                AttributeValueMap.value,
            )
            .order_by(
                Attribute.position.asc(),
                Attribute.name.asc(),
                Attribute.id.asc(),
                product_count.desc(),
                AttributeValueMap.value.asc(),
            )
        )

        facets: List[AttributeFacet] = []
        by_attribute = {}

        for row in self.store.execute(stmt):
            facet = by_attribute.get(row.id)
            if facet is None:
                facet = AttributeFacet(
                    attribute_id=row.id,
                    attribute_code=row.code,
                    attribute_name=row.name,
                    type=row.type,
                )
                by_attribute[row.id] = facet
                facets.append(facet)

            facet.values.append(
                AttributeFacetValue(
                    value=row.value,
                    display_value=row.display_value,
                    count=row.product_count,
                )
            )

        return facets
