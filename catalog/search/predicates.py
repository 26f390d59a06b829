"""
Predicate Composition
Translate SearchFilters into joins, WHERE conditions and an ORDER BY, and
list the values a composed statement binds.
"""

import logging
from dataclasses import dataclass, replace
from functools import reduce
from typing import Any, Callable, List, Optional, Tuple

from sqlalchemy import Boolean, Numeric, Select, and_, case, cast, func, literal, or_, select
from sqlalchemy.engine import Dialect
from sqlalchemy.engine.default import DefaultDialect
from sqlalchemy.orm import aliased
from sqlalchemy.sql.elements import ColumnElement

from ..db.models import (
    Attribute,
    AttributeValueMap,
    Product,
    ProductCategoryMap,
    ProductStatus,
    ProductVisibility,
)
from .errors import InvalidArgumentError
from .filters import AttributeOperator, AttributePredicate, SearchFilters, SortKey, SortOrder

logger = logging.getLogger(__name__)

CATEGORY_JOIN = "category_map"

# qmark rendering gives every placeholder a position
POSITIONAL_DIALECT = DefaultDialect(paramstyle="qmark")

PRODUCT_COLUMNS = tuple(Product.__table__.columns)

TEXT_SEARCH_COLUMNS = (
    Product.name,
    Product.description,
    Product.short_description,
    Product.sku,
    Product.slug,
)

FLAG_COLUMNS = (
    ("is_featured", Product.is_featured),
    ("is_new", Product.is_new),
    ("is_bestseller", Product.is_bestseller),
    ("has_variants", Product.has_variants),
    ("in_stock", Product.in_stock),
)


def not_deleted() -> ColumnElement:
    """Soft-deleted products never match."""
    return Product.deleted_at.is_(None)


def active_products() -> Tuple[ColumnElement, ...]:
    """Non-deleted products with active status."""
    return (not_deleted(), Product.status == ProductStatus.ACTIVE.value)


def active_visible_products() -> Tuple[ColumnElement, ...]:
    """Products shown in customer-facing listings."""
    return active_products() + (Product.visibility == ProductVisibility.VISIBLE.value,)


@dataclass(frozen=True)
class JoinClause:
    """A table (or alias) joined onto the product query."""

    key: str
    target: Any
    onclause: ColumnElement


@dataclass(frozen=True)
class QueryFragments:
    """
    Immutable product query under construction.

    Composition steps never modify an instance; they return a new one.
    Filter values live in the expressions as bind parameters; see
    bound_parameters() for the list a statement sends to the driver.
    """

    joins: Tuple[JoinClause, ...] = ()
    conditions: Tuple[ColumnElement, ...] = ()
    order_by: Tuple[ColumnElement, ...] = ()

    def has_join(self, key: str) -> bool:
        return any(clause.key == key for clause in self.joins)

    def join(self, key: str, target: Any, onclause: ColumnElement) -> "QueryFragments":
        """Add a join; a join already present under the same key is kept as is."""
        if self.has_join(key):
            return self
        return replace(self, joins=self.joins + (JoinClause(key, target, onclause),))

    def where(self, condition: ColumnElement) -> "QueryFragments":
        return replace(self, conditions=self.conditions + (condition,))

    def ordered(self, *expressions: ColumnElement) -> "QueryFragments":
        return replace(self, order_by=tuple(expressions))

    def matching_ids(self) -> Select:
        """Distinct ids of products satisfying every condition."""
        stmt = select(Product.id).select_from(Product)
        for clause in self.joins:
            stmt = stmt.join(clause.target, clause.onclause)
        return stmt.where(*self.conditions).distinct()

    def count_statement(self) -> Select:
        """COUNT of matching products, ignoring pagination."""
        return select(func.count()).select_from(self.matching_ids().subquery("matched"))

    def page_statement(self, limit: int, offset: int) -> Select:
        """One page of matching products, one row per product."""
        matched = self.matching_ids().subquery("matched")
        return (
            select(*PRODUCT_COLUMNS)
            .join(matched, matched.c.id == Product.id)
            .order_by(*self.order_by)
            .limit(limit)
            .offset(offset)
        )


def bound_parameters(statement: Select, dialect: Optional[Dialect] = None) -> Tuple[Any, ...]:
    """
    Values a statement binds, flattened in placeholder order.

    Expanding IN lists contribute each of their elements, which is what the
    driver receives once the list is rendered. A value used by several
    placeholders appears once per placeholder.

    Args:
        statement: Statement to compile
        dialect: Target dialect (positional qmark rendering if None)
    """
    compiled = statement.compile(dialect=dialect or POSITIONAL_DIALECT)
    values = compiled.params

    if compiled.positiontup is not None:
        names = list(compiled.positiontup)
    else:
        names = list(compiled.bind_names.values())

    flat: List[Any] = []
    for name in names:
        if compiled.binds[name].expanding:
            flat.extend(values[name])
        else:
            flat.append(values[name])
    return tuple(flat)


Step = Callable[[QueryFragments, SearchFilters], QueryFragments]


def _exclude_deleted(fragments: QueryFragments, filters: SearchFilters) -> QueryFragments:
    return fragments.where(not_deleted())


def _text_query(fragments: QueryFragments, filters: SearchFilters) -> QueryFragments:
    if not filters.query:
        return fragments
    term = filters.query
    condition = or_(*(column.icontains(term, autoescape=True) for column in TEXT_SEARCH_COLUMNS))
    return fragments.where(condition)


def _categories(fragments: QueryFragments, filters: SearchFilters) -> QueryFragments:
    if not filters.category_id and not filters.category_ids:
        return fragments

    fragments = fragments.join(
        CATEGORY_JOIN, ProductCategoryMap, ProductCategoryMap.product_id == Product.id
    )
    if filters.category_id:
        fragments = fragments.where(ProductCategoryMap.category_id == filters.category_id)
    if filters.category_ids:
        fragments = fragments.where(ProductCategoryMap.category_id.in_(filters.category_ids))
    return fragments


def _brands(fragments: QueryFragments, filters: SearchFilters) -> QueryFragments:
    if filters.brand_id:
        fragments = fragments.where(Product.brand_id == filters.brand_id)
    if filters.brand_ids:
        fragments = fragments.where(Product.brand_id.in_(filters.brand_ids))
    return fragments


def _product_type(fragments: QueryFragments, filters: SearchFilters) -> QueryFragments:
    if filters.product_type_id:
        fragments = fragments.where(Product.product_type_id == filters.product_type_id)
    return fragments


def _price_range(fragments: QueryFragments, filters: SearchFilters) -> QueryFragments:
    if filters.min_price is not None:
        fragments = fragments.where(Product.price >= filters.min_price)
    if filters.max_price is not None:
        fragments = fragments.where(Product.price <= filters.max_price)
    return fragments


def _status(fragments: QueryFragments, filters: SearchFilters) -> QueryFragments:
    if filters.status:
        fragments = fragments.where(Product.status == filters.status)
    if filters.visibility:
        fragments = fragments.where(Product.visibility == filters.visibility)
    return fragments


def _flags(fragments: QueryFragments, filters: SearchFilters) -> QueryFragments:
    for name, column in FLAG_COLUMNS:
        value = getattr(filters, name)
        if value is not None:
            fragments = fragments.where(column == literal(value, Boolean))
    return fragments


def _attribute_condition(value_column: Any, predicate: AttributePredicate) -> ColumnElement:
    op = predicate.operator
    operands = predicate.operands

    if op == AttributeOperator.EQ:
        return value_column == operands[0]
    if op == AttributeOperator.NEQ:
        return value_column != operands[0]
    if op == AttributeOperator.IN:
        return value_column.in_(list(operands))
    if op == AttributeOperator.NIN:
        return value_column.not_in(list(operands))
    if op == AttributeOperator.LIKE:
        return value_column.icontains(operands[0], autoescape=True)

    numeric_value = cast(value_column, Numeric)
    if op == AttributeOperator.GT:
        return numeric_value > operands[0]
    if op == AttributeOperator.GTE:
        return numeric_value >= operands[0]
    if op == AttributeOperator.LT:
        return numeric_value < operands[0]
    if op == AttributeOperator.LTE:
        return numeric_value <= operands[0]
    return numeric_value.between(operands[0], operands[1])


def _attribute(fragments: QueryFragments, position: int, predicate: AttributePredicate) -> QueryFragments:
    # One alias per filter: the value map is joined once for every attribute filtered on
    value_key = f"pav_{position}"
    value_map = aliased(AttributeValueMap, name=value_key)

    if predicate.attribute_id:
        fragments = fragments.join(
            value_key,
            value_map,
            and_(
                value_map.product_id == Product.id,
                value_map.attribute_id == predicate.attribute_id,
            ),
        )
    else:
        attribute_key = f"pa_{position}"
        attribute = aliased(Attribute, name=attribute_key)
        fragments = fragments.join(
            value_key, value_map, value_map.product_id == Product.id
        ).join(
            attribute_key,
            attribute,
            and_(
                attribute.id == value_map.attribute_id,
                attribute.code == predicate.attribute_code,
            ),
        )

    return fragments.where(_attribute_condition(value_map.value, predicate))


def _attributes(fragments: QueryFragments, filters: SearchFilters) -> QueryFragments:
    return reduce(
        lambda acc, item: _attribute(acc, item[0], item[1]),
        filters.attribute_predicates(),
        fragments,
    )


def _direction(column: Any, order: SortOrder) -> ColumnElement:
    return column.asc() if order == SortOrder.ASC else column.desc()


def _ordering(fragments: QueryFragments, filters: SearchFilters) -> QueryFragments:
    order = filters.sort_order
    sort_by = filters.sort_by

    if sort_by == SortKey.NAME:
        expressions = (_direction(Product.name, order),)
    elif sort_by == SortKey.PRICE:
        expressions = (_direction(Product.price, order),)
    elif sort_by == SortKey.CREATED_AT:
        expressions = (_direction(Product.created_at, order),)
    elif sort_by == SortKey.POPULARITY:
        expressions = (
            _direction(Product.review_count, order),
            _direction(Product.average_rating, order).nulls_last(),
        )
    elif sort_by == SortKey.RATING:
        expressions = (_direction(Product.average_rating, order).nulls_last(),)
    elif sort_by == SortKey.RELEVANCE and filters.query:
        term = filters.query
        rank = case(
            (func.lower(Product.name) == term.lower(), 1),
            (Product.name.icontains(term, autoescape=True), 2),
            (Product.sku == term, 3),
            else_=4,
        )
        expressions = (rank.asc(), Product.is_featured.desc(), Product.created_at.desc())
    else:
        expressions = (Product.created_at.desc(),)

    # Product id keeps equal sort keys in a stable order across pages
    return fragments.ordered(*expressions, Product.id.asc())


COMPOSITION_STEPS: Tuple[Step, ...] = (
    _exclude_deleted,
    _text_query,
    _categories,
    _brands,
    _product_type,
    _price_range,
    _status,
    _flags,
    _attributes,
    _ordering,
)


def _validate(filters: SearchFilters) -> None:
    if filters.limit is not None and filters.limit < 1:
        raise InvalidArgumentError("limit must be positive", details={"limit": filters.limit})
    if filters.page is not None and filters.page < 1:
        raise InvalidArgumentError("page must be positive", details={"page": filters.page})
    if filters.offset is not None and filters.offset < 0:
        raise InvalidArgumentError("offset must not be negative", details={"offset": filters.offset})
    if filters.sort_by is not None and not isinstance(filters.sort_by, SortKey):
        raise InvalidArgumentError("Unknown sort key", details={"sort_by": str(filters.sort_by)})
    if not isinstance(filters.sort_order, SortOrder):
        raise InvalidArgumentError(
            "Unknown sort order", details={"sort_order": str(filters.sort_order)}
        )


class PredicateComposer:
    """
    Builds the product query fragments for a search request.

    Composition is a fold over COMPOSITION_STEPS; each step reads the filters
    and returns extended fragments.
    """

    def compose(self, filters: SearchFilters) -> QueryFragments:
        """
        Compose joins, conditions and ordering for the filters.

        Args:
            filters: Search filters

        Returns:
            QueryFragments ready to be turned into count/page statements

        Raises:
            InvalidArgumentError: If the filters are structurally invalid
        """
        _validate(filters)

        fragments = reduce(
            lambda acc, step: step(acc, filters), COMPOSITION_STEPS, QueryFragments()
        )

        logger.debug(
            f"Composed search: {len(fragments.joins)} joins, "
            f"{len(fragments.conditions)} conditions, {len(fragments.order_by)} sort keys"
        )

        return fragments
