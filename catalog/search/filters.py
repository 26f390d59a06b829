"""
Search Filters
Typed description of a catalog search request.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .errors import InvalidArgumentError

logger = logging.getLogger(__name__)


class AttributeOperator(str, Enum):
    """Comparison operators for attribute filters."""

    EQ = "eq"
    NEQ = "neq"
    IN = "in"
    NIN = "nin"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    BETWEEN = "between"
    LIKE = "like"


NUMERIC_OPERATORS = frozenset(
    {AttributeOperator.GT, AttributeOperator.GTE, AttributeOperator.LT,
     AttributeOperator.LTE, AttributeOperator.BETWEEN}
)


class SortKey(str, Enum):
    """Sort keys accepted by search."""

    NAME = "name"
    PRICE = "price"
    CREATED_AT = "createdAt"
    POPULARITY = "popularity"
    RATING = "rating"
    RELEVANCE = "relevance"


class SortOrder(str, Enum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class AttributePredicate:
    """
    Resolved attribute condition.

    Exactly one of attribute_id / attribute_code is set. operands holds
    what the operator needs: one value, a tuple of values, or (min, max).
    """

    attribute_id: Optional[str]
    attribute_code: Optional[str]
    operator: AttributeOperator
    operands: Tuple[Any, ...]


class _FilterModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


def _stored_text(value: Any) -> Any:
    """Normalise a scalar operand to its stored text form."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return value


class AttributeFilter(_FilterModel):
    """
    Single attribute filter.

    Example:
        AttributeFilter(attribute_code="color", operator="in", values=["red", "blue"])
        AttributeFilter(attribute_id=size_id, operator="between", min_value=38, max_value=42)
    """

    attribute_id: Optional[str] = None
    attribute_code: Optional[str] = None
    operator: AttributeOperator = AttributeOperator.EQ
    value: Optional[str] = None
    values: Optional[List[str]] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None

    @field_validator("value", mode="before")
    @classmethod
    def normalise_value(cls, v: Any) -> Any:
        return _stored_text(v)

    @field_validator("values", mode="before")
    @classmethod
    def normalise_values(cls, v: Any) -> Any:
        if isinstance(v, (list, tuple)):
            return [_stored_text(item) for item in v]
        return v

    @model_validator(mode="after")
    def require_attribute_reference(self) -> "AttributeFilter":
        if not self.attribute_id and not self.attribute_code:
            raise ValueError("attribute filter needs attributeId or attributeCode")
        return self

    def to_predicate(self) -> Optional[AttributePredicate]:
        """
        Resolve the filter to a predicate.

        Returns None when the operand required by the operator is missing;
        such a filter is a no-op, not an error.
        """
        op = self.operator
        operands: Optional[Tuple[Any, ...]] = None

        if op in (AttributeOperator.EQ, AttributeOperator.NEQ, AttributeOperator.LIKE):
            if self.value:
                operands = (self.value,)
        elif op in (AttributeOperator.IN, AttributeOperator.NIN):
            if self.values:
                operands = tuple(self.values)
        elif op in (AttributeOperator.GT, AttributeOperator.GTE):
            if self.min_value is not None:
                operands = (self.min_value,)
        elif op in (AttributeOperator.LT, AttributeOperator.LTE):
            if self.max_value is not None:
                operands = (self.max_value,)
        elif op == AttributeOperator.BETWEEN:
            if self.min_value is not None and self.max_value is not None:
                operands = (self.min_value, self.max_value)

        if operands is None:
            logger.debug(
                f"Skipping attribute filter without operand: "
                f"{self.attribute_id or self.attribute_code} {op.value}"
            )
            return None

        return AttributePredicate(
            attribute_id=self.attribute_id,
            attribute_code=None if self.attribute_id else self.attribute_code,
            operator=op,
            operands=operands,
        )


# Fields that shape the page rather than constrain the result set
NON_CONSTRAINT_FIELDS = frozenset(
    {"sort_by", "sort_order", "page", "limit", "offset", "include_facets"}
)


class SearchFilters(_FilterModel):
    """
    Catalog search request.

    Every field is optional; an absent field places no constraint on its
    dimension. Accepts snake_case names and their camelCase aliases.
    """

    # Text search
    query: Optional[str] = None

    # Identity filters
    category_id: Optional[str] = None
    category_ids: Optional[List[str]] = None
    brand_id: Optional[str] = None
    brand_ids: Optional[List[str]] = None
    product_type_id: Optional[str] = None

    # Price range
    min_price: Optional[float] = None
    max_price: Optional[float] = None

    # Status filters
    status: Optional[str] = None
    visibility: Optional[str] = None

    # Boolean flags
    is_featured: Optional[bool] = None
    is_new: Optional[bool] = None
    is_bestseller: Optional[bool] = None
    has_variants: Optional[bool] = None
    in_stock: Optional[bool] = None

    # Dynamic attribute filters
    attributes: List[AttributeFilter] = Field(default_factory=list)

    # Sorting
    sort_by: Optional[SortKey] = None
    sort_order: SortOrder = SortOrder.DESC

    # Pagination
    page: Optional[int] = Field(default=None, ge=1)
    limit: Optional[int] = Field(default=None, ge=1)
    offset: Optional[int] = Field(default=None, ge=0)

    # Facets: None lets the service decide
    include_facets: Optional[bool] = None

    @field_validator("query", mode="before")
    @classmethod
    def blank_query_is_absent(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    def has_constraints(self) -> bool:
        """Whether any field other than sorting/pagination narrows the result set."""
        for name in type(self).model_fields:
            if name in NON_CONSTRAINT_FIELDS:
                continue
            if name == "attributes":
                # Attribute filters missing an operand do not narrow anything
                if self.attribute_predicates():
                    return True
                continue
            value = getattr(self, name)
            if value is None or value == []:
                continue
            return True
        return False

    def wants_facets(self) -> bool:
        """Facets are computed for real searches, not plain listing calls."""
        if self.include_facets is not None:
            return self.include_facets
        return self.has_constraints()

    def attribute_predicates(self) -> List[Tuple[int, AttributePredicate]]:
        """Resolved attribute predicates with their position in the filter list."""
        resolved = []
        for position, attribute_filter in enumerate(self.attributes):
            predicate = attribute_filter.to_predicate()
            if predicate is not None:
                resolved.append((position, predicate))
        return resolved


def parse_filters(filters: Union[SearchFilters, Mapping[str, Any], None]) -> SearchFilters:
    """
    Build SearchFilters from a model or a raw mapping.

    Raises:
        InvalidArgumentError: If the request is structurally malformed
    """
    if filters is None:
        return SearchFilters()
    if isinstance(filters, SearchFilters):
        return filters

    try:
        return SearchFilters.model_validate(dict(filters))
    except ValidationError as e:
        errors = [
            {
                "loc": list(error.get("loc", [])),
                "msg": str(error.get("msg", "")),
                "type": error.get("type", ""),
            }
            for error in e.errors()
        ]
        raise InvalidArgumentError("Invalid search filters", details={"errors": errors}) from e
