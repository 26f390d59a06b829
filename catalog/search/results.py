"""
Search Results
Pydantic models returned by the catalog search operations.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _ResultModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProductRecord(_ResultModel):
    """Single catalog product."""

    id: str = Field(..., description="Product ID")
    sku: str
    name: str
    slug: str
    description: Optional[str] = None
    short_description: Optional[str] = None
    brand_id: Optional[str] = None
    product_type_id: Optional[str] = None
    status: str
    visibility: str
    price: float
    is_featured: bool = False
    is_new: bool = False
    is_bestseller: bool = False
    has_variants: bool = False
    in_stock: bool = True
    average_rating: Optional[float] = Field(None, description="Average customer rating")
    review_count: int = 0
    created_at: Optional[datetime] = None

    @field_validator("price", "average_rating", mode="before")
    @classmethod
    def decimal_to_float(cls, v: Any) -> Any:
        return float(v) if v is not None else v

    @field_validator("review_count", mode="before")
    @classmethod
    def missing_count_is_zero(cls, v: Any) -> Any:
        return 0 if v is None else v

    @classmethod
    def from_row(cls, row: Any) -> "ProductRecord":
        """Build from a result row selecting product columns."""
        return cls.model_validate(dict(row._mapping))


class SimilarProduct(ProductRecord):
    """Product with the number of (attribute, value) pairs it shares with the source."""

    match_count: int = Field(..., ge=1, description="Shared attribute values")


class FacetValue(_ResultModel):
    """Category or brand facet entry."""

    id: str
    name: str
    count: int


class PriceRangeFacet(_ResultModel):
    """Price bucket with the number of products inside it."""

    min: float
    max: float
    count: int = Field(..., gt=0)


class AttributeFacetValue(_ResultModel):
    value: str
    display_value: str
    count: int


class AttributeFacet(_ResultModel):
    """Value counts of one filterable attribute."""

    attribute_id: str
    attribute_code: str
    attribute_name: str
    type: str
    values: List[AttributeFacetValue] = Field(default_factory=list)


class SearchFacets(_ResultModel):
    """Aggregate counts that drive filter UIs."""

    categories: List[FacetValue] = Field(default_factory=list)
    brands: List[FacetValue] = Field(default_factory=list)
    price_ranges: List[PriceRangeFacet] = Field(default_factory=list)
    attributes: List[AttributeFacet] = Field(default_factory=list)


class ProductSearchResult(_ResultModel):
    """
    Search response.

    total counts every matching product; products holds one page of them.
    """

    products: List[ProductRecord] = Field(default_factory=list)
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=0)
    facets: Optional[SearchFacets] = None
