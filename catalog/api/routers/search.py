"""
Product Search Endpoints
Search, suggestions, similar/related products and attribute lookup.
"""

import logging
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Body, Depends, Query, status
from pydantic import BaseModel

from ...search import ProductSearchService
from ..dependencies import get_request_id, get_search_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/products", tags=["products"])


def _envelope(data: Any) -> Dict[str, Any]:
    """Wrap response data as {"success": true, "data": ...} with camelCase keys."""
    if isinstance(data, BaseModel):
        data = data.model_dump(by_alias=True, mode="json")
    elif isinstance(data, list):
        data = [
            item.model_dump(by_alias=True, mode="json") if isinstance(item, BaseModel) else item
            for item in data
        ]
    return {"success": True, "data": data}


@router.post("/search", status_code=status.HTTP_200_OK)
def search_products(
    filters: Optional[Dict[str, Any]] = Body(None),
    service: ProductSearchService = Depends(get_search_service),
    request_id: str = Depends(get_request_id),
) -> Dict[str, Any]:
    """
    Search products with a JSON filter body.

    The body is validated by the search service so malformed filters
    produce the catalog's 400 envelope.
    """
    filters = filters or {}
    logger.info(f"Search request: query='{filters.get('query')}'", extra={"request_id": request_id})
    return _envelope(service.search(filters))


@router.get("/search", status_code=status.HTTP_200_OK)
def search_products_get(
    q: Optional[str] = Query(None, description="Text query"),
    category_id: Optional[str] = Query(None, alias="categoryId"),
    category_ids: Optional[List[str]] = Query(None, alias="categoryIds"),
    brand_id: Optional[str] = Query(None, alias="brandId"),
    brand_ids: Optional[List[str]] = Query(None, alias="brandIds"),
    min_price: Optional[str] = Query(None, alias="minPrice"),
    max_price: Optional[str] = Query(None, alias="maxPrice"),
    is_featured: Optional[str] = Query(None, alias="isFeatured"),
    in_stock: Optional[str] = Query(None, alias="inStock"),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    offset: Optional[str] = Query(None),
    include_facets: Optional[str] = Query(None, alias="includeFacets"),
    service: ProductSearchService = Depends(get_search_service),
    request_id: str = Depends(get_request_id),
) -> Dict[str, Any]:
    """Search products with the common filters passed as query parameters."""
    raw = {
        "query": q,
        "category_id": category_id,
        "category_ids": category_ids,
        "brand_id": brand_id,
        "brand_ids": brand_ids,
        "min_price": min_price,
        "max_price": max_price,
        "is_featured": is_featured,
        "in_stock": in_stock,
        "sort_by": sort_by,
        "sort_order": sort_order,
        "page": page,
        "limit": limit,
        "offset": offset,
        "include_facets": include_facets,
    }
    filters = {key: value for key, value in raw.items() if value is not None}

    logger.info(f"Search request: query='{q}'", extra={"request_id": request_id})
    return _envelope(service.search(filters))


@router.get("/search/suggestions", status_code=status.HTTP_200_OK)
def search_suggestions(
    q: str = Query("", description="Name prefix"),
    limit: Optional[int] = Query(None),
    service: ProductSearchService = Depends(get_search_service),
) -> Dict[str, Any]:
    """Autocomplete product names."""
    return _envelope(service.get_suggestions(q, limit))


@router.get("/by-attribute/{attribute_code}/{value}", status_code=status.HTTP_200_OK)
def products_by_attribute(
    attribute_code: str,
    value: str,
    service: ProductSearchService = Depends(get_search_service),
) -> Dict[str, Any]:
    """Products with an exact attribute value."""
    return _envelope(service.find_by_attribute(attribute_code, value))


@router.get("/{product_id}/similar", status_code=status.HTTP_200_OK)
def similar_products(
    product_id: str,
    limit: Optional[int] = Query(None),
    service: ProductSearchService = Depends(get_search_service),
) -> Dict[str, Any]:
    """Products sharing the most attribute values with product_id."""
    return _envelope(service.find_similar(product_id, limit))


@router.get("/{product_id}/related", status_code=status.HTTP_200_OK)
def related_products(
    product_id: str,
    limit: Optional[int] = Query(None),
    service: ProductSearchService = Depends(get_search_service),
) -> Dict[str, Any]:
    """Other products of the same brand."""
    return _envelope(service.find_related(product_id, limit))
