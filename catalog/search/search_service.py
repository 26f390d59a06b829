"""
Product Search Service
Single entry point for search, facets, suggestions and similarity.
"""

import logging
import time
from typing import Any, List, Mapping, Optional, Union

from ..config import CatalogSettings, get_settings
from .attribute_lookup import AttributeLookup
from .errors import InvalidArgumentError
from .executor import PageWindow, SearchExecutor
from .facets import FacetComputer
from .filters import SearchFilters, parse_filters
from .predicates import PredicateComposer
from .results import ProductRecord, ProductSearchResult, SimilarProduct
from .similarity import SimilarityMatcher
from .store import CatalogStore
from .suggestions import SuggestionProvider

logger = logging.getLogger(__name__)


def _check_limit(limit: Optional[int]) -> int:
    if limit is None or limit < 1:
        raise InvalidArgumentError("limit must be positive", details={"limit": limit})
    return limit


class ProductSearchService:
    """
    Catalog search service.

    Wires together:
    - Predicate composition and paged execution
    - Facet computation
    - Attribute-overlap similarity and same-brand related products
    - Name suggestions and exact attribute lookup
    """

    def __init__(self, store: CatalogStore, settings: Optional[CatalogSettings] = None):
        """
        Initialize search service.

        Args:
            store: Catalog store used for every query
            settings: Catalog settings (uses global if None)
        """
        self.store = store
        self.settings = settings or get_settings()

        self.composer = PredicateComposer()
        self.executor = SearchExecutor(store)
        self.facets = FacetComputer(
            store,
            facet_limit=self.settings.facet_limit,
            price_bucket_count=self.settings.price_bucket_count,
        )
        self.similarity = SimilarityMatcher(store)
        self.suggestions = SuggestionProvider(
            store, min_length=self.settings.suggestion_min_length
        )
        self.attribute_lookup = AttributeLookup(store)

        logger.debug("Product search service initialized")

    def search(
        self, filters: Union[SearchFilters, Mapping[str, Any], None] = None
    ) -> ProductSearchResult:
        """
        Search the catalog.

        Args:
            filters: SearchFilters or a raw (camelCase or snake_case) mapping

        Returns:
            ProductSearchResult; facets are attached when requested, or when
            the request carries a query or any constraint

        Raises:
            InvalidArgumentError: If the request is malformed
            StoreUnavailableError: If the store fails
        """
        start_time = time.time()

        filters = parse_filters(filters)
        fragments = self.composer.compose(filters)
        window = PageWindow.resolve(
            filters,
            default_limit=self.settings.default_page_size,
            max_limit=self.settings.max_page_size,
        )

        if filters.wants_facets():
            page, facets = self.store.gather(
                lambda: self.executor.execute(fragments, window),
                self.facets.compute,
            )
        else:
            page = self.executor.execute(fragments, window)
            facets = None

        total_time = (time.time() - start_time) * 1000
        logger.info(
            f"Search completed: {page.total} products in {total_time:.2f}ms",
            extra={
                "query": filters.query,
                "page": page.page,
                "limit": page.limit,
                "facets": facets is not None,
            },
        )

        return ProductSearchResult(
            products=page.products,
            total=page.total,
            page=page.page,
            limit=page.limit,
            total_pages=page.total_pages,
            facets=facets,
        )

    def get_suggestions(self, prefix: str, limit: Optional[int] = None) -> List[str]:
        """Product names starting with prefix (case-insensitive)."""
        limit = _check_limit(self.settings.suggestion_limit if limit is None else limit)
        return self.suggestions.suggest(prefix, limit)

    def find_similar(self, product_id: str, limit: Optional[int] = None) -> List[SimilarProduct]:
        """Products sharing the most attribute values with product_id."""
        limit = _check_limit(self.settings.similar_limit if limit is None else limit)
        return self.similarity.find_similar(product_id, limit)

    def find_related(self, product_id: str, limit: Optional[int] = None) -> List[ProductRecord]:
        """Other products of the same brand."""
        limit = _check_limit(self.settings.similar_limit if limit is None else limit)
        return self.similarity.find_related(product_id, limit)

    def find_by_attribute(self, attribute_code: str, value: str) -> List[ProductRecord]:
        """Products whose attribute equals value exactly."""
        if not attribute_code:
            raise InvalidArgumentError("attribute_code is required")
        return self.attribute_lookup.find_by_attribute(attribute_code, value)
