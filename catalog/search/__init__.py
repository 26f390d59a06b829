"""
Catalog Search
Filtered, paginated product search with facets, similarity and suggestions.
"""

from .errors import CatalogSearchError, InvalidArgumentError, StoreUnavailableError
from .filters import (
    AttributeFilter,
    AttributeOperator,
    AttributePredicate,
    SearchFilters,
    SortKey,
    SortOrder,
    parse_filters,
)
from .predicates import PredicateComposer, QueryFragments, bound_parameters
from .store import CatalogStore
from .executor import PageWindow, SearchExecutor, SearchPage
from .facets import FacetComputer, price_bucket_bounds
from .similarity import SimilarityMatcher
from .suggestions import SuggestionProvider
from .attribute_lookup import AttributeLookup
from .results import (
    AttributeFacet,
    AttributeFacetValue,
    FacetValue,
    PriceRangeFacet,
    ProductRecord,
    ProductSearchResult,
    SearchFacets,
    SimilarProduct,
)
from .search_service import ProductSearchService

__all__ = [
    # Errors
    "CatalogSearchError",
    "InvalidArgumentError",
    "StoreUnavailableError",
    # Filters
    "AttributeFilter",
    "AttributeOperator",
    "AttributePredicate",
    "SearchFilters",
    "SortKey",
    "SortOrder",
    "parse_filters",
    # Components
    "PredicateComposer",
    "QueryFragments",
    "bound_parameters",
    "CatalogStore",
    "PageWindow",
    "SearchExecutor",
    "SearchPage",
    "FacetComputer",
    "price_bucket_bounds",
    "SimilarityMatcher",
    "SuggestionProvider",
    "AttributeLookup",
    # Results
    "AttributeFacet",
    "AttributeFacetValue",
    "FacetValue",
    "PriceRangeFacet",
    "ProductRecord",
    "ProductSearchResult",
    "SearchFacets",
    "SimilarProduct",
    # Service
    "ProductSearchService",
]
