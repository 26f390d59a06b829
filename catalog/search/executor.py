"""
Search Executor
Runs the composed count and page queries and assembles pagination metadata.
"""

import logging
import math
import time
from dataclasses import dataclass
from typing import List

from .errors import InvalidArgumentError
from .filters import SearchFilters
from .predicates import QueryFragments, bound_parameters
from .results import ProductRecord
from .store import CatalogStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageWindow:
    """Resolved pagination for one request."""

    page: int
    limit: int
    offset: int

    @classmethod
    def resolve(cls, filters: SearchFilters, default_limit: int, max_limit: int) -> "PageWindow":
        """
        Resolve page/limit/offset.

        An explicit offset takes precedence over (page - 1) * limit, and the
        reported page is derived from it.
        """
        limit = filters.limit if filters.limit is not None else default_limit
        if limit < 1:
            raise InvalidArgumentError("limit must be positive", details={"limit": limit})
        if limit > max_limit:
            raise InvalidArgumentError(
                f"limit must not exceed {max_limit}", details={"limit": limit}
            )

        if filters.offset is not None:
            offset = filters.offset
            page = offset // limit + 1
        else:
            page = filters.page if filters.page is not None else 1
            offset = (page - 1) * limit

        return cls(page=page, limit=limit, offset=offset)


@dataclass
class SearchPage:
    """Products of one page plus totals."""

    products: List[ProductRecord]
    total: int
    page: int
    limit: int
    total_pages: int


class SearchExecutor:
    """
    Executes composed searches.

    The count and page queries share nothing but the fragments, so they are
    issued through the store's gather().
    """

    def __init__(self, store: CatalogStore):
        self.store = store

    def execute(self, fragments: QueryFragments, window: PageWindow) -> SearchPage:
        """
        Run count and page queries.

        Args:
            fragments: Composed query fragments
            window: Resolved pagination

        Returns:
            SearchPage (empty products list when nothing matches)
        """
        start_time = time.time()

        count_stmt = fragments.count_statement()
        page_stmt = fragments.page_statement(window.limit, window.offset)

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                f"Count query binds {bound_parameters(count_stmt, self.store.engine.dialect)}"
            )

        total, rows = self.store.gather(
            lambda: self.store.scalar(count_stmt),
            lambda: self.store.execute(page_stmt),
        )

        total = int(total or 0)
        products = [ProductRecord.from_row(row) for row in rows]
        total_pages = math.ceil(total / window.limit)

        logger.info(
            f"Search executed: {len(products)} of {total} products in "
            f"{(time.time() - start_time) * 1000:.2f}ms",
            extra={"page": window.page, "limit": window.limit, "offset": window.offset},
        )

        return SearchPage(
            products=products,
            total=total,
            page=window.page,
            limit=window.limit,
            total_pages=total_pages,
        )
