"""
Suggestion Provider
Prefix autocomplete over product names.
"""

import logging
from typing import List

from sqlalchemy import select

from ..db.models import Product
from .predicates import active_visible_products
from .store import CatalogStore

logger = logging.getLogger(__name__)


class SuggestionProvider:
    """Distinct product names starting with a prefix, alphabetically."""

    def __init__(self, store: CatalogStore, min_length: int = 2):
        self.store = store
        self.min_length = min_length

    def suggest(self, prefix: str, limit: int = 10) -> List[str]:
        """
        Get name suggestions for a prefix.

        Matching is case-insensitive. Prefixes shorter than min_length
        return an empty list without querying.
        """
        prefix = (prefix or "").strip()
        if len(prefix) < self.min_length:
            return []

        stmt = (
            select(Product.name)
            .where(
                *active_visible_products(),
                Product.name.istartswith(prefix, autoescape=True),
            )
            .distinct()
            .order_by(Product.name.asc())
            .limit(limit)
        )

        names = [row.name for row in self.store.execute(stmt)]
        logger.debug(f"{len(names)} suggestions for prefix '{prefix}'")
        return names
