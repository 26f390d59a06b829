"""
Catalog Store
Query execution boundary over a SQLAlchemy engine.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, List, Mapping, Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine, Row
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql import Executable

from .errors import StoreUnavailableError

logger = logging.getLogger(__name__)


class CatalogStore:
    """
    Read-only access to the catalog database.

    Each call checks out its own connection, so independent statements can
    run on separate threads. At most max_workers statements are in flight at
    once across every gather() on the store, nested ones included. Failures surface as StoreUnavailableError and
    are never retried.
    """

    def __init__(self, engine: Engine, max_workers: int = 1):
        """
        Initialize catalog store.

        Args:
            engine: SQLAlchemy engine
            max_workers: Upper bound on statements executing at once
        """
        self.engine = engine
        self.max_workers = max(1, max_workers)
        self._slots = threading.BoundedSemaphore(self.max_workers)

        logger.debug(f"Catalog store initialized (max_workers={self.max_workers})")

    def execute(
        self, statement: Executable, params: Optional[Mapping[str, Any]] = None
    ) -> List[Row]:
        """
        Execute a parameterized statement and return all rows.

        Raises:
            StoreUnavailableError: If execution fails for any reason
        """
        try:
            with self._slots, self.engine.connect() as conn:
                result = conn.execute(statement, dict(params) if params else None)
                return list(result.fetchall())
        except SQLAlchemyError as e:
            logger.error(f"Catalog query failed: {e}", extra={"error": str(e)})
            raise StoreUnavailableError(
                "Catalog store query failed", details={"error": str(e)}
            ) from e

    def scalar(
        self, statement: Executable, params: Optional[Mapping[str, Any]] = None
    ) -> Any:
        """Execute a statement and return the first column of the first row."""
        rows = self.execute(statement, params)
        return rows[0][0] if rows else None

    def gather(self, *calls: Callable[[], Any]) -> List[Any]:
        """
        Run independent read calls, concurrently when allowed.

        Results come back in call order. The first failure propagates.
        """
        if self.max_workers == 1 or len(calls) < 2:
            return [call() for call in calls]

        workers = min(self.max_workers, len(calls))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [pool.submit(call) for call in calls]
            return [future.result() for future in futures]

    def ping(self) -> bool:
        """Check the database answers a trivial query."""
        return self.scalar(text("SELECT 1")) == 1
