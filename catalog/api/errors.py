"""
Error Handlers
Map catalog search exceptions to HTTP responses.
"""

import logging
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..search.errors import CatalogSearchError, InvalidArgumentError, StoreUnavailableError

logger = logging.getLogger(__name__)


def _error_body(message: str, error_type: str, details=None) -> dict:
    return {"error": {"message": message, "type": error_type, "details": details or {}}}


def status_code_for(exc: CatalogSearchError) -> int:
    """HTTP status for a catalog search error."""
    if isinstance(exc, InvalidArgumentError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, StoreUnavailableError):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def setup_error_handlers(app: FastAPI) -> None:
    """
    Set up error handlers for the FastAPI app.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(CatalogSearchError)
    async def catalog_error_handler(request: Request, exc: CatalogSearchError):
        """Handle catalog search errors."""
        status_code = status_code_for(exc)
        log = logger.warning if status_code < 500 else logger.error
        log(
            f"Catalog error: {exc.message}",
            extra={"status_code": status_code, "details": exc.details, "path": request.url.path},
        )

        return JSONResponse(
            status_code=status_code,
            content=_error_body(exc.message, exc.__class__.__name__, exc.details),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        """Handle request validation errors."""
        logger.warning(f"Validation error: {exc}", extra={"path": request.url.path})

        errors = [
            {
                "loc": list(error.get("loc", [])),
                "msg": str(error.get("msg", "")),
                "type": error.get("type", ""),
            }
            for error in exc.errors()
        ]

        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_error_body("Request validation failed", "InvalidArgumentError", {"errors": errors}),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.error(f"Unexpected error: {exc}", exc_info=True, extra={"path": request.url.path})

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body("An unexpected error occurred", "InternalServerError"),
        )
