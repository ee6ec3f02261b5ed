"""Error translation for FastAPI endpoints."""

import functools
import logging
from collections.abc import Callable

from fastapi import HTTPException, status

from core.exceptions import (
    IntegrityException,
    ResourceNotFoundException,
    RouteNestException,
    ValidationException,
)

# Checked in order; the base class must stay last.
_STATUS_BY_ERROR: tuple[tuple[type[RouteNestException], int, int], ...] = (
    (ValidationException, status.HTTP_400_BAD_REQUEST, logging.WARNING),
    (IntegrityException, status.HTTP_409_CONFLICT, logging.WARNING),
    (ResourceNotFoundException, status.HTTP_404_NOT_FOUND, logging.INFO),
    (RouteNestException, status.HTTP_500_INTERNAL_SERVER_ERROR, logging.ERROR),
)


def _error_detail(exc: RouteNestException) -> dict | str:
    """Plain message, or the message plus the offending field/id when known."""
    if exc.details and not isinstance(exc, ResourceNotFoundException):
        return {"message": exc.message, **exc.details}
    return exc.message


def api_route(logger: logging.Logger):
    """
    Decorator giving an endpoint the standard error responses.

    ``HTTPException`` passes through untouched. Domain errors become
    400 (validation), 409 (broken stop/route reference), 404 (unknown
    trip, stop or route) or 500; anything else is logged with its
    traceback and returned as a 500.

    Usage:
        @router.get("/api/trips/{trip_id}")
        @api_route(logger)
        async def get_trip(trip_id: str):
            ...
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except HTTPException:
                raise
            except RouteNestException as e:
                for error_type, status_code, level in _STATUS_BY_ERROR:
                    if isinstance(e, error_type):
                        break
                logger.log(
                    level,
                    "%s in %s: %s",
                    type(e).__name__,
                    func.__name__,
                    e.message,
                    exc_info=level >= logging.ERROR,
                )
                raise HTTPException(
                    status_code=status_code,
                    detail=_error_detail(e),
                ) from e
            except Exception as e:
                logger.exception("Unexpected error in %s", func.__name__)
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail=str(e),
                ) from e

        return wrapper

    return decorator
