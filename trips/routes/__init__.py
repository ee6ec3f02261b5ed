"""Trip API routes."""

from trips.routes import crud, query, stops

__all__ = ["crud", "query", "stops"]
