"""
Trip planning package.

This package provides modular functionality for:
- Trip CRUD operations
- Stop and route segment editing
- Trip search and discovery
- Aggregate consistency and derived statistics

The package is organized into:
- aggregate.py: Normalization, reordering and statistics of a trip
- routes/: API endpoint handlers organized by domain
- services/: Business logic and persistence
- models.py: Request models
"""

from fastapi import APIRouter

from trips.routes import crud, query, stops

# Create main router that aggregates all trip-related routes
router = APIRouter()

# Query routes first so /api/trips/search is not captured by /api/trips/{trip_id}
router.include_router(query.router, tags=["trips-query"])
router.include_router(crud.router, tags=["trips-crud"])
router.include_router(stops.router, tags=["trips-stops"])

__all__ = ["router"]
