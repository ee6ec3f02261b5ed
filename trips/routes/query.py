"""API routes for trip search and discovery."""

import logging

from fastapi import APIRouter, Query

from core.api import api_route
from db.models import TripCategory
from trips.services import TripQueryService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/trips/search", tags=["Trips API"])
@api_route(logger)
async def search_trips(
    q: str | None = None,
    category: TripCategory | None = None,
    tags: list[str] | None = Query(None),
    owner_id: str | None = None,
    is_public: bool | None = None,
    is_template: bool | None = None,
    limit: int = Query(20, ge=1, le=100),
):
    """Search trips by text, category, tags, owner and visibility flags."""
    trips = await TripQueryService.search_trips(
        text=q,
        category=category,
        tags=tags,
        owner_id=owner_id,
        is_public=is_public,
        is_template=is_template,
        limit=limit,
    )
    return {"status": "success", "total": len(trips), "trips": trips}


@router.get("/api/trips/public", tags=["Trips API"])
@api_route(logger)
async def list_public_trips(limit: int = Query(20, ge=1, le=100)):
    """Public trips, best rated first."""
    trips = await TripQueryService.list_public_trips(limit)
    return {"status": "success", "total": len(trips), "trips": trips}


@router.get("/api/trips/templates", tags=["Trips API"])
@api_route(logger)
async def list_templates(limit: int = Query(20, ge=1, le=100)):
    """Trips that can be used as templates."""
    trips = await TripQueryService.list_templates(limit)
    return {"status": "success", "total": len(trips), "trips": trips}


@router.get("/api/trips/{trip_id}/stats", tags=["Trips API"])
@api_route(logger)
async def get_trip_stats(trip_id: str):
    """Statistics derived from the trip's current stops and routes."""
    stats = await TripQueryService.get_trip_stats(trip_id)
    return {"status": "success", "stats": stats}
