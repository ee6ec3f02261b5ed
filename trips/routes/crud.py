"""API routes for trip CRUD operations."""

import logging

from fastapi import APIRouter, Query, status

from core.api import api_route
from trips.models import TripCreateRequest, TripUpdateRequest
from trips.services import TripCrudService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/trips", tags=["Trips API"])
@api_route(logger)
async def list_trips(limit: int | None = Query(None, ge=1)):
    """List all trips, most recently updated first."""
    trips = await TripCrudService.list_trips(limit)
    return {"status": "success", "total": len(trips), "trips": trips}


@router.post("/api/trips", status_code=status.HTTP_201_CREATED, tags=["Trips API"])
@api_route(logger)
async def create_trip(trip_data: TripCreateRequest):
    """Create a trip, optionally with initial stops and routes."""
    trip = await TripCrudService.create_trip(trip_data)
    return {"status": "success", "trip": trip}


@router.get("/api/trips/{trip_id}", tags=["Trips API"])
@api_route(logger)
async def get_trip(trip_id: str):
    """Get a single trip by its id."""
    trip = await TripCrudService.get_trip(trip_id)
    return {"status": "success", "trip": trip}


@router.patch("/api/trips/{trip_id}", tags=["Trips API"])
@api_route(logger)
async def update_trip(trip_id: str, update_data: TripUpdateRequest):
    """Update a trip's own fields; stops and routes have dedicated endpoints."""
    trip = await TripCrudService.update_trip(trip_id, update_data)
    return {"status": "success", "trip": trip}


@router.delete("/api/trips/{trip_id}", tags=["Trips API"])
@api_route(logger)
async def delete_trip(trip_id: str):
    """Permanently delete a trip."""
    return await TripCrudService.delete_trip(trip_id)
