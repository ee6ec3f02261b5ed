"""API routes for a trip's stops and route segments."""

import logging
from typing import Any

from fastapi import APIRouter, Body, status

from core.api import api_route
from trips.models import (
    RouteCreateRequest,
    StopReorderRequest,
    StopStatusRequest,
    StopUpdateRequest,
)
from trips.services import TripStopService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.put("/api/trips/{trip_id}/stops", tags=["Trip Stops API"])
@api_route(logger)
async def add_stop(trip_id: str, stop_data: dict[str, Any] = Body(...)):
    """Append a stop to a trip."""
    trip = await TripStopService.add_stop(trip_id, stop_data)
    return {"status": "success", "trip": trip}


@router.post("/api/trips/{trip_id}/stops/reorder", tags=["Trip Stops API"])
@api_route(logger)
async def reorder_stops(trip_id: str, request: StopReorderRequest):
    """Reorder stops; the body must list every stop id exactly once."""
    trip = await TripStopService.reorder_stops(trip_id, request.stop_ids)
    return {"status": "success", "trip": trip}


@router.patch("/api/trips/{trip_id}/stops/{stop_id}", tags=["Trip Stops API"])
@api_route(logger)
async def update_stop(trip_id: str, stop_id: int, update_data: StopUpdateRequest):
    """Replace fields of a single stop."""
    trip = await TripStopService.update_stop(trip_id, stop_id, update_data)
    return {"status": "success", "trip": trip}


@router.delete("/api/trips/{trip_id}/stops/{stop_id}", tags=["Trip Stops API"])
@api_route(logger)
async def remove_stop(trip_id: str, stop_id: int):
    """Remove a stop and the route segments attached to it."""
    trip = await TripStopService.remove_stop(trip_id, stop_id)
    return {"status": "success", "trip": trip}


@router.post("/api/trips/{trip_id}/stops/{stop_id}/status", tags=["Trip Stops API"])
@api_route(logger)
async def set_stop_status(trip_id: str, stop_id: int, request: StopStatusRequest):
    """Mark a stop completed or skipped."""
    trip = await TripStopService.set_stop_status(trip_id, stop_id, request.status)
    return {"status": "success", "trip": trip}


@router.post(
    "/api/trips/{trip_id}/routes",
    status_code=status.HTTP_201_CREATED,
    tags=["Trip Stops API"],
)
@api_route(logger)
async def add_route(trip_id: str, route_data: RouteCreateRequest):
    """Add a route segment between two stops of the trip."""
    trip = await TripStopService.add_route(trip_id, route_data)
    return {"status": "success", "trip": trip}


@router.delete("/api/trips/{trip_id}/routes/{route_id}", tags=["Trip Stops API"])
@api_route(logger)
async def remove_route(trip_id: str, route_id: str):
    """Remove a route segment."""
    trip = await TripStopService.remove_route(trip_id, route_id)
    return {"status": "success", "trip": trip}
