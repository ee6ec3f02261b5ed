"""Business logic for mutating the stops and route segments of a trip.

Each operation loads the trip, applies one change to the embedded
collections, normalizes the aggregate and writes it back.
"""

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from core.exceptions import ResourceNotFoundException
from db.models import RouteSegment, Stop, StopStatus, Trip
from trips import aggregate
from trips.aggregate import as_validation_error, normalize
from trips.models import RouteCreateRequest, StopUpdateRequest
from trips.services.trip_crud_service import load_trip

logger = logging.getLogger(__name__)


def _find_stop(trip: Trip, stop_id: int) -> Stop:
    stop = trip.find_stop(stop_id)
    if stop is None:
        msg = f"Stop {stop_id} not found in trip {trip.id}"
        raise ResourceNotFoundException(msg)
    return stop


class TripStopService:
    """Service class for stop and route segment operations."""

    @staticmethod
    async def add_stop(trip_id: str, stop_data: dict[str, Any]) -> Trip:
        """Append a stop to a trip.

        An ``order`` in ``stop_data`` inserts the stop at that position
        instead of appending it.

        Raises:
            ResourceNotFoundException: If the trip does not exist
            ValidationException: If the stop fails validation
        """
        trip = await load_trip(trip_id)

        try:
            stop = Stop.model_validate(stop_data)
        except PydanticValidationError as e:
            raise as_validation_error(e) from e

        trip.stops.append(stop)
        normalize(trip, new_stop_ids=[stop.id] if stop.id is not None else None)
        await trip.save()

        logger.info(
            "Added stop %r to trip %s (%d stops)",
            stop.name,
            trip.id,
            trip.stats.stopCount,
        )
        return trip

    @staticmethod
    async def update_stop(
        trip_id: str,
        stop_id: int,
        update_data: StopUpdateRequest | dict[str, Any],
    ) -> Trip:
        """Replace fields of one stop."""
        trip = await load_trip(trip_id)
        stop = _find_stop(trip, stop_id)

        if isinstance(update_data, StopUpdateRequest):
            update_data = update_data.model_dump(exclude_unset=True)

        for key, value in update_data.items():
            if key in ("id", "tripId", "order", "status", "createdAt", "updatedAt"):
                continue
            if key in Stop.model_fields:
                setattr(stop, key, value)

        normalize(trip, touched_stop_ids=[stop_id])
        await trip.save()

        logger.info("Updated stop %s of trip %s", stop_id, trip.id)
        return trip

    @staticmethod
    async def remove_stop(trip_id: str, stop_id: int) -> Trip:
        """Remove a stop and every route segment that references it."""
        trip = await load_trip(trip_id)
        _find_stop(trip, stop_id)

        trip.stops = [stop for stop in trip.stops if stop.id != stop_id]
        dropped = [
            route.id
            for route in trip.routes
            if stop_id in (route.fromStopId, route.toStopId)
        ]
        trip.routes = [route for route in trip.routes if route.id not in dropped]

        normalize(trip)
        await trip.save()

        logger.info(
            "Removed stop %s from trip %s (dropped %d routes)",
            stop_id,
            trip.id,
            len(dropped),
        )
        return trip

    @staticmethod
    async def set_stop_status(
        trip_id: str,
        stop_id: int,
        status: StopStatus,
    ) -> Trip:
        """Mark a stop completed or skipped.

        Raises:
            ValidationException: If the stop already reached another final status
        """
        trip = await load_trip(trip_id)
        stop = _find_stop(trip, stop_id)

        aggregate.transition_stop(stop, status)
        normalize(trip, touched_stop_ids=[stop_id])
        await trip.save()

        logger.info(
            "Stop %s of trip %s is now %s",
            stop_id,
            trip.id,
            StopStatus(status).value,
        )
        return trip

    @staticmethod
    async def reorder_stops(trip_id: str, stop_ids: list[int]) -> Trip:
        """Rearrange a trip's stops to follow ``stop_ids``.

        Raises:
            IntegrityException: If ``stop_ids`` is not a permutation of the
                trip's stop ids
        """
        trip = await load_trip(trip_id)

        aggregate.reorder_stops(trip, stop_ids)
        normalize(trip)
        await trip.save()

        logger.info("Reordered %d stops of trip %s", len(stop_ids), trip.id)
        return trip

    @staticmethod
    async def add_route(
        trip_id: str,
        route_data: RouteCreateRequest | dict[str, Any],
    ) -> Trip:
        """Add a route segment between two stops of the trip.

        Raises:
            IntegrityException: If either endpoint is not a stop of the trip
        """
        trip = await load_trip(trip_id)

        if isinstance(route_data, RouteCreateRequest):
            route_data = route_data.model_dump(exclude_none=True)
        try:
            route = RouteSegment.model_validate(route_data)
        except PydanticValidationError as e:
            raise as_validation_error(e) from e

        trip.routes.append(route)
        normalize(trip)
        await trip.save()

        logger.info(
            "Added route %s -> %s to trip %s",
            route.fromStopId,
            route.toStopId,
            trip.id,
        )
        return trip

    @staticmethod
    async def remove_route(trip_id: str, route_id: str) -> Trip:
        """Remove a route segment."""
        trip = await load_trip(trip_id)
        if trip.find_route(route_id) is None:
            msg = f"Route {route_id} not found in trip {trip.id}"
            raise ResourceNotFoundException(msg)

        trip.routes = [route for route in trip.routes if route.id != route_id]
        normalize(trip)
        await trip.save()

        logger.info("Removed route %s from trip %s", route_id, trip.id)
        return trip
