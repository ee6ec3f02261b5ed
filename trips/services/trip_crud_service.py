"""Business logic for trip create, read, update and delete operations."""

import logging
from typing import Any

from beanie import PydanticObjectId
from pydantic import ValidationError as PydanticValidationError

from core.exceptions import ResourceNotFoundException
from db.models import Trip, TripStats
from trips.aggregate import as_validation_error, normalize
from trips.models import TripCreateRequest, TripUpdateRequest

logger = logging.getLogger(__name__)

# Fields that are set once by the service and never overwritten by callers.
PROTECTED_FIELDS = frozenset({"id", "createdAt", "updatedAt", "stats", "stops", "routes"})


async def load_trip(trip_id: str) -> Trip:
    """Fetch a trip by id or raise ``ResourceNotFoundException``."""
    try:
        object_id = PydanticObjectId(trip_id)
    except Exception as e:
        msg = f"Trip {trip_id} not found"
        raise ResourceNotFoundException(msg) from e

    trip = await Trip.get(object_id)
    if not trip:
        msg = f"Trip {trip_id} not found"
        raise ResourceNotFoundException(msg)
    return trip


class TripCrudService:
    """Service class for trip create, update, and delete operations."""

    @staticmethod
    async def create_trip(trip_data: TripCreateRequest | dict[str, Any]) -> Trip:
        """Create a trip and persist it.

        Args:
            trip_data: Trip fields, optionally with initial stops and routes

        Returns:
            The normalized, inserted Trip

        Raises:
            ValidationException: If a field violates its constraints
            IntegrityException: If a route references an unknown stop
        """
        if isinstance(trip_data, TripCreateRequest):
            trip_data = trip_data.model_dump(exclude_none=True)
        data = {k: v for k, v in trip_data.items() if k not in ("id", "_id", "stats")}
        difficulty = data.pop("difficultyLevel", None)

        try:
            trip = Trip(**data)
        except PydanticValidationError as e:
            raise as_validation_error(e) from e

        if difficulty is not None:
            trip.stats = TripStats(difficultyLevel=difficulty)

        # Assign the id up front so stops and routes can reference it.
        trip.id = PydanticObjectId()
        normalize(trip)
        await trip.insert()

        logger.info(
            "Created trip %s (%s) with %d stops",
            trip.id,
            trip.name,
            trip.stats.stopCount,
        )
        return trip

    @staticmethod
    async def get_trip(trip_id: str) -> Trip:
        """Get a single trip by id.

        Raises:
            ResourceNotFoundException: If the trip does not exist
        """
        return await load_trip(trip_id)

    @staticmethod
    async def list_trips(limit: int | None = None) -> list[Trip]:
        """List trips, most recently updated first."""
        query = Trip.find_all().sort(-Trip.updatedAt)
        if limit:
            query = query.limit(limit)
        trips = await query.to_list()
        logger.info("Fetched %d trips", len(trips))
        return trips

    @staticmethod
    async def update_trip(
        trip_id: str,
        update_data: TripUpdateRequest | dict[str, Any],
    ) -> Trip:
        """Update a trip's own fields.

        Args:
            trip_id: Trip id
            update_data: Fields to change; unset fields are left alone

        Returns:
            Updated Trip

        Raises:
            ResourceNotFoundException: If the trip does not exist
            ValidationException: If a new value violates its constraints
        """
        trip = await load_trip(trip_id)

        if isinstance(update_data, TripUpdateRequest):
            update_data = update_data.model_dump(exclude_unset=True)

        difficulty = update_data.get("difficultyLevel")
        if difficulty is not None:
            trip.stats.difficultyLevel = difficulty

        for key, value in update_data.items():
            if key in PROTECTED_FIELDS or key == "difficultyLevel":
                continue
            if key in Trip.model_fields:
                setattr(trip, key, value)

        normalize(trip)
        await trip.save()

        logger.info("Updated trip %s fields: %s", trip.id, sorted(update_data))
        return trip

    @staticmethod
    async def delete_trip(trip_id: str) -> dict[str, Any]:
        """Hard delete a trip.

        Raises:
            ResourceNotFoundException: If the trip does not exist
        """
        trip = await load_trip(trip_id)
        await trip.delete()

        logger.info("Deleted trip %s", trip_id)
        return {
            "status": "success",
            "message": "Trip deleted successfully",
            "deleted_trips": 1,
        }
