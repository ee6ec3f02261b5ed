"""Business logic for trip querying and discovery."""

import logging
import re
from typing import Any

from db.models import Trip, TripCategory, TripStats
from trips.aggregate import compute_stats
from trips.services.trip_crud_service import load_trip

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20


def _text_filter(text: str) -> dict[str, Any]:
    pattern = {"$regex": re.escape(text.strip()), "$options": "i"}
    return {
        "$or": [
            {"name": pattern},
            {"description": pattern},
            {"tags": pattern},
        ],
    }


class TripQueryService:
    """Service class for searching and discovering trips."""

    @staticmethod
    async def search_trips(
        text: str | None = None,
        category: TripCategory | None = None,
        tags: list[str] | None = None,
        owner_id: str | None = None,
        is_public: bool | None = None,
        is_template: bool | None = None,
        limit: int = DEFAULT_LIMIT,
    ) -> list[Trip]:
        """
        Search trips by free text and attribute filters.

        Text matches case-insensitively against name, description and tags.
        Every supplied tag must be present on a matching trip.

        Args:
            text: Optional free text
            category: Optional category filter
            tags: Optional tags the trip must carry
            owner_id: Optional owner filter
            is_public: Optional public flag filter
            is_template: Optional template flag filter
            limit: Max results

        Returns:
            Matching trips, best rated first
        """
        conditions: list[dict[str, Any]] = []

        if text and text.strip():
            conditions.append(_text_filter(text))
        if category is not None:
            conditions.append({"category": TripCategory(category).value})
        if tags:
            conditions.append({"tags": {"$all": list(tags)}})
        if owner_id:
            conditions.append({"ownerId": owner_id})
        if is_public is not None:
            conditions.append({"isPublic": is_public})
        if is_template is not None:
            conditions.append({"isTemplate": is_template})

        query_filter: dict[str, Any] = {"$and": conditions} if conditions else {}
        trips = (
            await Trip.find(query_filter)
            .sort([("rating", -1), ("updatedAt", -1)])
            .limit(limit)
            .to_list()
        )

        logger.info(
            "Trip search matched %d trips (text=%r, category=%s, tags=%s)",
            len(trips),
            text,
            category,
            tags,
        )
        return trips

    @staticmethod
    async def list_public_trips(limit: int = DEFAULT_LIMIT) -> list[Trip]:
        """Public trips, best rated and most reviewed first."""
        return (
            await Trip.find(Trip.isPublic == True)  # noqa: E712
            .sort([("rating", -1), ("reviewCount", -1)])
            .limit(limit)
            .to_list()
        )

    @staticmethod
    async def list_templates(limit: int = DEFAULT_LIMIT) -> list[Trip]:
        """Trips flagged as reusable templates."""
        return (
            await Trip.find(Trip.isTemplate == True)  # noqa: E712
            .sort([("updatedAt", -1)])
            .limit(limit)
            .to_list()
        )

    @staticmethod
    async def get_trip_stats(trip_id: str) -> TripStats:
        """Statistics of a trip, derived from its current stops and routes."""
        trip = await load_trip(trip_id)
        return compute_stats(
            trip.stops,
            trip.routes,
            difficulty_level=trip.stats.difficultyLevel,
        )
