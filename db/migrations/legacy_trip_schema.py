"""
Migrate legacy trip documents to the current trip schema.

Legacy documents only carry ``name``, ``length``, ``createdAt``, a list of
``{id, name, lat, lng, plannedTime}`` stops and ``routes`` as bare arrays of
``[lat, lng]`` pairs. Each one is rewritten in place with defaults for the new
fields, route segments between consecutive stops, and freshly computed stats.

This script is safe to run multiple times; documents that already carry the
new fields are skipped.

Usage:
    python -m db.migrations.legacy_trip_schema migrate
    python -m db.migrations.legacy_trip_schema rollback
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from beanie import PydanticObjectId
from pydantic import ValidationError as PydanticValidationError

from core.exceptions import IntegrityError, RouteNestError
from date_utils import get_current_utc_time
from db import db_manager
from db.models import (
    StopPriority,
    StopStatus,
    StopType,
    TransportMode,
    Trip,
    TripCategory,
    TripVisibility,
)
from trips.aggregate import (
    IdAllocator,
    allocate_stop_id,
    as_validation_error,
    normalize,
    timestamp_ids,
)

logger = logging.getLogger(__name__)

MIGRATED_TAG = "migrated"
MIGRATED_OWNER = "migrated-user"
NEW_SCHEMA_MARKERS = ("category", "ownerId", "userId", "estimatedDuration")


@dataclass
class MigrationSummary:
    migrated: int = 0
    skipped: int = 0
    errors: int = 0


def is_migrated(doc: dict[str, Any]) -> bool:
    """True when the document already carries fields of the new schema."""
    return any(doc.get(marker) for marker in NEW_SCHEMA_MARKERS)


def build_migrated_trip(
    doc: dict[str, Any],
    *,
    now: datetime,
    id_allocator: IdAllocator,
) -> Trip:
    """
    Build the current-schema trip for a legacy document.

    Legacy route ``i`` is taken to connect stop ``i`` to stop ``i + 1``; its
    ``[lat, lng]`` pairs are flipped to ``[lng, lat]``.

    Raises:
        ValidationError: If a legacy field does not fit the new schema
        IntegrityError: If a legacy route has no stops to connect
    """
    trip_id = str(doc["_id"])
    created_at = doc.get("createdAt") or now
    length = doc.get("length") or 1
    legacy_stops = doc.get("stops") or []

    used_ids = {stop["id"] for stop in legacy_stops if stop.get("id")}
    stops = []
    for index, legacy in enumerate(legacy_stops):
        stop_id = legacy.get("id") or allocate_stop_id(id_allocator, used_ids)
        used_ids.add(stop_id)
        stops.append(
            {
                "id": stop_id,
                "tripId": trip_id,
                "name": legacy.get("name") or f"Stop {index + 1}",
                "lat": legacy.get("lat"),
                "lng": legacy.get("lng"),
                "plannedArrival": legacy.get("plannedTime") or now,
                "estimatedDuration": 60,
                "stopType": StopType.CUSTOM,
                "priority": StopPriority.MEDIUM,
                "order": index + 1,
                "status": StopStatus.PENDING,
                "createdAt": created_at,
                "updatedAt": now,
            },
        )

    routes = []
    for index, coordinates in enumerate(doc.get("routes") or []):
        if index + 1 >= len(stops):
            raise IntegrityError(
                f"Legacy route {index} has no stop pair to connect",
                ref_id=index,
            )
        routes.append(
            {
                "id": f"route_{trip_id}_{index}",
                "fromStopId": stops[index]["id"],
                "toStopId": stops[index + 1]["id"],
                "coordinates": [[lng, lat] for lat, lng in coordinates],
                "estimatedDuration": 600,
                "transportMode": TransportMode.WALKING,
                "createdAt": created_at,
            },
        )

    try:
        trip = Trip(
            name=doc.get("name") or "Untitled trip",
            description=f"Migrated trip: {doc.get('name')}",
            ownerId=MIGRATED_OWNER,
            createdAt=created_at,
            updatedAt=doc.get("updatedAt"),
            estimatedDuration=max(1, math.ceil(length)),
            length=length,
            category=TripCategory.CUSTOM,
            tags=[MIGRATED_TAG],
            isPublic=False,
            isTemplate=False,
            visibility=TripVisibility.PRIVATE,
            sharedWith=[],
            stops=stops,
            routes=routes,
        )
    except PydanticValidationError as e:
        raise as_validation_error(e) from e
    trip.id = PydanticObjectId(doc["_id"])
    return normalize(trip, now=now, id_allocator=id_allocator)


async def migrate() -> MigrationSummary:
    """Rewrite every legacy trip document in place."""
    await db_manager.init_beanie()
    try:
        collection = Trip.get_pymongo_collection()
        summary = MigrationSummary()
        allocator = timestamp_ids()

        legacy_docs = await collection.find({}).to_list(None)
        logger.info("Found %d trips to migrate", len(legacy_docs))

        for doc in legacy_docs:
            name = doc.get("name")
            if is_migrated(doc):
                logger.info("Skipping already migrated trip: %s", name)
                summary.skipped += 1
                continue

            try:
                trip = build_migrated_trip(
                    doc,
                    now=get_current_utc_time(),
                    id_allocator=allocator,
                )
                await trip.replace()
            except RouteNestError as e:
                logger.error("Error migrating trip %s: %s", name, e.message)
                summary.errors += 1
                continue
            except Exception:
                logger.exception("Error migrating trip %s", name)
                summary.errors += 1
                continue

            summary.migrated += 1
            logger.info(
                "Migrated trip: %s (%d/%d)",
                name,
                summary.migrated,
                len(legacy_docs),
            )

        logger.info(
            "Migration summary: migrated=%d skipped=%d errors=%d",
            summary.migrated,
            summary.skipped,
            summary.errors,
        )
        return summary
    finally:
        await db_manager.cleanup_connections()


async def rollback() -> int:
    """Delete every trip produced by the migration."""
    await db_manager.init_beanie()
    try:
        result = await Trip.find({"tags": MIGRATED_TAG}).delete()
        deleted = result.deleted_count if result else 0
        logger.info("Removed %d migrated trips", deleted)
        return deleted
    finally:
        await db_manager.cleanup_connections()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("command", choices=["migrate", "rollback"])
    args = parser.parse_args(argv)

    if args.command == "migrate":
        asyncio.run(migrate())
    else:
        asyncio.run(rollback())


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    main()
