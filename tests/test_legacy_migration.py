import math
from datetime import UTC, datetime

import pytest
from bson import ObjectId

from core.exceptions import IntegrityError, ValidationError
from db.migrations import legacy_trip_schema
from db.migrations.legacy_trip_schema import (
    MIGRATED_OWNER,
    MIGRATED_TAG,
    build_migrated_trip,
    is_migrated,
)
from db.models import StopStatus, TransportMode, Trip, TripCategory
from trips.aggregate import sequential_ids

NOW = datetime(2026, 3, 1, tzinfo=UTC)
CREATED = datetime(2023, 6, 1, 8, 30)


def _legacy_doc(**overrides) -> dict:
    doc = {
        "_id": ObjectId(),
        "name": "Coimbra day",
        "length": 1.5,
        "createdAt": CREATED,
        "stops": [
            {
                "id": 1685608200000,
                "name": "University",
                "lat": 40.207,
                "lng": -8.426,
                "plannedTime": CREATED,
            },
            {"name": "Portagem", "lat": 40.205, "lng": -8.430},
        ],
        "routes": [[[40.207, -8.426], [40.206, -8.428], [40.205, -8.430]]],
    }
    doc.update(overrides)
    return doc


def test_is_migrated_detects_new_schema_fields() -> None:
    assert not is_migrated(_legacy_doc())
    assert is_migrated(_legacy_doc(category="custom"))
    assert is_migrated(_legacy_doc(userId="someone"))


@pytest.mark.asyncio
async def test_build_migrated_trip_fills_defaults(beanie_db) -> None:
    doc = _legacy_doc()

    trip = build_migrated_trip(doc, now=NOW, id_allocator=sequential_ids(1))

    assert trip.id == doc["_id"]
    assert trip.description == "Migrated trip: Coimbra day"
    assert trip.ownerId == MIGRATED_OWNER
    assert trip.category == TripCategory.CUSTOM
    assert trip.tags == [MIGRATED_TAG]
    assert trip.estimatedDuration == 2
    assert trip.length == 1.5
    assert trip.createdAt == CREATED.replace(tzinfo=UTC)

    university, portagem = trip.stops
    assert university.id == 1685608200000
    assert portagem.id == 1
    assert portagem.plannedArrival == NOW
    assert [stop.order for stop in trip.stops] == [1, 2]
    assert {stop.tripId for stop in trip.stops} == {str(doc["_id"])}
    assert all(stop.status == StopStatus.PENDING for stop in trip.stops)
    assert all(stop.estimatedDuration == 60 for stop in trip.stops)


@pytest.mark.asyncio
async def test_build_migrated_trip_connects_consecutive_stops(beanie_db) -> None:
    doc = _legacy_doc()

    trip = build_migrated_trip(doc, now=NOW, id_allocator=sequential_ids(1))

    (route,) = trip.routes
    assert route.id == f"route_{doc['_id']}_0"
    assert (route.fromStopId, route.toStopId) == (1685608200000, 1)
    assert route.coordinates[0] == [-8.426, 40.207]
    assert route.transportMode == TransportMode.WALKING
    assert route.estimatedDuration == 600
    assert 300 < route.distance < 500
    assert trip.stats.stopCount == 2
    assert trip.stats.totalDistance == pytest.approx(route.distance)
    assert trip.stats.estimatedDuration == 120


@pytest.mark.asyncio
async def test_build_migrated_trip_reads_legacy_pairs_as_lat_lng(beanie_db) -> None:
    doc = _legacy_doc(
        name="Sydney harbour",
        stops=[
            {"name": "Opera House", "lat": -33.857, "lng": 151.215},
            {"name": "Harbour Bridge", "lat": -33.852, "lng": 151.211},
        ],
        routes=[[[-33.857, 151.215], [-33.852, 151.211]]],
    )

    trip = build_migrated_trip(doc, now=NOW, id_allocator=sequential_ids(1))

    (route,) = trip.routes
    assert route.coordinates == [[151.215, -33.857], [151.211, -33.852]]
    assert 500 < route.distance < 800


@pytest.mark.asyncio
async def test_build_migrated_trip_rejects_route_without_stop_pair(beanie_db) -> None:
    doc = _legacy_doc(routes=[[[0, 0], [0, 1]], [[0, 1], [0, 2]]])

    with pytest.raises(IntegrityError) as exc_info:
        build_migrated_trip(doc, now=NOW, id_allocator=sequential_ids(1))

    assert exc_info.value.ref_id == 1


@pytest.mark.asyncio
async def test_build_migrated_trip_rejects_invalid_coordinates(beanie_db) -> None:
    doc = _legacy_doc(routes=[[[0, 0], [100, 0]]])

    with pytest.raises(ValidationError) as exc_info:
        build_migrated_trip(doc, now=NOW, id_allocator=sequential_ids(1))

    assert exc_info.value.field == "routes.0.coordinates"


@pytest.mark.asyncio
async def test_migrate_and_rollback(beanie_db, monkeypatch: pytest.MonkeyPatch) -> None:
    async def _noop() -> None:
        return None

    monkeypatch.setattr(legacy_trip_schema.db_manager, "init_beanie", _noop)
    monkeypatch.setattr(legacy_trip_schema.db_manager, "cleanup_connections", _noop)

    collection = beanie_db[Trip.Settings.name]
    legacy = _legacy_doc()
    broken = _legacy_doc(name="Broken", routes=[[[0, 0]], [[0, 1]]])
    await collection.insert_one(legacy)
    await collection.insert_one(broken)
    await collection.insert_one(
        {"_id": ObjectId(), "name": "Current", "category": "food", "tags": []},
    )

    summary = await legacy_trip_schema.migrate()

    assert (summary.migrated, summary.skipped, summary.errors) == (1, 1, 1)
    migrated = await Trip.get(legacy["_id"])
    assert migrated is not None
    assert migrated.tags == [MIGRATED_TAG]
    assert migrated.stats.stopCount == 2
    assert math.isclose(migrated.length, 1.5)

    again = await legacy_trip_schema.migrate()
    assert again.migrated == 0
    assert again.skipped == 2

    deleted = await legacy_trip_schema.rollback()
    assert deleted == 1
    assert await Trip.get(legacy["_id"]) is None
    assert await collection.count_documents({}) == 2


@pytest.mark.asyncio
async def test_migrate_counts_malformed_trip_and_continues(
    beanie_db,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    cleanups = []

    async def _init() -> None:
        return None

    async def _cleanup() -> None:
        cleanups.append(True)

    monkeypatch.setattr(legacy_trip_schema.db_manager, "init_beanie", _init)
    monkeypatch.setattr(legacy_trip_schema.db_manager, "cleanup_connections", _cleanup)

    collection = beanie_db[Trip.Settings.name]
    malformed = _legacy_doc(name="Malformed", length="2")
    good = _legacy_doc(name="Good", length=2)
    await collection.insert_one(malformed)
    await collection.insert_one(good)

    summary = await legacy_trip_schema.migrate()

    assert (summary.migrated, summary.skipped, summary.errors) == (1, 0, 1)
    migrated = await Trip.get(good["_id"])
    assert migrated is not None
    assert migrated.estimatedDuration == 2
    assert cleanups == [True]


@pytest.mark.asyncio
async def test_migrate_releases_connections_when_the_run_fails(
    beanie_db,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    cleanups = []

    async def _init() -> None:
        return None

    async def _cleanup() -> None:
        cleanups.append(True)

    def _unavailable():
        raise RuntimeError("collection unavailable")

    monkeypatch.setattr(legacy_trip_schema.db_manager, "init_beanie", _init)
    monkeypatch.setattr(legacy_trip_schema.db_manager, "cleanup_connections", _cleanup)
    monkeypatch.setattr(Trip, "get_pymongo_collection", _unavailable)

    with pytest.raises(RuntimeError):
        await legacy_trip_schema.migrate()

    assert cleanups == [True]
