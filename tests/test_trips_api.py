import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from trip_factories import NOW
from trips import router as trips_router


def _build_app() -> FastAPI:
    app = FastAPI()
    app.include_router(trips_router)
    return app


def _stop(name: str, **fields) -> dict:
    stop = {"name": name, "lat": 38.7, "lng": -9.1, "plannedArrival": NOW.isoformat()}
    stop.update(fields)
    return stop


def _create(client: TestClient, **fields) -> dict:
    fields.setdefault("name", "Lisbon weekend")
    resp = client.post("/api/trips", json=fields)
    assert resp.status_code == 201, resp.text
    return resp.json()["trip"]


@pytest.mark.asyncio
async def test_list_trips_empty(beanie_db) -> None:
    client = TestClient(_build_app())

    resp = client.get("/api/trips")

    assert resp.status_code == 200
    assert resp.json() == {"status": "success", "total": 0, "trips": []}


@pytest.mark.asyncio
async def test_create_get_and_delete_trip(beanie_db) -> None:
    client = TestClient(_build_app())

    trip = _create(
        client,
        estimatedDuration=2,
        stops=[_stop("Belem", cost=4), _stop("Alfama", isCompleted=True)],
    )
    trip_id = trip["_id"]

    assert trip["length"] == 2
    assert trip["stats"]["stopCount"] == 2
    assert trip["stats"]["estimatedCost"] == 4
    assert [stop["order"] for stop in trip["stops"]] == [1, 2]
    assert trip["stops"][1]["status"] == "completed"
    assert trip["stops"][1]["isCompleted"] is True

    fetched = client.get(f"/api/trips/{trip_id}")
    assert fetched.status_code == 200
    assert fetched.json()["trip"]["name"] == "Lisbon weekend"

    deleted = client.delete(f"/api/trips/{trip_id}")
    assert deleted.status_code == 200
    assert deleted.json()["deleted_trips"] == 1
    assert client.get(f"/api/trips/{trip_id}").status_code == 404


@pytest.mark.asyncio
async def test_create_trip_validation_error_names_field(beanie_db) -> None:
    client = TestClient(_build_app())

    resp = client.post(
        "/api/trips",
        json={"name": "Bad", "stops": [_stop("Nowhere", lat=120)]},
    )

    assert resp.status_code == 400
    detail = resp.json()["detail"]
    assert detail["field"] == "stops.0.lat"
    assert detail["constraint"] == "less_than_equal"


@pytest.mark.asyncio
async def test_create_trip_dangling_route_is_conflict(beanie_db) -> None:
    client = TestClient(_build_app())

    resp = client.post(
        "/api/trips",
        json={
            "name": "Broken",
            "stops": [_stop("A", id=1)],
            "routes": [{"fromStopId": 1, "toStopId": 5}],
        },
    )

    assert resp.status_code == 409
    assert resp.json()["detail"]["id"] == 5


@pytest.mark.asyncio
async def test_patch_trip_updates_fields(beanie_db) -> None:
    client = TestClient(_build_app())
    trip = _create(client)

    resp = client.patch(
        f"/api/trips/{trip['_id']}",
        json={"description": "Pasteis and trams", "difficultyLevel": "moderate"},
    )

    assert resp.status_code == 200
    body = resp.json()["trip"]
    assert body["description"] == "Pasteis and trams"
    assert body["stats"]["difficultyLevel"] == "moderate"


@pytest.mark.asyncio
async def test_stop_lifecycle_endpoints(beanie_db) -> None:
    client = TestClient(_build_app())
    trip = _create(client, stops=[_stop("Belem"), _stop("Alfama")])
    trip_id = trip["_id"]
    first, second = (stop["id"] for stop in trip["stops"])

    added = client.put(f"/api/trips/{trip_id}/stops", json=_stop("Baixa"))
    assert added.status_code == 200
    third = added.json()["trip"]["stops"][-1]["id"]
    assert added.json()["trip"]["stats"]["stopCount"] == 3

    patched = client.patch(
        f"/api/trips/{trip_id}/stops/{second}",
        json={"notes": "Take tram 28"},
    )
    assert patched.status_code == 200
    assert patched.json()["trip"]["stops"][1]["notes"] == "Take tram 28"

    status_resp = client.post(
        f"/api/trips/{trip_id}/stops/{first}/status",
        json={"status": "completed"},
    )
    assert status_resp.status_code == 200
    assert status_resp.json()["trip"]["stops"][0]["isCompleted"] is True

    terminal = client.post(
        f"/api/trips/{trip_id}/stops/{first}/status",
        json={"status": "skipped"},
    )
    assert terminal.status_code == 400

    reordered = client.post(
        f"/api/trips/{trip_id}/stops/reorder",
        json={"stop_ids": [third, first, second]},
    )
    assert reordered.status_code == 200
    stops = reordered.json()["trip"]["stops"]
    assert [stop["id"] for stop in stops] == [third, first, second]
    assert [stop["order"] for stop in stops] == [1, 2, 3]

    bad_reorder = client.post(
        f"/api/trips/{trip_id}/stops/reorder",
        json={"stop_ids": [third, first]},
    )
    assert bad_reorder.status_code == 409

    removed = client.delete(f"/api/trips/{trip_id}/stops/{first}")
    assert removed.status_code == 200
    assert [stop["order"] for stop in removed.json()["trip"]["stops"]] == [1, 2]

    missing = client.delete(f"/api/trips/{trip_id}/stops/{first}")
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_route_endpoints_and_stats(beanie_db) -> None:
    client = TestClient(_build_app())
    trip = _create(client, stops=[_stop("Belem", lng=-9.2), _stop("Alfama", lng=-9.13)])
    trip_id = trip["_id"]
    first, second = (stop["id"] for stop in trip["stops"])

    created = client.post(
        f"/api/trips/{trip_id}/routes",
        json={"fromStopId": first, "toStopId": second, "distance": 6100, "transportMode": "car"},
    )
    assert created.status_code == 201
    route = created.json()["trip"]["routes"][0]
    assert route["id"] == f"route_{trip_id}_0"

    stats = client.get(f"/api/trips/{trip_id}/stats")
    assert stats.status_code == 200
    assert stats.json()["stats"]["totalDistance"] == 6100
    assert stats.json()["stats"]["transportModes"] == ["car"]

    dangling = client.post(
        f"/api/trips/{trip_id}/routes",
        json={"fromStopId": first, "toStopId": 424242},
    )
    assert dangling.status_code == 409

    removed = client.delete(f"/api/trips/{trip_id}/routes/{route['id']}")
    assert removed.status_code == 200
    assert removed.json()["trip"]["stats"]["transportModes"] == ["walking"]


@pytest.mark.asyncio
async def test_search_public_and_templates(beanie_db) -> None:
    client = TestClient(_build_app())
    _create(client, name="Porto food crawl", category="food", tags=["wine"], isPublic=True)
    _create(client, name="Algarve template", category="relaxation", isTemplate=True)

    search = client.get("/api/trips/search", params={"q": "porto"})
    assert search.status_code == 200
    assert [trip["name"] for trip in search.json()["trips"]] == ["Porto food crawl"]

    by_category = client.get("/api/trips/search", params={"category": "relaxation"})
    assert [trip["name"] for trip in by_category.json()["trips"]] == ["Algarve template"]

    bad_category = client.get("/api/trips/search", params={"category": "space_travel"})
    assert bad_category.status_code == 422

    public = client.get("/api/trips/public")
    assert [trip["name"] for trip in public.json()["trips"]] == ["Porto food crawl"]

    templates = client.get("/api/trips/templates")
    assert [trip["name"] for trip in templates.json()["trips"]] == ["Algarve template"]


@pytest.mark.asyncio
async def test_unknown_trip_is_not_found(beanie_db) -> None:
    client = TestClient(_build_app())

    assert client.get("/api/trips/64b7f0000000000000000000").status_code == 404
    assert client.get("/api/trips/not-an-id/stats").status_code == 404
    assert (
        client.put("/api/trips/64b7f0000000000000000000/stops", json=_stop("A")).status_code
        == 404
    )
