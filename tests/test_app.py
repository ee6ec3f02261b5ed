import pytest
from fastapi.testclient import TestClient

from app import app


@pytest.mark.asyncio
async def test_health_reports_mongodb_connected(beanie_db) -> None:
    client = TestClient(app)

    resp = client.get("/api/health")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "healthy"
    assert body["mongodb"]["message"] == "Connected"


@pytest.mark.asyncio
async def test_unknown_trip_uses_not_found_envelope(beanie_db) -> None:
    client = TestClient(app)

    resp = client.get("/api/trips/64b7f0000000000000000000")

    assert resp.status_code == 404
    assert resp.json() == {
        "error": "Not found",
        "detail": "Trip 64b7f0000000000000000000 not found",
    }


def test_config_points_at_the_test_database() -> None:
    import config

    assert config.MONGODB_DATABASE == "route-nest-test"
    assert config.MONGODB_URI == "mongodb://localhost:27017"
