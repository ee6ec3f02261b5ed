"""Builders for trip documents used across the trip tests."""

from datetime import UTC, datetime

from db.models import Trip

NOW = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)


def make_stop(name: str, lat: float = 38.7, lng: float = -9.1, **fields) -> dict:
    stop = {"name": name, "lat": lat, "lng": lng, "plannedArrival": NOW}
    stop.update(fields)
    return stop


def make_trip(name: str = "Lisbon weekend", stops=(), routes=(), **fields) -> Trip:
    return Trip(name=name, stops=list(stops), routes=list(routes), **fields)
