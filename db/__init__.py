"""Database package for MongoDB operations using Beanie ODM.

Modules:
    manager: DatabaseManager singleton for connection handling
    models: Beanie Document models for all collections
    migrations: One-shot data migrations

Usage:
    from db.models import Trip

    trip = await Trip.get(trip_id)
    trip.name = "Weekend in Porto"
    await trip.save()
"""

from db.manager import DatabaseManager, db_manager
from db.models import ALL_DOCUMENT_MODELS, RouteSegment, Stop, Trip, TripStats

__all__ = [
    "ALL_DOCUMENT_MODELS",
    "DatabaseManager",
    "RouteSegment",
    "Stop",
    "Trip",
    "TripStats",
    "db_manager",
]
