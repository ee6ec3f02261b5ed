"""Trip services module."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from trips.services.trip_crud_service import TripCrudService
    from trips.services.trip_query_service import TripQueryService
    from trips.services.trip_stop_service import TripStopService

__all__ = ("TripCrudService", "TripQueryService", "TripStopService")


def __getattr__(name: str):
    if name == "TripCrudService":
        from trips.services.trip_crud_service import TripCrudService

        return TripCrudService
    if name == "TripQueryService":
        from trips.services.trip_query_service import TripQueryService

        return TripQueryService
    if name == "TripStopService":
        from trips.services.trip_stop_service import TripStopService

        return TripStopService
    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
