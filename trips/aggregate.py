"""Consistency rules and derived statistics for the trip aggregate.

Every write of a trip goes through :func:`normalize`, which re-validates the
document, backfills stop identifiers, ordering and back-references, checks
that route segments only reference stops of the same trip, and recomputes
``Trip.stats``. Nothing here touches the database; callers load the trip,
mutate it, normalize it and save it.
"""

from __future__ import annotations

import itertools
import logging
import math
import time
from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import datetime
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from core.exceptions import IntegrityError, ValidationError
from date_utils import get_current_utc_time, next_timestamp
from db.models import (
    DifficultyLevel,
    RouteSegment,
    Stop,
    StopStatus,
    TransportMode,
    Trip,
    TripStats,
)
from geometry_service import GeometryService

logger = logging.getLogger(__name__)

IdAllocator = Callable[[], int]


def sequential_ids(start: int = 1) -> IdAllocator:
    """Allocator yielding ``start``, ``start + 1``, ..."""
    counter = itertools.count(start)
    return lambda: next(counter)


def timestamp_ids(clock: Callable[[], float] = time.time) -> IdAllocator:
    """Allocator yielding strictly increasing millisecond timestamps."""
    last = 0

    def allocate() -> int:
        nonlocal last
        last = max(last + 1, int(clock() * 1000))
        return last

    return allocate


_default_allocator = timestamp_ids()


def _field(item: Any, name: str, default: Any = None) -> Any:
    if isinstance(item, Mapping):
        value = item.get(name, default)
    else:
        value = getattr(item, name, default)
    return default if value is None else value


def compute_stats(
    stops: Sequence[Stop | Mapping[str, Any]],
    routes: Sequence[RouteSegment | Mapping[str, Any]],
    difficulty_level: DifficultyLevel = DifficultyLevel.EASY,
) -> TripStats:
    """Derive trip statistics from stops and route segments.

    Accepts models or raw documents. Missing costs and distances count as 0
    and a missing stop duration counts as the 60 minute default.
    """
    stop_count = len(stops)
    total_duration = sum(int(_field(stop, "estimatedDuration", 60)) for stop in stops)
    transport_modes = list(
        dict.fromkeys(
            TransportMode(_field(route, "transportMode", TransportMode.WALKING))
            for route in routes
        ),
    )

    return TripStats(
        totalDistance=math.fsum(float(_field(route, "distance", 0.0)) for route in routes),
        estimatedDuration=total_duration,
        stopCount=stop_count,
        averageStopDuration=total_duration / stop_count if stop_count else 0.0,
        transportModes=transport_modes or [TransportMode.WALKING],
        estimatedCost=math.fsum(float(_field(stop, "cost", 0.0)) for stop in stops),
        difficultyLevel=difficulty_level,
    )


def as_validation_error(exc: PydanticValidationError) -> ValidationError:
    error = exc.errors()[0]
    field = ".".join(str(part) for part in error["loc"]) or "trip"
    return ValidationError(
        f"Invalid value for {field}: {error['msg']}",
        field=field,
        constraint=error["type"],
    )


def _revalidated(trip: Trip) -> Trip:
    """Run the document through model validation again.

    Attribute assignment and list mutation bypass pydantic, so constraints
    are only guaranteed after this round trip.
    """
    data = trip.model_dump(exclude={"id", "revision_id"})
    try:
        return type(trip).model_validate(data)
    except PydanticValidationError as e:
        raise as_validation_error(e) from e


def _check_route_references(stops: list[Stop], routes: list[RouteSegment]) -> None:
    stop_ids = {stop.id for stop in stops if stop.id is not None}
    seen_route_ids: set[str] = set()

    for index, route in enumerate(routes):
        label = route.id or f"#{index}"
        if route.id is not None:
            if route.id in seen_route_ids:
                raise IntegrityError(f"Duplicate route id {route.id}", ref_id=route.id)
            seen_route_ids.add(route.id)
        for field in ("fromStopId", "toStopId"):
            ref = getattr(route, field)
            if ref not in stop_ids:
                raise IntegrityError(
                    f"Route {label} references unknown stop {ref} in {field}",
                    {"routeId": route.id, "field": field},
                    ref_id=ref,
                )


def _check_unique_stop_ids(stops: list[Stop]) -> None:
    seen: set[int] = set()
    for stop in stops:
        if stop.id is None:
            continue
        if stop.id in seen:
            raise IntegrityError(f"Duplicate stop id {stop.id}", ref_id=stop.id)
        seen.add(stop.id)


def allocate_stop_id(allocate: IdAllocator, used: set[int]) -> int:
    """Draw ids from ``allocate`` until one is not in ``used``."""
    # A monotonic allocator needs at most len(used) + 1 draws.
    for _ in range(len(used) + 1):
        candidate = allocate()
        if candidate not in used:
            return candidate
    raise IntegrityError("Stop id allocator did not produce an unused id")


def _normalize_stops(
    trip: Trip,
    *,
    allocate: IdAllocator,
    touched_stop_ids: set[int],
    new_stop_ids: set[int],
    now: datetime,
) -> None:
    trip_id = str(trip.id) if trip.id is not None else None
    used = {stop.id for stop in trip.stops if stop.id is not None}
    touched: set[int] = set()
    # Never-persisted stops have no updatedAt yet.
    fresh = set(new_stop_ids) | {
        stop.id for stop in trip.stops if stop.id is not None and stop.updatedAt is None
    }

    for stop in trip.stops:
        if stop.id is None:
            stop.id = allocate_stop_id(allocate, used)
            used.add(stop.id)
            touched.add(stop.id)
            fresh.add(stop.id)

    # Explicit order ranks first; unordered stops rank by array position.
    # On a tie a newly added stop takes the slot, shifting the others down.
    ranked = sorted(
        enumerate(trip.stops),
        key=lambda pair: (
            pair[1].order if pair[1].order is not None else pair[0] + 1,
            0 if pair[1].id in fresh else 1,
            pair[0],
        ),
    )
    trip.stops = [stop for _, stop in ranked]

    for position, stop in enumerate(trip.stops, start=1):
        if stop.order != position:
            stop.order = position
            touched.add(stop.id)
        if trip_id is not None and stop.tripId != trip_id:
            stop.tripId = trip_id
            touched.add(stop.id)
        if stop.createdAt is None:
            stop.createdAt = now
        if stop.updatedAt is None or stop.id in touched or stop.id in touched_stop_ids:
            stop.updatedAt = now


def _normalize_routes(trip: Trip, *, now: datetime) -> None:
    stops_by_id = {stop.id: stop for stop in trip.stops}
    used_ids = {route.id for route in trip.routes if route.id is not None}
    prefix = f"route_{trip.id}" if trip.id is not None else "route"
    suffix = itertools.count()

    for route in trip.routes:
        if route.id is None:
            route_id = f"{prefix}_{next(suffix)}"
            while route_id in used_ids:
                route_id = f"{prefix}_{next(suffix)}"
            route.id = route_id
            used_ids.add(route_id)

        if route.distance is None:
            if len(route.coordinates) >= 2:
                route.distance = GeometryService.path_length(route.coordinates)
            else:
                origin = stops_by_id[route.fromStopId]
                target = stops_by_id[route.toStopId]
                route.distance = GeometryService.haversine_distance(
                    origin.lng,
                    origin.lat,
                    target.lng,
                    target.lat,
                )

        if route.createdAt is None:
            route.createdAt = now


def normalize(
    trip: Trip,
    *,
    now: datetime | None = None,
    id_allocator: IdAllocator | None = None,
    touched_stop_ids: Iterable[int] | None = None,
    new_stop_ids: Iterable[int] | None = None,
) -> Trip:
    """Bring a trip into a consistent, persistable state.

    Args:
        trip: Trip whose stops/routes may just have been mutated.
        now: Timestamp to stamp; defaults to the current UTC time.
        id_allocator: Source of ids for stops that lack one.
        touched_stop_ids: Stops edited by the caller whose ``updatedAt``
            must be refreshed.
        new_stop_ids: Stops added by this mutation; they win ties on
            ``order`` against stops already in the trip.

    Returns:
        The same trip instance, normalized in place.

    Raises:
        ValidationError: A field violates a type, range or enum constraint.
        IntegrityError: A route or id cross reference is broken.
    """
    validated = _revalidated(trip)
    _check_unique_stop_ids(validated.stops)
    _check_route_references(validated.stops, validated.routes)

    for field in type(trip).model_fields:
        if field not in ("id", "revision_id"):
            setattr(trip, field, getattr(validated, field))

    now = now or get_current_utc_time()
    trip.updatedAt = next_timestamp(trip.updatedAt, now)
    stamp = trip.updatedAt

    if trip.estimatedDuration is not None and trip.length is None:
        trip.length = trip.estimatedDuration

    _normalize_stops(
        trip,
        allocate=id_allocator or _default_allocator,
        touched_stop_ids=set(touched_stop_ids or ()),
        new_stop_ids=set(new_stop_ids or ()),
        now=stamp,
    )
    _normalize_routes(trip, now=stamp)

    trip.stats = compute_stats(
        trip.stops,
        trip.routes,
        difficulty_level=trip.stats.difficultyLevel,
    )
    logger.debug(
        "Normalized trip %s: %d stops, %d routes",
        trip.id,
        trip.stats.stopCount,
        len(trip.routes),
    )
    return trip


def reorder_stops(trip: Trip, ordered_ids: Sequence[int]) -> Trip:
    """Rearrange stops to follow ``ordered_ids``, all or nothing.

    Raises:
        IntegrityError: ``ordered_ids`` is not a permutation of the trip's
            stop ids; names the first id that does not resolve.
    """
    by_id = {stop.id: stop for stop in trip.stops if stop.id is not None}
    seen: set[int] = set()

    for stop_id in ordered_ids:
        if stop_id not in by_id:
            raise IntegrityError(f"Stop {stop_id} is not part of this trip", ref_id=stop_id)
        if stop_id in seen:
            raise IntegrityError(f"Stop {stop_id} appears more than once", ref_id=stop_id)
        seen.add(stop_id)

    if len(seen) != len(trip.stops):
        missing = next((stop.id for stop in trip.stops if stop.id not in seen), None)
        raise IntegrityError(
            f"Reorder must list every stop of the trip; missing {missing}",
            ref_id=missing,
        )

    trip.stops = [by_id[stop_id] for stop_id in ordered_ids]
    for position, stop in enumerate(trip.stops, start=1):
        stop.order = position
    return trip


def transition_stop(stop: Stop, status: StopStatus) -> Stop:
    """Move a stop out of ``pending``.

    Completed and skipped are terminal; re-applying the current status is a
    no-op.
    """
    status = StopStatus(status)
    if stop.status == status:
        return stop
    if stop.status != StopStatus.PENDING:
        raise ValidationError(
            f"Stop {stop.id} is already {stop.status.value}",
            field="status",
            constraint="terminal_state",
        )
    stop.status = status
    return stop
