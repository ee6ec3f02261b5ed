"""Beanie ODM document models for MongoDB collections.

A trip is stored as a single document that embeds its stops, its route
segments and its derived statistics, so a trip can be loaded, mutated and
written back without joins.

Usage:
    from db.models import Trip, Stop

    # Find a trip
    trip = await Trip.get(trip_id)

    # Insert a new document
    trip = Trip(name="Lisbon", ...)
    await trip.insert()

    # Update
    trip.stops.append(Stop(...))
    await trip.save()
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any

from beanie import Document
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    computed_field,
    field_validator,
    model_validator,
)
from pymongo import ASCENDING, DESCENDING, IndexModel

from date_utils import get_current_utc_time, parse_timestamp
from geometry_service import GeometryService

TripName = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=100),
]
StopName = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=200),
]


class TripCategory(str, Enum):
    ADVENTURE = "adventure"
    BUSINESS = "business"
    CULTURAL = "cultural"
    FAMILY = "family"
    FOOD = "food"
    NATURE = "nature"
    RELAXATION = "relaxation"
    ROAD_TRIP = "road_trip"
    ROMANTIC = "romantic"
    CUSTOM = "custom"


class TripVisibility(str, Enum):
    PRIVATE = "private"
    PUBLIC = "public"
    SHARED = "shared"


class StopType(str, Enum):
    ATTRACTION = "attraction"
    FOOD = "food"
    ACCOMMODATION = "accommodation"
    TRANSPORT = "transport"
    SHOPPING = "shopping"
    NATURE = "nature"
    CULTURE = "culture"
    ACTIVITY = "activity"
    REST = "rest"
    CUSTOM = "custom"


class StopPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class StopStatus(str, Enum):
    """Visit state of a stop. Completed and skipped are terminal."""

    PENDING = "pending"
    COMPLETED = "completed"
    SKIPPED = "skipped"


class TransportMode(str, Enum):
    WALKING = "walking"
    CYCLING = "cycling"
    MOTORCYCLE = "motorcycle"
    CAR = "car"
    PUBLIC_TRANSPORT = "public_transport"
    BOAT = "boat"
    FLIGHT = "flight"


class DifficultyLevel(str, Enum):
    EASY = "easy"
    MODERATE = "moderate"
    CHALLENGING = "challenging"


def _coerce_utc(value: Any) -> Any:
    """Parse ISO strings and attach UTC to naive datetimes."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return parse_timestamp(value)
    if isinstance(value, str):
        parsed = parse_timestamp(value)
        if parsed is None:
            msg = f"invalid datetime: {value!r}"
            raise ValueError(msg)
        return parsed
    return value


class Stop(BaseModel):
    """A single waypoint of a trip."""

    id: int | None = Field(default=None, ge=1)
    tripId: str | None = None
    name: StopName
    description: str | None = Field(default=None, max_length=500)

    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    address: str | None = None
    placeId: str | None = None

    plannedArrival: datetime
    plannedDeparture: datetime | None = None
    estimatedDuration: int = Field(default=60, ge=1)  # minutes
    actualArrival: datetime | None = None
    actualDeparture: datetime | None = None

    stopType: StopType = StopType.CUSTOM
    priority: StopPriority = StopPriority.MEDIUM
    cost: float | None = Field(default=None, ge=0)
    notes: str | None = Field(default=None, max_length=1000)
    photos: list[str] = Field(default_factory=list)

    order: int | None = Field(default=None, ge=1)
    status: StopStatus = StopStatus.PENDING

    createdAt: datetime | None = None
    updatedAt: datetime | None = None

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def status_from_legacy_flags(cls, data: Any) -> Any:
        """Translate ``isCompleted`` / ``isSkipped`` into ``status``.

        An explicit ``status`` takes precedence over the flags.
        """
        if not isinstance(data, dict):
            return data

        completed = data.get("isCompleted")
        skipped = data.get("isSkipped")
        if completed and skipped:
            msg = "isCompleted and isSkipped cannot both be true"
            raise ValueError(msg)
        if data.get("status") is not None or (completed is None and skipped is None):
            return data

        data = dict(data)
        if completed:
            data["status"] = StopStatus.COMPLETED
        elif skipped:
            data["status"] = StopStatus.SKIPPED
        else:
            data["status"] = StopStatus.PENDING
        return data

    @field_validator(
        "plannedArrival",
        "plannedDeparture",
        "actualArrival",
        "actualDeparture",
        "createdAt",
        "updatedAt",
        mode="before",
    )
    @classmethod
    def parse_datetime_fields(cls, v: Any) -> Any:
        return _coerce_utc(v)

    @computed_field
    @property
    def isCompleted(self) -> bool:
        return self.status == StopStatus.COMPLETED

    @computed_field
    @property
    def isSkipped(self) -> bool:
        return self.status == StopStatus.SKIPPED


class RouteSegment(BaseModel):
    """Path and travel metadata between two stops of the same trip."""

    id: str | None = None
    fromStopId: int
    toStopId: int
    coordinates: list[list[float]] = Field(default_factory=list)  # [lng, lat]
    distance: float | None = Field(default=None, ge=0)  # meters
    estimatedDuration: float = Field(default=600, ge=0)  # seconds
    transportMode: TransportMode = TransportMode.WALKING
    instructions: list[dict[str, Any]] | None = None
    elevation: list[float] | None = None
    createdAt: datetime | None = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("coordinates")
    @classmethod
    def validate_coordinates(cls, v: list[list[float]]) -> list[list[float]]:
        cleaned = []
        for index, coord in enumerate(v):
            is_valid, pair = GeometryService.validate_coordinate_pair(coord)
            if not is_valid or pair is None:
                msg = f"coordinate {index} is not a valid [lng, lat] pair: {coord!r}"
                raise ValueError(msg)
            cleaned.append(pair)
        return cleaned

    @field_validator("createdAt", mode="before")
    @classmethod
    def parse_created_at(cls, v: Any) -> Any:
        return _coerce_utc(v)


class TripStats(BaseModel):
    """Statistics derived from a trip's stops and routes.

    Recomputed before every write; only ``difficultyLevel`` is caller-settable.
    """

    totalDistance: float = 0.0  # meters
    estimatedDuration: int = 0  # minutes
    stopCount: int = 0
    averageStopDuration: float = 0.0
    transportModes: list[TransportMode] = Field(
        default_factory=lambda: [TransportMode.WALKING],
    )
    estimatedCost: float = 0.0
    difficultyLevel: DifficultyLevel = DifficultyLevel.EASY


class Trip(Document):
    """Trip document with embedded stops, route segments and stats."""

    name: TripName
    description: str | None = Field(default=None, max_length=1000)
    ownerId: str | None = None

    createdAt: datetime = Field(default_factory=get_current_utc_time)
    updatedAt: datetime | None = None
    startDate: datetime | None = None
    endDate: datetime | None = None

    estimatedDuration: int | None = Field(default=None, ge=1)  # days
    # Legacy duration field, backfilled from estimatedDuration
    length: float | None = Field(default=None, ge=0)

    isPublic: bool = False
    isTemplate: bool = False
    visibility: TripVisibility = TripVisibility.PRIVATE
    sharedWith: list[str] = Field(default_factory=list)

    category: TripCategory = TripCategory.CUSTOM
    tags: list[str] = Field(default_factory=list)
    rating: float | None = Field(default=None, ge=0, le=5)
    reviewCount: int = Field(default=0, ge=0)

    stops: list[Stop] = Field(default_factory=list)
    routes: list[RouteSegment] = Field(default_factory=list)
    stats: TripStats = Field(default_factory=TripStats)

    @field_validator("createdAt", "updatedAt", "startDate", "endDate", mode="before")
    @classmethod
    def parse_datetime_fields(cls, v: Any) -> Any:
        return _coerce_utc(v)

    @field_validator("tags", "sharedWith")
    @classmethod
    def dedupe_set_fields(cls, v: list[str]) -> list[str]:
        return list(dict.fromkeys(v))

    def find_stop(self, stop_id: int) -> Stop | None:
        return next((stop for stop in self.stops if stop.id == stop_id), None)

    def find_route(self, route_id: str) -> RouteSegment | None:
        return next((route for route in self.routes if route.id == route_id), None)

    class Settings:
        name = "tripdatas"
        indexes = [
            IndexModel([("ownerId", ASCENDING)], name="trips_owner_idx"),
            IndexModel([("category", ASCENDING)], name="trips_category_idx"),
            IndexModel([("tags", ASCENDING)], name="trips_tags_idx"),
            IndexModel(
                [("isPublic", ASCENDING), ("rating", DESCENDING)],
                name="trips_public_rating_idx",
            ),
        ]


ALL_DOCUMENT_MODELS = [Trip]
