"""Pydantic models for trip-related API and service operations."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from db.models import (
    DifficultyLevel,
    StopPriority,
    StopStatus,
    StopType,
    TransportMode,
    TripCategory,
    TripVisibility,
)


class TripCreateRequest(BaseModel):
    """Request model for creating a trip.

    Stops and routes are passed through to the document model, which owns
    their validation.
    """

    name: str
    description: str | None = None
    ownerId: str | None = None
    startDate: datetime | None = None
    endDate: datetime | None = None
    estimatedDuration: int | None = None
    length: float | None = None
    isPublic: bool = False
    isTemplate: bool = False
    visibility: TripVisibility = TripVisibility.PRIVATE
    sharedWith: list[str] = Field(default_factory=list)
    category: TripCategory = TripCategory.CUSTOM
    tags: list[str] = Field(default_factory=list)
    rating: float | None = None
    reviewCount: int = 0
    difficultyLevel: DifficultyLevel | None = None
    stops: list[dict[str, Any]] = Field(default_factory=list)
    routes: list[dict[str, Any]] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class TripUpdateRequest(BaseModel):
    """Partial update of a trip's own fields.

    ``createdAt`` and the derived stats are deliberately absent; only the
    stats difficulty level is caller-settable.
    """

    name: str | None = None
    description: str | None = None
    ownerId: str | None = None
    startDate: datetime | None = None
    endDate: datetime | None = None
    estimatedDuration: int | None = None
    length: float | None = None
    isPublic: bool | None = None
    isTemplate: bool | None = None
    visibility: TripVisibility | None = None
    sharedWith: list[str] | None = None
    category: TripCategory | None = None
    tags: list[str] | None = None
    rating: float | None = None
    reviewCount: int | None = None
    difficultyLevel: DifficultyLevel | None = None

    model_config = ConfigDict(extra="ignore")


class StopUpdateRequest(BaseModel):
    """Fields of a stop that can be replaced in place."""

    name: str | None = None
    description: str | None = None
    lat: float | None = None
    lng: float | None = None
    address: str | None = None
    placeId: str | None = None
    plannedArrival: datetime | None = None
    plannedDeparture: datetime | None = None
    estimatedDuration: int | None = None
    actualArrival: datetime | None = None
    actualDeparture: datetime | None = None
    stopType: StopType | None = None
    priority: StopPriority | None = None
    cost: float | None = None
    notes: str | None = None
    photos: list[str] | None = None

    model_config = ConfigDict(extra="ignore")


class StopStatusRequest(BaseModel):
    status: StopStatus


class StopReorderRequest(BaseModel):
    stop_ids: list[int]


class RouteCreateRequest(BaseModel):
    id: str | None = None
    fromStopId: int
    toStopId: int
    coordinates: list[list[float]] = Field(default_factory=list)
    distance: float | None = None
    estimatedDuration: float = 600
    transportMode: TransportMode = TransportMode.WALKING
    instructions: list[dict[str, Any]] | None = None
    elevation: list[float] | None = None
