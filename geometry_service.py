"""Centralized geometry helpers for coordinates and great-circle distance."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from typing import Any


class GeometryService:
    """Authoritative geometry operations for the application."""

    EARTH_RADIUS_KM = 6371.0
    EARTH_RADIUS_M = EARTH_RADIUS_KM * 1000

    @staticmethod
    def validate_coordinate_pair(
        coord: Sequence[Any],
    ) -> tuple[bool, list[float] | None]:
        """Validate a [lng, lat] coordinate pair."""
        if not isinstance(coord, (list, tuple)) or len(coord) != 2:
            return False, None
        try:
            lng = float(coord[0])
            lat = float(coord[1])
        except (TypeError, ValueError):
            return False, None
        if not (-180 <= lng <= 180 and -90 <= lat <= 90):
            return False, None
        return True, [lng, lat]

    @staticmethod
    def haversine_distance(
        lon1: float,
        lat1: float,
        lon2: float,
        lat2: float,
        unit: str = "meters",
    ) -> float:
        """Calculate the great-circle distance using the Haversine formula.

        Inputs are degrees. Identical points give exactly 0 and antipodal
        points give half the Earth's circumference.
        """
        phi1 = math.radians(lat1)
        phi2 = math.radians(lat2)
        dphi = math.radians(lat2 - lat1)
        dlmb = math.radians(lon2 - lon1)
        a = (
            math.sin(dphi / 2) ** 2
            + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
        )
        distance_km = 2 * GeometryService.EARTH_RADIUS_KM * math.atan2(
            math.sqrt(a),
            math.sqrt(max(0.0, 1 - a)),
        )
        if unit == "meters":
            return distance_km * 1000
        if unit == "km":
            return distance_km
        if unit == "miles":
            return distance_km * 1000 / 1609.344
        raise ValueError("Invalid unit. Use 'meters', 'miles', or 'km'.")

    @staticmethod
    def path_length(coordinates: Iterable[Sequence[float]]) -> float:
        """Length in meters of a path given as ordered [lng, lat] pairs."""
        points = list(coordinates or [])
        if len(points) < 2:
            return 0.0

        total = 0.0
        for (lng1, lat1), (lng2, lat2) in zip(points, points[1:]):
            total += GeometryService.haversine_distance(lng1, lat1, lng2, lat2)
        return total
