#!/usr/bin/env python3
"""
OSM POI Import — Geospatial Proximity

Great-circle distance between coordinate pairs using the Haversine formula,
plus the candidate radius filter that orders Overpass results by distance
before name comparison.

Plain math on floats; no geo library is needed.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence, TypeVar

from ..models import POI


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Equatorial radius in metres.  Radius thresholds throughout the import
# tooling were tuned against this value, not the 6371 km mean radius.
EARTH_RADIUS_M = 6378100.0

P = TypeVar("P", bound=POI)


# ---------------------------------------------------------------------------
# Core distance calculation
# ---------------------------------------------------------------------------


def _hsin(theta: float) -> float:
    return math.sin(theta / 2) ** 2


def distance_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Compute the great-circle distance in metres between two WGS84 points
    using the Haversine formula.
    """
    la1 = math.radians(lat1)
    lo1 = math.radians(lon1)
    la2 = math.radians(lat2)
    lo2 = math.radians(lon2)

    h = _hsin(la2 - la1) + math.cos(la1) * math.cos(la2) * _hsin(lo2 - lo1)
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(h))


def poi_distance_m(a: POI, b: POI) -> float:
    """Distance in metres between two POIs."""
    return distance_m(a.latitude, a.longitude, b.latitude, b.longitude)


# ---------------------------------------------------------------------------
# Area selection
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BoundingBox:
    """A lat/lon rectangle.  The all-zero box means "no restriction"."""
    min_lat: float = 0.0
    max_lat: float = 0.0
    min_lon: float = 0.0
    max_lon: float = 0.0

    def is_zero(self) -> bool:
        return (
            self.min_lat == 0
            and self.max_lat == 0
            and self.min_lon == 0
            and self.max_lon == 0
        )

    def contains_point(self, lat: float, lon: float) -> bool:
        if self.is_zero():
            return True
        return (
            self.min_lat <= lat <= self.max_lat
            and self.min_lon <= lon <= self.max_lon
        )

    def contains(self, poi: POI) -> bool:
        return self.contains_point(poi.latitude, poi.longitude)


@dataclass(frozen=True)
class CircleBox:
    """A circular selection area around a centre point."""
    latitude: float
    longitude: float
    radius_km: float

    @property
    def radius_m(self) -> float:
        return self.radius_km * 1000

    def contains(self, poi: POI) -> bool:
        dist = distance_m(self.latitude, self.longitude, poi.latitude, poi.longitude)
        return dist < self.radius_m


# ---------------------------------------------------------------------------
# Candidate filtering
# ---------------------------------------------------------------------------


def filter_candidates(
    candidates: Sequence[P],
    reference: POI,
    radius_m: float,
) -> list[P]:
    """
    Keep candidates strictly closer than ``radius_m`` to the reference and
    return them sorted by distance (ascending).

    The sort is stable, so equidistant candidates keep their input order.
    """
    nearby: list[tuple[float, P]] = []
    for cand in candidates:
        dist = poi_distance_m(cand, reference)
        if dist < radius_m:
            nearby.append((dist, cand))

    nearby.sort(key=lambda pair: pair[0])
    return [cand for _, cand in nearby]


def select_nearest(
    candidates: Sequence[P],
    reference: POI,
    radius_m: float,
) -> P | None:
    """
    Return the nearest candidate within ``radius_m``, or None.

    A lone candidate is returned as-is without the radius test: the spatial
    query already bounded the search, and existing import runs rely on it.
    """
    if len(candidates) == 1:
        return candidates[0]
    nearest = filter_candidates(candidates, reference, radius_m)
    if not nearest:
        return None
    return nearest[0]
