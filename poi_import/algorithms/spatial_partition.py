"""
OSM POI Import — Spatial Partitioning

Buckets POIs into whole-degree grid cells (~111 km x 111 km·cos(lat)) so
batch jobs can compare records cell by cell instead of pairwise across the
whole dataset.
"""

from __future__ import annotations

import math
from collections.abc import Iterator

from ..models import POI


def round_half_away(value: float) -> int:
    """
    Round to the nearest integer, halves away from zero.

    Python's ``round`` uses banker's rounding (``round(18.5) == 18``), which
    would move POIs on .5 degree lines into a different cell.
    """
    whole = math.trunc(value)
    if abs(value - whole) >= 0.5:
        whole += 1 if value > 0 else -1
    return int(whole)


class PartitionedPOIs:
    """Two-level mapping: rounded latitude -> rounded longitude -> [POI]."""

    def __init__(self) -> None:
        self._cells: dict[int, dict[int, list[POI]]] = {}

    @staticmethod
    def key_for(lat: float, lon: float) -> tuple[int, int]:
        return round_half_away(lat), round_half_away(lon)

    def add(self, poi: POI) -> None:
        lat, lon = self.key_for(poi.latitude, poi.longitude)
        self._cells.setdefault(lat, {}).setdefault(lon, []).append(poi)

    def bucket_for(self, lat: float, lon: float) -> list[POI]:
        """POIs in the cell containing (lat, lon); empty if none."""
        lat_key, lon_key = self.key_for(lat, lon)
        return list(self._cells.get(lat_key, {}).get(lon_key, []))

    def buckets(self) -> Iterator[tuple[tuple[int, int], list[POI]]]:
        for lat, row in self._cells.items():
            for lon, pois in row.items():
                yield (lat, lon), pois

    def __getitem__(self, lat: int) -> dict[int, list[POI]]:
        return self._cells[lat]

    def __contains__(self, lat: object) -> bool:
        return lat in self._cells

    def __iter__(self) -> Iterator[int]:
        return iter(self._cells)

    def __len__(self) -> int:
        return sum(len(pois) for _, pois in self.buckets())
