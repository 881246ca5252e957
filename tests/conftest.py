"""Shared fixtures: POI factories around the Cape Peninsula."""

from __future__ import annotations

import pytest

from poi_import.models import Name, NameKey, PointOfInterest

# Metres per 0.001° of latitude with the 6378.1 km radius.
M_PER_MILLIDEGREE = 111.3


def make_poi(lat: float, lon: float, *names: str, **tags: str) -> PointOfInterest:
    """A POI with default-class names (first) and alt_name for the rest."""
    name_list = [
        Name(key=NameKey.DEFAULT if i == 0 else NameKey.ALTERNATIVE, value=n)
        for i, n in enumerate(names)
    ]
    return PointOfInterest(latitude=lat, longitude=lon, names=name_list, tags=dict(tags))


@pytest.fixture()
def poi_factory():
    return make_poi


@pytest.fixture()
def table_mountain():
    """Reference point on the Table Mountain plateau."""
    return make_poi(-33.9628, 18.4098, "Table Mountain")
