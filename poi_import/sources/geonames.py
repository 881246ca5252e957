"""
OSM POI Import — GeoNames Gazetteer

Reads the tab-separated GNS country extracts.  Only the latitude, longitude,
designation and romanised full-name columns are used; rows are kept when
their designation is one of ``types`` and they fall inside ``bounds``.
"""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from ..algorithms.geo_proximity import BoundingBox
from ..models import Attribute, Name, NameKey
from .errors import SourceFormatError

logger = logging.getLogger(__name__)

LAT_COLUMN = "LAT"
LON_COLUMN = "LONG"
TYPE_COLUMN = "DSG"
NAME_COLUMN = "FULL_NAME_RO"


@dataclass
class GeoName:
    name: str
    type: str
    lat: float
    lon: float
    id: int = 0
    osm_id: int = 0

    @property
    def latitude(self) -> float:
        return self.lat

    @property
    def longitude(self) -> float:
        return self.lon

    @property
    def names(self) -> list[Name]:
        if not self.name:
            return []
        return [Name(key=NameKey.DEFAULT, value=self.name)]

    @property
    def tags(self) -> dict[str, str]:
        tags = {n.tag_key: n.value for n in self.names}
        if self.id:
            tags["sagns_id"] = str(self.id)
        return tags

    def osm_filter(self) -> list[Attribute]:
        return [Attribute(key="name", value=self.name)]

    def __str__(self) -> str:
        return f"GeoName{{Name: {self.name}; Latitude: {self.lat:f}; Longitude: {self.lon:f}}}"


def _index_of(header: list[str], column: str) -> int:
    wanted = column.lower()
    for i, value in enumerate(header):
        if value.strip().lower() == wanted:
            return i
    raise SourceFormatError(f"{column} not found in header {header}")


def new_geoname(lat: str, lon: str, name: str, type_: str) -> GeoName:
    try:
        return GeoName(name=name, type=type_.lower(), lat=float(lat), lon=float(lon))
    except ValueError as e:
        raise SourceFormatError(f"bad coordinates ({lat!r}, {lon!r}) for {name!r}") from e


def read_geonames(
    path: str | Path,
    bounds: BoundingBox | None = None,
    types: Iterable[str] | None = None,
) -> list[GeoName]:
    """
    Load gazetteer entries.

    Parameters
    ----------
    path : str or Path
        Tab-separated GNS file with a header row.
    bounds : BoundingBox, optional
        Keep only entries inside this box.  Default: everything.
    types : iterable of str, optional
        Designation codes to keep (case-insensitive).  Default: all.
    """
    bounds = bounds or BoundingBox()
    wanted = {t.lower() for t in types} if types is not None else None

    geonames: list[GeoName] = []
    skipped = 0
    with open(path, "r", encoding="utf-8", newline="") as f:
        reader = csv.reader(f, delimiter="\t")
        header = next(reader, None)
        if header is None:
            raise SourceFormatError(f"{path} is empty")
        lat_i = _index_of(header, LAT_COLUMN)
        lon_i = _index_of(header, LON_COLUMN)
        type_i = _index_of(header, TYPE_COLUMN)
        name_i = _index_of(header, NAME_COLUMN)

        for row in reader:
            try:
                g = new_geoname(row[lat_i], row[lon_i], row[name_i], row[type_i])
            except (SourceFormatError, IndexError) as e:
                logger.warning("Could not parse GeoName record %s: %s", row, e)
                skipped += 1
                continue
            if wanted is not None and g.type not in wanted:
                continue
            if not bounds.contains_point(g.lat, g.lon):
                continue
            geonames.append(g)

    logger.info("Loaded %d GeoNames from %s (%d unparseable)", len(geonames), path, skipped)
    return geonames
