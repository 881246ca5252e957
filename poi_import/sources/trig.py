"""
OSM POI Import — NGI Trigonometric Beacons

Reads survey beacons from the National Geo-spatial Information KML exports.
Each placemark description holds ``key = value`` lines separated by
``<br></br>``; the placemark point overrides the description coordinates.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO

from ..models import Attribute, Name, NameKey
from .errors import SourceFormatError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BeaconNumber:
    area: int
    number: int

    def __str__(self) -> str:
        return f"{self.area}-{self.number}"


def parse_beacon_number(value: str) -> BeaconNumber:
    """Parse ``"<area>-<number>"``, e.g. ``"123-45"``."""
    parts = value.split("-")
    if len(parts) != 2:
        raise SourceFormatError(f"cannot parse beacon number: {value}")
    try:
        return BeaconNumber(area=int(parts[0]), number=int(parts[1]))
    except ValueError as e:
        raise SourceFormatError(f"cannot parse beacon number: {value}: {e}") from e


@dataclass
class Trig:
    """A trigonometric survey beacon."""

    lat: float = 0.0
    lon: float = 0.0
    name: str = ""
    ele: float = 0.0
    number: BeaconNumber | None = None
    description: str = ""
    created_by: str = ""
    osm_id: int = 0
    extra_tags: dict[str, str] = field(default_factory=dict)

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

    def add_tag(self, key: str, value: str) -> None:
        self.extra_tags[key] = value

    @property
    def tags(self) -> dict[str, str]:
        tags = {
            "man_made": "survey_point",
            "ref": str(self.number),
            "source": "ngi",
        }
        tags.update(self.extra_tags)
        for n in self.names:
            tags[n.tag_key] = n.value
        if self.ele != 0:
            tags["ele"] = format(self.ele, ".15g")
        if self.description:
            tags["description"] = self.description
        return tags

    def osm_filter(self) -> list[Attribute]:
        return [Attribute(key="ref", value=str(self.number))]

    def __str__(self) -> str:
        return f"{self.name}:{self.number}"


# ---------------------------------------------------------------------------
# KML parsing
# ---------------------------------------------------------------------------

_IGNORED_KEYS = {"lo", "y", "x"}


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _child_text(elem: ET.Element, name: str) -> str:
    for child in elem.iter():
        if _local(child.tag) == name:
            return child.text or ""
    return ""


def _parse_float(key: str, value: str) -> float:
    try:
        return float(value)
    except ValueError as e:
        raise SourceFormatError(f"cannot parse {key}: {value!r}") from e


def parse_coordinates(value: str) -> tuple[float, float]:
    """KML ``lon,lat[,alt]`` → (lat, lon)."""
    parts = value.strip().split(",")
    if len(parts) < 2:
        raise SourceFormatError(f"cannot parse coordinates: {value}")
    lon = _parse_float("longitude", parts[0])
    lat = _parse_float("latitude", parts[1])
    return lat, lon


def trig_from_placemark(placemark: ET.Element) -> Trig:
    """Build a beacon from one KML placemark."""
    trig = Trig()
    description = _child_text(placemark, "description").strip()
    description = description.removeprefix("<![CDATA[").removesuffix("]]>")

    for line in description.split("<br></br>"):
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key, value = key.strip().lower(), value.strip()
        if not value or key in _IGNORED_KEYS:
            continue
        if key == "name":
            trig.name = value
        elif key == "latitude":
            trig.lat = _parse_float(key, value)
        elif key == "longitude":
            trig.lon = _parse_float(key, value)
        elif key == "ortho ht":
            trig.ele = _parse_float(key, value)
        elif key == "beacon number":
            trig.number = parse_beacon_number(value)
        elif key == "description":
            trig.description = value
        elif key == "created by":
            trig.created_by = value
        else:
            logger.warning("Unhandled beacon attribute %r", key)

    if trig.number is None:
        raise SourceFormatError(f"beacon number not set for {trig.name or 'placemark'}")

    coords = _child_text(placemark, "coordinates")
    try:
        trig.lat, trig.lon = parse_coordinates(coords)
    except SourceFormatError as e:
        logger.warning("Using description coordinates for %s: %s", trig, e)

    return trig


def read_kml(source: str | Path | IO[bytes]) -> list[Trig]:
    """
    Read every beacon in a KML document.  Placemarks that cannot be parsed
    are logged and skipped.
    """
    root = ET.parse(source).getroot()
    trigs = []
    for elem in root.iter():
        if _local(elem.tag) != "Placemark":
            continue
        try:
            trigs.append(trig_from_placemark(elem))
        except SourceFormatError as e:
            logger.warning("Skipping placemark: %s", e)
    logger.info("Loaded %d beacons", len(trigs))
    return trigs
