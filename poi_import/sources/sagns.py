"""
OSM POI Import — SAGNS Gazetteer

Reads the South African Geographical Names System export: a comma-separated
file with a header row and twenty columns per record.

    Name, Feature_Description, pklid, Latitude, Longitude, Date, MapInfo,
    Province, fklFeatureSubTypeID, Previous_Name, fklMagisterialDistrictID,
    ProvinceID, fklLanguageID, fklDisteral, Local Municipality, Sound,
    District Municipality, fklLocalMunic, Comments, Meaning

Each record's feature description is mapped to OSM tags.  Records whose
feature has no mapping are skipped, since they could not be imported
meaningfully.
"""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path

from ..algorithms.geo_proximity import BoundingBox
from ..models import Attribute, Name, NameKey
from .errors import SourceFormatError

logger = logging.getLogger(__name__)

FIELD_COUNT = 20
DATE_FORMAT = "%d-%m-%Y"


# ---------------------------------------------------------------------------
# Feature → OSM tags
# ---------------------------------------------------------------------------

_PEAK = {"natural": "peak"}
_TOWN = {"place": "town"}
_VILLAGE = {"place": "village"}
_DESERT = {"natural": "desert"}
_BARE_ROCK = {"natural": "bare_rock"}
_BORDER_CONTROL = {"barrier": "border_control"}
_RIVER = {"waterway": "river"}
_INTERMITTENT_RIVER = {"waterway": "river", "intermittent": "yes"}
_PERENNIAL_RIVER = {"waterway": "river", "intermittent": "no"}
_PROTECTED = {"boundary": "protected_area", "landuse": "conservation", "protect_class": "1"}
_AIRFIELD = {"aeroway": "aerodrome", "aerodrome:type": "airfield"}
_JUNCTION = {"highway": "motorway_junction"}
_RESEARCH = {"amenity": "research_institute"}
_STATION = {"railway": "station"}
_LAKE = {"natural": "water", "water": "lake"}

# Keyed by normalised feature description (see ``normalize_feature``).
FEATURE_TAGS: dict[str, dict[str, str]] = {
    "agrivillage": _VILLAGE,
    "airfield": _AIRFIELD,
    "airport": {"aeroway": "aerodrome"},
    "battlefield": {"historic": "battlefield"},
    "bay": {"natural": "bay"},
    "beach": {"natural": "beach"},
    "border_post": _BORDER_CONTROL,
    "bow_lake": {"natural": "water", "water": "oxbow"},
    "brickworks": {"industrial": "brickyard"},
    "bridge": {"bridge": "yes"},
    "bush_area": {"natural": "scrub"},
    "canal": {"waterway": "canal"},
    "cemetery": {"landuse": "cemetery"},
    "cliff": {"natural": "cliff"},
    "coastal_rock": _BARE_ROCK,
    "coastline_beach": {"natural": "beach"},
    "cove": {"natural": "bay"},
    "dam": {"natural": "water", "water": "reservoir"},
    "dam_wall": {"waterway": "dam"},
    "dock": {"waterway": "dock"},
    "double_non_perennial": _INTERMITTENT_RIVER,
    "double_perennial": _PERENNIAL_RIVER,
    "dry": _DESERT,
    "dry_area": _DESERT,
    "dry_water_course": _INTERMITTENT_RIVER,
    "forest": {"natural": "wood"},
    "furrow": {"waterway": "ditch"},
    "game_reserve": _PROTECTED,
    "gorge": {"natural": "stream"},
    "group_of_huts": {"place": "hamlet"},
    "guard_post": _BORDER_CONTROL,
    "harbour": {"harbour": "yes"},
    "hill": _PEAK,
    "historical": {"historic": "yes"},
    "holy_grave": {"historic": "tomb"},
    "hospital": {"amenity": "hospital"},
    "hotel": {"tourism": "hotel"},
    "industrial": {"landuse": "industrial"},
    "interchange": _JUNCTION,
    "island": {"place": "island"},
    "island_real": {"place": "island"},
    "junction": _JUNCTION,
    "kloof": {"waterway": "stream"},
    "kop": _PEAK,
    "lagoon": {"natural": "water", "water": "lagoon"},
    "lake": _LAKE,
    "lake_vlei": _LAKE,
    "land_development": {"landuse": "construction"},
    "landing_strip": _AIRFIELD,
    "lighthouse/marine_beacon": {"man_made": "lighthouse"},
    "marsh_vlei": {"natural": "wetland", "wetland": "marsh"},
    "mission": {"place": "hamlet"},
    "mountain": _PEAK,
    "mountain_peak": _PEAK,
    "mountain_range": {"natural": "mountain_range"},
    "mouth": _RIVER,
    "museum": {"tourism": "museum"},
    "nature_reserve": _PROTECTED,
    "non_perennial": _INTERMITTENT_RIVER,
    "observatory": {"landuse": "observatory", "man_made": "telescope"},
    "pan": _DESERT,
    "pass": {"mountain_pass": "yes"},
    "pass_neks": {"natural": "saddle"},
    "patrol_post": _BORDER_CONTROL,
    "peak": _PEAK,
    "perennial": _PERENNIAL_RIVER,
    "plain": {"natural": "grassland"},
    "plantation": {"landuse": "forest"},
    "plateau": {"natural": "plateau"},
    "police_station": {"amenity": "police"},
    "post_office": {"amenity": "post_office"},
    "power_station": {"power": "substation"},
    "prison": {"amenity": "prison"},
    "protected_area": _PROTECTED,
    "quarry": {"landuse": "quarry"},
    "railway": {"railway": "rail"},
    "railway_station": _STATION,
    "railway_tunnel": {"railway": "rail", "tunnel": "yes"},
    "research_centre": _RESEARCH,
    "research_institute": _RESEARCH,
    "residential_town": _TOWN,
    "residential_township": _TOWN,
    "ridge": {"natural": "ridge"},
    "river_(not_specified)": _RIVER,
    "river_bend": _RIVER,
    "road": {"highway": "unclassified"},
    "rock": _BARE_ROCK,
    "rock_outcrop": _BARE_ROCK,
    "ruin": {"historic": "ruin"},
    "sandy_area": {"natural": "sand"},
    "sawmill": {"craft": "sawmill"},
    "school": {"school": "yes"},
    "settlement": _VILLAGE,
    "single_non_perennial": _INTERMITTENT_RIVER,
    "single_perennial": _PERENNIAL_RIVER,
    "siphon": {"waterway": "canal"},
    "spa": {"amenity": "public_bath", "bath:type": "thermal"},
    "state": {"landuse": "forest"},
    "station": _STATION,
    "studam": {"waterway": "weir"},
    "tower": {"man_made": "tower"},
    "town": _TOWN,
    "township": _TOWN,
    "trail_hiking": {"highway": "path"},
    "tunnel": {"tunnel": "yes"},
    "urban_area": {"place": "suburb"},
    "valley": {"natural": "valley"},
    "village": _VILLAGE,
    "village_settlement": _VILLAGE,
    "water": {"natural": "water"},
    "weir": {"waterway": "weir"},
}


def normalize_feature(description: str) -> str:
    """``"Mountain Peak"`` → ``"mountain_peak"``."""
    return description.strip().lower().replace(" ", "_")


def feature_tags(feature: str) -> dict[str, str]:
    """OSM tags for a normalised feature; empty when it has no mapping."""
    return dict(FEATURE_TAGS.get(feature, {}))


# ---------------------------------------------------------------------------
# Record
# ---------------------------------------------------------------------------


@dataclass
class SagnsPOI:
    """One SAGNS place name."""

    names: list[Name]
    feature: str
    lat: float
    lon: float
    id: int = 0
    recorded: date | None = None
    map_info: str = ""
    province: str = ""
    local_municipality: str = ""
    district_municipality: str = ""
    comments: str = ""
    meaning: str = ""
    extra_tags: dict[str, str] = field(default_factory=dict)

    @property
    def latitude(self) -> float:
        return self.lat

    @property
    def longitude(self) -> float:
        return self.lon

    def add_tag(self, key: str, value: str) -> None:
        self.extra_tags[key] = value

    @property
    def tags(self) -> dict[str, str]:
        tags = feature_tags(self.feature)
        if self.meaning:
            tags["description"] = self.meaning
        tags["sagns_id"] = str(self.id)
        tags["source"] = "sagns"
        for n in self.names:
            tags[n.tag_key] = n.value
        tags.update(self.extra_tags)
        return tags

    def osm_filter(self) -> list[Attribute]:
        return [Attribute(key="sagns_id", value=str(self.id))]

    def __str__(self) -> str:
        label = self.names[0].value if self.names else "<unnamed>"
        return f"SAGNS {self.id} {label} ({self.feature})"


# ---------------------------------------------------------------------------
# Reader
# ---------------------------------------------------------------------------


def _select_names(name: str, previous_name: str) -> list[Name]:
    """The current name when set, otherwise the previous one as ``old_name``."""
    if name:
        return [Name(key=NameKey.DEFAULT, value=name)]
    if previous_name:
        return [Name(key=NameKey.OLD, value=previous_name)]
    return []


def new_sagns_poi(record: list[str]) -> SagnsPOI:
    """
    Build a POI from one twenty-field record.

    Raises
    ------
    SourceFormatError
        Bad coordinates or a feature without an OSM mapping.  A bad id or
        date is logged and left at its default.
    """
    try:
        lat = float(record[3])
        lon = float(record[4])
    except ValueError as e:
        raise SourceFormatError(f"bad coordinates ({record[3]!r}, {record[4]!r})") from e

    feature = normalize_feature(record[1])
    if not FEATURE_TAGS.get(feature):
        raise SourceFormatError(f"no tags available for feature {feature!r}")

    try:
        poi_id = int(record[2])
    except ValueError:
        logger.debug("Bad SAGNS id %r", record[2])
        poi_id = 0

    try:
        recorded = datetime.strptime(record[5], DATE_FORMAT).date()
    except ValueError:
        logger.debug("Bad SAGNS date %r", record[5])
        recorded = None

    return SagnsPOI(
        names=_select_names(record[0].strip(), record[9].strip()),
        feature=feature,
        lat=lat,
        lon=lon,
        id=poi_id,
        recorded=recorded,
        map_info=record[6],
        province=record[7],
        local_municipality=record[14],
        district_municipality=record[16],
        comments=record[18],
        meaning=record[19],
    )


def read_sagns(path: str | Path, bounds: BoundingBox | None = None) -> list[SagnsPOI]:
    """
    Load SAGNS records.

    Parameters
    ----------
    path : str or Path
        SAGNS CSV export with a header row.
    bounds : BoundingBox, optional
        Keep only records inside this box.  Default: everything.

    Raises
    ------
    SourceFormatError
        A row does not have exactly twenty fields.
    """
    bounds = bounds or BoundingBox()
    pois: list[SagnsPOI] = []
    skipped = 0
    with open(path, "r", encoding="utf-8", newline="") as f:
        reader = csv.reader(f)
        if next(reader, None) is None:
            raise SourceFormatError(f"{path} is empty")
        for row in reader:
            if not row:
                continue
            if len(row) != FIELD_COUNT:
                raise SourceFormatError(
                    f"{path}:{reader.line_num}: expected {FIELD_COUNT} fields, got {len(row)}"
                )
            try:
                p = new_sagns_poi(row)
            except SourceFormatError as e:
                logger.warning("Could not parse SAGNS record %s: %s", row[:3], e)
                skipped += 1
                continue
            if bounds.contains(p):
                pois.append(p)

    logger.info("Loaded %d SAGNS POIs from %s (%d skipped)", len(pois), path, skipped)
    return pois
