"""OSM POI Import — local POI sources."""

from .errors import SourceFormatError
from .geonames import GeoName, read_geonames
from .peaks import Peak, read_peaks
from .sagns import SagnsPOI, feature_tags, normalize_feature, read_sagns
from .trig import BeaconNumber, Trig, parse_beacon_number, read_kml

__all__ = [
    "SourceFormatError",
    "GeoName",
    "read_geonames",
    "Peak",
    "read_peaks",
    "SagnsPOI",
    "feature_tags",
    "normalize_feature",
    "read_sagns",
    "BeaconNumber",
    "Trig",
    "parse_beacon_number",
    "read_kml",
]
