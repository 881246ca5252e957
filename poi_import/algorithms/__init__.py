"""OSM POI Import — Matching Algorithms."""

from .geo_proximity import (
    EARTH_RADIUS_M,
    BoundingBox,
    CircleBox,
    distance_m,
    filter_candidates,
    poi_distance_m,
    select_nearest,
)
from .name_similarity import (
    LevenshteinCalculator,
    levenshtein_distance,
    levenshtein_ratio,
    normalize_name,
)
from .spatial_partition import PartitionedPOIs, round_half_away
from .match_resolver import (
    MatchOutcome,
    MatchTier,
    ResolverConfig,
    resolve,
    select_match,
)

__all__ = [
    "EARTH_RADIUS_M",
    "BoundingBox",
    "CircleBox",
    "distance_m",
    "filter_candidates",
    "poi_distance_m",
    "select_nearest",
    "LevenshteinCalculator",
    "levenshtein_distance",
    "levenshtein_ratio",
    "normalize_name",
    "PartitionedPOIs",
    "round_half_away",
    "MatchOutcome",
    "MatchTier",
    "ResolverConfig",
    "resolve",
    "select_match",
]
