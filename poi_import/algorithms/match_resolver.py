#!/usr/bin/env python3
"""
OSM POI Import — Match Resolver

Decides whether any OpenStreetMap candidate returned for a local POI already
represents the same feature.

Resolution tiers (highest precedence first):
    exact    : a normalised candidate name equals a normalised reference name
    contains : one normalised name contains the other; scanning stops here
    fuzzy    : the candidate with the lowest Levenshtein ratio seen
    nearest  : fallback when the reference or every candidate is unnamed
    none     : no candidate within the radius

Candidates are scanned in distance order (nearest first) and, within a
candidate, in name order.  An exact match returns immediately; the first
contains-match halts the scan, so later candidates are never inspected.

Dependencies:
    pip install rapidfuzz pyyaml
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Generic, Sequence, TypeVar

import yaml

from ..models import POI
from .geo_proximity import filter_candidates
from .name_similarity import LevenshteinCalculator, normalize_name

logger = logging.getLogger(__name__)

P = TypeVar("P", bound=POI)


# ---------------------------------------------------------------------------
# Defaults (overridden by config/resolver.yaml at runtime)
# ---------------------------------------------------------------------------

DEFAULT_RADIUS_M = 1000.0
DEFAULT_MAX_WORKERS = 4

# Any real ratio is <= 1, so the first fuzzy comparison always wins.
FUZZY_RATIO_SEED = 50.0


# ---------------------------------------------------------------------------
# Configuration loader
# ---------------------------------------------------------------------------


@dataclass
class ResolverConfig:
    """Matching configuration, the ``matching`` section of resolver.yaml."""

    radius_m: float = DEFAULT_RADIUS_M
    indel_cost: int = 1
    substitution_cost: int = 1
    # None accepts the best fuzzy candidate whatever its ratio.
    max_fuzzy_ratio: float | None = None
    # Concurrent candidate lookups in batch resolution.
    max_workers: int = DEFAULT_MAX_WORKERS

    def calculator(self) -> LevenshteinCalculator:
        return LevenshteinCalculator(self.indel_cost, self.substitution_cost)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "ResolverConfig":
        """Load configuration from a YAML file."""
        with open(path, "r") as f:
            raw = yaml.safe_load(f) or {}

        matching = raw.get("matching", {}) or {}
        max_fuzzy = matching.get("max_fuzzy_ratio")

        return cls(
            radius_m=float(matching.get("radius_m", DEFAULT_RADIUS_M)),
            indel_cost=int(matching.get("indel_cost", 1)),
            substitution_cost=int(matching.get("substitution_cost", 1)),
            max_fuzzy_ratio=float(max_fuzzy) if max_fuzzy is not None else None,
            max_workers=int(matching.get("max_workers", DEFAULT_MAX_WORKERS)),
        )


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------


class MatchTier(str, Enum):
    EXACT = "exact"
    CONTAINS = "contains"
    FUZZY = "fuzzy"
    NEAREST = "nearest"
    NONE = "none"


@dataclass(frozen=True)
class MatchOutcome(Generic[P]):
    """Outcome of resolving one reference POI.  No-match is not an error."""

    candidate: P | None
    tier: MatchTier
    ratio: float | None = None

    @property
    def matched(self) -> bool:
        return self.candidate is not None

    @classmethod
    def no_match(cls) -> "MatchOutcome":
        return cls(candidate=None, tier=MatchTier.NONE)


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def select_match(
    candidates: Sequence[P],
    reference: POI,
    config: ResolverConfig | None = None,
) -> MatchOutcome[P]:
    """
    Pick the candidate that represents the same feature as ``reference``.

    ``candidates`` must already be radius-filtered and sorted by distance
    (see ``filter_candidates``).
    """
    if config is None:
        config = ResolverConfig()

    if not candidates:
        return MatchOutcome.no_match()

    if not reference.names:
        return MatchOutcome(candidate=candidates[0], tier=MatchTier.NEAREST)

    calculator = config.calculator()
    reference_names = [normalize_name(n.value) for n in reference.names]

    contains: P | None = None
    fuzzy: P | None = None
    fuzzy_ratio = FUZZY_RATIO_SEED
    any_named = False

    for cand in candidates:
        for name in cand.names:
            any_named = True
            cand_name = normalize_name(name.value)
            for ref_name in reference_names:
                if cand_name == ref_name:
                    return MatchOutcome(candidate=cand, tier=MatchTier.EXACT, ratio=0.0)
                if cand_name in ref_name or ref_name in cand_name:
                    contains = cand
                    break
                ratio = calculator.ratio(cand_name, ref_name)
                if ratio < fuzzy_ratio:
                    fuzzy_ratio = ratio
                    fuzzy = cand
            if contains is not None:
                break
        if contains is not None:
            break

    if contains is not None:
        return MatchOutcome(candidate=contains, tier=MatchTier.CONTAINS)

    if fuzzy is not None:
        if config.max_fuzzy_ratio is None or fuzzy_ratio <= config.max_fuzzy_ratio:
            return MatchOutcome(candidate=fuzzy, tier=MatchTier.FUZZY, ratio=fuzzy_ratio)
        logger.info(
            "Best fuzzy candidate for %s rejected (ratio %.3f > %.3f)",
            reference.names[0].value, fuzzy_ratio, config.max_fuzzy_ratio,
        )

    if not any_named:
        return MatchOutcome(candidate=candidates[0], tier=MatchTier.NEAREST)

    logger.info("No match found for %s", reference.names[0].value)
    return MatchOutcome.no_match()


def resolve(
    reference: POI,
    candidates: Sequence[P],
    radius_m: float | None = None,
    config: ResolverConfig | None = None,
) -> MatchOutcome[P]:
    """
    Resolve a reference POI against freshly fetched candidates.

    Filters to ``radius_m`` (default: ``config.radius_m``), orders by
    distance, then applies ``select_match``.
    """
    if config is None:
        config = ResolverConfig()
    if radius_m is None:
        radius_m = config.radius_m

    nearby = filter_candidates(candidates, reference, radius_m)
    outcome = select_match(nearby, reference, config)
    if not outcome.matched and not nearby:
        logger.info(
            "No candidates within %.0f m of (%.6f, %.6f)",
            radius_m, reference.latitude, reference.longitude,
        )
    return outcome
