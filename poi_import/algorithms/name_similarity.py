#!/usr/bin/env python3
"""
OSM POI Import — Name Normalisation and Edit Distance

Names from the NGI beacon registry, SAGNS gazetteer and OpenStreetMap differ
mostly in spacing, hyphenation and case ("Lion's Head" / "Lions-Head").
Normalisation removes exactly those differences; everything else is left to
the Levenshtein ratio.

Dependencies:
    pip install rapidfuzz
"""

from __future__ import annotations

from rapidfuzz.distance import Levenshtein


# ---------------------------------------------------------------------------
# Normalisation
# ---------------------------------------------------------------------------

_STRIP_CHARS = str.maketrans("", "", " -")


def normalize_name(name: str) -> str:
    """Lowercase and drop all spaces and hyphens."""
    return name.lower().translate(_STRIP_CHARS)


# ---------------------------------------------------------------------------
# Edit distance
# ---------------------------------------------------------------------------


class LevenshteinCalculator:
    """
    Levenshtein distance over Unicode code points with configurable costs.

    Parameters
    ----------
    indel_cost : int
        Cost of a single insertion or deletion.  Default 1.
    substitution_cost : int
        Cost of replacing one code point with another.  Default 1.
    """

    def __init__(self, indel_cost: int = 1, substitution_cost: int = 1) -> None:
        self.indel_cost = indel_cost
        self.substitution_cost = substitution_cost

    def distance(self, s1: str, s2: str) -> int:
        return Levenshtein.distance(
            s1,
            s2,
            weights=(self.indel_cost, self.indel_cost, self.substitution_cost),
        )

    def ratio(self, s1: str, s2: str) -> float:
        """
        Edit distance relative to the longer string, in code points.

        0.0 means identical; two empty strings are identical.
        """
        longest = max(len(s1), len(s2))
        if longest == 0:
            return 0.0
        return self.distance(s1, s2) / longest

    def __repr__(self) -> str:
        return (
            f"LevenshteinCalculator(indel_cost={self.indel_cost}, "
            f"substitution_cost={self.substitution_cost})"
        )


_DEFAULT_CALCULATOR = LevenshteinCalculator()


def levenshtein_distance(s1: str, s2: str) -> int:
    """Edit distance with unit costs."""
    return _DEFAULT_CALCULATOR.distance(s1, s2)


def levenshtein_ratio(s1: str, s2: str) -> float:
    """Unit-cost edit distance divided by the longer string's length."""
    return _DEFAULT_CALCULATOR.ratio(s1, s2)
