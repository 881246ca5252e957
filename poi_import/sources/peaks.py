"""
OSM POI Import — Peak List

Semicolon-separated ``name;range;elevation`` rows.  Peaks carry no
coordinates, so they are compared against OSM peaks by name and elevation
rather than through the radius-based resolver.
"""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from pathlib import Path

from .errors import SourceFormatError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Peak:
    name: str
    range: str
    ele: float


def new_peak(record: list[str]) -> Peak:
    if len(record) != 3:
        raise SourceFormatError(f"expected 3 fields, got {len(record)}: {record}")
    try:
        ele = float(record[2])
    except ValueError as e:
        raise SourceFormatError(f"bad elevation {record[2]!r} for {record[0]!r}") from e
    return Peak(name=record[0], range=record[1], ele=ele)


def read_peaks(path: str | Path) -> list[Peak]:
    """Load every peak; any malformed row aborts the read."""
    with open(path, "r", encoding="utf-8", newline="") as f:
        peaks = [new_peak(row) for row in csv.reader(f, delimiter=";") if row]
    logger.info("Loaded %d peaks from %s", len(peaks), path)
    return peaks
