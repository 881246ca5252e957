#!/usr/bin/env python3
"""
OSM POI Import — Missing Peaks Report

Lists named OSM peaks in an elevation band around a centre point that have
no counterpart in a local peak list.  A peak counts as present when a local
peak has the same name and an elevation within 50 m; local peaks whose name
contains (or is contained in) the OSM name within 50 m are reported as
partial matches for manual review.

Usage:
    missing-peaks --csv peaks.csv --lat -33.4 --lon 20.0 --radius 500

Dependencies:
    pip install requests
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass, field
from typing import Sequence

from ..overpass import Element, OverpassClient, OverpassError
from ..sources import Peak, SourceFormatError, read_peaks

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)

ELEVATION_TOLERANCE_M = 50

TILE_URL = "https://htonl.dev.openstreetmap.org/ngi-tiles/#15/{lat:f}/{lon:f}"

PEAK_QUERY = """
[out:json][timeout:60];
(
  node["natural"="peak"]["name"](around:{radius_m},{lat},{lon})
  (if: number(t["ele"]) >= {min_ele} && number(t["ele"]) < {max_ele});
);
out meta;
"""


@dataclass
class PeakReport:
    element: Element
    found: bool = False
    partials: list[Peak] = field(default_factory=list)


def build_peak_query(lat: float, lon: float, radius_km: float, min_ele: int, max_ele: int) -> str:
    return PEAK_QUERY.format(
        radius_m=radius_km * 1000, lat=lat, lon=lon, min_ele=min_ele, max_ele=max_ele,
    )


def _elevation(element: Element) -> int:
    try:
        return int(float(element.tags.get("ele", "")))
    except ValueError:
        return 0


def compare_peak(element: Element, peaks: Sequence[Peak]) -> PeakReport:
    """Look for ``element`` among the local peaks."""
    report = PeakReport(element=element)
    ele = _elevation(element)
    for peak in peaks:
        for name in element.names:
            diff = abs(ele - int(peak.ele))
            if diff >= ELEVATION_TOLERANCE_M:
                continue
            if peak.name == name.value:
                report.found = True
                return report
            if peak.name in name.value or name.value in peak.name:
                report.partials.append(peak)
    return report


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Report OSM peaks missing from a local peak list",
    )
    parser.add_argument("--csv", required=True, help="Semicolon-separated peak list (name;range;ele)")
    parser.add_argument("--lat", type=float, default=-33.4, help="Centre latitude (default: -33.4)")
    parser.add_argument("--lon", type=float, default=20.0, help="Centre longitude (default: 20.0)")
    parser.add_argument("--radius", type=float, default=500.0, help="Search radius in km (default: 500)")
    parser.add_argument("--min-ele", type=int, default=1600, help="Minimum elevation in m (default: 1600)")
    parser.add_argument("--max-ele", type=int, default=9000, help="Maximum elevation in m (default: 9000)")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the Overpass query without executing it.",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    query = build_peak_query(args.lat, args.lon, args.radius, args.min_ele, args.max_ele)

    if args.dry_run:
        print(query)
        return

    try:
        peaks = read_peaks(args.csv)
    except (OSError, SourceFormatError) as e:
        logger.error("Could not load %s: %s", args.csv, e)
        sys.exit(1)

    try:
        elements = OverpassClient().run_query(query)
    except OverpassError as e:
        logger.error("Peak query failed: %s", e)
        sys.exit(1)

    missing = 0
    for el in elements:
        if not el.names:
            continue
        report = compare_peak(el, peaks)
        if report.found:
            continue
        missing += 1
        name = el.names[0].value
        if not report.partials:
            logger.info("No match for peak: %s %s %f %f", name, el.tags.get("ele", ""), el.lat, el.lon)
        else:
            logger.info("Partial matches for %s %s %f %f", name, el.tags.get("ele", ""), el.lat, el.lon)
            for p in report.partials:
                logger.info("  %s %s %.0f", p.name, p.range, p.ele)
        logger.info(TILE_URL.format(lat=el.lat, lon=el.lon))

    logger.info("%d of %d OSM peaks have no exact match in %s", missing, len(elements), args.csv)


if __name__ == "__main__":
    main()
