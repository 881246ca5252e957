#!/usr/bin/env python3
"""
OSM POI Import — Import Candidates Generator

Loads local POIs (NGI survey beacons, SAGNS place names or GeoNames
gazetteer entries), keeps those within a circle around a centre point, checks
them against live OpenStreetMap data and writes the ones that are confirmed
missing to a JOSM edit file.  Lookups stop once `--limit` POIs are
confirmed missing.

POIs whose lookup failed are reported and left out of the output: an
unanswered query is not evidence that the feature is missing.

Usage:
    poi-import --source trig --input beacons.kml \
        --lat -33.4 --lon 20.0 --radius 20 --limit 10 \
        --out output/trig-poi.xml

    poi-import --source geonames --input za.txt --types MT,PK \
        --lat -33.95 --lon 18.40 --radius 15

    poi-import --source sagns --input sagns.csv --radius 20 --limit 10

Dependencies:
    pip install requests rapidfuzz pyyaml
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

from ..algorithms.geo_proximity import CircleBox, poi_distance_m
from ..algorithms.match_resolver import ResolverConfig
from ..models import OSMPOI, Attribute
from ..osm_xml import generate_xml
from ..overpass import Element, OverpassClient, OverpassError, build_query
from ..pipeline import resolve_until_missing
from ..sources import SourceFormatError, Trig, read_geonames, read_kml, read_sagns

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)

DEFAULT_CONFIG = Path("config") / "resolver.yaml"

# A beacon tagged only with its number (no area prefix) this close by is
# probably the same beacon entered by hand.
REF_HINT_RADIUS_M = 1000.0
FIXME_EXISTING_SURVEY_POINT = "check existing survey_point"


# ---------------------------------------------------------------------------
# Survey point hints
# ---------------------------------------------------------------------------


def index_survey_points(elements: Sequence[Element]) -> dict[str, Element]:
    """Map ``ref`` → element; the first element wins on duplicate refs."""
    by_ref: dict[str, Element] = {}
    for el in elements:
        ref = el.tags.get("ref")
        if not ref:
            continue
        if ref in by_ref:
            existing = by_ref[ref]
            logger.warning(
                "ref %s already exists: %s (%f, %f) and %s (%f, %f)",
                ref, el, el.lat, el.lon, existing, existing.lat, existing.lon,
            )
            continue
        by_ref[ref] = el
    return by_ref


def flag_partial_refs(trigs: Sequence[Trig], by_ref: dict[str, Element]) -> int:
    """Add a fixme tag to beacons whose bare number is already mapped nearby."""
    flagged = 0
    for t in trigs:
        if t.number is None:
            continue
        hint = by_ref.get(str(t.number.number))
        if hint is not None and poi_distance_m(hint, t) < REF_HINT_RADIUS_M:
            logger.info("Adding fixme to %s", t)
            t.add_tag("fixme", FIXME_EXISTING_SURVEY_POINT)
            flagged += 1
    return flagged


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Find local POIs missing from OpenStreetMap and write a JOSM edit file",
    )
    parser.add_argument(
        "--source",
        choices=["trig", "sagns", "geonames"],
        required=True,
        help="Input format: NGI beacon KML, SAGNS CSV or GeoNames TSV.",
    )
    parser.add_argument("--input", required=True, help="Path to the source file.")
    parser.add_argument(
        "--types",
        default="",
        help="Comma-separated GeoNames designation codes to keep (default: all).",
    )
    parser.add_argument("--lat", type=float, default=-33.4, help="Centre latitude (default: -33.4)")
    parser.add_argument("--lon", type=float, default=20.0, help="Centre longitude (default: 20.0)")
    parser.add_argument(
        "--radius",
        type=float,
        default=20.0,
        help="Radius around the centre to select POIs from, in km (default: 20)",
    )
    parser.add_argument(
        "--match-radius",
        type=float,
        default=None,
        help="Candidate search radius in metres (default: from config, 1000)",
    )
    parser.add_argument("--limit", type=int, default=10, help="Maximum POIs to export (default: 10)")
    parser.add_argument(
        "--out",
        default=None,
        help="Output XML path (default: <source>-poi-<timestamp>.xml)",
    )
    parser.add_argument(
        "--config",
        default=None,
        help=f"Path to resolver.yaml (default: {DEFAULT_CONFIG} if present)",
    )
    parser.add_argument("--workers", type=int, default=None, help="Concurrent lookups (default: from config, 4)")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the Overpass query for the first POI without executing it.",
    )
    return parser.parse_args(argv)


def load_pois(args: argparse.Namespace) -> list[OSMPOI]:
    if args.source == "trig":
        return list(read_kml(args.input))
    if args.source == "sagns":
        return list(read_sagns(args.input))
    types = [t.strip() for t in args.types.split(",") if t.strip()] or None
    return list(read_geonames(args.input, types=types))


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)

    config_path = Path(args.config) if args.config else DEFAULT_CONFIG
    if config_path.exists():
        config = ResolverConfig.from_yaml(config_path)
        client = OverpassClient.from_yaml(config_path)
        logger.info("Loaded resolver config from %s", config_path)
    elif args.config:
        logger.error("Config file %s not found", config_path)
        sys.exit(1)
    else:
        config = ResolverConfig()
        client = OverpassClient()

    match_radius = args.match_radius if args.match_radius is not None else config.radius_m
    workers = args.workers or config.max_workers
    area = CircleBox(latitude=args.lat, longitude=args.lon, radius_km=args.radius)

    try:
        pois = load_pois(args)
    except (OSError, SourceFormatError) as e:
        logger.error("Could not load %s: %s", args.input, e)
        sys.exit(1)
    logger.info("Loaded %d POIs", len(pois))

    bounded = [p for p in pois if area.contains(p)]
    logger.info("%d POIs within %.1f km of (%.4f, %.4f)", len(bounded), args.radius, args.lat, args.lon)

    if args.dry_run:
        if bounded:
            first = bounded[0]
            print(build_query(first.osm_filter(), match_radius, first.latitude, first.longitude))
        return

    resolutions = resolve_until_missing(
        bounded,
        client.load_candidates,
        match_radius,
        args.limit,
        config=config,
        max_workers=workers,
    )
    missing = [r.poi for r in resolutions if r.missing][: args.limit]
    unknown = [r.poi for r in resolutions if r.unknown]

    flagged = 0
    trigs = [p for p in missing if isinstance(p, Trig)]
    if trigs:
        query = build_query(
            [Attribute(key="man_made", value="survey_point")],
            area.radius_m,
            area.latitude,
            area.longitude,
        )
        try:
            flagged = flag_partial_refs(trigs, index_survey_points(client.run_query(query)))
        except OverpassError as e:
            logger.warning("Survey point lookup failed, no fixme hints added: %s", e)

    out = args.out or f"{args.source}-poi-{datetime.now(timezone.utc).strftime('%Y%m%dT%H%M%SZ')}.xml"
    out_path = generate_xml(missing, out)

    # Summary
    logger.info("=" * 60)
    logger.info("POI IMPORT SUMMARY")
    logger.info("  Source         : %s (%s)", args.source, args.input)
    logger.info("  Loaded         : %d", len(pois))
    logger.info("  In area        : %d", len(bounded))
    logger.info("  Checked        : %d", len(resolutions))
    logger.info("  Already in OSM : %d", sum(r.matched for r in resolutions))
    logger.info("  Missing        : %d (exported %d)", sum(r.missing for r in resolutions), len(missing))
    logger.info("  Lookup failed  : %d", len(unknown))
    logger.info("  Fixme added    : %d", flagged)
    logger.info("  Output         : %s", out_path)
    logger.info("=" * 60)

    for p in unknown:
        logger.warning("Not exported, lookup failed: %s", p)


if __name__ == "__main__":
    main()
