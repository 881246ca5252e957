#!/usr/bin/env python3
"""
OSM POI Import — SAGNS Id Re-tag

Early SAGNS imports tagged features with ``sagnsid``; the key in use now is
``sagns_id``.  This script fetches every node and way inside South Africa
that still carries the old key and writes a JOSM file that moves the value
to the new key.

Usage:
    sagns-id-fix --out sagns-id-fix.xml

Dependencies:
    pip install requests pyyaml
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from ..osm_xml import generate_update_xml
from ..overpass import Element, OverpassClient, OverpassError

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)

DEFAULT_CONFIG = Path("config") / "resolver.yaml"

LEGACY_KEY = "sagnsid"
SAGNS_ID_KEY = "sagns_id"

# (south, west, north, east)
SOUTH_AFRICA_BBOX = (-35.42486791930557, 16.34765625, -22.91792293614603, 31.0166015625)

LEGACY_QUERY = """[out:json][timeout:180];
(
  node["{key}"]({south},{west},{north},{east});
  way["{key}"]({south},{west},{north},{east});
);
out meta center;
"""


def build_legacy_query(bbox: tuple[float, float, float, float] = SOUTH_AFRICA_BBOX) -> str:
    south, west, north, east = bbox
    return LEGACY_QUERY.format(key=LEGACY_KEY, south=south, west=west, north=north, east=east)


def retag(elements: Sequence[Element]) -> list[Element]:
    """
    Move ``sagnsid`` to ``sagns_id`` in place and return the changed
    elements.  An element that already has a different ``sagns_id`` keeps
    it; the conflict is logged.
    """
    changed = []
    for el in elements:
        value = el.tags.pop(LEGACY_KEY, None)
        if value is None:
            continue
        existing = el.tags.get(SAGNS_ID_KEY)
        if existing is not None and existing != value:
            logger.warning(
                "%s has %s=%s and %s=%s; keeping %s",
                el, LEGACY_KEY, value, SAGNS_ID_KEY, existing, SAGNS_ID_KEY,
            )
        else:
            el.tags[SAGNS_ID_KEY] = value
        changed.append(el)
    return changed


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Move sagnsid tags to sagns_id and write a JOSM update file",
    )
    parser.add_argument("--out", default="sagns-id-fix.xml", help="Output XML path (default: sagns-id-fix.xml)")
    parser.add_argument(
        "--config",
        default=None,
        help=f"Path to resolver.yaml (default: {DEFAULT_CONFIG} if present)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the Overpass query without executing it.",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    query = build_legacy_query()

    if args.dry_run:
        print(query)
        return

    config_path = Path(args.config) if args.config else DEFAULT_CONFIG
    if config_path.exists():
        client = OverpassClient.from_yaml(config_path)
    elif args.config:
        logger.error("Config file %s not found", config_path)
        sys.exit(1)
    else:
        client = OverpassClient()

    try:
        elements = client.run_query(query)
    except OverpassError as e:
        logger.error("Query for %s failed: %s", LEGACY_KEY, e)
        sys.exit(1)

    changed = retag(elements)
    out_path = generate_update_xml(changed, args.out)

    logger.info("=" * 60)
    logger.info("SAGNS ID RE-TAG SUMMARY")
    logger.info("  Found     : %d", len(elements))
    logger.info("  Re-tagged : %d", len(changed))
    logger.info("  Output    : %s", out_path)
    logger.info("=" * 60)


if __name__ == "__main__":
    main()
