"""
OSM POI Import — JOSM Edit Documents

Writes OSM XML files that can be opened and reviewed in JOSM before upload.
New POIs become nodes with negative ids (-1, -2, ...) as JOSM expects;
re-tagged existing elements keep their id and version and are marked
``action="modify"``.
"""

from __future__ import annotations

import logging
import math
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from .models import POI
from .overpass import Element

logger = logging.getLogger(__name__)

OSM_VERSION = "0.6"
GENERATOR = "JOSM"


@dataclass
class Bounds:
    min_lat: float = math.inf
    min_lon: float = math.inf
    max_lat: float = -math.inf
    max_lon: float = -math.inf

    def expand(self, poi: POI) -> None:
        self.min_lat = min(self.min_lat, poi.latitude)
        self.min_lon = min(self.min_lon, poi.longitude)
        self.max_lat = max(self.max_lat, poi.latitude)
        self.max_lon = max(self.max_lon, poi.longitude)

    def to_element(self) -> ET.Element:
        return ET.Element("bounds", {
            "minlat": repr(self.min_lat),
            "minlon": repr(self.min_lon),
            "maxlat": repr(self.max_lat),
            "maxlon": repr(self.max_lon),
            "origin": "OpenStreetMap server",
        })


def node_element(poi: POI, node_id: int) -> ET.Element:
    node = ET.Element("node", {
        "id": str(node_id),
        "lat": repr(poi.latitude),
        "lon": repr(poi.longitude),
        "visible": "true",
    })
    for key, value in sorted(poi.tags.items()):
        ET.SubElement(node, "tag", {"k": key, "v": value})
    return node


def build_document(pois: Sequence[POI]) -> ET.ElementTree:
    root = ET.Element("osm", {"version": OSM_VERSION, "generator": GENERATOR})
    bounds = Bounds()
    nodes = []
    for i, poi in enumerate(pois):
        nodes.append(node_element(poi, -(i + 1)))
        bounds.expand(poi)
    if pois:
        root.append(bounds.to_element())
    root.extend(nodes)
    ET.indent(root, space="  ")
    return ET.ElementTree(root)


# ---------------------------------------------------------------------------
# Modified elements
# ---------------------------------------------------------------------------


def modified_element(element: Element) -> ET.Element:
    """An existing node or way, with its current tags, marked for upload."""
    attrs = {
        "id": str(element.id),
        "version": str(element.version),
        "action": "modify",
        "visible": "true",
    }
    if element.type == "node":
        attrs["lat"] = repr(element.lat)
        attrs["lon"] = repr(element.lon)
    out = ET.Element(element.type, attrs)
    for ref in element.nodes:
        ET.SubElement(out, "nd", {"ref": str(ref)})
    for key, value in sorted(element.tags.items()):
        ET.SubElement(out, "tag", {"k": key, "v": value})
    return out


def build_update_document(elements: Sequence[Element]) -> ET.ElementTree:
    """
    Relations are left out: their members are not fetched, and uploading
    one without them would empty it.
    """
    root = ET.Element("osm", {"version": OSM_VERSION, "generator": GENERATOR})
    bounds = Bounds()
    children = []
    for el in elements:
        if el.type not in ("node", "way"):
            logger.warning("Skipping %s: only nodes and ways can be updated", el)
            continue
        children.append(modified_element(el))
        bounds.expand(el)
    if children:
        root.append(bounds.to_element())
    root.extend(children)
    ET.indent(root, space="  ")
    return ET.ElementTree(root)


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


def _write(tree: ET.ElementTree, out_path: str | Path) -> Path:
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    tree.write(out_path, encoding="utf-8", xml_declaration=True)
    return out_path


def generate_xml(pois: Sequence[POI], out_path: str | Path) -> Path:
    """Write ``pois`` as new nodes to ``out_path``."""
    out_path = _write(build_document(pois), out_path)
    logger.info("Wrote %d nodes to %s", len(pois), out_path)
    return out_path


def generate_update_xml(elements: Sequence[Element], out_path: str | Path) -> Path:
    """Write existing ``elements`` as modifications to ``out_path``."""
    tree = build_update_document(elements)
    written = sum(1 for child in tree.getroot() if child.tag != "bounds")
    out_path = _write(tree, out_path)
    logger.info("Wrote %d modified elements to %s", written, out_path)
    return out_path
