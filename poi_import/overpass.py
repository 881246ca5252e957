#!/usr/bin/env python3
"""
OSM POI Import — Overpass API Client

Fetches OpenStreetMap elements around a POI so the match resolver can decide
whether the POI already exists.  Endpoints are tried in order on every
attempt; attempts are separated by a fixed backoff.

A failed fetch raises ``OverpassError``.  Callers must treat that as
"unknown" and never as "no match", otherwise an existing feature would be
imported a second time.

Dependencies:
    pip install requests pyyaml
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Sequence

import requests
import yaml

from .algorithms.match_resolver import MatchOutcome, ResolverConfig, resolve
from .algorithms.geo_proximity import select_nearest
from .models import OSMPOI, Attribute, Name

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Endpoints and query template
# ---------------------------------------------------------------------------

DEFAULT_ENDPOINTS = [
    "https://lz4.overpass-api.de/api/interpreter",
    "https://z.overpass-api.de/api/interpreter",
    "https://overpass.kumi.systems/api/interpreter",
]

QUERY_TIMEOUT_SECONDS = 20

USER_AGENT = "OSMPOIImport/0.1"

_QUERY_HEADER = "[out:json][timeout:{timeout}];\n(\n"
_QUERY_CLAUSE = '  {kind}["{key}"="{value}"](around:{radius},{lat},{lon});\n'
_QUERY_FOOTER = ");\nout meta center;\n"


def endpoints_from_env(default: Sequence[str] = DEFAULT_ENDPOINTS) -> list[str]:
    """Endpoint list from POI_IMPORT_OVERPASS_URLS (comma-separated)."""
    raw = os.environ.get("POI_IMPORT_OVERPASS_URLS", "")
    urls = [u.strip() for u in raw.split(",") if u.strip()]
    return urls or list(default)


def build_query(
    filters: Sequence[Attribute],
    radius_m: float,
    latitude: float,
    longitude: float,
    timeout: int = QUERY_TIMEOUT_SECONDS,
) -> str:
    """
    Render an Overpass QL query for nodes, ways and relations matching any
    of ``filters`` within ``radius_m`` of the centre.
    """
    parts = [_QUERY_HEADER.format(timeout=timeout)]
    for attr in filters:
        for kind in ("node", "way", "relation"):
            parts.append(_QUERY_CLAUSE.format(
                kind=kind,
                key=attr.key,
                value=attr.value,
                radius=radius_m,
                lat=latitude,
                lon=longitude,
            ))
    parts.append(_QUERY_FOOTER)
    return "".join(parts)


# ---------------------------------------------------------------------------
# Elements
# ---------------------------------------------------------------------------


@dataclass
class Element:
    """An OpenStreetMap node, way or relation as returned by Overpass."""

    type: str
    id: int
    lat: float
    lon: float
    tags: dict[str, str] = field(default_factory=dict)
    version: int = 0
    timestamp: str = ""
    changeset: int = 0
    user: str = ""
    uid: int = 0
    nodes: list[int] = field(default_factory=list)

    @property
    def latitude(self) -> float:
        return self.lat

    @property
    def longitude(self) -> float:
        return self.lon

    @property
    def names(self) -> list[Name]:
        return [Name(key=k, value=v) for k, v in self.tags.items() if "name" in k]

    @classmethod
    def from_json(cls, raw: dict[str, Any]) -> "Element | None":
        """
        Build an element from Overpass JSON.  Ways and relations carry their
        coordinates in ``center`` (requested via ``out center``).

        Returns None for elements without an id or coordinates.
        """
        if raw.get("type") is None or raw.get("id") is None:
            return None
        lat = raw.get("lat")
        lon = raw.get("lon")
        if lat is None or lon is None:
            center = raw.get("center") or {}
            lat = center.get("lat")
            lon = center.get("lon")
        if lat is None or lon is None:
            return None
        return cls(
            type=raw["type"],
            id=int(raw["id"]),
            lat=float(lat),
            lon=float(lon),
            tags=dict(raw.get("tags") or {}),
            version=int(raw.get("version", 0)),
            timestamp=raw.get("timestamp", ""),
            changeset=int(raw.get("changeset", 0)),
            user=raw.get("user", ""),
            uid=int(raw.get("uid", 0)),
            nodes=list(raw.get("nodes") or []),
        )

    def __str__(self) -> str:
        name = self.tags.get("name", "")
        return f"{self.type}/{self.id} {name}".rstrip()


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class OverpassError(RuntimeError):
    """The spatial query could not be answered."""


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    backoff_seconds: float = 10.0


class OverpassClient:
    """Overpass API client with an ordered endpoint list and retry policy."""

    def __init__(
        self,
        endpoints: Sequence[str] | None = None,
        retry: RetryPolicy | None = None,
        timeout: float = 180.0,
        session: requests.Session | None = None,
    ) -> None:
        self.endpoints = list(endpoints) if endpoints else endpoints_from_env()
        self.retry = retry or RetryPolicy()
        self.timeout = timeout
        self._session = session or requests.Session()

    @classmethod
    def from_yaml(cls, path: str | Path) -> "OverpassClient":
        """Build a client from the ``overpass`` section of resolver.yaml."""
        with open(path, "r") as f:
            raw = yaml.safe_load(f) or {}

        section = raw.get("overpass", {}) or {}
        retry_raw = section.get("retry", {}) or {}
        endpoints = section.get("endpoints") or None
        if os.environ.get("POI_IMPORT_OVERPASS_URLS"):
            endpoints = None  # environment wins over the file

        return cls(
            endpoints=endpoints,
            retry=RetryPolicy(
                max_attempts=int(retry_raw.get("max_attempts", 3)),
                backoff_seconds=float(retry_raw.get("backoff_seconds", 10.0)),
            ),
            timeout=float(section.get("timeout_seconds", 180.0)),
        )

    def _post(self, endpoint: str, query: str) -> dict[str, Any] | None:
        try:
            resp = self._session.post(
                endpoint,
                data={"data": query},
                timeout=self.timeout,
                headers={"User-Agent": USER_AGENT},
            )
        except requests.exceptions.RequestException as e:
            logger.warning("Request to %s failed: %s", endpoint, e)
            return None

        if resp.status_code != 200:
            logger.warning("Bad status from %s: %d", endpoint, resp.status_code)
            return None

        try:
            return resp.json()
        except ValueError as e:
            raise OverpassError(f"Malformed response from {endpoint}: {e}") from e

    def run_query(self, query: str) -> list[Element]:
        """Execute a query and return the parsed elements."""
        for attempt in range(1, self.retry.max_attempts + 1):
            for endpoint in self.endpoints:
                data = self._post(endpoint, query)
                if data is None:
                    continue
                elements = data.get("elements")
                if not isinstance(elements, list):
                    raise OverpassError(f"No element list in response from {endpoint}")
                logger.info("Received %d elements from %s", len(elements), endpoint)
                parsed = [Element.from_json(e) for e in elements]
                return [e for e in parsed if e is not None]

            if attempt < self.retry.max_attempts:
                logger.warning(
                    "All endpoints failed (attempt %d/%d). Waiting %.0fs...",
                    attempt, self.retry.max_attempts, self.retry.backoff_seconds,
                )
                time.sleep(self.retry.backoff_seconds)

        raise OverpassError(
            f"All Overpass endpoints failed after {self.retry.max_attempts} attempts"
        )

    # -- POI lookups --------------------------------------------------------

    def load_candidates(self, poi: OSMPOI, radius_m: float) -> list[Element]:
        query = build_query(poi.osm_filter(), radius_m, poi.latitude, poi.longitude)
        logger.debug("Loading candidates for %s using query: %s", poi, query)
        return self.run_query(query)

    def load_matching_element(
        self,
        poi: OSMPOI,
        radius_m: float,
        config: ResolverConfig | None = None,
    ) -> MatchOutcome[Element]:
        candidates = self.load_candidates(poi, radius_m)
        outcome = resolve(poi, candidates, radius_m, config)
        if outcome.matched:
            logger.info("Match found for %s: %s (%s)", poi, outcome.candidate, outcome.tier.value)
        return outcome

    def load_nearest_element(self, poi: OSMPOI, radius_m: float) -> Element | None:
        return select_nearest(self.load_candidates(poi, radius_m), poi, radius_m)

    def has_matches(self, poi: OSMPOI, radius_m: float) -> bool:
        """True if the POI already exists.  Fetch errors propagate."""
        return self.load_matching_element(poi, radius_m).matched
