"""
OSM POI Import — Batch Resolution

Resolves many local POIs against OpenStreetMap on a thread pool.  Each
resolution (fetch + filter + match) is independent; a failed fetch is
reported for that POI only and never counted as "no match".
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Callable, Generic, Sequence, TypeVar

from .algorithms.match_resolver import MatchOutcome, ResolverConfig, resolve
from .models import POI

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=POI)

# (poi, radius_m) -> candidates.  May raise; the error is kept per POI.
CandidateFetcher = Callable[[T, float], Sequence[POI]]


@dataclass
class Resolution(Generic[T]):
    poi: T
    outcome: MatchOutcome | None = None
    error: Exception | None = None

    @property
    def unknown(self) -> bool:
        return self.error is not None

    @property
    def matched(self) -> bool:
        return self.outcome is not None and self.outcome.matched

    @property
    def missing(self) -> bool:
        """Confirmed absent from OSM (fetch succeeded, nothing matched)."""
        return self.outcome is not None and not self.outcome.matched


def resolve_one(
    poi: T,
    fetch: CandidateFetcher,
    radius_m: float,
    config: ResolverConfig | None = None,
) -> Resolution[T]:
    try:
        candidates = fetch(poi, radius_m)
    except Exception as e:  # noqa: BLE001
        logger.error("Candidate fetch failed for %s: %s", poi, e)
        return Resolution(poi=poi, error=e)
    return Resolution(poi=poi, outcome=resolve(poi, candidates, radius_m, config))


def resolve_all(
    pois: Sequence[T],
    fetch: CandidateFetcher,
    radius_m: float,
    *,
    config: ResolverConfig | None = None,
    max_workers: int = 4,
) -> list[Resolution[T]]:
    """
    Resolve every POI, ``max_workers`` at a time.  Results are returned in
    input order.
    """
    if not pois:
        return []

    results: list[Resolution[T] | None] = [None] * len(pois)
    workers = max(1, min(max_workers, len(pois)))
    with ThreadPoolExecutor(max_workers=workers) as ex:
        futures = {
            ex.submit(resolve_one, poi, fetch, radius_m, config): i
            for i, poi in enumerate(pois)
        }
        for fut in as_completed(futures):
            results[futures[fut]] = fut.result()

    resolved = [r for r in results if r is not None]
    logger.info(
        "Resolved %d POIs: %d matched, %d missing, %d unknown",
        len(resolved),
        sum(r.matched for r in resolved),
        sum(r.missing for r in resolved),
        sum(r.unknown for r in resolved),
    )
    return resolved


def resolve_until_missing(
    pois: Sequence[T],
    fetch: CandidateFetcher,
    radius_m: float,
    limit: int,
    *,
    config: ResolverConfig | None = None,
    max_workers: int = 4,
) -> list[Resolution[T]]:
    """
    Resolve POIs in batches of ``max_workers`` and stop once ``limit`` of
    them are confirmed missing.

    At most one batch beyond the last needed POI is fetched, so the number
    of lookups is bounded by ``limit + max_workers - 1`` (or ``len(pois)``).
    POIs after the stopping batch are not resolved and not returned.
    """
    batch_size = max(1, max_workers)
    results: list[Resolution[T]] = []
    missing = 0
    for start in range(0, len(pois), batch_size):
        if missing >= limit:
            break
        batch = resolve_all(
            pois[start:start + batch_size],
            fetch,
            radius_m,
            config=config,
            max_workers=batch_size,
        )
        results.extend(batch)
        missing += sum(r.missing for r in batch)
    if len(results) < len(pois):
        logger.info(
            "Stopped after %d of %d POIs: %d missing (limit %d)",
            len(results), len(pois), missing, limit,
        )
    return results
