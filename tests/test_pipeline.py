"""Tests for batch resolution."""

import logging
import threading

from poi_import.algorithms.match_resolver import MatchTier
from poi_import.overpass import OverpassError
from poi_import.pipeline import Resolution, resolve_all, resolve_one, resolve_until_missing

from conftest import make_poi


LAT, LON = -33.9628, 18.4098


def _known_fetcher(world):
    """A fetcher backed by a fixed candidate list."""
    def fetch(poi, radius_m):
        return list(world)
    return fetch


class TestResolveOne:
    def test_matched(self):
        reference = make_poi(LAT, LON, "Table Mountain")
        candidate = make_poi(LAT + 0.001, LON, "Table Mountain")
        result = resolve_one(reference, _known_fetcher([candidate]), 1000)
        assert result.matched
        assert not result.missing
        assert not result.unknown
        assert result.outcome.tier == MatchTier.EXACT

    def test_missing(self):
        reference = make_poi(LAT, LON, "Table Mountain")
        result = resolve_one(reference, _known_fetcher([]), 1000)
        assert result.missing
        assert not result.matched

    def test_fetch_failure_is_unknown_not_missing(self, caplog):
        def failing(poi, radius_m):
            raise OverpassError("all endpoints failed")

        reference = make_poi(LAT, LON, "Table Mountain")
        with caplog.at_level(logging.ERROR):
            result = resolve_one(reference, failing, 1000)
        assert result.unknown
        assert not result.missing
        assert not result.matched
        assert isinstance(result.error, OverpassError)
        assert "Candidate fetch failed" in caplog.text

    def test_radius_passed_to_fetcher(self):
        seen = []

        def fetch(poi, radius_m):
            seen.append(radius_m)
            return []

        resolve_one(make_poi(LAT, LON, "x"), fetch, 250)
        assert seen == [250]


class TestResolveAll:
    def test_empty(self):
        assert resolve_all([], _known_fetcher([]), 1000) == []

    def test_results_in_input_order(self):
        pois = [make_poi(LAT + i * 0.01, LON, f"Beacon {i}") for i in range(12)]
        world = [make_poi(LAT + i * 0.01, LON, f"Beacon {i}") for i in range(0, 12, 2)]
        results = resolve_all(pois, _known_fetcher(world), 500, max_workers=4)
        assert [r.poi for r in results] == pois
        assert [r.matched for r in results] == [i % 2 == 0 for i in range(12)]

    def test_one_failure_does_not_affect_others(self):
        pois = [make_poi(LAT, LON, "ok"), make_poi(LAT, LON, "boom"), make_poi(LAT, LON, "gone")]

        def fetch(poi, radius_m):
            name = poi.names[0].value
            if name == "boom":
                raise OverpassError("timeout")
            if name == "ok":
                return [make_poi(LAT, LON, "ok")]
            return []

        results = resolve_all(pois, fetch, 1000)
        assert [(r.matched, r.missing, r.unknown) for r in results] == [
            (True, False, False),
            (False, False, True),
            (False, True, False),
        ]

    def test_runs_concurrently(self):
        barrier = threading.Barrier(2, timeout=5)

        def fetch(poi, radius_m):
            barrier.wait()
            return []

        results = resolve_all([make_poi(LAT, LON, "a"), make_poi(LAT, LON, "b")], fetch, 1000, max_workers=2)
        assert all(r.missing for r in results)

    def test_summary_logged(self, caplog):
        with caplog.at_level(logging.INFO):
            resolve_all([make_poi(LAT, LON, "a")], _known_fetcher([]), 1000)
        assert "Resolved 1 POIs: 0 matched, 1 missing, 0 unknown" in caplog.text


class TestResolveUntilMissing:
    @staticmethod
    def _counting(world):
        calls = []
        lock = threading.Lock()

        def fetch(poi, radius_m):
            with lock:
                calls.append(poi)
            return list(world)

        return fetch, calls

    def test_stops_after_limit(self):
        pois = [make_poi(LAT + i * 0.01, LON, f"Beacon {i}") for i in range(20)]
        fetch, calls = self._counting([])
        results = resolve_until_missing(pois, fetch, 500, 1, max_workers=4)
        assert len(calls) == 4
        assert [r.poi for r in results] == pois[:4]
        assert all(r.missing for r in results)

    def test_matched_pois_do_not_count(self):
        pois = [make_poi(LAT + i * 0.01, LON, f"Beacon {i}") for i in range(6)]
        world = [make_poi(LAT + i * 0.01, LON, f"Beacon {i}") for i in range(4)]
        fetch, calls = self._counting(world)
        results = resolve_until_missing(pois, fetch, 500, 2, max_workers=2)
        assert [r.poi for r in results] == pois
        assert [r.missing for r in results] == [False] * 4 + [True] * 2
        assert len(calls) == 6

    def test_zero_limit_fetches_nothing(self):
        fetch, calls = self._counting([])
        assert resolve_until_missing([make_poi(LAT, LON, "a")], fetch, 500, 0) == []
        assert calls == []

    def test_failures_do_not_count_as_missing(self):
        pois = [make_poi(LAT, LON, f"p{i}") for i in range(3)]

        def failing(poi, radius_m):
            raise OverpassError("down")

        results = resolve_until_missing(pois, failing, 500, 1, max_workers=1)
        assert len(results) == 3
        assert all(r.unknown for r in results)

    def test_stop_logged(self, caplog):
        pois = [make_poi(LAT, LON, f"p{i}") for i in range(5)]
        fetch, _ = self._counting([])
        with caplog.at_level(logging.INFO):
            resolve_until_missing(pois, fetch, 500, 1, max_workers=2)
        assert "Stopped after 2 of 5 POIs: 2 missing (limit 1)" in caplog.text


class TestResolution:
    def test_defaults(self):
        r = Resolution(poi=make_poi(LAT, LON))
        assert not r.matched
        assert not r.missing
        assert not r.unknown
