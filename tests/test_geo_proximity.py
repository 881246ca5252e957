"""Tests for the geospatial proximity module."""

import math

import pytest

from poi_import.algorithms.geo_proximity import (
    EARTH_RADIUS_M,
    BoundingBox,
    CircleBox,
    distance_m,
    filter_candidates,
    poi_distance_m,
    select_nearest,
)

from conftest import make_poi


# ---- distance_m -------------------------------------------------------------


class TestDistance:
    def test_same_point_is_zero(self):
        assert distance_m(-33.9628, 18.4098, -33.9628, 18.4098) == 0.0

    def test_symmetry(self):
        a = (-33.9628, 18.4098)
        b = (-34.3568, 18.4740)
        assert distance_m(*a, *b) == distance_m(*b, *a)

    def test_one_degree_latitude_at_equator(self):
        """1° along a meridian is r·π/180 with r = 6 378 100 m."""
        dist = distance_m(0.0, 0.0, 1.0, 0.0)
        assert dist == pytest.approx(111195, abs=100)
        assert dist == pytest.approx(EARTH_RADIUS_M * math.pi / 180)

    def test_radius_constant(self):
        assert EARTH_RADIUS_M == 6378100.0

    def test_never_negative(self):
        assert distance_m(10.0, 170.0, -10.0, -170.0) > 0

    def test_known_distance_cape_town_to_cape_point(self):
        """Table Mountain to Cape Point is roughly 44 km."""
        dist = distance_m(-33.9628, 18.4098, -34.3568, 18.4740)
        assert 42000 < dist < 46000

    def test_poi_distance(self):
        a = make_poi(-33.9628, 18.4098)
        b = make_poi(-33.9638, 18.4098)
        assert poi_distance_m(a, b) == pytest.approx(111.3, abs=0.5)


# ---- BoundingBox / CircleBox ------------------------------------------------


class TestBoundingBox:
    def test_zero_box_contains_everything(self):
        box = BoundingBox()
        assert box.is_zero()
        assert box.contains(make_poi(51.5, -0.12))

    def test_contains(self):
        box = BoundingBox(min_lat=-33.9, max_lat=-33.6, min_lon=19.0, max_lon=19.229)
        assert box.contains(make_poi(-33.7, 19.1))
        assert not box.contains(make_poi(-33.95, 19.1))
        assert not box.contains(make_poi(-33.7, 19.3))

    def test_edges_inclusive(self):
        box = BoundingBox(min_lat=-34.0, max_lat=-33.0, min_lon=18.0, max_lon=19.0)
        assert box.contains(make_poi(-34.0, 19.0))


class TestCircleBox:
    def test_inside_and_outside(self):
        area = CircleBox(latitude=-33.4, longitude=20.0, radius_km=20)
        assert area.contains(make_poi(-33.45, 20.05))
        assert not area.contains(make_poi(-33.9, 20.0))

    def test_radius_m(self):
        assert CircleBox(0.0, 0.0, 1.5).radius_m == 1500


# ---- filter_candidates ------------------------------------------------------


class TestFilterCandidates:
    @pytest.fixture()
    def reference(self):
        return make_poi(-33.9628, 18.4098, "Ref")

    def test_sorted_by_distance(self, reference):
        far = make_poi(-33.9658, 18.4098, "far")    # ~334 m
        near = make_poi(-33.9638, 18.4098, "near")  # ~111 m
        mid = make_poi(-33.9648, 18.4098, "mid")    # ~223 m
        result = filter_candidates([far, near, mid], reference, 1000)
        assert result == [near, mid, far]

    def test_strictly_less_than_radius(self, reference):
        cand = make_poi(-33.9638, 18.4098)
        dist = poi_distance_m(cand, reference)
        assert filter_candidates([cand], reference, dist) == []
        assert filter_candidates([cand], reference, dist + 0.001) == [cand]

    def test_drops_far_candidates(self, reference):
        near = make_poi(-33.9638, 18.4098)
        far = make_poi(-34.3568, 18.4740)
        assert filter_candidates([far, near], reference, 1000) == [near]

    def test_ties_keep_input_order(self, reference):
        first = make_poi(-33.9638, 18.4098, "first")
        second = make_poi(-33.9638, 18.4098, "second")
        closer = make_poi(-33.9630, 18.4098, "closer")
        result = filter_candidates([first, second, closer], reference, 1000)
        assert [p.names[0].value for p in result] == ["closer", "first", "second"]
        result = filter_candidates([second, first], reference, 1000)
        assert [p.names[0].value for p in result] == ["second", "first"]

    def test_empty(self, reference):
        assert filter_candidates([], reference, 1000) == []


# ---- select_nearest ---------------------------------------------------------


class TestSelectNearest:
    def test_empty_is_no_match(self, table_mountain):
        assert select_nearest([], table_mountain, 1000) is None

    def test_single_candidate_outside_radius_returned(self, table_mountain):
        far = make_poi(-34.3568, 18.4740, "Cape Point")
        assert select_nearest([far], table_mountain, 1000) is far

    def test_nearest_within_radius(self, table_mountain):
        near = make_poi(-33.9638, 18.4098)
        nearer = make_poi(-33.9630, 18.4098)
        assert select_nearest([near, nearer], table_mountain, 1000) is nearer

    def test_none_within_radius(self, table_mountain):
        a = make_poi(-34.3568, 18.4740)
        b = make_poi(-34.0, 18.8)
        assert select_nearest([a, b], table_mountain, 1000) is None
