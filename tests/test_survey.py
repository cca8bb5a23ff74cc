"""Tests for cogo/survey.py: closure, area, compass and least-squares adjustment."""
import math
import pytest
from cogo.geometry import GeometryError
from cogo.survey import (
    ClosureResult, compute_closure, compass_adjust,
    DistanceObservation, least_squares_adjust, interior_angles, check_angle_sum,
)
from cogo.types import PlanarPoint

SQUARE = [(0, 0), (100, 0), (100, 100), (0, 100)]


class TestComputeClosure:
    def test_misclosed_traverse(self, misclosed_traverse):
        r = compute_closure(misclosed_traverse)
        assert isinstance(r, ClosureResult)
        assert abs(r.closure_error_distance - math.sqrt(0.05**2 + 0.02**2)) < 1e-12
        assert abs(r.closure_error_ratio - 7427.4) < 1.0
        assert not r.is_within_tolerance
        assert r.accuracy == "1:7,427"

    def test_misclosed_traverse_perimeter_is_leg_sum(self, misclosed_traverse):
        r = compute_closure(misclosed_traverse)
        assert abs(r.perimeter - (300 + math.hypot(0.05, 99.98))) < 1e-9

    def test_misclosed_traverse_area(self, misclosed_traverse):
        r = compute_closure(misclosed_traverse)
        assert abs(r.area - 9997.5) < 1e-6
        assert r.winding == "CCW"

    def test_closure_bearing(self, misclosed_traverse):
        r = compute_closure(misclosed_traverse)
        assert abs(r.closure_bearing - math.degrees(math.atan2(0.05, 0.02))) < 1e-9

    def test_lower_standard_passes(self, misclosed_traverse):
        assert compute_closure(misclosed_traverse, 5000).is_within_tolerance

    @pytest.mark.parametrize("tol", [1.0, 1000.0, 7427.0, 7428.0, 20000.0, 1e9])
    def test_tolerance_matches_ratio(self, misclosed_traverse, tol):
        r = compute_closure(misclosed_traverse, tol)
        assert r.is_within_tolerance == (r.closure_error_ratio >= tol)

    def test_closed_polygon_is_exact(self):
        r = compute_closure(SQUARE, closed=True)
        assert r.closure_error_distance == 0.0
        assert r.closure_error_ratio is None
        assert r.is_exact
        assert r.accuracy == "exact"
        assert r.is_within_tolerance
        assert abs(r.perimeter - 400.0) < 1e-12
        assert abs(r.area - 10000.0) < 1e-9
        assert r.closure_bearing is None

    def test_exact_passes_any_tolerance(self):
        assert compute_closure(SQUARE, 1e12, closed=True).is_within_tolerance

    def test_reversed_same_area(self):
        fwd = compute_closure(SQUARE, closed=True)
        rev = compute_closure(SQUARE[::-1], closed=True)
        assert fwd.area == rev.area
        assert rev.signed_area < 0
        assert rev.winding == "CW"

    def test_explicit_closing_vertex(self):
        r = compute_closure(SQUARE + [(0, 0)], closed=True)
        assert abs(r.area - 10000.0) < 1e-9
        assert abs(r.perimeter - 400.0) < 1e-12

    def test_degenerate(self):
        r = compute_closure([(0, 0), (1, 0), (2, 0)], closed=True)
        assert r.is_degenerate
        assert r.area < 1e-6

    def test_too_few_points(self):
        with pytest.raises(GeometryError, match="at least 3 vertices"):
            compute_closure([(0, 0), (1, 0)])

    def test_non_positive_tolerance(self):
        with pytest.raises(GeometryError, match="tolerance ratio"):
            compute_closure(SQUARE, 0)

    def test_describe(self, misclosed_traverse):
        text = compute_closure(misclosed_traverse).describe()
        assert "misclosure 0.054 m at 68° 11'" in text
        assert "1:7,427" in text


class TestCompassAdjust:
    def test_closes_traverse(self, misclosed_traverse):
        adj = compass_adjust(misclosed_traverse)
        assert adj[0] == misclosed_traverse[0]
        assert abs(adj[-1][0]) < 1e-12
        assert abs(adj[-1][1]) < 1e-12

    def test_distributes_by_length(self, misclosed_traverse):
        adj = compass_adjust(misclosed_traverse)
        total = 300 + math.hypot(0.05, 99.98)
        k = 100 / total
        assert abs(adj[1][0] - (100 - k*0.05)) < 1e-12
        assert abs(adj[1][1] - (0 - k*0.02)) < 1e-12

    def test_keeps_point_metadata(self):
        trav = [PlanarPoint(0, 0, point_number="1"), PlanarPoint(10, 0, point_number="2"),
                PlanarPoint(10, 10, point_number="3"), PlanarPoint(0.01, 0, point_number="4")]
        adj = compass_adjust(trav)
        assert [p.point_number for p in adj] == ["1", "2", "3", "4"]

    def test_adjusted_closure_is_exact(self, misclosed_traverse):
        assert compute_closure(compass_adjust(misclosed_traverse)).is_exact

    def test_too_short(self):
        with pytest.raises(GeometryError, match="at least 4 points"):
            compass_adjust([(0, 0), (1, 0), (0, 0)])


class TestLeastSquares:
    STATIONS = {"A": (0.0, 0.0), "B": (100.0, 0.0), "C": (50.0, 80.0)}

    def test_intersection_of_two_distances(self):
        obs = [DistanceObservation("A", "C", 100.0), DistanceObservation("B", "C", 100.0)]
        res = least_squares_adjust(self.STATIONS, obs, fixed=["A", "B"])
        c = res.stations["C"]
        assert abs(c[0] - 50.0) < 1e-4
        assert abs(c[1] - 50*math.sqrt(3)) < 1e-4
        assert res.rms < 1e-6

    def test_fixed_stations_hold(self):
        obs = [DistanceObservation("A", "C", 100.0), DistanceObservation("B", "C", 100.0),
               DistanceObservation("A", "B", 100.02)]
        res = least_squares_adjust(self.STATIONS, obs, fixed=["A", "B"])
        assert res.stations["A"] == (0.0, 0.0)
        assert res.stations["B"] == (100.0, 0.0)
        assert abs(res.residuals[("A", "B")] + 0.02) < 1e-9

    def test_unknown_station(self):
        with pytest.raises(GeometryError, match="unknown stations"):
            least_squares_adjust(self.STATIONS, [DistanceObservation("A", "Z", 1.0)], ["A"])

    def test_no_observations(self):
        with pytest.raises(GeometryError, match="No observations"):
            least_squares_adjust(self.STATIONS, [], ["A"])


class TestAngles:
    def test_square(self):
        for a in interior_angles(SQUARE):
            assert abs(a - 90.0) < 1e-9

    def test_cw_square(self):
        for a in interior_angles(SQUARE[::-1]):
            assert abs(a - 90.0) < 1e-9

    def test_concave(self):
        ell = [(0, 0), (20, 0), (20, 10), (10, 10), (10, 20), (0, 20)]
        angles = interior_angles(ell)
        assert abs(angles[3] - 270.0) < 1e-9
        assert check_angle_sum(ell).is_valid

    def test_triangle_sum(self):
        chk = check_angle_sum([(0, 0), (4, 0), (0, 3)])
        assert chk.expected_sum == 180.0
        assert chk.is_valid
        assert abs(chk.difference) < 1e-9
