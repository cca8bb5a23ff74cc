"""Tests for cogo/geometry.py pure functions."""
import math
import pytest
from cogo.geometry import (
    GeometryError, CRSMismatchError, common_srid,
    open_ring, distinct_vertices, require_polygon, is_finite,
    signed_area, poly_area, winding, path_length, perimeter,
    bboxes_intersect, normalize_bearing, brg_dist, advance,
    fmt_brg, fmt_dist, fmt_area,
)
from cogo.types import PlanarPoint

UNIT = [(0, 0), (1, 0), (1, 1), (0, 1)]


# --- rings ---

def test_open_ring_drops_closing_vertex():
    assert open_ring(UNIT + [(0, 0)]) == UNIT


def test_open_ring_keeps_open_ring():
    assert open_ring(UNIT) == UNIT


def test_distinct_vertices_ignores_repeats():
    assert distinct_vertices([(0, 0), (0, 0), (1, 0), (0, 0)]) == 2
    assert distinct_vertices(UNIT + [(0, 0)]) == 4


def test_require_polygon_too_few():
    with pytest.raises(GeometryError, match="at least 3 vertices"):
        require_polygon([(0, 0), (1, 0), (0, 0)])


def test_is_finite():
    assert is_finite(UNIT)
    assert not is_finite([(0, 0), (math.nan, 1), (1, 1)])
    assert not is_finite([(0, 0), (math.inf, 1), (1, 1)])


# --- area ---

def test_signed_area_ccw_positive():
    assert abs(signed_area(UNIT) - 1.0) < 1e-12
    assert winding(UNIT) == "CCW"


def test_signed_area_cw_negative():
    assert abs(signed_area(UNIT[::-1]) + 1.0) < 1e-12
    assert winding(UNIT[::-1]) == "CW"


def test_poly_area_orientation_independent():
    assert poly_area(UNIT) == poly_area(UNIT[::-1])


def test_poly_area_explicit_closure():
    assert abs(poly_area(UNIT + [(0, 0)]) - 1.0) < 1e-12


def test_poly_area_triangle():
    assert abs(poly_area([(0, 0), (4, 0), (0, 3)]) - 6.0) < 1e-12


def test_path_length_and_perimeter():
    sq = [(0, 0), (100, 0), (100, 100), (0, 100)]
    assert abs(path_length(sq) - 300.0) < 1e-12
    assert abs(perimeter(sq) - 400.0) < 1e-12


def test_planar_points_behave_like_tuples():
    pts = [PlanarPoint(x, y, z=5.0, point_number=str(i)) for i, (x, y) in enumerate(UNIT)]
    assert abs(poly_area(pts) - 1.0) < 1e-12
    assert abs(perimeter(pts) - 4.0) < 1e-12


# --- bounding boxes ---

def test_bboxes_intersect():
    assert bboxes_intersect((0, 0, 1, 1), (1, 1, 2, 2))
    assert not bboxes_intersect((0, 0, 1, 1), (1.5, 0, 2, 1))


# --- bearings ---

def test_normalize_bearing():
    assert normalize_bearing(360.0) == 0.0
    assert normalize_bearing(-90.0) == 270.0


def test_brg_dist_northeast():
    b, d = brg_dist((0, 0), (1, 1))
    assert abs(b - 45.0) < 1e-12
    assert abs(d - math.sqrt(2)) < 1e-12


def test_brg_dist_south():
    b, d = brg_dist((0, 0), (0, -5))
    assert abs(b - 180.0) < 1e-12
    assert abs(d - 5.0) < 1e-12


def test_advance_east():
    p = advance((10, 20), 90.0, 5.0)
    assert abs(p[0] - 15.0) < 1e-12
    assert abs(p[1] - 20.0) < 1e-12


def test_advance_inverts_brg_dist():
    b, d = brg_dist((3, 4), (-7, 12))
    p = advance((3, 4), b, d)
    assert abs(p[0] + 7) < 1e-9
    assert abs(p[1] - 12) < 1e-9


# --- CRS ---

def test_common_srid_single():
    ring = [PlanarPoint(0, 0, srid=32735), PlanarPoint(1, 0), PlanarPoint(1, 1, srid=32735)]
    assert common_srid([ring, UNIT]) == 32735


def test_common_srid_untagged():
    assert common_srid([UNIT]) is None


def test_common_srid_mixed_raises():
    a = [PlanarPoint(0, 0, srid=32735)]
    b = [PlanarPoint(0, 0, srid=32736)]
    with pytest.raises(CRSMismatchError, match="mixes coordinate systems"):
        common_srid([a, b])


# --- formatting ---

def test_fmt_brg():
    assert fmt_brg(257 + 53/60 + 45/3600) == "257° 53' 45.0\""


def test_fmt_dist():
    assert fmt_dist(12.3456) == "12.346 m"


def test_fmt_area():
    assert fmt_area(1234.5678) == "1,234.57 m²"
