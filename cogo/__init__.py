"""Coordinate geometry: point types, parsing, closure, area, and adjustment."""

from .types import Point, PlanarPoint, Polygon, Region, Leg
from .geometry import (
    GeometryError, CRSMismatchError, common_srid,
    open_ring, distinct_vertices, require_polygon, is_finite,
    signed_area, poly_area, winding, path_length, perimeter,
    bboxes_intersect, brg_dist, advance, fmt_brg, fmt_dist, fmt_area,
)
from .parser import ParseError, parse, parse_bearing, parse_dms, dms_to_deg, traverse_points
from .survey import (
    DEFAULT_TOLERANCE_RATIO, AREA_EPSILON, ClosureResult, compute_closure,
    compass_adjust, DistanceObservation, AdjustmentResult, least_squares_adjust,
    AngleCheck, interior_angles, check_angle_sum,
)
