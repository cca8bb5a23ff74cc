"""Survey computation: traverse closure, area, and traverse adjustment."""
import math
from typing import Iterable, NamedTuple, Optional, Sequence

import numpy as np
from scipy.optimize import least_squares

from .types import PlanarPoint, Point
from .geometry import (
    GeometryError, brg_dist, fmt_brg, fmt_dist, path_length, perimeter,
    require_polygon, signed_area, winding,
)

# 1:10,000 survey accuracy standard
DEFAULT_TOLERANCE_RATIO = 10000.0
# Polygons below this area (m²) are degenerate.
AREA_EPSILON = 1e-6
# Misclosure below this distance (m) counts as an exact closure.
EXACT_EPSILON = 1e-9

# ============================================================
# Closure & Area
# ============================================================
class ClosureResult(NamedTuple):
    """Closure and area of one boundary; recompute whenever the ring changes."""
    closure_error_distance: float          # metres
    closure_error_ratio: Optional[float]   # perimeter / error; None = exact
    is_within_tolerance: bool
    area: float                            # m², unsigned
    perimeter: float                       # metres
    closure_bearing: Optional[float]       # start -> computed end, degrees
    signed_area: float                     # > 0 for CCW rings
    is_degenerate: bool

    @property
    def is_exact(self) -> bool:
        return self.closure_error_ratio is None

    @property
    def accuracy(self) -> str:
        """Accuracy ratio as '1:N', or 'exact'."""
        if self.closure_error_ratio is None:
            return "exact"
        return f"1:{self.closure_error_ratio:,.0f}"

    @property
    def winding(self) -> str:
        return "CCW" if self.signed_area > 0 else "CW"

    def describe(self) -> str:
        brg = "" if self.closure_bearing is None else f" at {fmt_brg(self.closure_bearing)}"
        return (f"misclosure {fmt_dist(self.closure_error_distance)}{brg}, "
                f"accuracy {self.accuracy}, area {self.area:.4f} m²")


def compute_closure(
    points: Sequence[Point],
    tolerance_ratio: float = DEFAULT_TOLERANCE_RATIO,
    *, closed: bool = False,
) -> ClosureResult:
    """Closure error, accuracy ratio, and shoelace area of a boundary.

    With ``closed=False`` *points* is a traverse whose last point is the
    computed return to the start: the misclosure is measured before any
    adjustment and the perimeter is the sum of the traverse legs. With
    ``closed=True`` the ring is taken as already closed, the misclosure is
    zero ("exact") and the perimeter includes the closing segment.
    """
    if not tolerance_ratio > 0:
        raise GeometryError(f"tolerance ratio must be positive, got {tolerance_ratio}")
    pts = list(points)
    ring = require_polygon(pts)

    if closed:
        err = 0.0
        length = perimeter(ring)
        brg = None
    else:
        err = math.dist(pts[0][:2], pts[-1][:2])
        length = path_length(pts)
        brg = brg_dist(pts[0], pts[-1])[0] if err > EXACT_EPSILON else None

    ratio = None if err <= EXACT_EPSILON else length / err
    sa = signed_area(ring)
    return ClosureResult(
        closure_error_distance=err,
        closure_error_ratio=ratio,
        is_within_tolerance=ratio is None or ratio >= tolerance_ratio,
        area=abs(sa),
        perimeter=length,
        closure_bearing=brg,
        signed_area=sa,
        is_degenerate=abs(sa) < AREA_EPSILON,
    )

# ============================================================
# Compass Rule Adjustment
# ============================================================
def _moved(p: Point, x: float, y: float) -> Point:
    return p._replace(x=x, y=y) if isinstance(p, PlanarPoint) else (x, y)

def compass_adjust(points: Sequence[Point]) -> list[Point]:
    """Bowditch (compass rule) adjustment of a misclosed traverse.

    The misclosure is distributed in proportion to cumulative leg length;
    the returned last point coincides with the first.
    """
    pts = list(points)
    if len(pts) < 4:
        raise GeometryError(f"Traverse requires at least 4 points (3 legs), got {len(pts)}")
    total = path_length(pts)
    if total <= 0:
        raise GeometryError("Traverse has zero length")
    ex = pts[-1][0]-pts[0][0]; ey = pts[-1][1]-pts[0][1]
    adjusted = [pts[0]]; run = 0.0
    for i in range(1, len(pts)):
        run += math.dist(pts[i-1][:2], pts[i][:2])
        k = run/total
        adjusted.append(_moved(pts[i], pts[i][0]-k*ex, pts[i][1]-k*ey))
    return adjusted

# ============================================================
# Least-Squares Adjustment
# ============================================================
class DistanceObservation(NamedTuple):
    start: str; end: str
    distance: float
    weight: float = 1.0

class AdjustmentResult(NamedTuple):
    stations: dict[str, Point]
    residuals: dict[tuple[str, str], float]   # adjusted - observed, metres
    rms: float

def least_squares_adjust(
    stations: dict[str, Point],
    observations: Sequence[DistanceObservation],
    fixed: Iterable[str],
) -> AdjustmentResult:
    """Adjust station coordinates to best fit observed distances.

    Stations named in *fixed* hold their coordinates; hold at least two to
    pin position and orientation. *stations* supplies the starting values.
    """
    fixed = set(fixed)
    unknown = [n for o in observations for n in (o.start, o.end) if n not in stations]
    if unknown:
        raise GeometryError(f"Observations reference unknown stations: {sorted(set(unknown))}")
    if not observations:
        raise GeometryError("No observations provided")
    free = [n for n in stations if n not in fixed]
    if not free:
        return AdjustmentResult(dict(stations), {}, 0.0)

    def unpack(x):
        coords = {n: np.array(stations[n][:2], dtype=float) for n in stations}
        for k, n in enumerate(free):
            coords[n] = np.array([x[2*k], x[2*k+1]])
        return coords

    w = np.sqrt(np.array([o.weight for o in observations]))

    def residuals(x):
        coords = unpack(x)
        return w * np.array([np.linalg.norm(coords[o.end]-coords[o.start]) - o.distance
                             for o in observations])

    x0 = np.array([c for n in free for c in stations[n][:2]], dtype=float)
    method = "lm" if len(observations) >= len(x0) else "trf"
    result = least_squares(residuals, x0, method=method)
    coords = unpack(result.x)

    adjusted = {n: _moved(stations[n], float(c[0]), float(c[1])) for n, c in coords.items()}
    res = {(o.start, o.end): float(np.linalg.norm(coords[o.end]-coords[o.start]) - o.distance)
           for o in observations}
    rms = math.sqrt(float(np.mean(np.array(list(res.values()))**2)))
    return AdjustmentResult(adjusted, res, rms)

# ============================================================
# Interior Angles
# ============================================================
class AngleCheck(NamedTuple):
    actual_sum: float
    expected_sum: float
    difference: float
    is_valid: bool

def interior_angles(points: Sequence[Point]) -> list[float]:
    """Interior angle (degrees) at each vertex, in ring order."""
    v = require_polygon(points)
    ccw = winding(v) == "CCW"
    n = len(v); angles = []
    for i in range(n):
        prev, cur, nxt = v[i-1], v[i], v[(i+1)%n]
        a_prev = math.degrees(math.atan2(prev[1]-cur[1], prev[0]-cur[0]))
        a_next = math.degrees(math.atan2(nxt[1]-cur[1], nxt[0]-cur[0]))
        angles.append((a_prev-a_next) % 360 if ccw else (a_next-a_prev) % 360)
    return angles

def check_angle_sum(points: Sequence[Point], tolerance_deg: float = 0.01) -> AngleCheck:
    """Compare the interior angle sum with the (n-2)·180° figure."""
    angles = interior_angles(points)
    actual = sum(angles); expected = (len(angles)-2)*180.0
    return AngleCheck(actual, expected, actual-expected, abs(actual-expected) <= tolerance_deg)
