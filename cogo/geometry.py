"""Pure planar geometry: rings, shoelace area, bearings, and formatting."""
import math
from typing import Iterable, Literal, Optional, Sequence

from .types import Point

# Two vertices closer than this (metres) are the same survey station.
POINT_EPSILON = 1e-3

# ============================================================
# Error Type
# ============================================================
class GeometryError(ValueError):
    """Raised for impossible geometry operations or unmet preconditions."""

class CRSMismatchError(GeometryError):
    """Input for one call mixes planar projections."""

def common_srid(rings: Iterable[Sequence]) -> Optional[int]:
    """The single SRID tagged on points of *rings* (None if untagged).

    Points without an SRID are accepted alongside tagged ones; two
    different SRIDs raise CRSMismatchError. No reprojection is attempted.
    """
    srids = {getattr(p, "srid", None) for ring in rings for p in ring} - {None}
    if len(srids) > 1:
        raise CRSMismatchError(f"Input mixes coordinate systems: {sorted(srids)}")
    return srids.pop() if srids else None

# ============================================================
# Ring Utilities
# ============================================================
def same_point(p1: Point, p2: Point, eps: float = POINT_EPSILON) -> bool:
    """True if two points coincide within *eps* on both axes."""
    return abs(p1[0]-p2[0]) < eps and abs(p1[1]-p2[1]) < eps

def open_ring(verts: Sequence[Point]) -> list:
    """Vertex list with an explicit closing vertex (== first) removed."""
    v = list(verts)
    if len(v) > 1 and same_point(v[0], v[-1]):
        v.pop()
    return v

def distinct_vertices(verts: Sequence[Point]) -> int:
    """Number of distinct stations in the ring (closing vertex not counted)."""
    seen: list[Point] = []
    for p in open_ring(verts):
        if not any(same_point(p, q) for q in seen):
            seen.append(p)
    return len(seen)

def require_polygon(verts: Sequence[Point]) -> list:
    """Open ring of *verts*; raises GeometryError below 3 vertices."""
    v = open_ring(verts)
    if len(v) < 3:
        raise GeometryError(f"Polygon requires at least 3 vertices, got {len(v)}")
    return v

def is_finite(verts: Sequence[Point]) -> bool:
    return all(math.isfinite(p[0]) and math.isfinite(p[1]) for p in verts)

# ============================================================
# Area and Perimeter
# ============================================================
def signed_area(verts: Sequence[Point]) -> float:
    """Shoelace area with sign: positive for CCW, negative for CW winding."""
    v = open_ring(verts)
    n = len(v); a = 0.0
    for i in range(n):
        j = (i+1)%n; a += v[i][0]*v[j][1]-v[j][0]*v[i][1]
    return a/2

def poly_area(verts: Sequence[Point]) -> float:
    """Polygon area via the shoelace formula. Works for either winding order."""
    return abs(signed_area(verts))

def winding(verts: Sequence[Point]) -> Literal["CW", "CCW"]:
    return "CCW" if signed_area(verts) > 0 else "CW"

def path_length(verts: Sequence[Point]) -> float:
    """Sum of consecutive leg lengths, without a closing leg."""
    return sum(math.dist(verts[i][:2], verts[i+1][:2]) for i in range(len(verts)-1))

def perimeter(verts: Sequence[Point]) -> float:
    """Ring perimeter including the closing segment."""
    v = open_ring(verts)
    return path_length(v) + math.dist(v[-1][:2], v[0][:2])

def bboxes_intersect(b1: tuple, b2: tuple) -> bool:
    return not (b1[2] < b2[0] or b2[2] < b1[0] or b1[3] < b2[1] or b2[3] < b1[1])

# ============================================================
# Bearings
# ============================================================
def normalize_bearing(b: float) -> float:
    """Bearing folded into [0, 360)."""
    return b % 360

def brg_dist(p1: Point, p2: Point) -> tuple[float, float]:
    """Bearing (degrees clockwise from North) and distance between two E/N points."""
    dE = p2[0]-p1[0]; dN = p2[1]-p1[1]
    d = math.sqrt(dE**2+dN**2)
    b = normalize_bearing(math.degrees(math.atan2(dE, dN)))
    return b, d

def advance(p: Point, bearing: float, distance: float) -> Point:
    """Point reached from *p* along *bearing* (degrees CW from North)."""
    brg_rad = math.radians(bearing)
    return (p[0]+distance*math.sin(brg_rad), p[1]+distance*math.cos(brg_rad))

# ============================================================
# Formatting Helpers
# ============================================================
def fmt_brg(b: float) -> str:
    """Format bearing in degrees to DMS string, e.g. '257° 53' 45.0\"'."""
    d = int(b); m = int((b-d)*60); sc = (b-d-m/60)*3600
    return f"{d:d}° {m:02d}' {sc:04.1f}\""

def fmt_dist(m: float) -> str:
    """Format distance in metres to millimetre precision, e.g. '12.345 m'."""
    return f"{m:.3f} m"

def fmt_area(a: float) -> str:
    """Format area in square metres, e.g. '1,234.56 m²'."""
    return f"{a:,.2f} m²"
