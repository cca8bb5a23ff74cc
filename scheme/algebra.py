"""Boolean polygon algebra (intersection, union, difference) backed by shapely.

Everything that needs robust clipping goes through here, so the rest of
the package deals only in PlanarPoint rings and Regions.
"""
from typing import Iterable, Optional, Sequence

from shapely import geometry, ops, validation
from shapely.geometry.polygon import orient

from cogo.geometry import open_ring
from cogo.types import PlanarPoint, Point, Region

Shape = geometry.base.BaseGeometry


def to_shape(ring: Sequence[Point]) -> geometry.Polygon:
    """Shapely polygon from a ring of (x, y)-indexable points."""
    return geometry.Polygon([(p[0], p[1]) for p in open_ring(ring)])

def validity_reason(shape: Shape) -> Optional[str]:
    """None for a valid shape, otherwise GEOS's explanation (e.g. 'Self-intersection[...]')."""
    return None if shape.is_valid else validation.explain_validity(shape)

def polygon_parts(shape: Shape, min_area: float = 0.0) -> list[geometry.Polygon]:
    """Polygonal parts of any shapely result, dropping slivers, lines, and points."""
    if shape.is_empty:
        return []
    if isinstance(shape, geometry.Polygon):
        parts = [shape]
    elif hasattr(shape, "geoms"):
        parts = [p for g in shape.geoms for p in polygon_parts(g)]
    else:
        parts = []
    return [p for p in parts if p.area > min_area]

def ring_points(coords: Iterable[tuple], srid: Optional[int] = None) -> list[PlanarPoint]:
    """PlanarPoints for a shapely coordinate sequence, closing vertex dropped."""
    pts = [PlanarPoint(float(c[0]), float(c[1]), srid=srid) for c in coords]
    return pts[:-1] if len(pts) > 1 and pts[0][:2] == pts[-1][:2] else pts

def to_regions(shape: Shape, srid: Optional[int] = None, min_area: float = 0.0) -> list[Region]:
    """Regions (CCW shell, CW holes) for every polygonal part of *shape*."""
    regions = []
    for part in polygon_parts(shape, min_area):
        part = orient(part, 1.0)
        regions.append(Region(
            ring_points(part.exterior.coords, srid),
            tuple(ring_points(h.coords, srid) for h in part.interiors),
        ))
    return regions

def intersection_area(a: Shape, b: Shape) -> float:
    return a.intersection(b).area

def union_all(shapes: Iterable[Shape]) -> Shape:
    shapes = list(shapes)
    return ops.unary_union(shapes) if shapes else geometry.Polygon()

# ============================================================
# Sweep Lines
# ============================================================
SIDES = ("west", "south", "east", "north")

def half_plane(bounds: tuple[float, float, float, float], cut: float,
               side: str = "west") -> geometry.Polygon:
    """Box covering everything in *bounds* on *side* of the axis-parallel line at *cut*."""
    min_x, min_y, max_x, max_y = bounds
    pad = max(max_x-min_x, max_y-min_y, 1.0)
    x0, y0, x1, y1 = min_x-pad, min_y-pad, max_x+pad, max_y+pad
    if side == "west":
        x1 = cut
    elif side == "east":
        x0 = cut
    elif side == "south":
        y1 = cut
    elif side == "north":
        y0 = cut
    else:
        raise ValueError(f"unknown side {side!r}")
    return geometry.box(x0, y0, x1, y1)

def sweep_range(bounds: tuple[float, float, float, float], side: str) -> tuple[float, float]:
    """(start, end) of the cut coordinate for a line sweeping in from *side*."""
    min_x, min_y, max_x, max_y = bounds
    return {"west": (min_x, max_x), "east": (max_x, min_x),
            "south": (min_y, max_y), "north": (max_y, min_y)}[side]

def extreme_point(shape: geometry.Polygon, side: str) -> geometry.Point:
    """Exterior vertex of *shape* furthest towards *side*; lowest other coordinate on ties."""
    key = {"west": lambda c: (c[0], c[1]), "east": lambda c: (-c[0], c[1]),
           "south": lambda c: (c[1], c[0]), "north": lambda c: (-c[1], c[0])}[side]
    return geometry.Point(min(shape.exterior.coords, key=key))

def nearest_part(shape: Shape, point: geometry.Point,
                 min_area: float = 0.0) -> Optional[geometry.Polygon]:
    """Polygonal part of *shape* closest to *point* (first on ties), or None if there is none."""
    parts = polygon_parts(shape, min_area)
    if not parts:
        return None
    return min(parts, key=point.distance)
