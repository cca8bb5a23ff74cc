"""Section geometry generation from a parent boundary and unit specifications.

Explicit boundaries are taken as given once they are shown to be simple
and inside the parent. Area-only units are then cut, in input order, from
whatever parent area is still unallocated: a sweep line moves in from one
side of a connected part until the piece behind it holds the target area.
Pieces that would enclose a hole, or that leave later targets no room, are
retried from another side or in another part. Each piece is removed from
the unallocated region before the next cut, so generated sections can not
overlap. What is left becomes common property. Floor levels are filled
independently, each from the whole parent footprint.
"""
import logging
import math
from typing import Optional, Sequence

from cogo.geometry import common_srid, distinct_vertices, fmt_area, is_finite
from cogo.survey import AREA_EPSILON
from cogo.types import PlanarPoint, Polygon, Region
from scheme.algebra import (
    SIDES, Shape, to_shape, validity_reason, polygon_parts, to_regions,
    intersection_area, union_all, half_plane, sweep_range, extreme_point, nearest_part,
)
from scheme.constants import (
    OVERLAP_EPSILON, AREA_TOLERANCE, GENERATION_REL_TOLERANCE, BISECTION_ITERATIONS,
    GENERATION_MAX_CUTS,
)
from scheme.types import GeometrySet, UnitSpecification

logger = logging.getLogger(__name__)


class GenerationError(ValueError):
    """The requested subdivision cannot be produced."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


# ============================================================
# Input Checks
# ============================================================
def _simple_shape(ring: Polygon, what: str) -> Shape:
    """Shapely polygon for *ring*, or GenerationError if it is not simple and non-degenerate."""
    if not is_finite(ring):
        raise GenerationError(f"{what} has non-finite coordinates")
    if distinct_vertices(ring) < 3:
        raise GenerationError(f"{what} needs at least 3 distinct vertices")
    shape = to_shape(ring)
    reason = validity_reason(shape)
    if reason:
        raise GenerationError(f"{what} is not a simple polygon: {reason}")
    if shape.area < AREA_EPSILON:
        raise GenerationError(f"{what} has zero area")
    return shape

def _check_specs(specs: Sequence[UnitSpecification]) -> None:
    if not specs:
        raise GenerationError("at least one unit specification is required")
    seen: set[str] = set()
    for unit in specs:
        key = unit.section_number.strip().lower()
        if key in seen:
            raise GenerationError(f"duplicate section number {unit.section_number!r}")
        seen.add(key)
        if unit.explicit_boundary is None and unit.target_area is None:
            raise GenerationError(
                f"section {unit.section_number} has neither a target area nor a boundary")
        if unit.target_area is not None and not (
                math.isfinite(unit.target_area) and unit.target_area > 0):
            raise GenerationError(
                f"section {unit.section_number} target area must be positive, "
                f"got {unit.target_area}")

# ============================================================
# Sweep-Line Cutting
# ============================================================
def _cut(part: Shape, target: float, side: str) -> Optional[Shape]:
    """Piece of *part* swept in from *side* that holds *target* area, or None.

    Only the piece connected to the start side counts, so its area grows
    with the sweep; the cut is rejected if that piece encloses a hole or
    the area jumps past the target where two branches of *part* meet.
    """
    bounds = part.bounds
    start, end = sweep_range(bounds, side)
    anchor = extreme_point(part, side)

    def piece_at(t: float) -> Optional[Shape]:
        cut = half_plane(bounds, start + t*(end-start), side)
        return nearest_part(part.intersection(cut), anchor, AREA_EPSILON)

    lo, hi = 0.0, 1.0
    for _ in range(BISECTION_ITERATIONS):
        mid = (lo+hi)/2
        if mid <= lo or mid >= hi:
            break
        piece = piece_at(mid)
        if piece is None or piece.area < target:
            lo = mid
        else:
            hi = mid
    piece = piece_at(hi)
    if piece is None or len(piece.interiors):
        return None
    if abs(piece.area - target) > GENERATION_REL_TOLERANCE * target:
        return None
    return piece

def _parts(remaining: Shape, target: float) -> list[Shape]:
    """Connected parts of *remaining* large enough for *target*, west to east."""
    parts = polygon_parts(remaining, AREA_EPSILON)
    parts.sort(key=lambda p: (p.bounds[0], p.bounds[1]))
    return [p for p in parts if p.area >= target * (1 - GENERATION_REL_TOLERANCE)]


class _Allocator:
    """Depth-first search over parts and sweep sides for a run of area-only sections.

    Sections are cut in input order. When a later target no longer fits
    any connected part of what is left, the search backs up and tries the
    next side or part for the section before it.
    """

    def __init__(self, specs: Sequence[UnitSpecification]):
        self.specs = specs
        self.cuts = 0
        self.stuck = 0

    def run(self, remaining: Shape, i: int = 0) -> Optional[list[Shape]]:
        if i == len(self.specs):
            return []
        unit = self.specs[i]
        self.stuck = max(self.stuck, i)
        for part in _parts(remaining, unit.target_area):
            for side in SIDES:
                if self.cuts >= GENERATION_MAX_CUTS:
                    raise GenerationError(
                        f"no subdivision found within {GENERATION_MAX_CUTS} cuts; "
                        f"supply explicit boundaries for some sections")
                self.cuts += 1
                piece = _cut(part, unit.target_area, side)
                if piece is None:
                    continue
                rest = self.run(remaining.difference(piece), i+1)
                if rest is not None:
                    logger.debug("section %s cut from the %s, area %.6f m²",
                                 unit.section_number, side, piece.area)
                    return [piece] + rest
        return None

    def allocate(self, remaining: Shape) -> list[Shape]:
        pieces = self.run(remaining)
        if pieces is None:
            unit = self.specs[self.stuck]
            raise GenerationError(
                f"section {unit.section_number}: no part of the unallocated area holds "
                f"{fmt_area(unit.target_area)} as a single simple polygon; "
                f"supply an explicit boundary")
        return pieces

# ============================================================
# Entry Point
# ============================================================
def _place_explicit(parent_shape: Shape, specs: Sequence[UnitSpecification],
                    shapes: dict[str, Shape]) -> None:
    """Check the explicit boundaries of one floor and add them to *shapes*."""
    placed: list[str] = []
    for unit in specs:
        shape = _simple_shape(unit.explicit_boundary, f"section {unit.section_number}")
        outside = shape.area - intersection_area(shape, parent_shape)
        if outside > OVERLAP_EPSILON:
            raise GenerationError(
                f"section {unit.section_number} boundary lies {fmt_area(outside)} "
                f"outside the parent")
        for other in placed:
            shared = intersection_area(shape, shapes[other])
            if shared > OVERLAP_EPSILON:
                raise GenerationError(
                    f"sections {other} and {unit.section_number} overlap by {fmt_area(shared)}")
        if unit.target_area is not None and (
                abs(shape.area - unit.target_area) > GENERATION_REL_TOLERANCE * unit.target_area):
            logger.warning("section %s boundary encloses %.2f m², declared %.2f m²",
                           unit.section_number, shape.area, unit.target_area)
        shapes[unit.section_number] = shape
        placed.append(unit.section_number)

def _fill_floor(parent_shape: Shape, specs: Sequence[UnitSpecification],
                shapes: dict[str, Shape]) -> Shape:
    """Place and cut the sections of one floor; returns that floor's residual."""
    _place_explicit(parent_shape, [s for s in specs if s.explicit_boundary is not None], shapes)
    remaining = parent_shape.difference(union_all(shapes[s.section_number] for s in specs
                                                  if s.explicit_boundary is not None))
    area_only = [s for s in specs if s.explicit_boundary is None]
    wanted = sum(s.target_area for s in area_only)
    if wanted > parent_shape.area + AREA_TOLERANCE:
        raise GenerationError(
            f"target areas sum to {fmt_area(wanted)}, more than the parent's "
            f"{fmt_area(parent_shape.area)}")
    if wanted > remaining.area + AREA_TOLERANCE:
        raise GenerationError(
            f"target areas sum to {fmt_area(wanted)}, more than the "
            f"{fmt_area(remaining.area)} left after explicit boundaries")
    if area_only:
        for unit, piece in zip(area_only, _Allocator(area_only).allocate(remaining)):
            shapes[unit.section_number] = piece
    return parent_shape.difference(union_all(shapes[s.section_number] for s in specs))

def generate(parent: Polygon, specs: Sequence[UnitSpecification]) -> GeometrySet:
    """Produce section polygons and the common-property residual for *parent*.

    Every floor level is filled independently from the full parent
    footprint. Deterministic: identical input gives bit-identical output.
    Raises GenerationError when the targets cannot fit, an explicit
    boundary leaves the parent, or the input is malformed.
    """
    _check_specs(specs)
    srid = common_srid([parent] + [s.explicit_boundary for s in specs
                                   if s.explicit_boundary is not None])
    parent_shape = _simple_shape(parent, "parent boundary")

    levels = sorted({s.floor_level for s in specs})
    shapes: dict[str, Shape] = {}
    common: dict[int, list[Region]] = {}
    for level in levels:
        on_floor = [s for s in specs if s.floor_level == level]
        residual = _fill_floor(parent_shape, on_floor, shapes)
        common[level] = to_regions(residual, srid, AREA_EPSILON)

    sections: dict[str, list[PlanarPoint]] = {}
    for unit in specs:
        if unit.explicit_boundary is not None:
            sections[unit.section_number] = list(unit.explicit_boundary)
        else:
            sections[unit.section_number] = to_regions(shapes[unit.section_number], srid)[0].shell

    result = GeometrySet(list(parent), sections,
                         {s.section_number: s.floor_level for s in specs}, common)
    for level in levels:
        drift = result.floor_drift(level)
        if abs(drift) > AREA_TOLERANCE:
            raise GenerationError(f"area not conserved on floor {level}: residual {drift:.6f} m²")
    logger.info("generated %d sections on %d floor(s), common property %s in %d part(s)",
                len(sections), len(levels), fmt_area(result.common_area),
                len(result.common_property))
    return result
