"""Topology validation: overlaps, containment, gaps, and geometry validity.

Polygons are passed either as a mapping ``{id: ring}`` or as a sequence,
in which case ids are "1", "2", ... in input order. Findings come back as
ValidationIssue lists (or a report from validate_topology); only broken
preconditions raise.
"""
import logging
from datetime import datetime, timezone
from typing import Mapping, Optional, Sequence, Union

from cogo.geometry import (
    GeometryError, bboxes_intersect, common_srid, distinct_vertices,
    fmt_area, is_finite, poly_area,
)
from cogo.survey import AREA_EPSILON
from cogo.types import Polygon
from scheme.algebra import (
    Shape, to_shape, to_regions, validity_reason, polygon_parts, intersection_area, union_all,
)
from scheme.constants import OVERLAP_EPSILON, MIN_GAP_AREA
from scheme.aggregate import build_report
from scheme.types import SchemeValidationReport, TopologyOptions, ValidationIssue

logger = logging.getLogger(__name__)

Polygons = Union[Mapping[str, Polygon], Sequence[Polygon]]


def _labelled(polygons: Polygons) -> list[tuple[str, list]]:
    if isinstance(polygons, Mapping):
        return [(str(k), list(v)) for k, v in polygons.items()]
    return [(str(i), list(v)) for i, v in enumerate(polygons, 1)]

# ============================================================
# Single Geometry Checks
# ============================================================
def invalid_reason(ring: Polygon) -> Optional[str]:
    """Why *ring* cannot take part in area computations, or None if it can."""
    if not is_finite(ring):
        return "has non-finite coordinates"
    if distinct_vertices(ring) < 3:
        return "has fewer than 3 distinct vertices"
    if poly_area(ring) < AREA_EPSILON:
        return "is degenerate (zero area)"
    reason = validity_reason(to_shape(ring))
    if reason:
        return f"is not a simple polygon: {reason}"
    return None

def check_geometry(polygons: Polygons) -> list[ValidationIssue]:
    """One invalid_geometry error per polygon that fails invalid_reason()."""
    issues = []
    for pid, ring in _labelled(polygons):
        reason = invalid_reason(ring)
        if reason:
            issues.append(ValidationIssue(
                "invalid_geometry", "error", f"Section {pid} {reason}", affected_ids=(pid,)))
    return issues

def _shapes(labelled: list[tuple[str, list]]) -> list[tuple[str, Shape]]:
    """Shapely polygons for the valid entries; invalid ones are left out."""
    shapes = []
    for pid, ring in labelled:
        reason = invalid_reason(ring)
        if reason:
            logger.debug("section %s skipped: %s", pid, reason)
            continue
        shapes.append((pid, to_shape(ring)))
    return shapes

def _parent_shape(parent: Polygon) -> Shape:
    reason = invalid_reason(parent)
    if reason:
        raise GeometryError(f"Parent boundary {reason}")
    return to_shape(parent)

# ============================================================
# Pairwise and Parent Checks
# ============================================================
def _overlaps(shapes: list[tuple[str, Shape]], epsilon: float, srid: Optional[int] = None,
              floor_levels: Optional[Mapping[str, int]] = None) -> list[ValidationIssue]:
    levels = {str(k): v for k, v in (floor_levels or {}).items()}
    issues = []
    for i, (a, sa) in enumerate(shapes):
        for b, sb in shapes[i+1:]:
            if levels.get(a, 0) != levels.get(b, 0):
                continue
            if not bboxes_intersect(sa.bounds, sb.bounds):
                continue
            shared = sa.intersection(sb)
            if shared.area > epsilon:
                where = f" on floor {levels.get(a, 0)}" if levels else ""
                issues.append(ValidationIssue(
                    "overlap", "error",
                    f"Sections {a} and {b} overlap by {fmt_area(shared.area)}{where}",
                    area=shared.area, affected_ids=(a, b),
                    locations=tuple(to_regions(shared, srid, AREA_EPSILON))))
    return issues

def _containment(shapes: list[tuple[str, Shape]], parent: Shape, epsilon: float,
                 srid: Optional[int] = None) -> list[ValidationIssue]:
    issues = []
    for pid, shape in shapes:
        outside = shape.area - intersection_area(shape, parent)
        if outside > epsilon:
            issues.append(ValidationIssue(
                "containment_violation", "error",
                f"Section {pid} extends {fmt_area(outside)} outside the parent boundary",
                area=outside, affected_ids=(pid,),
                locations=tuple(to_regions(shape.difference(parent), srid, AREA_EPSILON))))
    return issues

def _gaps(shapes: list[tuple[str, Shape]], parent: Shape, min_gap_area: float,
          error_ratio: Optional[float], srid: Optional[int] = None) -> list[ValidationIssue]:
    covered = union_all(s for _, s in shapes)
    uncovered = parent.area - intersection_area(covered, parent)
    if uncovered <= min_gap_area:
        return []
    gap = parent.difference(covered)
    parts = polygon_parts(gap, AREA_EPSILON)
    bordering = tuple(pid for pid, s in shapes if any(s.intersects(p) for p in parts))
    share = uncovered / parent.area
    severity = "error" if error_ratio is not None and share > error_ratio else "warning"
    return [ValidationIssue(
        "gap", severity,
        f"{fmt_area(uncovered)} ({share*100:.2f}% of the parent) is not covered by any "
        f"section, in {len(parts)} part(s)",
        area=uncovered, affected_ids=bordering,
        locations=tuple(to_regions(gap, srid, AREA_EPSILON)))]

def detect_overlaps(polygons: Polygons, epsilon: float = OVERLAP_EPSILON, *,
                    floor_levels: Optional[Mapping[str, int]] = None) -> list[ValidationIssue]:
    """One overlap error per unordered pair sharing more than *epsilon* m².

    Pairs are visited in input order; bounding boxes reject disjoint pairs
    before the exact intersection is computed. Invalid polygons are skipped.
    With *floor_levels* ({id: level}, missing ids on level 0) only sections
    on the same floor are compared. Each issue locates the shared area.
    """
    labelled = _labelled(polygons)
    srid = common_srid(ring for _, ring in labelled)
    return _overlaps(_shapes(labelled), epsilon, srid, floor_levels)

def validate_containment(children: Polygons, parent: Polygon,
                         epsilon: float = OVERLAP_EPSILON) -> list[ValidationIssue]:
    """containment_violation errors for children reaching outside *parent*.

    The reported area is ``area(child) - area(child ∩ parent)``, so a child
    entirely outside reports its full area; the location is the outside part.
    """
    labelled = _labelled(children)
    srid = common_srid([parent] + [ring for _, ring in labelled])
    return _containment(_shapes(labelled), _parent_shape(parent), epsilon, srid)

def check_gaps(children: Polygons, parent: Polygon, min_gap_area: float = MIN_GAP_AREA,
               *, error_ratio: Optional[float] = None) -> list[ValidationIssue]:
    """A single gap issue when children leave more than *min_gap_area* of *parent* uncovered.

    The issue is a warning unless *error_ratio* is given and the uncovered
    share of the parent exceeds it. It lists the uncovered parts and the
    sections bordering them.
    """
    labelled = _labelled(children)
    srid = common_srid([parent] + [ring for _, ring in labelled])
    return _gaps(_shapes(labelled), _parent_shape(parent), min_gap_area, error_ratio, srid)

# ============================================================
# Full Topology Run
# ============================================================
def topology_issues(sections: Polygons, parent: Polygon,
                    options: TopologyOptions = TopologyOptions(), *,
                    floor_levels: Optional[Mapping[str, int]] = None) -> list[ValidationIssue]:
    """Every topology finding for *sections* against *parent*, in check order.

    Invalid polygons are reported (when options.check_geometry) and left out
    of the pairwise checks; an invalid parent skips containment and gaps.
    Overlaps are checked per floor when *floor_levels* is given; gaps are
    checked against the footprint of all floors together.
    """
    labelled = _labelled(sections)
    srid = common_srid([parent] + [ring for _, ring in labelled])

    issues: list[ValidationIssue] = []
    invalid = check_geometry(dict(labelled))
    parent_reason = invalid_reason(parent)
    if parent_reason:
        invalid.append(ValidationIssue(
            "invalid_geometry", "error", f"Parent boundary {parent_reason}",
            affected_ids=("parent",)))
    if options.check_geometry:
        issues.extend(invalid)
    else:
        for issue in invalid:
            logger.warning("excluded from topology checks: %s", issue.description)

    shapes = _shapes(labelled)
    if options.check_overlaps:
        issues.extend(_overlaps(shapes, options.tolerance, srid, floor_levels))
    if parent_reason:
        logger.info("parent boundary invalid, containment and gap checks skipped")
        return issues
    parent_shape = to_shape(parent)
    if options.check_containment:
        issues.extend(_containment(shapes, parent_shape, options.tolerance, srid))
    if options.check_gaps:
        issues.extend(_gaps(shapes, parent_shape, options.min_gap_area,
                            options.gap_error_ratio, srid))
    return issues

def validate_topology(sections: Polygons, parent: Polygon,
                      options: TopologyOptions = TopologyOptions(), *,
                      floor_levels: Optional[Mapping[str, int]] = None) -> SchemeValidationReport:
    """Run the enabled topology checks and aggregate them into a report.

    Raises CRSMismatchError if the inputs carry different SRIDs. Two runs on
    the same input differ only in validated_at and duration_ms.
    """
    started = datetime.now(timezone.utc)
    issues = topology_issues(sections, parent, options, floor_levels=floor_levels)
    report = build_report(issues, len(_labelled(sections)) + 1, started)
    logger.info("topology: %d error(s), %d warning(s) across %d geometries",
                report.summary.total_errors, report.summary.total_warnings,
                report.summary.total_geometries)
    return report
