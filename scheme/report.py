"""End-to-end scheme check: topology, business rules, and traverse closure in one report."""
import logging
from datetime import datetime, timezone
from typing import Mapping, Optional, Sequence

from cogo.geometry import poly_area
from cogo.survey import DEFAULT_TOLERANCE_RATIO, compute_closure
from cogo.types import Point, Polygon
from scheme.aggregate import build_report
from scheme.rules import (
    closure_issues, validate_area_consistency, validate_floor_levels, validate_quota_sum,
    validate_section_numbering,
)
from scheme.topology import invalid_reason, topology_issues
from scheme.types import SchemeValidationReport, SectionData, TopologyOptions, ValidationIssue

logger = logging.getLogger(__name__)


def validate_scheme_report(
    parent: Polygon,
    sections: Mapping[str, Polygon],
    *,
    quotas: Optional[Mapping[str, float]] = None,
    common_area: Optional[float] = None,
    traverse: Optional[Sequence[Point]] = None,
    tolerance_ratio: float = DEFAULT_TOLERANCE_RATIO,
    options: TopologyOptions = TopologyOptions(),
    floor_levels: Optional[Mapping[str, int]] = None,
) -> SchemeValidationReport:
    """Topology, business rules, and (optionally) traverse closure in one report.

    Quota and area rules run only when *quotas* / *common_area* are given.
    *traverse* is an open traverse whose last point is the computed return
    to the start. With *floor_levels* ({id: level}, missing ids on level 0)
    overlaps are checked per floor, and sections plus common property must
    make up the parent area once for every floor in use.
    """
    started = datetime.now(timezone.utc)
    issues = list(topology_issues(sections, parent, options, floor_levels=floor_levels))

    data = [SectionData(sid, poly_area(ring), (quotas or {}).get(sid, 0.0))
            for sid, ring in sections.items()]
    issues.extend(validate_section_numbering(data).issues)
    if floor_levels is not None:
        issues.extend(validate_floor_levels(floor_levels).issues)
    if quotas is not None:
        missing = [sid for sid in sections if sid not in quotas]
        if missing:
            issues.append(ValidationIssue(
                "quota_error", "error",
                f"No participation quota for sections: {', '.join(missing)}",
                affected_ids=tuple(missing)))
        issues.extend(validate_quota_sum(data).issues)
    if common_area is not None and not invalid_reason(parent):
        section_area = sum(d.area for d, ring in zip(data, sections.values())
                           if not invalid_reason(ring))
        floors = len({(floor_levels or {}).get(sid, 0) for sid in sections}) or 1
        issues.extend(validate_area_consistency(section_area, common_area,
                                                poly_area(parent) * floors).issues)
    if traverse is not None:
        issues.extend(closure_issues(compute_closure(traverse, tolerance_ratio)))

    report = build_report(issues, len(sections) + 1, started)
    logger.info("scheme check: %s with %d error(s), %d warning(s)",
                "valid" if report.is_valid else "invalid",
                report.summary.total_errors, report.summary.total_warnings)
    return report
