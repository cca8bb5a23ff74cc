"""Type definitions for scheme generation, validation issues, and reports."""
from datetime import datetime
from typing import Literal, NamedTuple, Optional

from cogo.types import PlanarPoint, Polygon, Region
from cogo.geometry import poly_area
from scheme.constants import (
    OVERLAP_EPSILON, MIN_GAP_AREA, GAP_ERROR_RATIO,
)

IssueType = Literal[
    "overlap", "gap", "containment_violation", "invalid_geometry",
    "quota_error", "area_mismatch", "duplicate_section", "closure", "floor_level",
]
Severity = Literal["error", "warning"]
Priority = Literal["high", "medium"]
SectionType = Literal["residential", "commercial", "parking", "storage", "common", "other"]


# ============================================================
# Issues and Reports
# ============================================================
def region_coords(region: Region) -> dict:
    """JSON-ready shell and holes of *region* as [x, y] pairs."""
    return {"shell": [[p[0], p[1]] for p in region.shell],
            "holes": [[[p[0], p[1]] for p in h] for h in region.holes]}


class ValidationIssue(NamedTuple):
    type: IssueType
    severity: Severity
    description: str
    area: Optional[float] = None
    affected_ids: tuple[str, ...] = ()
    locations: tuple[Region, ...] = ()   # where on the map the problem lies

    def as_dict(self) -> dict:
        return {"type": self.type, "severity": self.severity,
                "description": self.description, "area": self.area,
                "affected_ids": list(self.affected_ids),
                "locations": [region_coords(r) for r in self.locations]}


class CorrectionSuggestion(NamedTuple):
    error_type: IssueType
    priority: Priority
    suggestion: str
    affected_units: tuple[str, ...] = ()

    def as_dict(self) -> dict:
        return {"error_type": self.error_type, "priority": self.priority,
                "suggestion": self.suggestion, "affected_units": list(self.affected_units)}


class ReportSummary(NamedTuple):
    total_errors: int
    total_warnings: int
    total_geometries: int


class SchemeValidationReport(NamedTuple):
    """Outcome of one validation run. Warnings never affect *is_valid*."""
    is_valid: bool
    errors: tuple[ValidationIssue, ...]
    warnings: tuple[ValidationIssue, ...]
    summary: ReportSummary
    correction_suggestions: tuple[CorrectionSuggestion, ...]
    validated_at: datetime
    duration_ms: int

    def as_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "errors": [e.as_dict() for e in self.errors],
            "warnings": [w.as_dict() for w in self.warnings],
            "summary": self.summary._asdict(),
            "correction_suggestions": [s.as_dict() for s in self.correction_suggestions],
            "validated_at": self.validated_at.isoformat(),
            "duration_ms": self.duration_ms,
        }


class TopologyOptions(NamedTuple):
    """Which topology checks to run, and their tolerances."""
    check_overlaps: bool = True
    check_containment: bool = True
    check_gaps: bool = True
    check_geometry: bool = True
    tolerance: float = OVERLAP_EPSILON
    min_gap_area: float = MIN_GAP_AREA
    gap_error_ratio: Optional[float] = GAP_ERROR_RATIO


# ============================================================
# Generation
# ============================================================
class UnitSpecification(NamedTuple):
    """One section to generate: a target area, an explicit boundary, or both."""
    section_number: str
    target_area: Optional[float] = None
    explicit_boundary: Optional[Polygon] = None
    section_type: SectionType = "residential"
    floor_level: int = 0              # 0 ground, negative basement


def region_area(region: Region) -> float:
    return poly_area(region.shell) - sum(poly_area(h) for h in region.holes)


class GeometrySet(NamedTuple):
    """Parent boundary, generated sections, and the common-property residual.

    Each floor level is a full copy of the parent footprint: the sections on
    a floor plus that floor's common property make up the parent area.
    """
    parent: list[PlanarPoint]
    sections: dict[str, list[PlanarPoint]]
    floor_levels: dict[str, int]
    common_by_floor: dict[int, list[Region]]

    @property
    def common_property(self) -> list[Region]:
        """Residual parts of every floor, lowest floor first."""
        return [r for level in self.floors for r in self.common_by_floor[level]]

    @property
    def floors(self) -> list[int]:
        return sorted(self.common_by_floor)

    @property
    def parent_area(self) -> float:
        return poly_area(self.parent)

    @property
    def section_area(self) -> float:
        return sum(poly_area(s) for s in self.sections.values())

    @property
    def common_area(self) -> float:
        return sum(region_area(r) for r in self.common_property)

    def floor_drift(self, level: int) -> float:
        """sections + common - parent on one floor; zero when area is conserved."""
        sections = sum(poly_area(s) for sid, s in self.sections.items()
                       if self.floor_levels[sid] == level)
        common = sum(region_area(r) for r in self.common_by_floor[level])
        return sections + common - self.parent_area


# ============================================================
# Business Rules
# ============================================================
class SectionData(NamedTuple):
    """Already-extracted numeric fields of one section."""
    section_number: str
    area: float
    participation_quota: float
