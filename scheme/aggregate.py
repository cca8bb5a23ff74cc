"""Validation report aggregation: severity split, summary, and correction suggestions."""
from datetime import datetime, timezone
from typing import Optional, Sequence

from scheme.types import (
    CorrectionSuggestion, IssueType, ReportSummary, SchemeValidationReport, ValidationIssue,
)

SUGGESTIONS: dict[IssueType, str] = {
    "overlap": "Adjust boundary of affected units so they no longer overlap",
    "containment_violation": "Re-survey boundary to stay within the parent parcel",
    "gap": "Extend adjoining section or declare residual as common property",
    "quota_error": "Rebalance participation quotas to sum to 100%",
    "area_mismatch": "Recompute section and common property areas",
    "invalid_geometry": "Remove self-intersections and degenerate vertices",
    "duplicate_section": "Renumber duplicated sections",
    "closure": "Re-observe the traverse to bring the misclosure within tolerance",
    "floor_level": "Check the floor level recorded for each section",
}


def suggestion_for(issue: ValidationIssue) -> CorrectionSuggestion:
    priority = "high" if issue.severity == "error" and len(issue.affected_ids) > 1 else "medium"
    return CorrectionSuggestion(issue.type, priority, SUGGESTIONS[issue.type], issue.affected_ids)

def correction_suggestions(issues: Sequence[ValidationIssue]) -> list[CorrectionSuggestion]:
    """One suggestion per error, plus a single one covering all gap warnings."""
    out = [suggestion_for(i) for i in issues if i.severity == "error"]
    gap_warnings = [i for i in issues if i.severity == "warning" and i.type == "gap"]
    if gap_warnings:
        units = tuple(dict.fromkeys(u for i in gap_warnings for u in i.affected_ids))
        out.append(CorrectionSuggestion("gap", "medium", SUGGESTIONS["gap"], units))
    return out

def build_report(issues: Sequence[ValidationIssue], total_geometries: int,
                 started: datetime, finished: Optional[datetime] = None) -> SchemeValidationReport:
    """Split *issues* by severity (order kept) and attach summary and timing."""
    finished = finished or datetime.now(timezone.utc)
    errors = tuple(i for i in issues if i.severity == "error")
    warnings = tuple(i for i in issues if i.severity == "warning")
    return SchemeValidationReport(
        is_valid=not errors,
        errors=errors,
        warnings=warnings,
        summary=ReportSummary(len(errors), len(warnings), total_geometries),
        correction_suggestions=tuple(correction_suggestions(issues)),
        validated_at=finished,
        duration_ms=max(0, int((finished - started).total_seconds() * 1000)),
    )
