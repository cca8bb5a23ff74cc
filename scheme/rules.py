"""Business rules of a sectional scheme that do not depend on geometry.

Each rule returns a BusinessRuleResult; a failed rule is a finding, not
an exception.
"""
import logging
from typing import Iterable, Mapping, NamedTuple, Optional, Sequence

from cogo.survey import ClosureResult
from scheme.constants import (
    QUOTA_TOTAL, QUOTA_TOLERANCE, QUOTA_SMALL, AREA_TOLERANCE, COMMON_AREA_WARN_RATIO,
    MAX_CLOSURE_ERROR, MIN_ACCURACY_RATIO, BORDERLINE_ACCURACY, FLOOR_RANGE_WARN,
)
from scheme.types import SectionData, ValidationIssue

logger = logging.getLogger(__name__)


class BusinessRuleResult(NamedTuple):
    issues: tuple[ValidationIssue, ...] = ()

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == "error"]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == "warning"]


def _ids(sections: Iterable[SectionData]) -> tuple[str, ...]:
    return tuple(s.section_number for s in sections)

def _names(sections: Sequence[SectionData]) -> str:
    return ", ".join(_ids(sections))

# ============================================================
# Participation Quotas
# ============================================================
def validate_quota_sum(sections: Sequence[SectionData],
                       tolerance: float = QUOTA_TOLERANCE) -> BusinessRuleResult:
    """Quotas must total 100% within *tolerance*; each must lie in [0, 100].

    The total is compared after rounding away float noise, so a shortfall
    of exactly *tolerance* (e.g. 3 x 33.3333) fails.
    """
    if not sections:
        return BusinessRuleResult((ValidationIssue(
            "quota_error", "error", "At least one section is required"),))
    issues = []
    total = sum(s.participation_quota for s in sections)
    diff = round(abs(total - QUOTA_TOTAL), 9)
    if diff >= tolerance:
        issues.append(ValidationIssue(
            "quota_error", "error",
            f"Participation quotas must sum to 100%. Current sum: {total:.4f}% "
            f"(difference: {diff:.4f}%)",
            affected_ids=_ids(sections)))

    negative = [s for s in sections if s.participation_quota < 0]
    if negative:
        issues.append(ValidationIssue(
            "quota_error", "error",
            f"Negative participation quotas for sections: {_names(negative)}",
            affected_ids=_ids(negative)))
    excessive = [s for s in sections if s.participation_quota > QUOTA_TOTAL]
    if excessive:
        issues.append(ValidationIssue(
            "quota_error", "error",
            f"Participation quotas above 100% for sections: {_names(excessive)}",
            affected_ids=_ids(excessive)))
    small = [s for s in sections if 0 < s.participation_quota < QUOTA_SMALL]
    if small:
        issues.append(ValidationIssue(
            "quota_error", "warning",
            f"Very small participation quotas (<{QUOTA_SMALL}%) for sections: {_names(small)}",
            affected_ids=_ids(small)))
    return BusinessRuleResult(tuple(issues))

# ============================================================
# Areas and Numbering
# ============================================================
def validate_area_consistency(total_section_area: float, common_area: float,
                              parent_area: float,
                              tolerance: float = AREA_TOLERANCE) -> BusinessRuleResult:
    """Section area plus common property must equal the parent area."""
    issues = []
    used = total_section_area + common_area
    diff = abs(used - parent_area)
    if diff > tolerance:
        issues.append(ValidationIssue(
            "area_mismatch", "error",
            f"Section area ({total_section_area:.2f} m²) + common area ({common_area:.2f} m²) "
            f"= {used:.2f} m², but the parent area is {parent_area:.2f} m². "
            f"Difference: {diff:.2f} m²",
            area=diff))
    for name, value in (("Total section area", total_section_area),
                        ("Common area", common_area), ("Parent area", parent_area)):
        if value < 0:
            issues.append(ValidationIssue(
                "area_mismatch", "error", f"{name} cannot be negative ({value:.2f} m²)"))
    if total_section_area > 0 and common_area / total_section_area > COMMON_AREA_WARN_RATIO:
        issues.append(ValidationIssue(
            "area_mismatch", "warning",
            f"Common area is {common_area/total_section_area*100:.1f}% of section area, "
            f"unusually large; please verify"))
    return BusinessRuleResult(tuple(issues))

def validate_section_numbering(sections: Sequence[SectionData]) -> BusinessRuleResult:
    """Section numbers must be unique, ignoring case and surrounding whitespace."""
    seen: dict[str, str] = {}
    issues = []
    for s in sections:
        key = s.section_number.strip().lower()
        if key in seen:
            issues.append(ValidationIssue(
                "duplicate_section", "error", f"Duplicate section number: {s.section_number}",
                affected_ids=(seen[key], s.section_number)))
        else:
            seen[key] = s.section_number
    return BusinessRuleResult(tuple(issues))

def validate_floor_levels(floor_levels: Mapping[str, int]) -> BusinessRuleResult:
    """Floor levels spread over more than FLOOR_RANGE_WARN storeys draw a warning."""
    if not floor_levels:
        return BusinessRuleResult()
    lowest, highest = min(floor_levels.values()), max(floor_levels.values())
    if highest - lowest <= FLOOR_RANGE_WARN:
        return BusinessRuleResult()
    return BusinessRuleResult((ValidationIssue(
        "floor_level", "warning", f"Unusual floor level range: {lowest} to {highest}",
        affected_ids=tuple(sid for sid, lvl in floor_levels.items() if lvl in (lowest, highest))),))

# ============================================================
# Survey Accuracy
# ============================================================
def validate_survey_accuracy(
    closure_error: float,
    accuracy_ratio: Optional[float],
    max_closure_error: float = MAX_CLOSURE_ERROR,
    min_accuracy_ratio: float = MIN_ACCURACY_RATIO,
) -> BusinessRuleResult:
    """Misclosure and accuracy ratio against the survey standard.

    *accuracy_ratio* None means an exact closure. A ratio that passes but
    sits within 20% of the minimum draws a warning.
    """
    issues = []
    if abs(closure_error) > max_closure_error:
        issues.append(ValidationIssue(
            "closure", "error",
            f"Closure error ({closure_error:.6f} m) exceeds maximum allowed "
            f"({max_closure_error} m)"))
    if accuracy_ratio is not None:
        if accuracy_ratio < min_accuracy_ratio:
            issues.append(ValidationIssue(
                "closure", "error",
                f"Accuracy ratio (1:{accuracy_ratio:.0f}) is below minimum required "
                f"(1:{min_accuracy_ratio:.0f})"))
        elif accuracy_ratio < min_accuracy_ratio * BORDERLINE_ACCURACY:
            issues.append(ValidationIssue(
                "closure", "warning",
                f"Accuracy ratio (1:{accuracy_ratio:.0f}) is close to the minimum requirement"))
    return BusinessRuleResult(tuple(issues))

def closure_issues(closure: ClosureResult, label: str = "traverse") -> list[ValidationIssue]:
    """Issues for a degenerate or out-of-tolerance closure result."""
    issues = []
    if closure.is_degenerate:
        issues.append(ValidationIssue(
            "invalid_geometry", "error", f"{label.capitalize()} encloses zero area",
            area=closure.area, affected_ids=(label,)))
    if not closure.is_within_tolerance:
        issues.append(ValidationIssue(
            "closure", "error", f"{label.capitalize()} fails closure: {closure.describe()}",
            affected_ids=(label,)))
    return issues

# ============================================================
# Combined
# ============================================================
def merge_results(results: Iterable[BusinessRuleResult]) -> BusinessRuleResult:
    return BusinessRuleResult(tuple(i for r in results for i in r.issues))

def validate_scheme(sections: Sequence[SectionData], total_area: float,
                    common_area: float, parent_area: float) -> BusinessRuleResult:
    """Quota sum, area consistency, and numbering in one result."""
    result = merge_results([
        validate_quota_sum(sections),
        validate_area_consistency(total_area, common_area, parent_area),
        validate_section_numbering(sections),
    ])
    logger.debug("business rules: %d error(s), %d warning(s)",
                 len(result.errors), len(result.warnings))
    return result
