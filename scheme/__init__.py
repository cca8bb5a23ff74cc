"""Sectional scheme generation, topology validation, business rules, and reports."""

from .types import (
    ValidationIssue, CorrectionSuggestion, ReportSummary, SchemeValidationReport,
    TopologyOptions, UnitSpecification, GeometrySet, SectionData, region_area, region_coords,
)
from .generate import GenerationError, generate
from .topology import (
    invalid_reason, check_geometry, detect_overlaps, validate_containment, check_gaps,
    topology_issues, validate_topology,
)
from .rules import (
    BusinessRuleResult, validate_quota_sum, validate_area_consistency,
    validate_section_numbering, validate_floor_levels, validate_survey_accuracy, closure_issues,
    validate_scheme, merge_results,
)
from .quotas import QuotaError, UnitArea, QuotaResult, QuotaCalculation, calculate_quotas
from .aggregate import SUGGESTIONS, build_report, correction_suggestions
from .report import validate_scheme_report
