"""Tests for scheme/rules.py business rules."""
import pytest
from cogo.survey import compute_closure
from scheme.rules import (
    BusinessRuleResult, validate_quota_sum, validate_area_consistency,
    validate_section_numbering, validate_floor_levels, validate_survey_accuracy, closure_issues,
    validate_scheme, merge_results,
)
from scheme.types import SectionData


def sections(*quotas, area=100.0):
    return [SectionData(str(i), area, q) for i, q in enumerate(quotas, 1)]


class TestQuotaSum:
    def test_thirds_short_by_tolerance(self):
        result = validate_quota_sum(sections(33.3333, 33.3333, 33.3333))
        assert not result.valid
        (err,) = result.errors
        assert err.type == "quota_error"
        assert "99.9999" in err.description

    def test_thirds_rebalanced(self):
        result = validate_quota_sum(sections(33.3333, 33.3333, 33.3334))
        assert result.valid
        assert result.issues == ()

    def test_exact_hundred(self):
        assert validate_quota_sum(sections(25.0, 25.0, 50.0)).valid

    def test_custom_tolerance(self):
        assert validate_quota_sum(sections(33.3333, 33.3333, 33.3333), tolerance=0.001).valid

    def test_negative_and_excessive(self):
        result = validate_quota_sum(sections(-10.0, 110.0))
        assert len(result.errors) == 2
        assert result.errors[0].affected_ids == ("1",)
        assert result.errors[1].affected_ids == ("2",)

    def test_small_quota_is_warning(self):
        result = validate_quota_sum(sections(0.005, 99.995))
        assert result.valid
        (warn,) = result.warnings
        assert warn.affected_ids == ("1",)

    def test_zero_quota_no_warning(self):
        assert validate_quota_sum(sections(0.0, 100.0)).warnings == []

    def test_no_sections(self):
        result = validate_quota_sum([])
        assert not result.valid
        assert "At least one section" in result.errors[0].description


class TestAreaConsistency:
    def test_consistent(self):
        result = validate_area_consistency(1_000_000.0, 0.0, 1_000_000.0)
        assert result.valid
        assert result.issues == ()

    def test_within_tolerance(self):
        assert validate_area_consistency(999.995, 0.0, 1000.0).valid

    def test_mismatch(self):
        result = validate_area_consistency(900.0, 50.0, 1000.0)
        (err,) = result.errors
        assert err.type == "area_mismatch"
        assert abs(err.area - 50.0) < 1e-9

    def test_negative_common_area(self):
        result = validate_area_consistency(1010.0, -10.0, 1000.0)
        assert not result.valid
        assert "Common area cannot be negative" in result.errors[0].description

    def test_large_common_area_warning(self):
        result = validate_area_consistency(100.0, 60.0, 160.0)
        assert result.valid
        (warn,) = result.warnings
        assert "60.0%" in warn.description


class TestSectionNumbering:
    def test_unique(self):
        assert validate_section_numbering(sections(50.0, 50.0)).valid

    def test_duplicates_case_and_whitespace(self):
        data = [SectionData("1A", 10, 50), SectionData(" 1a ", 10, 50), SectionData("2", 10, 0)]
        result = validate_section_numbering(data)
        (err,) = result.errors
        assert err.type == "duplicate_section"
        assert err.affected_ids == ("1A", " 1a ")

    def test_each_repeat_reported(self):
        data = [SectionData("7", 1, 0), SectionData("7", 1, 0), SectionData("7", 1, 0)]
        assert len(validate_section_numbering(data).errors) == 2


class TestFloorLevels:
    def test_ordinary_building(self):
        assert validate_floor_levels({"B1": -1, "G": 0, "12": 12}).issues == ()

    def test_empty(self):
        assert validate_floor_levels({}).valid

    def test_wide_range_warns(self):
        result = validate_floor_levels({"P": -5, "G": 0, "PH": 46, "X": 50})
        assert result.valid
        (warn,) = result.warnings
        assert warn.type == "floor_level"
        assert "-5 to 50" in warn.description
        assert warn.affected_ids == ("P", "X")

    def test_range_at_limit(self):
        assert validate_floor_levels({"G": 0, "T": 50}).issues == ()


class TestSurveyAccuracy:
    def test_good(self):
        result = validate_survey_accuracy(0.005, 15000.0)
        assert result.valid and result.issues == ()

    def test_borderline_warning(self):
        result = validate_survey_accuracy(0.005, 11000.0)
        assert result.valid
        assert len(result.warnings) == 1

    def test_poor(self):
        result = validate_survey_accuracy(0.05, 7427.0)
        assert len(result.errors) == 2
        assert all(e.type == "closure" for e in result.errors)

    def test_exact(self):
        assert validate_survey_accuracy(0.0, None).issues == ()


class TestClosureIssues:
    def test_misclosed(self, misclosed_traverse):
        (issue,) = closure_issues(compute_closure(misclosed_traverse))
        assert issue.type == "closure"
        assert issue.affected_ids == ("traverse",)
        assert "1:7,427" in issue.description

    def test_closed(self):
        square = [(0, 0), (10, 0), (10, 10), (0, 10)]
        assert closure_issues(compute_closure(square, closed=True)) == []

    def test_degenerate(self):
        issues = closure_issues(compute_closure([(0, 0), (1, 0), (2, 0)], closed=True), "lot 4")
        assert [i.type for i in issues] == ["invalid_geometry"]
        assert issues[0].affected_ids == ("lot 4",)


class TestCombined:
    def test_merge(self):
        a = validate_quota_sum([])
        b = validate_survey_accuracy(0.005, 11000.0)
        merged = merge_results([a, b])
        assert isinstance(merged, BusinessRuleResult)
        assert len(merged.errors) == 1 and len(merged.warnings) == 1
        assert not merged.valid

    def test_validate_scheme_valid(self):
        data = [SectionData("1", 500.0, 50.0), SectionData("2", 500.0, 50.0)]
        assert validate_scheme(data, 1000.0, 0.0, 1000.0).valid

    @pytest.mark.parametrize("quotas,total,expected", [
        ((50.0, 49.0), 1000.0, ["quota_error"]),
        ((50.0, 50.0), 990.0, ["area_mismatch"]),
    ])
    def test_validate_scheme_errors(self, quotas, total, expected):
        data = [SectionData(str(i), 500.0, q) for i, q in enumerate(quotas)]
        result = validate_scheme(data, total, 0.0, 1000.0)
        assert [e.type for e in result.errors] == expected

    def test_validate_scheme_duplicates(self):
        data = [SectionData("1", 500.0, 50.0), SectionData("1", 500.0, 50.0)]
        result = validate_scheme(data, 1000.0, 0.0, 1000.0)
        assert [e.type for e in result.errors] == ["duplicate_section"]
