"""Participation quotas: each section's percentage share of the common property.

quota = section area / total section area * 100, rounded to a fixed number
of decimals. Sections of type "common" carry no quota.
"""
import logging
from typing import NamedTuple, Optional, Sequence

from scheme.constants import QUOTA_PRECISION, QUOTA_TOTAL
from scheme.types import SectionData, SectionType

logger = logging.getLogger(__name__)


class QuotaError(ValueError):
    """Quotas cannot be computed for the given units."""


class UnitArea(NamedTuple):
    section_number: str
    area: float                       # m²
    section_type: SectionType = "residential"


class QuotaResult(NamedTuple):
    section_number: str
    quota: float                      # percent
    area: float                       # m²
    common_area_share: float          # m² of common property


class QuotaCalculation(NamedTuple):
    quotas: list[QuotaResult]
    total_unit_area: float
    total_quota: float
    common_area: float
    adjustment: Optional[str] = None  # rounding correction applied, if any

    def as_section_data(self) -> list[SectionData]:
        return [SectionData(q.section_number, q.area, q.quota) for q in self.quotas]


def calculate_quotas(
    units: Sequence[UnitArea],
    common_area: float = 0.0,
    precision: int = QUOTA_PRECISION,
    adjust_to_100: bool = True,
) -> QuotaCalculation:
    """Quota per non-common unit, rounded to *precision* decimals.

    With *adjust_to_100* the rounding remainder goes to the largest quota
    (first one on ties) so the rounded total is exactly 100. Raises
    QuotaError for negative areas or a zero total.
    """
    eligible = [u for u in units if u.section_type != "common"]
    if not eligible:
        raise QuotaError("No eligible units for quota calculation")
    negative = [u.section_number for u in eligible if u.area < 0]
    if negative:
        raise QuotaError(f"Negative area for units: {', '.join(negative)}")
    total_area = sum(u.area for u in eligible)
    if total_area == 0:
        raise QuotaError("Total unit area is zero")

    quotas = [round(u.area/total_area*QUOTA_TOTAL, precision) for u in eligible]
    total = round(sum(quotas), precision)
    adjustment = None
    if adjust_to_100 and total != QUOTA_TOTAL:
        delta = round(QUOTA_TOTAL - total, precision)
        k = max(range(len(quotas)), key=lambda i: quotas[i])
        quotas[k] = round(quotas[k] + delta, precision)
        adjustment = (f"Adjusted quota for {eligible[k].section_number} by "
                      f"{delta:+.{precision}f}% to total 100%")
        logger.info(adjustment)
        total = round(sum(quotas), precision)

    results = [QuotaResult(u.section_number, q, u.area, round(q/QUOTA_TOTAL*common_area, 2))
               for u, q in zip(eligible, quotas)]
    return QuotaCalculation(results, total_area, total, common_area, adjustment)
