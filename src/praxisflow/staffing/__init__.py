"""Staffing layer: role classification, per-provider ratios and FTE demand."""

from praxisflow.staffing.roles import (
    StaffClassification,
    classify_role,
    classify_raw_role,
    classify_staff_for_ratios,
    normalize_role,
)
from praxisflow.staffing.ratios import (
    RatioResult,
    StaffingAnalysis,
    evaluate_staffing_ratios,
)
from praxisflow.staffing.demand import (
    CurrentFte,
    DemandConfig,
    StaffingDemand,
    StaffingDemandInput,
    compute_staffing_demand,
    demand_for_practice,
)

__all__ = [
    "StaffClassification",
    "classify_role",
    "classify_raw_role",
    "classify_staff_for_ratios",
    "normalize_role",
    "RatioResult",
    "StaffingAnalysis",
    "evaluate_staffing_ratios",
    "CurrentFte",
    "DemandConfig",
    "StaffingDemand",
    "StaffingDemandInput",
    "compute_staffing_demand",
    "demand_for_practice",
]
