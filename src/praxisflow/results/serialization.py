"""Legacy field names for older API consumers.

The scorers produce one canonical schema. Older clients expect camelCase
headline scores and the historical ratio names (`nurseRatio`,
`supportStaffRatio`); this module adds them in a single step at the
serialisation boundary and nowhere else.
"""

from typing import Any, Dict

from praxisflow.benchmarks.defaults import (
    CLINICAL_ASSISTANT_RATIO, EXAM_ROOM_RATIO, FRONTDESK_RATIO, SUPPORT_TOTAL_RATIO,
)
from praxisflow.results.report import PracticeReport

# Canonical ratio key -> legacy alias
LEGACY_RATIO_ALIASES = {
    CLINICAL_ASSISTANT_RATIO: "nurseRatio",
    SUPPORT_TOTAL_RATIO: "supportStaffRatio",
    FRONTDESK_RATIO: "receptionistRatio",
    EXAM_ROOM_RATIO: "examRoomRatio",
}


def _legacy_ratio(ratio: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "actual": ratio["actual"],
        "optimal": ratio["optimal"],
        "score": ratio["score"],
        "recommendation": ratio["recommendation"],
    }


def to_legacy_dict(report: PracticeReport, include_debug: bool = False) -> Dict[str, Any]:
    """Canonical report dict plus the legacy alias fields.

    Args:
        report: Pipeline result.
        include_debug: Passed through to PracticeReport.to_dict().

    Returns:
        The canonical dict with top-level camelCase scores and a
        `staffingAnalysis` block keyed by legacy ratio names.
    """
    data = report.to_dict(include_debug=include_debug)
    staffing = data["staffing"]

    legacy_ratios = {
        alias: _legacy_ratio(staffing["ratios"][key])
        for key, alias in LEGACY_RATIO_ALIASES.items()
        if key in staffing["ratios"]
    }

    data.update({
        "overallScore": report.aggregate.overall,
        "efficiencyScore": report.layout.efficiency_score,
        "staffingScore": report.staffing.overall_score,
        "spaceUtilizationScore": report.layout.room_size_score,
        "staffingAnalysis": {
            "overallScore": report.staffing.overall_score,
            "ratios": legacy_ratios,
        },
        "harmonyScore": report.capacity.harmony_score,
        "capacityAnalysis": {
            "estimatedCapacity": report.capacity.estimated_capacity,
            "capacityScore": report.capacity.capacity_score,
            "benchmarkComparison": report.capacity.capacity.comparison.value,
        },
    })
    return data
