"""Staffing ratio evaluation.

Ratios are per provider: clinical assistants, front desk, total support
staff and exam rooms. Each is scored against its benchmark band with the
same curve as room sizes. The overall score averages a fixed subset of
ratios; the front-desk ratio is reported but left out so that reception
headcount swings do not mask the clinical signal.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from praxisflow.benchmarks.bands import BenchmarkBand, score_against_band
from praxisflow.benchmarks.defaults import (
    CLINICAL_ASSISTANT_RATIO, EXAM_ROOM_RATIO, FRONTDESK_RATIO, SUPPORT_TOTAL_RATIO,
)
from praxisflow.benchmarks.resolver import ResolvedBenchmarks
from praxisflow.core.config import TuningConfig
from praxisflow.core.entities import Assessment, PracticeType, Status
from praxisflow.core.scores import clamp_score, status_for_score
from praxisflow.staffing.roles import StaffClassification

RATIO_KEYS = (CLINICAL_ASSISTANT_RATIO, FRONTDESK_RATIO, SUPPORT_TOTAL_RATIO, EXAM_ROOM_RATIO)

# Ratios that make up the overall staffing score
SCORE_KEYS = (CLINICAL_ASSISTANT_RATIO, SUPPORT_TOTAL_RATIO, EXAM_ROOM_RATIO)

# FTE ratio key -> band key it is scored against
FTE_RATIO_KEYS = {
    "clinical_assistant_fte_ratio": CLINICAL_ASSISTANT_RATIO,
    "frontdesk_fte_ratio": FRONTDESK_RATIO,
    "support_total_fte_ratio": SUPPORT_TOTAL_RATIO,
}

RATIO_LABELS = {
    CLINICAL_ASSISTANT_RATIO: "clinical assistants",
    FRONTDESK_RATIO: "front desk staff",
    SUPPORT_TOTAL_RATIO: "support staff",
    EXAM_ROOM_RATIO: "exam rooms",
}

NO_PROVIDER_MESSAGE = "No provider on the roster; per-provider ratios cannot be computed."


@dataclass
class RatioResult:
    """One ratio compared against its band."""
    key: str
    actual: float
    optimal: float
    band: BenchmarkBand
    score: int
    assessment: Assessment
    status: Status
    recommendation: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "actual": round(self.actual, 2),
            "optimal": self.optimal,
            "min": self.band.minimum,
            "max": self.band.maximum,
            "score": self.score,
            "assessment": self.assessment.value,
            "status": self.status.value,
            "recommendation": self.recommendation,
            "source": self.band.source,
            "from_knowledge": self.band.from_knowledge,
            "citations": [c.to_dict() for c in self.band.citations],
        }


@dataclass
class StaffingAnalysis:
    """Staffing ratios with the overall score.

    Attributes:
        ratios: Headcount ratios keyed by ratio name.
        fte_ratios: FTE ratios; empty when providers have no FTE.
        overall_score: Mean of the SCORE_KEYS ratio scores, None without
            providers.
        recommendations: One line per ratio outside its optimum.
        classification: Role partition the ratios were computed from.
    """
    ratios: Dict[str, RatioResult] = field(default_factory=dict)
    fte_ratios: Dict[str, RatioResult] = field(default_factory=dict)
    overall_score: Optional[int] = None
    recommendations: List[str] = field(default_factory=list)
    classification: StaffClassification = field(default_factory=StaffClassification)

    @property
    def has_providers(self) -> bool:
        return self.classification.providers_count > 0

    def to_dict(self, include_debug: bool = False) -> Dict[str, Any]:
        data = {
            "overall_score": self.overall_score,
            "ratios": {k: r.to_dict() for k, r in self.ratios.items()},
            "fte_ratios": {k: r.to_dict() for k, r in self.fte_ratios.items()},
            "recommendations": list(self.recommendations),
            "providers_count": self.classification.providers_count,
            "support_total_count": self.classification.support_total_count,
        }
        if include_debug:
            data["debug"] = self.classification.debug()
        return data


def _ratio_message(key: str, actual: float, band: BenchmarkBand, assessment: Assessment) -> str:
    label = RATIO_LABELS[key]
    if assessment == Assessment.UNDERSIZED:
        return (
            f"Understaffed: {actual:.1f} {label} per provider, "
            f"below the minimum of {band.minimum:g}. Recommended: {band.optimal:g}."
        )
    if assessment == Assessment.OVERSIZED:
        return (
            f"High ratio: {actual:.1f} {label} per provider, "
            f"above the maximum of {band.maximum:g}. {band.optimal:g} would be more efficient."
        )
    return f"Good ratio of {actual:.1f} {label} per provider (optimal {band.optimal:g})."


def score_ratio(key: str, actual: float, band: BenchmarkBand, tolerance_fraction: float) -> RatioResult:
    """Score a single ratio against its band."""
    raw, assessment = score_against_band(actual, band, tolerance_fraction)
    score = clamp_score(raw)
    return RatioResult(
        key=key,
        actual=actual,
        optimal=band.optimal,
        band=band,
        score=score,
        assessment=assessment,
        status=status_for_score(score),
        recommendation=_ratio_message(key, actual, band, assessment),
    )


def _no_provider_ratio(key: str, band: BenchmarkBand) -> RatioResult:
    return RatioResult(
        key=key,
        actual=0.0,
        optimal=band.optimal,
        band=band,
        score=0,
        assessment=Assessment.NO_PROVIDER,
        status=Status.MISSING,
        recommendation=NO_PROVIDER_MESSAGE,
    )


def evaluate_staffing_ratios(
    classification: StaffClassification,
    exam_room_count: int,
    practice_type: PracticeType,
    benchmarks: ResolvedBenchmarks,
    config: Optional[TuningConfig] = None,
) -> StaffingAnalysis:
    """Compute and score the per-provider ratios.

    Args:
        classification: Role partition of the roster.
        exam_room_count: Number of valid exam rooms.
        practice_type: Selects the ratio bands.
        benchmarks: Resolved benchmarks.
        config: Tuning constants (optimal tolerance).

    Returns:
        StaffingAnalysis. Never raises for zero providers.
    """
    config = config or TuningConfig()
    bands = benchmarks.staffing_for(practice_type)
    analysis = StaffingAnalysis(classification=classification)

    providers = classification.providers_count
    if providers == 0:
        for key in RATIO_KEYS:
            analysis.ratios[key] = _no_provider_ratio(key, bands[key])
        analysis.recommendations.append(NO_PROVIDER_MESSAGE)
        return analysis

    actuals = {
        CLINICAL_ASSISTANT_RATIO: classification.clinical_assistants_count / providers,
        FRONTDESK_RATIO: classification.frontdesk_count / providers,
        SUPPORT_TOTAL_RATIO: classification.support_total_count / providers,
        EXAM_ROOM_RATIO: exam_room_count / providers,
    }
    for key in RATIO_KEYS:
        analysis.ratios[key] = score_ratio(key, actuals[key], bands[key], config.optimal_tolerance)

    providers_fte = classification.providers_fte
    if providers_fte > 0:
        fte_actuals = {
            "clinical_assistant_fte_ratio": classification.clinical_assistants_fte / providers_fte,
            "frontdesk_fte_ratio": classification.frontdesk_fte / providers_fte,
            "support_total_fte_ratio": classification.support_total_fte / providers_fte,
        }
        for key, band_key in FTE_RATIO_KEYS.items():
            result = score_ratio(band_key, fte_actuals[key], bands[band_key], config.optimal_tolerance)
            result.key = key
            analysis.fte_ratios[key] = result

    scores = [analysis.ratios[key].score for key in SCORE_KEYS]
    analysis.overall_score = round(sum(scores) / len(scores))

    analysis.recommendations = [
        r.recommendation for r in analysis.ratios.values()
        if r.assessment != Assessment.OPTIMAL
    ]
    return analysis
