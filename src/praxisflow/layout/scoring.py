"""Layout scoring: room sizes, circulation distances, flow breakdown.

The efficiency score starts at a base of 50, gains or loses points for
the walking distance between key room types, and loses a fixed penalty
for each missing essential room (reception, waiting, exam). Rooms with
unusable geometry are excluded from every computation and reported as
issues.

Example usage:
    scorer = LayoutScorer(DistanceModel(), TuningConfig())
    analysis = scorer.score(facility.rooms, resolver.resolve())
    analysis.efficiency.score, analysis.room_size_score
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from praxisflow.benchmarks.bands import (
    DEFAULT_OPTIMAL_TOLERANCE, BenchmarkBand, DistanceGuideline, SourceCitation,
    score_against_band,
)
from praxisflow.benchmarks.knowledge import Artifact
from praxisflow.benchmarks.resolver import ResolvedBenchmarks
from praxisflow.core.config import TuningConfig
from praxisflow.core.entities import Assessment, PracticeZone, RoomType, Severity, Status
from praxisflow.core.errors import InputDataError
from praxisflow.core.facility import RoomSpec
from praxisflow.core.scores import ScoreItem, ScoreResult, clamp_score, status_for_score
from praxisflow.core.units import LengthToArea, area_sq_m
from praxisflow.layout.distance import DistanceModel, FlowCost, rooms_by_type

logger = logging.getLogger(__name__)

__all__ = [
    "score_against_band",
    "evaluate_room_size",
    "RoomSizeAnalysis",
    "LayoutIssue",
    "LayoutFlowBreakdown",
    "LayoutRecommendation",
    "LayoutAnalysis",
    "LayoutScorer",
]

ROOMS_UNIT = "rooms"
METERS_UNIT = "m"

# (guideline key, source type, destination type)
CIRCULATION_PAIRS = (
    ("reception_waiting", RoomType.RECEPTION, RoomType.WAITING),
    ("waiting_exam", RoomType.EXAM, RoomType.WAITING),
    ("exam_lab", RoomType.EXAM, RoomType.LAB),
)

PATIENT_FLOW = (RoomType.RECEPTION, RoomType.WAITING, RoomType.EXAM, RoomType.RECEPTION)
STAFF_FLOW = (RoomType.EXAM, RoomType.OFFICE, RoomType.EXAM)
LAB_LOOP = (RoomType.EXAM, RoomType.LAB, RoomType.EXAM)

# Breakdown targets used for tips only
OPTIMAL_PATIENT_FLOW_M = 15.0
OPTIMAL_STERI_LOOP_M = 10.0
MAX_TIPS = 6


@dataclass
class RoomSizeAnalysis:
    """Size evaluation of one room against its type's band."""
    room_id: str
    room_name: str
    room_type: RoomType
    area_sq_m: float
    score: Optional[int]
    assessment: Optional[Assessment]
    status: Status
    detail: str
    source: str = ""
    citations: Tuple[SourceCitation, ...] = ()
    from_knowledge: bool = False
    zone: Optional[PracticeZone] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "room_id": self.room_id,
            "room_name": self.room_name,
            "room_type": self.room_type.value,
            "zone": self.zone.value if self.zone else None,
            "area_sq_m": round(self.area_sq_m, 1),
            "score": self.score,
            "assessment": self.assessment.value if self.assessment else None,
            "status": self.status.value,
            "detail": self.detail,
            "source": self.source,
            "from_knowledge": self.from_knowledge,
            "citations": [c.to_dict() for c in self.citations],
        }


@dataclass
class LayoutIssue:
    """Machine-readable layout problem."""
    severity: Severity
    code: str
    title: str
    detail: str
    current: float
    target: Optional[float] = None
    unit: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "severity": self.severity.value,
            "code": self.code,
            "title": self.title,
            "detail": self.detail,
            "current": self.current,
            "target": self.target,
            "unit": self.unit,
        }


@dataclass
class LayoutFlowBreakdown:
    """Idealised walking distances through the practice (metres)."""
    patient_flow_m: float = 0.0
    staff_motion_m: float = 0.0
    steri_loop_m: float = 0.0
    lab_loop_m: float = 0.0
    cross_floor_penalty_m: float = 0.0
    privacy_risk: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "patient_flow_m": round(self.patient_flow_m, 1),
            "staff_motion_m": round(self.staff_motion_m, 1),
            "steri_loop_m": round(self.steri_loop_m, 1),
            "lab_loop_m": round(self.lab_loop_m, 1),
            "cross_floor_penalty_m": round(self.cross_floor_penalty_m, 1),
            "privacy_risk": self.privacy_risk,
        }


@dataclass
class LayoutRecommendation:
    """Templated layout recommendation, optionally backed by a rule artifact."""
    text: str
    priority: Severity
    citations: Tuple[SourceCitation, ...] = ()
    from_knowledge: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "priority": self.priority.value,
            "from_knowledge": self.from_knowledge,
            "citations": [c.to_dict() for c in self.citations],
        }


@dataclass
class LayoutAnalysis:
    """Complete layout evaluation.

    Attributes:
        efficiency: Circulation and presence score with per-pair items.
        room_analyses: One entry per valid room.
        room_size_score: Mean room size score, None without scoreable rooms.
        breakdown: Flow distances (informational, not scored).
        issues: Missing rooms, privacy, cross-floor and geometry problems.
        tips: Short improvement hints (at most six).
        recommendations: Templated recommendations with provenance.
    """
    efficiency: ScoreResult
    room_analyses: List[RoomSizeAnalysis] = field(default_factory=list)
    room_size_score: Optional[int] = None
    breakdown: LayoutFlowBreakdown = field(default_factory=LayoutFlowBreakdown)
    issues: List[LayoutIssue] = field(default_factory=list)
    tips: List[str] = field(default_factory=list)
    recommendations: List[LayoutRecommendation] = field(default_factory=list)

    @property
    def efficiency_score(self) -> int:
        return self.efficiency.score

    def to_dict(self) -> Dict[str, Any]:
        return {
            "efficiency_score": self.efficiency.score,
            "efficiency": self.efficiency.to_dict(),
            "room_size_score": self.room_size_score,
            "room_analyses": [r.to_dict() for r in self.room_analyses],
            "breakdown": self.breakdown.to_dict(),
            "issues": [i.to_dict() for i in self.issues],
            "tips": list(self.tips),
            "recommendations": [r.to_dict() for r in self.recommendations],
        }


def _fmt(value: float) -> str:
    return f"{value:g}"


def evaluate_room_size(
    room: RoomSpec,
    band: Optional[BenchmarkBand],
    length_to_area: LengthToArea = area_sq_m,
    tolerance_fraction: float = DEFAULT_OPTIMAL_TOLERANCE,
    zone: Optional[PracticeZone] = None,
) -> RoomSizeAnalysis:
    """Score a room's area against the band for its type.

    Args:
        room: A room with valid geometry.
        band: Size band for the room's type; None if no benchmark exists.
        length_to_area: Converts width and height to square metres.
        tolerance_fraction: Optimal plateau half-width.
        zone: Floor plan zone of the room type, passed through to the result.

    Returns:
        RoomSizeAnalysis with the literal comparison in `detail`.
    """
    area = round(length_to_area(room.width, room.height), 1)
    common = dict(
        room_id=room.id,
        room_name=room.display_name,
        room_type=room.room_type,
        area_sq_m=area,
        zone=zone,
    )

    if band is None:
        return RoomSizeAnalysis(
            score=None, assessment=None, status=Status.MISSING,
            detail=f"{area:.1f} m², no size benchmark for {room.room_type.value}",
            **common,
        )

    raw, assessment = score_against_band(area, band, tolerance_fraction)
    score = clamp_score(raw)

    if assessment == Assessment.UNDERSIZED:
        deficit = (band.minimum - area) / band.minimum * 100 if band.minimum > 0 else 100.0
        detail = (
            f"{area:.1f} m² is {deficit:.0f}% below the minimum of "
            f"{_fmt(band.minimum)} m² ({band.source})"
        )
    elif assessment == Assessment.OVERSIZED:
        excess = (area - band.maximum) / band.maximum * 100 if band.maximum > 0 else 100.0
        detail = (
            f"{area:.1f} m² is {excess:.0f}% above the maximum of "
            f"{_fmt(band.maximum)} m²"
        )
    else:
        detail = (
            f"{area:.1f} m² within {_fmt(band.minimum)}-{_fmt(band.maximum)} m² "
            f"(optimal {_fmt(band.optimal)} m²)"
        )

    return RoomSizeAnalysis(
        score=score,
        assessment=assessment,
        status=status_for_score(score),
        detail=detail,
        source=band.source,
        citations=band.citations,
        from_knowledge=band.from_knowledge,
        **common,
    )


# Template text and rule-matching fragments for knowledge-backed recommendations
RECOMMENDATION_TEMPLATES = {
    "missing_reception": (
        ("empfang", "reception"),
        "Add a reception area. It is essential for patient check-in and first impressions.",
    ),
    "missing_waiting": (
        ("warte", "waiting"),
        "Add a waiting area. Patients need a comfortable space while they wait.",
    ),
    "missing_exam": (
        ("behandlungsraum", "exam"),
        "Add exam rooms. They are the core of the practice's clinical work.",
    ),
    "single_exam": (
        ("behandlungsräume", "anzahl"),
        "Consider additional exam rooms. Three to four per provider is the usual standard.",
    ),
    "no_lab": (
        ("labor", "lab"),
        "Consider a lab area. A lab next to the exam rooms shortens turnaround.",
    ),
}


def _matching_rule(rules: Sequence[Artifact], fragments: Tuple[str, ...]) -> Optional[Artifact]:
    for rule in rules:
        if rule.mentions(*fragments):
            return rule
    return None


def _recommendation(key: str, priority: Severity, rules: Sequence[Artifact]) -> LayoutRecommendation:
    fragments, template = RECOMMENDATION_TEMPLATES[key]
    rule = _matching_rule(rules, fragments)
    action = rule.payload.get("action") if rule is not None and isinstance(rule.payload, dict) else None
    if rule is not None and isinstance(action, str) and action.strip():
        return LayoutRecommendation(
            text=action, priority=priority,
            citations=tuple(rule.citations), from_knowledge=bool(rule.citations),
        )
    return LayoutRecommendation(text=template, priority=priority)


class LayoutScorer:
    """Scores room sizes and circulation for a floor plan.

    Args:
        distance_model: Distance computation; built from config if None.
        config: Tuning constants; defaults if None.
    """

    def __init__(
        self,
        distance_model: Optional[DistanceModel] = None,
        config: Optional[TuningConfig] = None,
    ):
        self.config = config or TuningConfig()
        self.distance_model = distance_model or DistanceModel.from_config(self.config)

    def score(
        self,
        rooms: Sequence[RoomSpec],
        benchmarks: ResolvedBenchmarks,
        length_to_area: LengthToArea = area_sq_m,
    ) -> LayoutAnalysis:
        """Evaluate a floor plan.

        Args:
            rooms: All rooms of the practice (invalid ones are reported).
            benchmarks: Resolved size bands and distance guidelines.
            length_to_area: Converts room dimensions to square metres.

        Returns:
            LayoutAnalysis
        """
        valid, issues = self._partition(rooms)
        groups = rooms_by_type(valid)

        room_analyses = [
            evaluate_room_size(
                room,
                benchmarks.room_sizes.get(room.room_type),
                length_to_area,
                self.config.optimal_tolerance,
                benchmarks.zone_for(room.room_type),
            )
            for room in valid
        ]
        scored = [r.score for r in room_analyses if r.score is not None]
        room_size_score = round(sum(scored) / len(scored)) if scored else None

        efficiency = self.efficiency(groups, benchmarks.distance_guidelines)
        issues = self._missing_room_issues(groups) + issues
        breakdown, flow_issues, tips = self.flow_breakdown(groups)
        issues.extend(flow_issues)

        return LayoutAnalysis(
            efficiency=efficiency,
            room_analyses=room_analyses,
            room_size_score=room_size_score,
            breakdown=breakdown,
            issues=issues,
            tips=tips[:MAX_TIPS],
            recommendations=self.recommendations(groups, benchmarks.layout_rules),
        )

    def _partition(self, rooms: Sequence[RoomSpec]) -> Tuple[List[RoomSpec], List[LayoutIssue]]:
        valid, issues = [], []
        for room in rooms:
            try:
                room.validate()
            except InputDataError as e:
                logger.info(f"Excluding room from layout scoring: {e}")
                issues.append(LayoutIssue(
                    severity=Severity.HIGH,
                    code="INVALID_GEOMETRY",
                    title="Room geometry unusable",
                    detail=str(e),
                    current=0,
                    target=None,
                    unit=METERS_UNIT,
                ))
            else:
                valid.append(room)
        return valid, issues

    def efficiency(
        self,
        groups: Dict[RoomType, List[RoomSpec]],
        guidelines: Dict[str, DistanceGuideline],
    ) -> ScoreResult:
        """Base score plus circulation bonuses minus presence penalties."""
        if not groups:
            return ScoreResult(score=0, items=[])

        cfg = self.config
        points = cfg.layout_base_score
        items = []

        for key, source_type, dest_type in CIRCULATION_PAIRS:
            guideline = guidelines.get(key)
            cost = self.distance_model.type_flow_cost(
                groups.get(source_type, []), groups.get(dest_type, [])
            )
            if cost is None or guideline is None:
                items.append(ScoreItem(
                    name=key, score=None, status=Status.MISSING,
                    detail=f"no {source_type.value} or {dest_type.value} room",
                ))
                continue

            within_optimal, within_max, beyond_max = cfg.circulation_bonuses[key]
            if cost.total <= guideline.optimal:
                bonus, status = within_optimal, Status.OPTIMAL
            elif cost.total <= guideline.maximum:
                bonus, status = within_max, Status.ACCEPTABLE
            else:
                bonus, status = beyond_max, Status.NEEDS_WORK
            points += bonus
            items.append(ScoreItem(
                name=key, score=None, status=status, points=bonus,
                detail=(
                    f"{cost.total:.1f} m (optimal <= {_fmt(guideline.optimal)} m, "
                    f"max {_fmt(guideline.maximum)} m)"
                ),
            ))

        for room_type, penalty in self._presence_penalties():
            if not groups.get(room_type):
                points -= penalty
                items.append(ScoreItem(
                    name=f"{room_type.value}_present", score=None, status=Status.MISSING,
                    detail=f"no {room_type.value} room", points=-penalty,
                ))

        return ScoreResult(score=clamp_score(points), items=items)

    def _presence_penalties(self) -> List[Tuple[RoomType, float]]:
        return [
            (RoomType.RECEPTION, self.config.missing_reception_penalty),
            (RoomType.WAITING, self.config.missing_waiting_penalty),
            (RoomType.EXAM, self.config.missing_exam_penalty),
        ]

    def _missing_room_issues(self, groups: Dict[RoomType, List[RoomSpec]]) -> List[LayoutIssue]:
        issues = []
        for room_type, _ in self._presence_penalties():
            if not groups.get(room_type):
                issues.append(LayoutIssue(
                    severity=Severity.CRITICAL,
                    code=f"MISSING_{room_type.name}",
                    title=f"No {room_type.value} room",
                    detail=f"The floor plan has no {room_type.value} room.",
                    current=0,
                    target=1,
                    unit=ROOMS_UNIT,
                ))
        return issues

    def flow_breakdown(
        self,
        groups: Dict[RoomType, List[RoomSpec]],
    ) -> Tuple[LayoutFlowBreakdown, List[LayoutIssue], List[str]]:
        """Idealised flow distances plus privacy and cross-floor findings."""
        rooms = [room for members in groups.values() for room in members]
        model = self.distance_model
        issues: List[LayoutIssue] = []
        tips: List[str] = []

        if not groups.get(RoomType.RECEPTION):
            tips.append("Add a reception area.")
        if not groups.get(RoomType.WAITING):
            tips.append("Add a waiting room.")
        if not groups.get(RoomType.EXAM):
            tips.append("Add at least one exam room.")

        has_steri = bool(groups.get(RoomType.STERILIZATION))
        has_lab = bool(groups.get(RoomType.LAB))

        patient = model.sequence_cost(rooms, PATIENT_FLOW)
        staff = model.sequence_cost(rooms, STAFF_FLOW)
        steri = FlowCost()
        if has_steri or has_lab:
            steri_type = RoomType.STERILIZATION if has_steri else RoomType.LAB
            steri = model.sequence_cost(rooms, (RoomType.EXAM, steri_type, RoomType.EXAM))
        lab = model.sequence_cost(rooms, LAB_LOOP) if has_lab else FlowCost()
        cross_floor = (patient + staff + steri + lab).cross_floor

        privacy_risk = False
        limit = self.config.privacy_distance
        for reception in groups.get(RoomType.RECEPTION, []):
            for waiting in groups.get(RoomType.WAITING, []):
                if reception.floor != waiting.floor:
                    continue
                gap = model.horizontal_distance(reception, waiting)
                if gap < limit:
                    privacy_risk = True
                    issues.append(LayoutIssue(
                        severity=Severity.HIGH,
                        code="PRIVACY_RISK",
                        title="No privacy zone at reception",
                        detail=f"Waiting room is {gap:.1f} m from reception, minimum {_fmt(limit)} m.",
                        current=round(gap, 1),
                        target=limit,
                        unit=METERS_UNIT,
                    ))

        if cross_floor > 0:
            issues.append(LayoutIssue(
                severity=Severity.MEDIUM,
                code="CROSS_FLOOR_PENALTY",
                title="Floor changes lengthen walking paths",
                detail=f"Rooms on different floors add {cross_floor:.0f} m of walking.",
                current=round(cross_floor),
                unit=METERS_UNIT,
            ))
            tips.append("Place rooms that work together on the same floor.")

        if not has_steri and not has_lab:
            issues.append(LayoutIssue(
                severity=Severity.MEDIUM,
                code="NO_STERI_OR_LAB",
                title="No sterilisation or lab room",
                detail="The floor plan has neither a sterilisation nor a lab room.",
                current=0,
                target=1,
                unit=ROOMS_UNIT,
            ))

        if not groups.get(RoomType.OFFICE):
            issues.append(LayoutIssue(
                severity=Severity.LOW,
                code="NO_OFFICE",
                title="No office",
                detail="No office for administrative work and consultations.",
                current=0,
                target=1,
                unit=ROOMS_UNIT,
            ))

        if patient.total > OPTIMAL_PATIENT_FLOW_M:
            tips.append(
                f"Shorten the patient path (currently {patient.total:.0f} m, "
                f"target under {_fmt(OPTIMAL_PATIENT_FLOW_M)} m)."
            )
        if privacy_risk:
            tips.append("Increase the distance between reception and waiting room for privacy.")
        if steri.total > OPTIMAL_STERI_LOOP_M:
            tips.append("Move sterilisation closer to the exam rooms.")

        breakdown = LayoutFlowBreakdown(
            patient_flow_m=patient.total,
            staff_motion_m=staff.total,
            steri_loop_m=steri.total,
            lab_loop_m=lab.total,
            cross_floor_penalty_m=cross_floor,
            privacy_risk=privacy_risk,
        )
        return breakdown, issues, tips

    def recommendations(
        self,
        groups: Dict[RoomType, List[RoomSpec]],
        layout_rules: Sequence[Artifact],
    ) -> List[LayoutRecommendation]:
        """Room-presence recommendations, preferring knowledge-base rule text."""
        exam_count = len(groups.get(RoomType.EXAM, []))
        result = []

        if not groups.get(RoomType.RECEPTION):
            result.append(_recommendation("missing_reception", Severity.CRITICAL, layout_rules))
        if not groups.get(RoomType.WAITING):
            result.append(_recommendation("missing_waiting", Severity.CRITICAL, layout_rules))
        if exam_count == 0:
            result.append(_recommendation("missing_exam", Severity.CRITICAL, layout_rules))
        elif exam_count == 1:
            result.append(_recommendation("single_exam", Severity.HIGH, layout_rules))
        if not groups.get(RoomType.LAB) and exam_count > 0:
            result.append(_recommendation("no_lab", Severity.MEDIUM, layout_rules))
        if not groups.get(RoomType.OFFICE):
            result.append(LayoutRecommendation(
                text="Consider an office for consultations and administrative work.",
                priority=Severity.LOW,
            ))

        if not result:
            result.append(LayoutRecommendation(
                text="All essential room types are present. Focus on room placement and sizing.",
                priority=Severity.LOW,
            ))
        return result
