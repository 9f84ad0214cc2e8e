"""Workflow friction analysis.

Scores declared care pathways for excess motion. Each step is measured
with the DistanceModel (floor penalty included), banded, and given a
friction score. A workflow loses points for a long total distance, a
long average step and every step that walks back along a room pair
already used.

Example usage:
    analyzer = WorkflowFrictionAnalyzer()
    result = analyzer.analyze_workflows(facility.workflows, facility.rooms)
    for rec in result.recommendations:
        print(rec.priority.value, rec.title)
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from praxisflow.core.config import TuningConfig
from praxisflow.core.entities import (
    DistanceBand, FlowKind, RecommendationCategory, RoomType, Severity,
)
from praxisflow.core.facility import RoomSpec, Workflow, WorkflowStep
from praxisflow.core.scores import clamp_score
from praxisflow.layout.distance import DistanceModel

logger = logging.getLogger(__name__)

UNKNOWN_ROOM_NAME = "unknown"
MAX_RECOMMENDATIONS = 5
TOP_STEPS = 3
LOW_SCORE_THRESHOLD = 70
HIGH_CONNECTION_COST = 12.0


def _weight(step: WorkflowStep) -> float:
    return step.weight if step.weight is not None else 1.0


def _pair_key(step: WorkflowStep) -> Tuple[str, str]:
    return tuple(sorted((step.from_room_id, step.to_room_id)))


@dataclass
class StepAnalysis:
    """Measured cost of one workflow step."""
    step_index: int
    step_id: Optional[str]
    from_room_id: str
    to_room_id: str
    from_room_name: str
    to_room_name: str
    distance_m: float
    distance_band: DistanceBand
    is_floor_change: bool
    friction_score: float
    is_backtrack: bool = False
    resolved: bool = True
    from_room_type: Optional[RoomType] = None
    to_room_type: Optional[RoomType] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step_index": self.step_index,
            "step_id": self.step_id,
            "from_room_id": self.from_room_id,
            "to_room_id": self.to_room_id,
            "from_room_name": self.from_room_name,
            "to_room_name": self.to_room_name,
            "distance_m": self.distance_m,
            "distance_band": self.distance_band.value,
            "is_floor_change": self.is_floor_change,
            "friction_score": self.friction_score,
            "is_backtrack": self.is_backtrack,
            "resolved": self.resolved,
        }


@dataclass
class WorkflowAnalysisResult:
    """Friction analysis of one workflow.

    Attributes:
        total_distance_m: Sum of step distances (resolved steps only).
        average_step_m: total_distance_m divided by the resolved step count.
        motion_waste_index: 0-100, higher means more wasted motion.
        score: 100 - motion_waste_index.
        top_steps: The three steps with the highest friction.
    """
    workflow_id: str
    workflow_name: str
    actor_type: FlowKind
    total_distance_m: float
    average_step_m: float
    distance_band_counts: Dict[str, int]
    floor_change_count: int
    backtracking_count: int
    motion_waste_index: int
    score: int
    top_steps: List[StepAnalysis] = field(default_factory=list)
    steps: List[StepAnalysis] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "workflow_id": self.workflow_id,
            "workflow_name": self.workflow_name,
            "actor_type": self.actor_type.value,
            "total_distance_m": self.total_distance_m,
            "average_step_m": self.average_step_m,
            "distance_band_counts": dict(self.distance_band_counts),
            "floor_change_count": self.floor_change_count,
            "backtracking_count": self.backtracking_count,
            "motion_waste_index": self.motion_waste_index,
            "score": self.score,
            "top_steps": [s.to_dict() for s in self.top_steps],
            "steps": [s.to_dict() for s in self.steps],
        }


@dataclass
class Recommendation:
    """Templated workflow recommendation."""
    id: str
    category: RecommendationCategory
    priority: Severity
    title: str
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "category": self.category.value,
            "priority": self.priority.value,
            "title": self.title,
            "description": self.description,
        }


@dataclass
class WorkflowsAnalysis:
    """All workflows of a practice."""
    workflows: List[WorkflowAnalysisResult] = field(default_factory=list)
    overall_score: int = 100
    overall_motion_waste_index: int = 0
    recommendations: List[Recommendation] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall_score": self.overall_score,
            "overall_motion_waste_index": self.overall_motion_waste_index,
            "workflows": [w.to_dict() for w in self.workflows],
            "recommendations": [r.to_dict() for r in self.recommendations],
        }


@dataclass
class ConnectionCost:
    """Cost of one connection drawn in the layout editor."""
    from_room_name: str
    to_room_name: str
    distance_m: float
    distance_band: DistanceBand
    weight: float
    cost: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from_room_name": self.from_room_name,
            "to_room_name": self.to_room_name,
            "distance_m": self.distance_m,
            "distance_band": self.distance_band.value,
            "weight": self.weight,
            "cost": self.cost,
        }


@dataclass
class ConnectionAnalysis:
    """Cost summary of the editor's ad-hoc room connections."""
    workflow_cost_total: float
    workflow_score: int
    top_connections: List[ConnectionCost] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "workflow_cost_total": self.workflow_cost_total,
            "workflow_score": self.workflow_score,
            "top_connections": [c.to_dict() for c in self.top_connections],
            "recommendations": list(self.recommendations),
        }


ONBOARDING_TIPS = (
    "Connect rooms in the layout editor to make workflows visible.",
    "Define check-in, waiting, treatment and check-out as one workflow.",
    "Start with the most frequent patient path: reception, waiting room, exam room.",
    "Keep materials at busy stations to shorten walking paths.",
    "Introduce standard checklists for recurring tasks.",
)


class WorkflowFrictionAnalyzer:
    """Measures motion waste in declared workflows.

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

    @staticmethod
    def _room_index(rooms: Sequence[RoomSpec]) -> Dict[str, RoomSpec]:
        return {room.id: room for room in rooms if room.is_valid}

    def analyze_step(self, step: WorkflowStep, rooms_by_id: Dict[str, RoomSpec]) -> StepAnalysis:
        """Distance, band and friction of a single step."""
        from_room = rooms_by_id.get(step.from_room_id)
        to_room = rooms_by_id.get(step.to_room_id)

        if from_room is None or to_room is None:
            return StepAnalysis(
                step_index=step.step_index,
                step_id=step.id,
                from_room_id=step.from_room_id,
                to_room_id=step.to_room_id,
                from_room_name=from_room.display_name if from_room else UNKNOWN_ROOM_NAME,
                to_room_name=to_room.display_name if to_room else UNKNOWN_ROOM_NAME,
                distance_m=0.0,
                distance_band=DistanceBand.SHORT,
                is_floor_change=False,
                friction_score=0.0,
                resolved=False,
            )

        distance = round(self.distance_model.distance(from_room, to_room), 1)
        band = step.distance_band_override or self.distance_model.classify(distance)
        floor_change = from_room.floor != to_room.floor
        multiplier = self.config.floor_change_multiplier if floor_change else 1.0

        return StepAnalysis(
            step_index=step.step_index,
            step_id=step.id,
            from_room_id=step.from_room_id,
            to_room_id=step.to_room_id,
            from_room_name=from_room.display_name,
            to_room_name=to_room.display_name,
            distance_m=distance,
            distance_band=band,
            is_floor_change=floor_change,
            friction_score=round(distance * _weight(step) * multiplier, 1),
            from_room_type=from_room.room_type,
            to_room_type=to_room.room_type,
        )

    def motion_waste_index(self, total: float, average: float, backtracks: int) -> int:
        cfg = self.config
        total_term = min(cfg.total_distance_cap, (total - cfg.optimal_total_distance) * cfg.total_distance_factor)
        average_term = min(cfg.average_step_cap, (average - cfg.optimal_average_step) * cfg.average_step_factor)
        waste = max(0.0, total_term) + max(0.0, average_term) + cfg.backtrack_penalty * backtracks
        return clamp_score(waste)

    def analyze_workflow(self, workflow: Workflow, rooms: Sequence[RoomSpec]) -> WorkflowAnalysisResult:
        """Analyse one workflow.

        Steps are ordered by step_index (stable for equal indices). Steps
        that reference unknown rooms are reported with `resolved=False`
        and contribute nothing to the distance figures.
        """
        rooms_by_id = self._room_index(rooms)
        ordered = sorted(workflow.steps, key=lambda s: s.step_index)

        steps = []
        seen_pairs = set()
        for step in ordered:
            analysis = self.analyze_step(step, rooms_by_id)
            pair = _pair_key(step)
            if analysis.resolved and pair in seen_pairs:
                analysis.is_backtrack = True
            if analysis.resolved:
                seen_pairs.add(pair)
            steps.append(analysis)

        resolved = [s for s in steps if s.resolved]
        unresolved = len(steps) - len(resolved)
        if unresolved:
            logger.info(f"Workflow {workflow.id}: {unresolved} step(s) reference unknown rooms")

        total = round(sum(s.distance_m for s in resolved), 1)
        average = round(total / len(resolved), 1) if resolved else 0.0
        band_counts = {band.value: 0 for band in DistanceBand}
        for s in resolved:
            band_counts[s.distance_band.value] += 1
        floor_changes = sum(1 for s in resolved if s.is_floor_change)
        backtracks = sum(1 for s in steps if s.is_backtrack)

        waste = self.motion_waste_index(total, average, backtracks)
        # sorted() is stable, so equal friction keeps step order
        top = sorted(steps, key=lambda s: s.friction_score, reverse=True)[:TOP_STEPS]

        return WorkflowAnalysisResult(
            workflow_id=workflow.id,
            workflow_name=workflow.name,
            actor_type=workflow.actor_type,
            total_distance_m=total,
            average_step_m=average,
            distance_band_counts=band_counts,
            floor_change_count=floor_changes,
            backtracking_count=backtracks,
            motion_waste_index=waste,
            score=100 - waste,
            top_steps=top,
            steps=steps,
        )

    def generate_recommendations(self, results: Sequence[WorkflowAnalysisResult]) -> List[Recommendation]:
        """Rule-based recommendations, at most five, in a fixed order."""
        recommendations = []

        for wf in results:
            long_steps = [s for s in wf.steps if s.resolved and s.distance_band == DistanceBand.LONG]
            if long_steps:
                first = long_steps[0]
                recommendations.append(Recommendation(
                    id=f"long-distance-{wf.workflow_id}",
                    category=RecommendationCategory.DISTANCE,
                    priority=Severity.HIGH,
                    title="Shorten long walks",
                    description=(
                        f"The walk from \"{first.from_room_name}\" to \"{first.to_room_name}\" "
                        f"is {first.distance_m} m. Place these rooms closer together or keep "
                        f"materials at the point of use."
                    ),
                ))

            if wf.floor_change_count > 0:
                recommendations.append(Recommendation(
                    id=f"floor-change-{wf.workflow_id}",
                    category=RecommendationCategory.FLOOR,
                    priority=Severity.HIGH,
                    title="Avoid floor changes",
                    description=(
                        f"{wf.floor_change_count} floor change(s) in \"{wf.workflow_name}\". "
                        f"Each costs about {self.distance_model.floor_penalty:g} m extra. "
                        f"Check whether all steps fit on one level."
                    ),
                ))

            if wf.backtracking_count > 0:
                recommendations.append(Recommendation(
                    id=f"backtrack-{wf.workflow_id}",
                    category=RecommendationCategory.BACKTRACKING,
                    priority=Severity.MEDIUM,
                    title="Avoid walking back",
                    description=(
                        f"{wf.backtracking_count} step(s) repeat a room pair already walked. "
                        f"Batch tasks so each pair is walked once."
                    ),
                ))

        touches_reception = any(
            RoomType.RECEPTION in (s.from_room_type, s.to_room_type)
            for wf in results for s in wf.steps
        )
        if touches_reception:
            recommendations.append(Recommendation(
                id="digital-intake",
                category=RecommendationCategory.DIGITAL,
                priority=Severity.LOW,
                title="Digital intake forms",
                description=(
                    "Let patients fill in forms online before the visit to cut "
                    "waiting and walking at reception."
                ),
            ))

        if any(wf.score < LOW_SCORE_THRESHOLD for wf in results):
            recommendations.append(Recommendation(
                id="satellite-materials",
                category=RecommendationCategory.PROCESS,
                priority=Severity.MEDIUM,
                title="Set up material satellites",
                description=(
                    "Store frequently used materials near the exam rooms to reduce "
                    "trips to sterilisation and storage."
                ),
            ))

        return recommendations[:MAX_RECOMMENDATIONS]

    def analyze_workflows(self, workflows: Sequence[Workflow], rooms: Sequence[RoomSpec]) -> WorkflowsAnalysis:
        """Analyse every workflow that has steps.

        Returns:
            WorkflowsAnalysis with mean score and waste index; score 100
            when no workflow has steps.
        """
        results = [self.analyze_workflow(wf, rooms) for wf in workflows if wf.steps]
        analysis = WorkflowsAnalysis(
            workflows=results,
            recommendations=self.generate_recommendations(results),
        )
        if results:
            analysis.overall_score = round(sum(r.score for r in results) / len(results))
            analysis.overall_motion_waste_index = round(
                sum(r.motion_waste_index for r in results) / len(results)
            )
        return analysis

    def analyze_connections(
        self,
        connections: Sequence[WorkflowStep],
        rooms: Sequence[RoomSpec],
    ) -> ConnectionAnalysis:
        """Cost of the connections drawn between rooms in the editor.

        Cost per connection is distance x weight x band weight. The score
        starts at 100 and loses up to 30 points for the average cost, plus
        fixed deductions for repeated pairs and long or medium connections.
        """
        cfg = self.config
        rooms_by_id = self._room_index(rooms)

        details = []
        kinds = []
        pair_counts: Dict[Tuple[str, str], int] = {}
        for connection in connections:
            from_room = rooms_by_id.get(connection.from_room_id)
            to_room = rooms_by_id.get(connection.to_room_id)
            if from_room is None or to_room is None:
                continue
            distance = self.distance_model.distance(from_room, to_room)
            band = connection.distance_band_override or self.distance_model.classify(distance)
            weight = _weight(connection)
            details.append(ConnectionCost(
                from_room_name=from_room.display_name,
                to_room_name=to_room.display_name,
                distance_m=round(distance, 1),
                distance_band=band,
                weight=weight,
                cost=distance * weight * self.distance_model.band_weight(band),
            ))
            kinds.append(connection.kind)
            pair = _pair_key(connection)
            pair_counts[pair] = pair_counts.get(pair, 0) + 1

        if not details:
            return ConnectionAnalysis(
                workflow_cost_total=0.0,
                workflow_score=cfg.empty_connections_score,
                recommendations=list(ONBOARDING_TIPS),
            )

        total = sum(d.cost for d in details)
        average = total / len(details)
        has_backtracking = any(count > 1 for count in pair_counts.values())
        long_connections = [d for d in details if d.distance_band == DistanceBand.LONG]
        medium_count = sum(1 for d in details if d.distance_band == DistanceBand.MEDIUM)

        score = round(100 - min(30.0, average * cfg.penalty_per_point / 3))
        if has_backtracking:
            score -= 3
        score -= 2 * len(long_connections)
        if medium_count > 2:
            score -= 2

        tips = []
        if long_connections:
            names = ", ".join(f"{d.from_room_name}→{d.to_room_name}" for d in long_connections)
            tips.append(f"Long walks ({names}): stage materials at these stations or batch tasks.")
        if has_backtracking:
            tips.append("Repeated back-and-forth: checklists and standard procedures reduce it.")
        if FlowKind.PATIENT not in kinds and FlowKind.STAFF in kinds:
            tips.append("Define the patient path: add check-in, waiting and treatment connections.")
        if average > HIGH_CONNECTION_COST:
            tips.append("High walking cost: review material staging and task batching at busy stations.")
        if not tips:
            tips.append("Good workflows. Keeping materials at the point of use improves them further.")
        if len(tips) < 3:
            tips.append("Lean tip: a kanban board (check-in, waiting, treatment, check-out) makes the workflow visible.")
        if len(tips) < 4 and medium_count > 0:
            tips.append("Medium distances: consider staging frequently used materials at intermediate stations.")

        for d in details:
            d.cost = round(d.cost, 1)
        top = sorted(details, key=lambda d: d.cost, reverse=True)[:TOP_STEPS]

        return ConnectionAnalysis(
            workflow_cost_total=round(total, 1),
            workflow_score=clamp_score(score),
            top_connections=top,
            recommendations=tips,
        )
