"""Pipeline entry point.

Runs every scorer over one practice and combines the results. The
report is a pure function of the facility, the resolved benchmarks and
the tuning config: two runs on the same input serialise to the same
bytes.

Example usage:
    resolver = BenchmarkResolver(store=my_store)
    report = analyze_practice(facility, resolver=resolver)
    print(report.aggregate.overall)
    payload = report.to_json()
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

from praxisflow.benchmarks.resolver import ResolvedBenchmarks, StaticBenchmarks
from praxisflow.capacity.simulator import CapacityAnalysis, CapacityWaitTimeSimulator
from praxisflow.core.config import TuningConfig
from praxisflow.core.entities import PracticeType, RoomType
from praxisflow.core.facility import PracticeFacility
from praxisflow.core.units import LengthToArea, area_sq_m
from praxisflow.layout.distance import DistanceModel
from praxisflow.layout.scoring import LayoutAnalysis, LayoutScorer
from praxisflow.results.combiner import AggregateScore, combine
from praxisflow.staffing.demand import StaffingDemand, demand_for_practice
from praxisflow.staffing.ratios import StaffingAnalysis, evaluate_staffing_ratios
from praxisflow.staffing.roles import classify_staff_for_ratios
from praxisflow.workflow.friction import (
    ConnectionAnalysis, WorkflowFrictionAnalyzer, WorkflowsAnalysis,
)

logger = logging.getLogger(__name__)


class BenchmarkSource(Protocol):
    def resolve(self) -> ResolvedBenchmarks:
        ...


@dataclass
class PracticeReport:
    """Complete analysis of one practice.

    Attributes:
        layout: Room sizes, circulation and flow breakdown.
        staffing: Ratio scores and role diagnostics.
        workflows: Friction analysis of declared workflows.
        connections: Cost of editor connections.
        capacity: Capacity and wait-time projection.
        aggregate: Weighted overall score.
        benchmarks: Snapshot the scores were computed against.
        staffing_demand: Recommended FTE per role; dental practices only.
    """
    layout: LayoutAnalysis
    staffing: StaffingAnalysis
    workflows: WorkflowsAnalysis
    connections: ConnectionAnalysis
    capacity: CapacityAnalysis
    aggregate: AggregateScore
    benchmarks: ResolvedBenchmarks
    staffing_demand: Optional[StaffingDemand] = None

    @property
    def overall_score(self) -> int:
        return self.aggregate.overall

    def to_dict(self, include_debug: bool = False) -> Dict[str, Any]:
        """Plain dict view.

        Args:
            include_debug: Add the PII-free staffing diagnostics (role
                histogram, unknown roles). The scores are identical
                either way.
        """
        return {
            "overall_score": self.aggregate.overall,
            "aggregate": self.aggregate.to_dict(),
            "layout": self.layout.to_dict(),
            "staffing": self.staffing.to_dict(include_debug=include_debug),
            "workflows": self.workflows.to_dict(),
            "connections": self.connections.to_dict(),
            "capacity": self.capacity.to_dict(),
            "staffing_demand": (
                self.staffing_demand.to_dict() if self.staffing_demand is not None else None
            ),
            "benchmarks": {
                "version": self.benchmarks.version,
                "from_knowledge": self.benchmarks.from_knowledge,
            },
        }

    def to_json(self, include_debug: bool = False, sort_keys: bool = True) -> str:
        return json.dumps(
            self.to_dict(include_debug=include_debug),
            sort_keys=sort_keys,
            ensure_ascii=False,
        )


def analyze_practice(
    facility: PracticeFacility,
    resolver: Optional[BenchmarkSource] = None,
    config: Optional[TuningConfig] = None,
    length_to_area: LengthToArea = area_sq_m,
) -> PracticeReport:
    """Score a practice end to end.

    Args:
        facility: Rooms, staff, workflows and operating figures.
        resolver: Benchmark source; safe defaults if None.
        config: Tuning constants; defaults if None.
        length_to_area: Converts room dimensions to square metres.

    Returns:
        PracticeReport

    Raises:
        TypeError: If facility is not a PracticeFacility.
    """
    if not isinstance(facility, PracticeFacility):
        raise TypeError(f"facility must be a PracticeFacility, got {type(facility).__name__}")

    config = config or TuningConfig()
    benchmarks = (resolver or StaticBenchmarks()).resolve()
    distance_model = DistanceModel.from_config(config)

    layout = LayoutScorer(distance_model, config).score(facility.rooms, benchmarks, length_to_area)

    exam_rooms = len(facility.rooms_of_type(RoomType.EXAM))
    classification = classify_staff_for_ratios(facility.staff)
    staffing = evaluate_staffing_ratios(
        classification, exam_rooms, facility.practice_type, benchmarks, config
    )

    demand = None
    if facility.practice_type == PracticeType.DENTAL:
        demand = demand_for_practice(classification, exam_rooms, facility.patient_volume)

    analyzer = WorkflowFrictionAnalyzer(distance_model, config)
    workflows = analyzer.analyze_workflows(facility.workflows, facility.rooms)
    connections = analyzer.analyze_connections(facility.connections, facility.rooms)

    capacity = CapacityWaitTimeSimulator(config).run(
        exam_rooms=exam_rooms,
        providers=classification.providers_count,
        operating_hours=facility.operating_hours,
        patient_volume=facility.patient_volume,
        layout_score=layout.efficiency_score,
        staff=facility.staff,
        benchmarks=benchmarks,
    )

    aggregate = combine(
        efficiency=layout.efficiency_score,
        room_size=layout.room_size_score,
        staffing=staffing.overall_score,
        capacity=capacity.capacity_score,
        weights=config.aggregate_weights(),
    )

    logger.debug(
        f"Practice scored: overall={aggregate.overall} layout={layout.efficiency_score} "
        f"rooms={layout.room_size_score} staffing={staffing.overall_score} "
        f"capacity={capacity.capacity_score}"
    )

    return PracticeReport(
        layout=layout,
        staffing=staffing,
        workflows=workflows,
        connections=connections,
        capacity=capacity,
        aggregate=aggregate,
        benchmarks=benchmarks,
        staffing_demand=demand,
    )
