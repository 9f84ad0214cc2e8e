"""Daily capacity and wait-time projection.

Closed-form heuristics, not a queueing model: capacity is the smaller of
what the exam rooms and what the providers can handle in a day, scaled
by staff experience; the wait time is picked from three load bands and
scaled by layout quality and staff state.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

from praxisflow.benchmarks.defaults import PATIENTS_PER_ROOM_PER_DAY
from praxisflow.benchmarks.resolver import ResolvedBenchmarks
from praxisflow.core.config import TuningConfig
from praxisflow.core.entities import CapacityComparison, RoleCategory, WaitBand
from praxisflow.core.facility import StaffMember
from praxisflow.staffing.roles import classify_raw_role

NEUTRAL_EXPERIENCE = 3.0
NEUTRAL_STRESS = 50.0
NEUTRAL_EFFICIENCY = 50.0
HIGH_STRESS = 70.0

# Load ratio upper bounds of the excellent and acceptable wait bands
EXCELLENT_LOAD = 0.7
ACCEPTABLE_LOAD = 1.0


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def mean_experience(staff: Sequence[StaffMember]) -> float:
    """Mean experience level, neutral (3) for an empty roster."""
    levels = [s.experience_level for s in staff if s.experience_level is not None]
    if not levels:
        return NEUTRAL_EXPERIENCE
    return sum(levels) / len(levels)


def mean_stress(staff: Sequence[StaffMember]) -> float:
    """Mean stress of staff that report one, neutral (50) otherwise."""
    values = [s.stress for s in staff if s.stress is not None]
    if not values:
        return NEUTRAL_STRESS
    return sum(values) / len(values)


def mean_efficiency(staff: Sequence[StaffMember]) -> float:
    values = [s.efficiency for s in staff if s.efficiency is not None]
    if not values:
        return NEUTRAL_EFFICIENCY
    return sum(values) / len(values)


def harmony_score(staff: Sequence[StaffMember], exam_rooms: int) -> float:
    """Team harmony 0-100, 50 for an empty roster.

    Starts at 50, moves with mean efficiency (+0.3 per point above 50)
    and mean stress (-0.4 per point above 50), then adds bonuses for a
    balanced exam-room and assistant mix per provider and for a staffed
    front desk. More than 30% of staff above stress 70 costs 10 points.
    """
    if not staff:
        return 50.0

    score = 50.0
    score += (mean_efficiency(staff) - NEUTRAL_EFFICIENCY) * 0.3
    score -= (mean_stress(staff) - NEUTRAL_STRESS) * 0.4

    categories = [classify_raw_role(s.raw_role) for s in staff]
    providers = categories.count(RoleCategory.PROVIDER)
    assistants = categories.count(RoleCategory.CLINICAL_ASSISTANT)

    if providers > 0 and exam_rooms > 0:
        rooms_per_provider = exam_rooms / providers
        if 1.5 <= rooms_per_provider <= 3:
            score += 10
        elif 1 <= rooms_per_provider <= 4:
            score += 5
        else:
            score -= 5

    if providers > 0 and assistants > 0 and 0.5 <= assistants / providers <= 2:
        score += 8

    if RoleCategory.FRONTDESK in categories:
        score += 5

    stressed = sum(1 for s in staff if s.stress is not None and s.stress > HIGH_STRESS)
    if stressed > len(staff) * 0.3:
        score -= 10

    return round(_clamp(score, 0, 100), 1)


def staff_quality_multiplier(staff: Sequence[StaffMember], config: Optional[TuningConfig] = None) -> float:
    config = config or TuningConfig()
    raw = 1 + config.experience_factor * (mean_experience(staff) - NEUTRAL_EXPERIENCE)
    return _clamp(raw, config.quality_min, config.quality_max)


def throughput_per_hour(benchmarks: ResolvedBenchmarks, config: Optional[TuningConfig] = None) -> float:
    """Patients per provider hour.

    Derived from the checkup service time plus buffer only when one of
    those two values came from the knowledge store; otherwise the
    configured default. Other service times do not affect throughput.
    """
    config = config or TuningConfig()
    checkup = benchmarks.service_times.get("checkup")
    if checkup is None:
        return config.default_throughput_per_hour
    if not (checkup.from_knowledge or benchmarks.buffer_minutes.from_knowledge):
        return config.default_throughput_per_hour
    minutes = checkup.optimal + benchmarks.buffer_minutes.value
    if minutes <= 0:
        return config.default_throughput_per_hour
    return 60.0 / minutes


@dataclass
class CapacityEstimate:
    """Daily patient capacity."""
    capacity: int
    capacity_score: int
    comparison: CapacityComparison
    room_capacity: float
    provider_capacity: float
    throughput_per_hour: float
    quality_multiplier: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "capacity": self.capacity,
            "capacity_score": self.capacity_score,
            "comparison": self.comparison.value,
            "room_capacity": round(self.room_capacity, 1),
            "provider_capacity": round(self.provider_capacity, 1),
            "throughput_per_hour": round(self.throughput_per_hour, 2),
            "quality_multiplier": round(self.quality_multiplier, 2),
        }


def estimate_capacity(
    exam_rooms: int,
    providers: int,
    operating_hours: float,
    staff: Sequence[StaffMember],
    benchmarks: ResolvedBenchmarks,
    config: Optional[TuningConfig] = None,
) -> CapacityEstimate:
    """Estimate patients per day.

    Args:
        exam_rooms: Number of valid exam rooms.
        providers: Provider headcount.
        operating_hours: Opening hours per day.
        staff: Whole roster, for the experience multiplier.
        benchmarks: Resolved benchmarks (scheduling section).
        config: Tuning constants.

    Returns:
        CapacityEstimate. Capacity is at least 1 whenever an exam room
        exists and 0 without exam rooms.
    """
    config = config or TuningConfig()
    throughput = throughput_per_hour(benchmarks, config)
    quality = staff_quality_multiplier(staff, config)

    if exam_rooms <= 0:
        return CapacityEstimate(
            capacity=0,
            capacity_score=0,
            comparison=CapacityComparison.NO_EXAM_ROOMS,
            room_capacity=0.0,
            provider_capacity=0.0,
            throughput_per_hour=throughput,
            quality_multiplier=quality,
        )

    per_room = PATIENTS_PER_ROOM_PER_DAY.acceptable
    room_capacity = exam_rooms * per_room
    provider_capacity = providers * throughput * operating_hours
    if provider_capacity > 0:
        base = min(room_capacity, provider_capacity)
    else:
        base = exam_rooms * math.floor(per_room * config.no_provider_room_factor)

    capacity = max(1, math.floor(base * quality))

    excellent = exam_rooms * PATIENTS_PER_ROOM_PER_DAY.excellent
    score = min(100, round(capacity / excellent * 100))
    if capacity >= 0.9 * excellent:
        comparison = CapacityComparison.EXCELLENT
    elif capacity >= 0.7 * excellent:
        comparison = CapacityComparison.ABOVE_AVERAGE
    else:
        comparison = CapacityComparison.BELOW_AVERAGE

    return CapacityEstimate(
        capacity=capacity,
        capacity_score=score,
        comparison=comparison,
        room_capacity=room_capacity,
        provider_capacity=provider_capacity,
        throughput_per_hour=throughput,
        quality_multiplier=quality,
    )


@dataclass
class WaitTimeEstimate:
    minutes: int
    band: WaitBand
    load_ratio: float
    efficiency_factor: float
    staff_factor: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "minutes": self.minutes,
            "band": self.band.value,
            "load_ratio": round(self.load_ratio, 2),
            "efficiency_factor": round(self.efficiency_factor, 2),
            "staff_factor": round(self.staff_factor, 2),
        }


def estimate_wait_time(
    capacity: int,
    patient_volume: int,
    layout_score: float,
    staff: Sequence[StaffMember],
    config: Optional[TuningConfig] = None,
) -> WaitTimeEstimate:
    """Projected average wait in minutes, clamped to [5, 60].

    Args:
        capacity: Daily capacity.
        patient_volume: Expected patients per day.
        layout_score: Layout efficiency 0-100; worse layouts wait longer.
        staff: Roster, for the experience and stress factors.
        config: Tuning constants.
    """
    config = config or TuningConfig()
    ratio = patient_volume / max(1, capacity)

    if ratio <= EXCELLENT_LOAD:
        base, band = 10.0, WaitBand.EXCELLENT
    elif ratio <= ACCEPTABLE_LOAD:
        base, band = 20.0, WaitBand.ACCEPTABLE
    else:
        base, band = 30.0 + 30.0 * (ratio - 1), WaitBand.POOR

    layout = _clamp(layout_score, 0, 100)
    efficiency_factor = 1 + config.efficiency_wait_factor * (100 - layout) / 100

    experience_factor = _clamp(
        1 + config.experience_factor * (NEUTRAL_EXPERIENCE - mean_experience(staff)),
        config.staff_wait_min,
        config.staff_wait_max,
    )
    stress_factor = 1 + config.stress_wait_factor * (mean_stress(staff) - NEUTRAL_STRESS) / 100
    staff_factor = experience_factor * stress_factor

    minutes = base * efficiency_factor * staff_factor
    minutes = int(_clamp(round(minutes), config.wait_min_minutes, config.wait_max_minutes))

    return WaitTimeEstimate(
        minutes=minutes,
        band=band,
        load_ratio=ratio,
        efficiency_factor=efficiency_factor,
        staff_factor=staff_factor,
    )


@dataclass
class CapacityAnalysis:
    """Capacity and wait-time projection for one practice."""
    capacity: CapacityEstimate
    wait_time: WaitTimeEstimate
    patient_volume: int
    operating_hours: float
    harmony_score: float = 50.0

    @property
    def capacity_score(self) -> int:
        return self.capacity.capacity_score

    @property
    def estimated_capacity(self) -> int:
        return self.capacity.capacity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "estimated_capacity": self.capacity.capacity,
            "capacity_score": self.capacity.capacity_score,
            "benchmark_comparison": self.capacity.comparison.value,
            "wait_time_minutes": self.wait_time.minutes,
            "wait_band": self.wait_time.band.value,
            "patient_volume": self.patient_volume,
            "operating_hours": self.operating_hours,
            "harmony_score": self.harmony_score,
            "capacity": self.capacity.to_dict(),
            "wait_time": self.wait_time.to_dict(),
        }


class CapacityWaitTimeSimulator:
    """Runs the capacity and wait-time heuristics together.

    Args:
        config: Tuning constants; defaults if None.
    """

    def __init__(self, config: Optional[TuningConfig] = None):
        self.config = config or TuningConfig()

    def run(
        self,
        exam_rooms: int,
        providers: int,
        operating_hours: float,
        patient_volume: int,
        layout_score: float,
        staff: Sequence[StaffMember],
        benchmarks: ResolvedBenchmarks,
    ) -> CapacityAnalysis:
        if not operating_hours > 0:
            raise ValueError("operating_hours must be positive")
        if patient_volume < 0:
            raise ValueError("patient_volume must be non-negative")

        capacity = estimate_capacity(
            exam_rooms, providers, operating_hours, staff, benchmarks, self.config
        )
        wait = estimate_wait_time(
            capacity.capacity, patient_volume, layout_score, staff, self.config
        )
        return CapacityAnalysis(
            capacity=capacity,
            wait_time=wait,
            patient_volume=patient_volume,
            operating_hours=operating_hours,
            harmony_score=harmony_score(staff, exam_rooms),
        )
