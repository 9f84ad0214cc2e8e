"""Tests for the capacity and wait-time projection."""

from dataclasses import replace

import pytest

from praxisflow.benchmarks.bands import BenchmarkBand, MetricValue, SourceCitation
from praxisflow.benchmarks.knowledge import Artifact, InMemoryKnowledgeStore
from praxisflow.benchmarks.resolver import BenchmarkResolver
from praxisflow.capacity import (
    CapacityWaitTimeSimulator,
    estimate_capacity,
    estimate_wait_time,
    harmony_score,
    staff_quality_multiplier,
    throughput_per_hour,
)
from praxisflow.core.config import TuningConfig
from praxisflow.core.entities import CapacityComparison, WaitBand

from conftest import make_staff


@pytest.fixture
def knowledge_benchmarks(benchmarks):
    """Defaults with a knowledge-backed checkup time of 25 minutes."""
    service_times = dict(benchmarks.service_times)
    service_times["checkup"] = BenchmarkBand(15, 30, 25, from_knowledge=True)
    return replace(benchmarks, service_times=service_times)


class TestThroughput:
    """Tests for throughput_per_hour()."""

    def test_default_without_knowledge(self, benchmarks):
        """Safe-default scheduling uses 3 patients per hour."""
        assert throughput_per_hour(benchmarks) == 3.0

    def test_from_service_time(self, knowledge_benchmarks):
        """Knowledge-backed scheduling: 60 / (checkup + buffer)."""
        assert throughput_per_hour(knowledge_benchmarks) == pytest.approx(2.0)

    def test_unrelated_service_time_ignored(self, benchmarks):
        """A knowledge-backed x-ray time leaves the default throughput."""
        service_times = dict(benchmarks.service_times)
        service_times["xray"] = BenchmarkBand(5, 15, 10, from_knowledge=True)
        snapshot = replace(benchmarks, service_times=service_times)

        assert throughput_per_hour(snapshot) == 3.0
        assert estimate_capacity(4, 1, 8.0, [], snapshot).capacity == 24

    def test_unrelated_artifact_from_store(self):
        """Only an x-ray artifact in the store: capacity is unchanged."""
        store = InMemoryKnowledgeStore({"scheduling": [
            Artifact(
                topic="service_time_xray",
                payload={"min": 5, "max": 15, "optimal": 10},
                citations=(SourceCitation("Terminplanung.docx"),),
            ),
        ]})
        snapshot = BenchmarkResolver(store=store).resolve()

        assert snapshot.service_times["xray"].from_knowledge is True
        assert snapshot.service_times["checkup"].from_knowledge is False
        assert throughput_per_hour(snapshot) == 3.0

    def test_from_buffer(self, benchmarks):
        """A knowledge-backed buffer alone also derives throughput."""
        snapshot = replace(benchmarks, buffer_minutes=MetricValue(10, from_knowledge=True))
        assert throughput_per_hour(snapshot) == pytest.approx(2.0)


class TestQualityMultiplier:
    """Tests for staff_quality_multiplier()."""

    def test_neutral(self):
        """Experience 3 and empty rosters give 1.0."""
        assert staff_quality_multiplier([]) == 1.0
        assert staff_quality_multiplier([make_staff("ZFA", experience_level=3)]) == 1.0

    def test_senior_and_junior(self):
        """Each level above or below 3 moves the multiplier by 0.1."""
        assert staff_quality_multiplier([make_staff("ZFA", experience_level=5)]) == pytest.approx(1.2)
        assert staff_quality_multiplier([make_staff("ZFA", experience_level=1)]) == pytest.approx(0.8)

    def test_clamped(self):
        """The multiplier stays within [0.6, 1.2]."""
        config = TuningConfig(experience_factor=0.5)
        staff = [make_staff("ZFA", experience_level=5)]
        assert staff_quality_multiplier(staff, config) == 1.2


class TestEstimateCapacity:
    """Tests for estimate_capacity()."""

    def test_scenario_a(self, scenario_a_staff, benchmarks):
        """Two rooms and one provider: min(20, 24) = 20."""
        estimate = estimate_capacity(2, 1, 8.0, scenario_a_staff, benchmarks)

        assert estimate.room_capacity == 20
        assert estimate.provider_capacity == pytest.approx(24.0)
        assert estimate.capacity == 20
        assert estimate.capacity_score == 83
        assert estimate.comparison == CapacityComparison.ABOVE_AVERAGE

    def test_no_exam_rooms(self, benchmarks):
        """Without exam rooms capacity and score are 0."""
        estimate = estimate_capacity(0, 2, 8.0, [], benchmarks)

        assert estimate.capacity == 0
        assert estimate.capacity_score == 0
        assert estimate.comparison == CapacityComparison.NO_EXAM_ROOMS

    def test_no_providers(self, benchmarks):
        """Without providers the rooms run at 60 % of the acceptable rate."""
        estimate = estimate_capacity(2, 0, 8.0, [], benchmarks)
        assert estimate.capacity == 12

    def test_at_least_one(self, benchmarks):
        """A tiny provider capacity still yields one patient."""
        estimate = estimate_capacity(1, 1, 0.1, [], benchmarks)
        assert estimate.capacity == 1

    def test_excellent(self, benchmarks):
        """Enough providers and senior staff reach the excellent band."""
        staff = [make_staff("ZFA", experience_level=5)]
        estimate = estimate_capacity(2, 2, 8.0, staff, benchmarks)

        assert estimate.capacity == 24
        assert estimate.capacity_score == 100
        assert estimate.comparison == CapacityComparison.EXCELLENT


class TestEstimateWaitTime:
    """Tests for estimate_wait_time()."""

    def test_scenario_a(self, scenario_a_staff):
        """Load 0.75 with layout 80 gives 20 x 1.1 = 22 minutes."""
        wait = estimate_wait_time(20, 15, 80, scenario_a_staff)

        assert wait.band == WaitBand.ACCEPTABLE
        assert wait.minutes == 22

    def test_idle_practice(self):
        """Zero volume is the excellent band."""
        wait = estimate_wait_time(20, 0, 100, [])
        assert wait.band == WaitBand.EXCELLENT
        assert wait.minutes == 10

    def test_overload_clamped(self):
        """Heavy overload is capped at 60 minutes."""
        wait = estimate_wait_time(10, 30, 0, [])
        assert wait.band == WaitBand.POOR
        assert wait.minutes == 60

    def test_zero_capacity_no_division_error(self):
        """Capacity 0 is treated as 1."""
        wait = estimate_wait_time(0, 5, 50, [])
        assert wait.load_ratio == 5.0
        assert 5 <= wait.minutes <= 60

    def test_relaxed_senior_staff(self):
        """Experience and low stress shorten the wait, never below 5."""
        staff = [make_staff("ZFA", experience_level=5, stress=0)]
        wait = estimate_wait_time(20, 0, 100, staff)

        assert wait.minutes == 7
        assert wait.staff_factor == pytest.approx(0.8 * 0.85)

    @pytest.mark.parametrize("volume", [0, 5, 14, 20, 25, 100])
    def test_bounded(self, volume):
        """Wait time always lies in [5, 60]."""
        wait = estimate_wait_time(20, volume, 40, [])
        assert 5 <= wait.minutes <= 60


class TestSimulator:
    """Tests for CapacityWaitTimeSimulator.run()."""

    def test_run(self, scenario_a_staff, benchmarks):
        """Capacity feeds the wait-time estimate."""
        analysis = CapacityWaitTimeSimulator().run(
            exam_rooms=2, providers=1, operating_hours=8.0, patient_volume=15,
            layout_score=80, staff=scenario_a_staff, benchmarks=benchmarks,
        )

        assert analysis.estimated_capacity == 20
        assert analysis.capacity_score == 83
        assert analysis.wait_time.minutes == 22
        assert analysis.harmony_score == 73.0
        assert analysis.to_dict()["benchmark_comparison"] == "above_average"

    @pytest.mark.parametrize("hours,volume", [(0, 10), (-1, 10), (8, -1)])
    def test_invalid_inputs(self, benchmarks, hours, volume):
        """Non-positive hours and negative volume are rejected."""
        with pytest.raises(ValueError):
            CapacityWaitTimeSimulator().run(1, 1, hours, volume, 50, [], benchmarks)


class TestHarmonyScore:
    """Tests for harmony_score()."""

    def test_empty_roster(self):
        """No staff gives the neutral 50."""
        assert harmony_score([], 3) == 50.0

    def test_scenario_a(self, scenario_a_staff):
        """Balanced rooms (+10), assistants (+8) and a front desk (+5)."""
        assert harmony_score(scenario_a_staff, 2) == 73.0

    def test_efficiency_and_stress(self, scenario_a_staff):
        """Efficiency lifts and stress lowers the score."""
        efficient = [replace(s, efficiency=70) for s in scenario_a_staff]
        stressed = [replace(s, stress=80) for s in scenario_a_staff]

        assert harmony_score(efficient, 2) == 79.0
        # -12 for mean stress 80, -10 because every member is above 70
        assert harmony_score(stressed, 2) == 51.0

    def test_unbalanced_rooms(self, scenario_a_staff):
        """Six exam rooms for one provider costs points."""
        assert harmony_score(scenario_a_staff, 6) == 58.0

    def test_bounded(self):
        """The score stays within [0, 100]."""
        staff = [make_staff("Hausmeister", stress=100, efficiency=0)]
        assert 0 <= harmony_score(staff, 0) <= 100
