"""Tests for the staffing demand calculation."""

import json

import pytest

from praxisflow.core.entities import FlagSeverity
from praxisflow.staffing import classify_staff_for_ratios
from praxisflow.staffing.demand import (
    DEMAND_RULES_VERSION,
    CurrentFte,
    DemandConfig,
    StaffingDemandInput,
    ceil_to_step,
    compute_staffing_demand,
    demand_for_practice,
    normalize_complexity,
)

from conftest import make_staff


def flag_ids(demand):
    return [f.id for f in demand.flags]


class TestReferencePractice:
    """Two providers, two chairs, 36 patients a day."""

    @pytest.fixture
    def demand(self):
        return compute_staffing_demand(
            StaffingDemandInput(providers_fte=2.0, chairs_simultaneous=2, patients_per_day=36),
            CurrentFte(assistant_total=1.0, chairside=1.0),
        )

    def test_derived(self, demand):
        """18 patients per chair sits halfway up the turnover scale."""
        assert demand.derived.chairs == 2
        assert demand.derived.patients_per_chair == 18
        assert demand.derived.turnover_index == 0.5
        assert demand.derived.support_factor == 0.275
        assert demand.derived.warnings == []

    def test_base(self, demand):
        base = demand.base
        assert base.chairside == pytest.approx(2.55)
        assert base.steri == pytest.approx(0.348)
        assert base.assistant_total == pytest.approx(2.898)
        assert base.frontdesk == pytest.approx(0.91)
        assert base.management == 0

    def test_buffered(self, demand):
        """Clinical roles get 12 %, admin roles 8 %."""
        assert demand.buffered.assistant_total == pytest.approx(3.2458)
        assert demand.buffered.frontdesk == pytest.approx(0.9828)

    def test_rounded(self, demand):
        """Every role rounds up to the next 0.1 FTE."""
        rounded = demand.rounded
        assert rounded.chairside == 2.9
        assert rounded.steri == 0.4
        assert rounded.assistant_total == 3.3
        assert rounded.frontdesk == 1.0
        assert rounded.total == 4.3
        assert demand.total_from_rounded_parts == 4.3

    def test_assistant_total_not_double_counted(self, demand):
        """Chairside and sterilisation are parts of the assistant total."""
        rounded = demand.rounded
        assert demand.total_from_rounded_parts < (
            rounded.chairside + rounded.steri + rounded.assistant_total + rounded.frontdesk
        )

    def test_flags(self, demand):
        """1.45 chairside FTE per chair is on target."""
        assert demand.chairside_per_chair == 1.45
        assert flag_ids(demand) == ["TARGET_CHAIRSIDE_GREEN"]
        assert demand.worst_severity == FlagSeverity.GREEN

    def test_headcount(self, demand):
        """Heads at an average 0.8 FTE contract."""
        assert demand.headcount["chairside"] == 4
        assert demand.headcount["steri"] == 1
        assert demand.headcount["assistant_total"] == 5
        assert demand.headcount["frontdesk"] == 2
        assert demand.headcount["total"] == 6

    def test_coverage(self, demand):
        """Coverage only for roles with a known current FTE."""
        assert demand.coverage == {"chairside": 0.34, "assistant_total": 0.3}

    def test_serialisable(self, demand):
        data = json.loads(json.dumps(demand.to_dict()))
        assert data["rules_version"] == DEMAND_RULES_VERSION
        assert data["rounded_fte"]["assistant_total"] == 3.3
        assert data["flags"][0]["severity"] == "green"
        assert data["is_practice_active"] is True


class TestEdgeCases:
    """Empty, partial and malformed inputs."""

    def test_all_zero(self):
        """Nothing in, nothing needed."""
        demand = compute_staffing_demand(StaffingDemandInput(providers_fte=0))

        assert demand.rounded.total == 0
        assert demand.rounded.frontdesk == 0
        assert demand.flags == []
        assert demand.is_practice_active is False
        assert demand.coverage is None
        assert set(demand.headcount.values()) == {0}
        assert demand.worst_severity is None

    def test_prophylaxis_only(self):
        """Prophylaxis chairs alone still need a front desk."""
        demand = compute_staffing_demand(
            StaffingDemandInput(providers_fte=0, prophylaxis_chairs=2)
        )

        assert demand.base.prophy == pytest.approx(1.8)
        assert demand.base.frontdesk == pytest.approx(0.5)
        assert demand.base.chairside == 0
        assert demand.is_practice_active is True

    @pytest.mark.parametrize("bad", [float("nan"), float("inf"), -3])
    def test_malformed_numbers_read_as_zero(self, bad):
        """Malformed inputs never raise."""
        demand = compute_staffing_demand(StaffingDemandInput(
            providers_fte=bad, chairs_simultaneous=bad, patients_per_day=bad,
        ))

        assert demand.derived.chairs == 0
        assert demand.derived.patients_per_day == 0
        assert demand.is_practice_active is False

    def test_rooms_fallback(self):
        """Without a chair count, chairs are rooms capped by providers."""
        demand = compute_staffing_demand(StaffingDemandInput(providers_fte=1.5, treatment_rooms=4))

        assert demand.derived.chairs == 2
        assert demand.derived.patients_per_day == 36
        assert len(demand.derived.warnings) == 2

    def test_rooms_without_provider(self):
        """Treatment rooms without a provider are not chairs in use."""
        demand = compute_staffing_demand(StaffingDemandInput(providers_fte=0, treatment_rooms=3))

        assert demand.derived.chairs == 0
        assert "ignored" in demand.derived.warnings[0]

    def test_management_for_large_practice(self):
        """A core team of 10 FTE or more adds half a manager."""
        demand = compute_staffing_demand(
            StaffingDemandInput(providers_fte=6, chairs_simultaneous=6, patients_per_day=120)
        )
        assert demand.base.management == 0.5
        assert demand.rounded.management > 0


class TestFlags:
    """Traffic-light flags on the recommended roster."""

    def test_chairside_red(self):
        """Simple cases at low turnover fall below 1.2 per chair."""
        demand = compute_staffing_demand(
            StaffingDemandInput(
                providers_fte=2, chairs_simultaneous=2, patients_per_day=20, complexity_level=-1,
            ),
            config=DemandConfig(clinical_buffer=0.0),
        )

        assert demand.rounded.chairside == 2.2
        assert demand.chairside_per_chair == 1.1
        assert "UNDERSTAFFED_CHAIRSIDE_RED" in flag_ids(demand)
        assert demand.worst_severity == FlagSeverity.RED

    def test_frontdesk_tight_for_volume(self):
        """35 patients a day on 0.65 front desk FTE is flagged yellow."""
        demand = compute_staffing_demand(
            StaffingDemandInput(providers_fte=1, chairs_simultaneous=2, patients_per_day=35),
            config=DemandConfig(admin_buffer=0.0, rounding_step_fte=0.01),
        )

        assert demand.rounded.frontdesk == 0.65
        assert "FRONTDESK_LOW_FOR_VOLUME_YELLOW" in flag_ids(demand)


class TestHelpers:
    """Rounding and clamping helpers."""

    def test_ceil_to_step_float_noise(self):
        """2.2 is already a multiple of 0.1."""
        assert ceil_to_step(2.2, 0.1) == pytest.approx(2.2)
        assert ceil_to_step(2.21, 0.1) == pytest.approx(2.3)

    def test_ceil_to_step_without_step(self):
        assert ceil_to_step(1.234, 0) == 1.234

    @pytest.mark.parametrize("level,expected", [
        (-5, -1), (0, 0), (0.5, 1), (1.4, 1), (7, 2), ("high", 0), (None, 0),
    ])
    def test_normalize_complexity(self, level, expected):
        assert normalize_complexity(level) == expected


class TestDemandForPractice:
    """Demand derived from a classified roster."""

    def test_scenario_a(self, scenario_a_staff):
        """One provider caps two exam rooms at one chair."""
        classification = classify_staff_for_ratios(scenario_a_staff)
        demand = demand_for_practice(classification, treatment_rooms=2, patients_per_day=15)

        assert demand.derived.chairs == 1
        assert demand.derived.patients_per_day == 15
        assert set(demand.coverage) == {"assistant_total", "frontdesk"}
        assert demand.coverage["assistant_total"] > 1

    def test_unknown_volume_estimated(self):
        """A zero patient volume is estimated from the chairs."""
        classification = classify_staff_for_ratios([make_staff("Zahnarzt", "p1")])
        demand = demand_for_practice(classification, treatment_rooms=3, patients_per_day=0)

        assert demand.derived.patients_per_day == 18
        assert demand.coverage["assistant_total"] == 0
