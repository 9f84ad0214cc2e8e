"""Pytest fixtures for praxisflow tests."""

import pytest

from praxisflow.benchmarks.resolver import StaticBenchmarks, reset_missing_topic_log
from praxisflow.core.config import TuningConfig
from praxisflow.core.entities import FlowKind, RoomType
from praxisflow.core.facility import (
    PracticeFacility, RoomSpec, StaffMember, Workflow, WorkflowStep,
)


def make_room(
    room_id: str,
    room_type: RoomType,
    x: float = 0.0,
    y: float = 0.0,
    width: float = 3.0,
    height: float = 3.0,
    floor: int = 0,
    name: str = "",
) -> RoomSpec:
    """Create a room in metres."""
    return RoomSpec(
        id=room_id,
        room_type=room_type,
        name=name,
        x=x,
        y=y,
        width=width,
        height=height,
        floor=floor,
    )


def make_staff(role: object, staff_id: str = "s", **kwargs) -> StaffMember:
    """Create a staff member with the given raw role."""
    return StaffMember(id=staff_id, raw_role=role, **kwargs)


@pytest.fixture(autouse=True)
def _reset_topic_log():
    """Each test starts with an empty missing-topic log."""
    reset_missing_topic_log()
    yield
    reset_missing_topic_log()


@pytest.fixture
def config() -> TuningConfig:
    """Default tuning constants."""
    return TuningConfig()


@pytest.fixture
def benchmarks():
    """Safe-default benchmark snapshot."""
    return StaticBenchmarks.defaults()


@pytest.fixture
def scenario_a_rooms() -> list:
    """Reception, waiting and two exam rooms, all within their size bands.

    Reception to waiting is about 4.5 m and exam rooms average about
    5.5 m to the waiting room, both inside the optimal guidelines.
    """
    return [
        make_room("reception", RoomType.RECEPTION, x=0, y=0, width=3, height=3.5),
        make_room("waiting", RoomType.WAITING, x=3.5, y=0, width=5, height=4.4),
        make_room("exam1", RoomType.EXAM, x=0, y=5, width=3, height=3.4),
        make_room("exam2", RoomType.EXAM, x=3.5, y=5, width=3, height=3.4),
    ]


@pytest.fixture
def scenario_a_staff() -> list:
    """One provider, two clinical assistants, one front desk."""
    return [
        make_staff("Zahnärztin", "p1"),
        make_staff("ZFA", "c1"),
        make_staff("Prophylaxe-Assistentin", "c2"),
        make_staff("Empfang", "f1"),
    ]


@pytest.fixture
def scenario_a_facility(scenario_a_rooms, scenario_a_staff) -> PracticeFacility:
    """Small dental practice with a patient workflow."""
    workflow = Workflow(
        id="wf1",
        name="Patient visit",
        actor_type=FlowKind.PATIENT,
        steps=(
            WorkflowStep("reception", "waiting", step_index=0),
            WorkflowStep("waiting", "exam1", step_index=1),
            WorkflowStep("exam1", "reception", step_index=2),
        ),
    )
    return PracticeFacility(
        rooms=scenario_a_rooms,
        staff=scenario_a_staff,
        workflows=[workflow],
        connections=[
            WorkflowStep("reception", "waiting", kind=FlowKind.PATIENT),
            WorkflowStep("waiting", "exam2", kind=FlowKind.PATIENT),
        ],
        operating_hours=8.0,
        patient_volume=15,
    )
