"""Facility records consumed by the scorers.

Rooms, staff and workflows are created and edited by external
collaborators. The core only reads them; it never mutates a record.
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from praxisflow.core.entities import (
    DistanceBand, FlowKind, PracticeType, RoomType, normalize_room_type,
)
from praxisflow.core.errors import InputDataError
from praxisflow.core.units import LayoutScale


@dataclass(frozen=True)
class RoomSpec:
    """A room on the practice floor plan.

    Position and dimensions are in metres. Geometry is not checked on
    construction so that bad rooms reach the scorer and get reported;
    call validate() before using a room in any computation.

    Attributes:
        id: Opaque room identifier.
        room_type: Canonical room type.
        name: Display name (may be empty).
        x: Left edge (metres).
        y: Top edge (metres).
        width: Horizontal extent (metres), must be > 0.
        height: Vertical extent (metres), must be > 0.
        floor: Level index (0 = ground floor).
    """
    id: str
    room_type: RoomType
    name: str
    x: float
    y: float
    width: float
    height: float
    floor: int = 0

    @property
    def center(self) -> Tuple[float, float]:
        """Geometric centre of the room."""
        return (self.x + self.width / 2, self.y + self.height / 2)

    @property
    def display_name(self) -> str:
        """Name if set, otherwise the room type."""
        if self.name and self.name.strip():
            return self.name
        return self.room_type.value

    def validate(self) -> None:
        """Check geometry.

        Raises:
            InputDataError: If a dimension is not positive or a coordinate
                is not a finite number.
        """
        values = (self.x, self.y, self.width, self.height)
        if not all(isinstance(v, (int, float)) and math.isfinite(v) for v in values):
            raise InputDataError(f"Room {self.id}: non-finite geometry")
        if self.width <= 0 or self.height <= 0:
            raise InputDataError(
                f"Room {self.id}: dimensions must be positive "
                f"(width={self.width}, height={self.height})"
            )

    @property
    def is_valid(self) -> bool:
        """True if validate() would pass."""
        try:
            self.validate()
        except InputDataError:
            return False
        return True

    @classmethod
    def from_editor(
        cls,
        id: str,
        label: str,
        name: str,
        x: float,
        y: float,
        width: float,
        height: float,
        floor: int = 0,
        scale: Optional[LayoutScale] = None,
    ) -> "RoomSpec":
        """Build a room from editor units and a free-text type label.

        Raises:
            ValueError: If the label matches no known room type.
        """
        scale = scale or LayoutScale()
        room_type = normalize_room_type(label)
        if room_type is None:
            raise ValueError(f"Unknown room type label: {label!r}")
        return cls(
            id=id,
            room_type=room_type,
            name=name,
            x=scale.to_meters(x),
            y=scale.to_meters(y),
            width=scale.to_meters(width),
            height=scale.to_meters(height),
            floor=floor,
        )


@dataclass(frozen=True)
class StaffMember:
    """A member of the practice roster.

    Attributes:
        id: Opaque identifier. Never copied into diagnostics.
        raw_role: Free-text job title, possibly German and punctuated.
        fte: Full-time equivalent (1.0 = full time), >= 0.
        experience_level: 1 (junior) to 5 (senior), 3 is neutral.
        hourly_cost: Optional cost per hour.
        stress: Optional stress level 0-100, 50 is neutral.
        efficiency: Optional efficiency rating 0-100, 50 is neutral.
    """
    id: str
    raw_role: object
    fte: float = 1.0
    experience_level: int = 3
    hourly_cost: Optional[float] = None
    stress: Optional[float] = None
    efficiency: Optional[float] = None

    def __post_init__(self):
        if self.fte is not None and self.fte < 0:
            raise ValueError(f"fte must be >= 0, got {self.fte}")


@dataclass(frozen=True)
class WorkflowStep:
    """A directed traversal between two rooms within a workflow.

    Attributes:
        from_room_id: Origin room id.
        to_room_id: Destination room id.
        kind: Who travels (patient, staff, instrument).
        weight: Frequency/importance multiplier, >= 0.
        step_index: Position within the workflow.
        id: Optional step identifier.
        distance_band_override: Band declared by the user instead of the
            computed one.
    """
    from_room_id: str
    to_room_id: str
    kind: FlowKind = FlowKind.PATIENT
    weight: float = 1.0
    step_index: int = 0
    id: Optional[str] = None
    distance_band_override: Optional[DistanceBand] = None

    def __post_init__(self):
        if self.weight is not None and self.weight < 0:
            raise ValueError(f"weight must be >= 0, got {self.weight}")


# Connections drawn in the layout editor share the step shape
WorkflowConnection = WorkflowStep


@dataclass(frozen=True)
class Workflow:
    """A declared care pathway: an ordered list of steps."""
    id: str
    name: str
    actor_type: FlowKind = FlowKind.PATIENT
    steps: Tuple[WorkflowStep, ...] = ()


@dataclass
class PracticeFacility:
    """Everything the pipeline needs for one practice.

    Attributes:
        rooms: Floor plan rooms (metres).
        staff: Staff roster.
        workflows: Declared care pathways.
        connections: Ad-hoc room connections drawn in the layout editor.
        operating_hours: Opening hours per day, > 0.
        patient_volume: Expected patients per day, >= 0.
        practice_type: Dental or medical (selects support-staff band).
    """
    rooms: List[RoomSpec] = field(default_factory=list)
    staff: List[StaffMember] = field(default_factory=list)
    workflows: List[Workflow] = field(default_factory=list)
    connections: List[WorkflowStep] = field(default_factory=list)
    operating_hours: float = 8.0
    patient_volume: int = 0
    practice_type: PracticeType = PracticeType.DENTAL

    def __post_init__(self):
        if not self.operating_hours > 0:
            raise ValueError("operating_hours must be positive")
        if self.patient_volume < 0:
            raise ValueError("patient_volume must be non-negative")
        for room in self.rooms:
            if not isinstance(room, RoomSpec):
                raise TypeError(f"rooms must contain RoomSpec, got {type(room).__name__}")
        for member in self.staff:
            if not isinstance(member, StaffMember):
                raise TypeError(f"staff must contain StaffMember, got {type(member).__name__}")
        for workflow in self.workflows:
            if not isinstance(workflow, Workflow):
                raise TypeError(f"workflows must contain Workflow, got {type(workflow).__name__}")
        for step in self.connections:
            if not isinstance(step, WorkflowStep):
                raise TypeError(f"connections must contain WorkflowStep, got {type(step).__name__}")

    def rooms_of_type(self, room_type: RoomType) -> List[RoomSpec]:
        """Valid rooms of one canonical type."""
        return [r for r in self.rooms if r.room_type == room_type and r.is_valid]
