"""Core entity definitions for the scoring engine.

This module contains enums that are used across the codebase,
placed here to avoid circular imports. Every enum value is the
closed string that appears in serialized output.
"""

from enum import Enum
from typing import Optional


class RoomType(Enum):
    """Canonical room types.

    Locale-specific labels ("Behandlungsraum", "Wartezimmer", ...) are
    mapped onto these values by normalize_room_type().
    """
    RECEPTION = "reception"
    WAITING = "waiting"
    EXAM = "exam"
    LAB = "lab"
    OFFICE = "office"
    STERILIZATION = "sterilization"
    STORAGE = "storage"
    TOILET = "toilet"
    KITCHEN = "kitchen"
    CHANGING = "changing"
    XRAY = "xray"


class RoleCategory(Enum):
    """Staff role categories used for ratio computation."""
    PROVIDER = "provider"
    CLINICAL_ASSISTANT = "clinical_assistant"
    FRONTDESK = "frontdesk"
    EXCLUDED = "excluded"      # Management/admin: not counted in ratios
    UNKNOWN = "unknown"


class FlowKind(Enum):
    """Who or what travels along a workflow step."""
    PATIENT = "patient"
    STAFF = "staff"
    INSTRUMENT = "instrument"


class DistanceBand(Enum):
    """Coarse classification of a walking distance."""
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


class Assessment(Enum):
    """Outcome of comparing a value against a benchmark band."""
    UNDERSIZED = "undersized"
    OPTIMAL = "optimal"
    OVERSIZED = "oversized"
    NO_PROVIDER = "no_provider"   # Ratio undefined: zero providers


class Status(Enum):
    """Qualitative status attached to every score item."""
    OPTIMAL = "optimal"
    ACCEPTABLE = "acceptable"
    NEEDS_WORK = "needs_work"
    MISSING = "missing"


class Severity(Enum):
    """Severity of a layout issue or recommendation priority."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RecommendationCategory(Enum):
    """Categories for rule-based workflow recommendations."""
    BACKTRACKING = "backtracking"
    DISTANCE = "distance"
    FLOOR = "floor"
    PROCESS = "process"
    DIGITAL = "digital"


class PracticeType(Enum):
    """Practice type selects the support-staff benchmark band."""
    DENTAL = "dental"
    MEDICAL = "medical"


class WaitBand(Enum):
    """Load band used to pick the base wait time."""
    EXCELLENT = "excellent"
    ACCEPTABLE = "acceptable"
    POOR = "poor"


class CapacityComparison(Enum):
    """Capacity relative to the excellent-practice benchmark."""
    EXCELLENT = "excellent"              # >= 90% of benchmark
    ABOVE_AVERAGE = "above_average"      # >= 70%
    BELOW_AVERAGE = "below_average"
    NO_EXAM_ROOMS = "no_exam_rooms"


class FlagSeverity(Enum):
    """Traffic-light severity of a staffing demand flag."""
    RED = "red"
    YELLOW = "yellow"
    GREEN = "green"


class PracticeZone(Enum):
    """Floor plan zones: what patients see, staff-only and treatment."""
    ON_STAGE = "on_stage"
    OFF_STAGE = "off_stage"
    CLINICAL = "clinical"


ROOM_TYPE_ALIASES: dict[str, RoomType] = {
    "reception": RoomType.RECEPTION,
    "empfang": RoomType.RECEPTION,
    "empfangsbereich": RoomType.RECEPTION,
    "rezeption": RoomType.RECEPTION,
    "anmeldung": RoomType.RECEPTION,

    "waiting": RoomType.WAITING,
    "waiting room": RoomType.WAITING,
    "wartebereich": RoomType.WAITING,
    "wartezimmer": RoomType.WAITING,
    "warten": RoomType.WAITING,

    "exam": RoomType.EXAM,
    "treatment": RoomType.EXAM,
    "operatory": RoomType.EXAM,
    "behandlung": RoomType.EXAM,
    "behandlungsraum": RoomType.EXAM,
    "behandlungszimmer": RoomType.EXAM,
    "untersuchung": RoomType.EXAM,
    "untersuchungsraum": RoomType.EXAM,

    "lab": RoomType.LAB,
    "labor": RoomType.LAB,
    "laboratory": RoomType.LAB,

    "office": RoomType.OFFICE,
    "buero": RoomType.OFFICE,
    "büro": RoomType.OFFICE,
    "verwaltung": RoomType.OFFICE,
    "personalraum": RoomType.OFFICE,

    "sterilization": RoomType.STERILIZATION,
    "sterilisation": RoomType.STERILIZATION,
    "sterilisationsraum": RoomType.STERILIZATION,
    "steri": RoomType.STERILIZATION,
    "aufbereitung": RoomType.STERILIZATION,

    "storage": RoomType.STORAGE,
    "lager": RoomType.STORAGE,
    "abstellraum": RoomType.STORAGE,

    "toilet": RoomType.TOILET,
    "wc": RoomType.TOILET,
    "restroom": RoomType.TOILET,

    "kitchen": RoomType.KITCHEN,
    "kueche": RoomType.KITCHEN,
    "küche": RoomType.KITCHEN,
    "teekueche": RoomType.KITCHEN,

    "changing": RoomType.CHANGING,
    "umkleide": RoomType.CHANGING,
    "locker room": RoomType.CHANGING,

    "xray": RoomType.XRAY,
    "x-ray": RoomType.XRAY,
    "roentgen": RoomType.XRAY,
    "röntgen": RoomType.XRAY,
}


def normalize_room_type(label: object) -> Optional[RoomType]:
    """Map a free-text room label onto a canonical RoomType.

    Returns None for labels that match no alias. Unknown labels are
    the editing collaborator's concern; the scorer never guesses.
    """
    if isinstance(label, RoomType):
        return label
    if not isinstance(label, str):
        return None
    return ROOM_TYPE_ALIASES.get(label.strip().lower())
