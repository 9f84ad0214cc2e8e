"""Versioned safe defaults for every benchmark.

Used whenever the knowledge store is unavailable or has no artifact for
a metric. Values follow German practice-planning guidance; the source
strings are shown to users next to the score.
"""

from typing import Dict

from praxisflow.benchmarks.bands import (
    BenchmarkBand, DistanceGuideline, FlowBenchmark, MetricValue, ZoningRule,
)
from praxisflow.core.entities import PracticeType, PracticeZone, RoomType

DEFAULTS_VERSION = "2024.2"

SQM = "m²"
MINUTES = "minutes"
RATIO = "ratio"

# room type -> (min m², max m², optimal m², source)
ROOM_SIZE_TABLE = {
    RoomType.RECEPTION: (8, 14, 10, "Arbeitsstättenverordnung (ArbStättV) - ASR A1.2"),
    RoomType.WAITING: (15, 35, 22, "Praxisbegehung - 1.2-1.5 m² pro Sitzplatz"),
    RoomType.EXAM: (9, 12, 10, "Praxisbegehung & Hygieneverordnung"),
    RoomType.LAB: (8, 15, 10, "RKI Laborrichtlinien & Hygieneverordnung"),
    RoomType.OFFICE: (10, 18, 14, "Arbeitsstättenverordnung (ArbStättV) - ASR A1.2"),
    RoomType.STERILIZATION: (8, 14, 10.5, "RKI/KRINKO Aufbereitung von Medizinprodukten"),
    RoomType.STORAGE: (4, 10, 6, "Praxisplanung Richtwerte"),
    RoomType.TOILET: (3, 6, 4.4, "DIN 18040 Barrierefreies Bauen"),
    RoomType.KITCHEN: (6, 12, 7.5, "Arbeitsstättenverordnung - ASR A4.2"),
    RoomType.CHANGING: (5, 10, 6.6, "Arbeitsstättenverordnung - ASR A4.1"),
    RoomType.XRAY: (8, 14, 10, "Strahlenschutzverordnung (StrlSchV) Planungswerte"),
}

# Staffing ratio keys; frontdesk is reported but not part of the overall score
CLINICAL_ASSISTANT_RATIO = "clinical_assistant_ratio"
FRONTDESK_RATIO = "frontdesk_ratio"
SUPPORT_TOTAL_RATIO = "support_total_ratio"
EXAM_ROOM_RATIO = "exam_room_ratio"

STAFFING_TABLE = {
    PracticeType.DENTAL: {
        CLINICAL_ASSISTANT_RATIO: (1.5, 2.5, 2.0, "KZBV Praxis-Benchmarks"),
        FRONTDESK_RATIO: (0.33, 0.5, 0.4, "KV Empfehlung Praxisorganisation"),
        SUPPORT_TOTAL_RATIO: (2.0, 3.5, 2.5, "KZBV Praxis-Benchmarks"),
        EXAM_ROOM_RATIO: (2.0, 4.0, 3.0, "KV Praxisplanung - 3-4 Behandlungsräume pro Behandler"),
    },
    PracticeType.MEDICAL: {
        CLINICAL_ASSISTANT_RATIO: (1.0, 2.0, 1.5, "Berufsverband der Medizinischen Fachangestellten"),
        FRONTDESK_RATIO: (0.33, 0.5, 0.4, "KV Empfehlung Praxisorganisation"),
        SUPPORT_TOTAL_RATIO: (2.5, 4.0, 3.0, "KV Praxisorganisation Empfehlungen"),
        EXAM_ROOM_RATIO: (2.0, 4.0, 3.0, "KV Praxisplanung - 3-4 Behandlungsräume pro Arzt"),
    },
}

# service -> (min, max, optimal) minutes
SERVICE_TIME_TABLE = {
    "checkup": (15, 30, 20),
    "treatment": (30, 60, 45),
    "cleaning": (20, 40, 30),
    "consultation": (10, 30, 15),
    "xray": (5, 15, 10),
}
SERVICE_TIME_SOURCE = "Safe Default"
BUFFER_MINUTES = 5
MAX_WAIT_MINUTES = 15

# (from type, to type) -> (max metres, optimal metres, source)
DISTANCE_GUIDELINE_TABLE = {
    "reception_waiting": (10, 5, "DIN 18040 Barrierefreies Bauen"),
    "waiting_exam": (25, 12, "Praxisbegehung Laufwege"),
    "exam_lab": (15, 8, "RKI Probenhandhabung Richtlinien"),
    "exam_exam": (10, 5, "Praxiseffizienz Standards"),
}

# zone -> (room types, description)
ZONING_TABLE = {
    PracticeZone.ON_STAGE: (
        (RoomType.RECEPTION, RoomType.WAITING, RoomType.TOILET),
        "Areas patients see and move through unaccompanied",
    ),
    PracticeZone.OFF_STAGE: (
        (RoomType.OFFICE, RoomType.STORAGE, RoomType.KITCHEN, RoomType.CHANGING),
        "Staff-only areas kept out of patient sight lines",
    ),
    PracticeZone.CLINICAL: (
        (RoomType.EXAM, RoomType.LAB, RoomType.STERILIZATION, RoomType.XRAY),
        "Treatment and reprocessing under hygiene rules",
    ),
}

PATIENTS_PER_ROOM_PER_DAY = FlowBenchmark(
    excellent=12, acceptable=10, poor=6,
    unit="patients/room/day", source="KV Benchmarks Praxisauslastung",
)
THROUGHPUT_PER_HOUR = FlowBenchmark(
    excellent=4, acceptable=3, poor=2,
    unit="patients/hour", source="Praxismanagement Leitfaden",
)
WAIT_TIME = FlowBenchmark(
    excellent=10, acceptable=20, poor=30,
    unit=MINUTES, source="Qualitätsmanagement-Richtlinie (QM-RL)",
)


def default_room_sizes() -> Dict[RoomType, BenchmarkBand]:
    return {
        room_type: BenchmarkBand(minimum, maximum, optimal, source=source, unit=SQM)
        for room_type, (minimum, maximum, optimal, source) in ROOM_SIZE_TABLE.items()
    }


def default_staffing(practice_type: PracticeType) -> Dict[str, BenchmarkBand]:
    return {
        key: BenchmarkBand(minimum, maximum, optimal, source=source, unit=RATIO)
        for key, (minimum, maximum, optimal, source) in STAFFING_TABLE[practice_type].items()
    }


def default_service_times() -> Dict[str, BenchmarkBand]:
    return {
        service: BenchmarkBand(minimum, maximum, optimal, source=SERVICE_TIME_SOURCE, unit=MINUTES)
        for service, (minimum, maximum, optimal) in SERVICE_TIME_TABLE.items()
    }


def default_buffer_minutes() -> MetricValue:
    return MetricValue(BUFFER_MINUTES, unit=MINUTES, source=SERVICE_TIME_SOURCE)


def default_max_wait_minutes() -> MetricValue:
    return MetricValue(MAX_WAIT_MINUTES, unit=MINUTES, source=SERVICE_TIME_SOURCE)


def default_distance_guidelines() -> Dict[str, DistanceGuideline]:
    return {
        key: DistanceGuideline(maximum, optimal, source=source)
        for key, (maximum, optimal, source) in DISTANCE_GUIDELINE_TABLE.items()
    }


def default_zoning_rules() -> Dict[PracticeZone, ZoningRule]:
    return {
        zone: ZoningRule(tuple(t.value for t in room_types), description)
        for zone, (room_types, description) in ZONING_TABLE.items()
    }
