"""Core foundation layer: enums, facility records, units, configuration."""

from praxisflow.core.entities import (
    RoomType,
    RoleCategory,
    FlowKind,
    DistanceBand,
    Assessment,
    Status,
    Severity,
    PracticeType,
    FlagSeverity,
    PracticeZone,
    normalize_room_type,
)
from praxisflow.core.errors import (
    PraxisflowError,
    InputDataError,
    KnowledgeStoreError,
    ConfigError,
)
from praxisflow.core.facility import (
    RoomSpec,
    StaffMember,
    WorkflowStep,
    WorkflowConnection,
    Workflow,
    PracticeFacility,
)
from praxisflow.core.units import LayoutScale, area_sq_m
from praxisflow.core.scores import ScoreItem, ScoreResult, clamp_score, status_for_score
from praxisflow.core.config import (
    TuningConfig,
    load_tuning_config,
    save_tuning_config,
    get_default_config_path,
)

__all__ = [
    "RoomType",
    "RoleCategory",
    "FlowKind",
    "DistanceBand",
    "Assessment",
    "Status",
    "Severity",
    "PracticeType",
    "FlagSeverity",
    "PracticeZone",
    "normalize_room_type",
    "PraxisflowError",
    "InputDataError",
    "KnowledgeStoreError",
    "ConfigError",
    "RoomSpec",
    "StaffMember",
    "WorkflowStep",
    "WorkflowConnection",
    "Workflow",
    "PracticeFacility",
    "LayoutScale",
    "area_sq_m",
    "ScoreItem",
    "ScoreResult",
    "clamp_score",
    "status_for_score",
    "TuningConfig",
    "load_tuning_config",
    "save_tuning_config",
    "get_default_config_path",
]
