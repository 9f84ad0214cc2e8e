"""Layout layer: walking distances and floor plan scoring."""

from praxisflow.layout.distance import DistanceModel, FlowCost, rooms_by_type
from praxisflow.layout.scoring import (
    LayoutAnalysis,
    LayoutIssue,
    LayoutScorer,
    RoomSizeAnalysis,
    evaluate_room_size,
)

__all__ = [
    "DistanceModel",
    "FlowCost",
    "rooms_by_type",
    "LayoutAnalysis",
    "LayoutIssue",
    "LayoutScorer",
    "RoomSizeAnalysis",
    "evaluate_room_size",
]
