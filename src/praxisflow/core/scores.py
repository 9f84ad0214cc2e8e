"""Score records shared by all scorers."""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from praxisflow.core.entities import Status


def clamp_score(value: float) -> int:
    """Round and clamp to an integer in [0, 100]."""
    if value is None or not math.isfinite(value):
        return 0
    return int(max(0, min(100, round(value))))


def status_for_score(score: Optional[float]) -> Status:
    """Qualitative status for a 0-100 score; None means missing."""
    if score is None:
        return Status.MISSING
    if score >= 90:
        return Status.OPTIMAL
    if score >= 70:
        return Status.ACCEPTABLE
    return Status.NEEDS_WORK


@dataclass
class ScoreItem:
    """A named sub-score.

    Attributes:
        name: Machine-readable item name.
        score: Integer 0-100, or None when the item could not be scored.
        status: Qualitative status.
        detail: Literal numeric comparison behind the status.
        points: Contribution to the parent score, for additive scores.
    """
    name: str
    score: Optional[int]
    status: Status
    detail: Optional[str] = None
    points: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "score": self.score,
            "status": self.status.value,
            "detail": self.detail,
            "points": self.points,
        }


@dataclass
class ScoreResult:
    """An integer 0-100 score with its breakdown."""
    score: int
    items: List[ScoreItem] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "items": [item.to_dict() for item in self.items],
        }
