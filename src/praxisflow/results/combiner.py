"""Aggregate score combination.

Sub-scores are kept as computed (None, NaN and all) until this point so
that partial results stay inspectable; `sanitize` replaces unusable
values with a neutral default exactly once, right before weighting.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from praxisflow.core.scores import clamp_score

# Component -> value used when the sub-score is missing or not finite.
# 50 means "unknown", 0 means "nothing there to score".
SAFE_DEFAULTS = {
    "efficiency": 0.0,
    "room_size": 50.0,
    "staffing": 50.0,
    "capacity": 0.0,
}

DEFAULT_WEIGHTS = {
    "efficiency": 0.35,
    "room_size": 0.25,
    "staffing": 0.25,
    "capacity": 0.15,
}


def sanitize(value: Any, fallback: float) -> float:
    """Return value as a float, or fallback for None, NaN, inf and non-numbers."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return float(fallback)
    if not math.isfinite(value):
        return float(fallback)
    return float(value)


@dataclass
class AggregateScore:
    """Overall score with the sanitised components it was built from."""
    overall: int
    components: Dict[str, float] = field(default_factory=dict)
    weights: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall": self.overall,
            "components": {k: round(v, 1) for k, v in self.components.items()},
            "weights": dict(self.weights),
        }


def combine(
    efficiency: Any,
    room_size: Any,
    staffing: Any,
    capacity: Any,
    weights: Optional[Dict[str, float]] = None,
) -> AggregateScore:
    """Weighted overall score.

    Args:
        efficiency: Layout efficiency score.
        room_size: Mean room size score.
        staffing: Overall staffing score.
        capacity: Capacity score.
        weights: Per-component weights; DEFAULT_WEIGHTS if None.

    Returns:
        AggregateScore with an integer overall score in [0, 100].
    """
    weights = dict(weights or DEFAULT_WEIGHTS)
    raw = {
        "efficiency": efficiency,
        "room_size": room_size,
        "staffing": staffing,
        "capacity": capacity,
    }
    components = {name: sanitize(value, SAFE_DEFAULTS[name]) for name, value in raw.items()}
    total = sum(components[name] * weights.get(name, 0.0) for name in components)
    return AggregateScore(overall=clamp_score(total), components=components, weights=weights)
