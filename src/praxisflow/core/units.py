"""Length and area conversion between editor units and metres.

The scoring core works in metres. The layout editor stores positions in
its own units (pixels on a grid); each practice carries a single
"units per metre" scale factor used to convert at the boundary.
"""

from dataclasses import dataclass
from typing import Callable

DEFAULT_UNITS_PER_METER = 50.0

# Signature of the injected length-to-area conversion
LengthToArea = Callable[[float, float], float]


def area_sq_m(width: float, height: float) -> float:
    """Area in square metres for dimensions already in metres.

    Rounded to one decimal so that room-size comparisons are stable
    against floating point noise from unit conversion.
    """
    return round(width * height, 1)


@dataclass(frozen=True)
class LayoutScale:
    """Per-practice conversion between editor units and metres.

    Attributes:
        units_per_meter: Editor units (e.g. pixels) per metre. Must be > 0.
    """
    units_per_meter: float = DEFAULT_UNITS_PER_METER

    def __post_init__(self):
        if not self.units_per_meter > 0:
            raise ValueError("units_per_meter must be positive")

    def to_meters(self, units: float) -> float:
        """Convert an editor length to metres."""
        return units / self.units_per_meter

    def to_units(self, meters: float) -> float:
        """Convert metres to editor units."""
        return meters * self.units_per_meter

    def area_sq_m(self, width_units: float, height_units: float) -> float:
        """Area in square metres for dimensions given in editor units."""
        return area_sq_m(self.to_meters(width_units), self.to_meters(height_units))

    def sq_m_to_side_units(self, sq_m: float) -> float:
        """Side length in editor units of a square room of the given area."""
        return self.to_units(sq_m ** 0.5)
