"""Geometric walking cost between rooms.

Distances are Euclidean between room centres, in metres, plus a fixed
penalty per floor of difference for stairs or lift. Group-to-group flow
cost uses nearest neighbours: each source room walks to its closest
destination, so a practice with many exam rooms is not penalised for
rooms that are never used together.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np

from praxisflow.core.config import TuningConfig
from praxisflow.core.entities import DistanceBand, RoomType
from praxisflow.core.facility import RoomSpec


@dataclass(frozen=True)
class FlowCost:
    """Walking cost of a flow in metres.

    Attributes:
        total: Distance including floor penalties.
        cross_floor: Part of `total` caused by floor changes.
    """
    total: float = 0.0
    cross_floor: float = 0.0

    def __add__(self, other: "FlowCost") -> "FlowCost":
        return FlowCost(self.total + other.total, self.cross_floor + other.cross_floor)


def rooms_by_type(rooms: Iterable[RoomSpec]) -> Dict[RoomType, List[RoomSpec]]:
    """Group valid rooms by canonical type, keeping input order."""
    groups: Dict[RoomType, List[RoomSpec]] = {}
    for room in rooms:
        if room.is_valid:
            groups.setdefault(room.room_type, []).append(room)
    return groups


class DistanceModel:
    """Pairwise and group distances with floor penalty and banding.

    Args:
        floor_penalty: Metres added per floor of difference.
        short_threshold: Distances up to this are SHORT.
        medium_threshold: Distances up to this are MEDIUM, above is LONG.
        band_weights: Cost multiplier per band.
    """

    def __init__(
        self,
        floor_penalty: float = 15.0,
        short_threshold: float = 3.0,
        medium_threshold: float = 8.0,
        band_weights: Optional[Dict[DistanceBand, float]] = None,
    ):
        if floor_penalty < 0:
            raise ValueError("floor_penalty must be non-negative")
        if short_threshold > medium_threshold:
            raise ValueError("short_threshold must not exceed medium_threshold")
        self.floor_penalty = floor_penalty
        self.short_threshold = short_threshold
        self.medium_threshold = medium_threshold
        self.band_weights = band_weights or {
            DistanceBand.SHORT: 1.0,
            DistanceBand.MEDIUM: 1.5,
            DistanceBand.LONG: 2.0,
        }

    @classmethod
    def from_config(cls, config: TuningConfig) -> "DistanceModel":
        return cls(
            floor_penalty=config.floor_penalty,
            short_threshold=config.short_threshold,
            medium_threshold=config.medium_threshold,
            band_weights={
                DistanceBand.SHORT: config.band_weight_short,
                DistanceBand.MEDIUM: config.band_weight_medium,
                DistanceBand.LONG: config.band_weight_long,
            },
        )

    def horizontal_distance(self, a: RoomSpec, b: RoomSpec) -> float:
        """Centre-to-centre distance ignoring floors."""
        (ax, ay), (bx, by) = a.center, b.center
        return float(np.hypot(bx - ax, by - ay))

    def distance(self, a: RoomSpec, b: RoomSpec) -> float:
        """Walking distance including the floor penalty."""
        return self.horizontal_distance(a, b) + self.floor_penalty * abs(a.floor - b.floor)

    def classify(self, distance: float) -> DistanceBand:
        if distance <= self.short_threshold:
            return DistanceBand.SHORT
        if distance <= self.medium_threshold:
            return DistanceBand.MEDIUM
        return DistanceBand.LONG

    def band_weight(self, band: DistanceBand) -> float:
        return self.band_weights[band]

    def _matrices(self, sources: Sequence[RoomSpec], destinations: Sequence[RoomSpec]):
        src = np.array([r.center for r in sources], dtype=float)
        dst = np.array([r.center for r in destinations], dtype=float)
        delta = src[:, np.newaxis, :] - dst[np.newaxis, :, :]
        horizontal = np.hypot(delta[..., 0], delta[..., 1])
        floors = np.abs(
            np.array([r.floor for r in sources])[:, np.newaxis]
            - np.array([r.floor for r in destinations])[np.newaxis, :]
        )
        return horizontal + self.floor_penalty * floors, self.floor_penalty * floors

    def distance_matrix(self, sources: Sequence[RoomSpec], destinations: Sequence[RoomSpec]) -> np.ndarray:
        """Pairwise walking distances, shape (len(sources), len(destinations))."""
        if not sources or not destinations:
            return np.zeros((len(sources), len(destinations)))
        return self._matrices(sources, destinations)[0]

    def type_flow_cost(
        self,
        sources: Sequence[RoomSpec],
        destinations: Sequence[RoomSpec],
    ) -> Optional[FlowCost]:
        """Mean distance from each source to its nearest destination.

        Returns:
            FlowCost, or None when either group is empty.
        """
        if not sources or not destinations:
            return None
        distances, penalties = self._matrices(sources, destinations)
        rows = np.arange(len(sources))
        # argmin takes the first of equal distances
        nearest = np.argmin(distances, axis=1)
        return FlowCost(
            total=float(distances[rows, nearest].mean()),
            cross_floor=float(penalties[rows, nearest].mean()),
        )

    def sequence_cost(self, rooms: Iterable[RoomSpec], sequence: Sequence[RoomType]) -> FlowCost:
        """Sum of type flow costs along an idealised path.

        Consecutive pairs where either type has no room are skipped.
        """
        groups = rooms_by_type(rooms)
        cost = FlowCost()
        for from_type, to_type in zip(sequence, sequence[1:]):
            segment = self.type_flow_cost(groups.get(from_type, []), groups.get(to_type, []))
            if segment is not None:
                cost = cost + segment
        return cost
