"""Capacity layer: daily capacity and wait-time projection."""

from praxisflow.capacity.simulator import (
    CapacityAnalysis,
    CapacityWaitTimeSimulator,
    estimate_capacity,
    estimate_wait_time,
    harmony_score,
    staff_quality_multiplier,
    throughput_per_hour,
)

__all__ = [
    "CapacityAnalysis",
    "CapacityWaitTimeSimulator",
    "estimate_capacity",
    "estimate_wait_time",
    "harmony_score",
    "staff_quality_multiplier",
    "throughput_per_hour",
]
