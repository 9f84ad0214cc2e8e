"""
praxisflow - layout, staffing and capacity scoring for practices.

Deterministic scoring of a medical or dental practice: floor plan
circulation and room sizes, staffing ratios, workflow friction and a
capacity / wait-time projection, combined into a 0-100 score.
"""

__version__ = "0.1.0"

from praxisflow.core.facility import PracticeFacility
from praxisflow.results.report import analyze_practice

__all__ = ["PracticeFacility", "analyze_practice", "__version__"]
