"""Benchmark bands and the shared three-zone scorer.

A BenchmarkBand is a {min, max, optimal} triple plus provenance. Room
sizes and staffing ratios are scored against bands with the same
piecewise shape so that all sub-scores share one tunable curve.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from praxisflow.core.entities import Assessment

DEFAULT_OPTIMAL_TOLERANCE = 0.15


@dataclass(frozen=True)
class SourceCitation:
    """Reference to the knowledge-base passage a value came from."""
    doc_name: str
    heading_path: Optional[str] = None
    chunk_id: str = ""

    def format(self) -> str:
        """Human-readable form: document name > heading path."""
        name = self.doc_name
        if name.lower().endswith(".docx"):
            name = name[:-5]
        name = name.replace("_", " ").replace("-", " ")
        if self.heading_path:
            return f"{name} > {self.heading_path}"
        return name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "doc_name": self.doc_name,
            "heading_path": self.heading_path,
            "chunk_id": self.chunk_id,
        }

    @classmethod
    def from_dict(cls, data: Any) -> Optional["SourceCitation"]:
        """Parse a citation mapping; returns None when doc_name is missing."""
        if not isinstance(data, dict):
            return None
        doc_name = data.get("doc_name", data.get("docName"))
        if not isinstance(doc_name, str) or not doc_name:
            return None
        heading = data.get("heading_path", data.get("headingPath"))
        chunk = data.get("chunk_id", data.get("chunkId", ""))
        return cls(
            doc_name=doc_name,
            heading_path=heading if isinstance(heading, str) else None,
            chunk_id=str(chunk) if chunk is not None else "",
        )


@dataclass(frozen=True)
class BenchmarkBand:
    """Acceptable range for a metric.

    Attributes:
        minimum: Lower bound of the acceptable range.
        maximum: Upper bound of the acceptable range.
        optimal: Target value, within [minimum, maximum].
        source: Display name of the source.
        citations: Knowledge-base references (empty for safe defaults).
        from_knowledge: True when the values came from a knowledge
            artifact that cites its sources. Uncited artifact values are
            still applied but keep this False.
        unit: Unit label ("m²", "ratio", "minutes").
    """
    minimum: float
    maximum: float
    optimal: float
    source: str = ""
    citations: Tuple[SourceCitation, ...] = ()
    from_knowledge: bool = False
    unit: str = ""

    def __post_init__(self):
        if not self.minimum <= self.optimal <= self.maximum:
            raise ValueError(
                f"Benchmark band requires min <= optimal <= max, got "
                f"{self.minimum} / {self.optimal} / {self.maximum}"
            )

    @property
    def width(self) -> float:
        return self.maximum - self.minimum

    def to_dict(self) -> Dict[str, Any]:
        return {
            "min": self.minimum,
            "max": self.maximum,
            "optimal": self.optimal,
            "source": self.source,
            "unit": self.unit,
            "from_knowledge": self.from_knowledge,
            "citations": [c.to_dict() for c in self.citations],
        }


@dataclass(frozen=True)
class MetricValue:
    """A single resolved number (buffer minutes, max wait) with provenance."""
    value: float
    unit: str = ""
    source: str = ""
    citations: Tuple[SourceCitation, ...] = ()
    from_knowledge: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "value": self.value,
            "unit": self.unit,
            "source": self.source,
            "from_knowledge": self.from_knowledge,
            "citations": [c.to_dict() for c in self.citations],
        }


@dataclass(frozen=True)
class DistanceGuideline:
    """Walking-distance target between two room types (metres)."""
    maximum: float
    optimal: float
    source: str = ""
    citations: Tuple[SourceCitation, ...] = ()
    from_knowledge: bool = False

    def __post_init__(self):
        if not 0 <= self.optimal <= self.maximum:
            raise ValueError(
                f"Distance guideline requires 0 <= optimal <= max, got "
                f"{self.optimal} / {self.maximum}"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_meters": self.maximum,
            "optimal": self.optimal,
            "source": self.source,
            "from_knowledge": self.from_knowledge,
            "citations": [c.to_dict() for c in self.citations],
        }


@dataclass(frozen=True)
class ZoningRule:
    """Which areas belong to one zone of the floor plan.

    Attributes:
        zones: Room types or area labels in the zone.
        description: What the zone is for.
    """
    zones: Tuple[str, ...]
    description: str = ""
    citations: Tuple[SourceCitation, ...] = ()
    from_knowledge: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "zones": list(self.zones),
            "description": self.description,
            "from_knowledge": self.from_knowledge,
            "citations": [c.to_dict() for c in self.citations],
        }


@dataclass(frozen=True)
class FlowBenchmark:
    """Excellent / acceptable / poor thresholds for a flow metric."""
    excellent: float
    acceptable: float
    poor: float
    unit: str = ""
    source: str = ""


def score_against_band(
    actual: float,
    band: BenchmarkBand,
    tolerance_fraction: float = DEFAULT_OPTIMAL_TOLERANCE,
) -> Tuple[float, Assessment]:
    """Score a value against a band with the three-zone curve.

    Below the band the score falls steeply towards 0; above it the score
    never drops below 60. Inside the band a value within
    `tolerance_fraction` of the optimum scores 100, otherwise the score
    falls linearly with the distance to the optimum, by at most 20 points.

    Args:
        actual: Measured value.
        band: Benchmark band.
        tolerance_fraction: Half-width of the optimal plateau relative to
            the optimum.

    Returns:
        Tuple of (unrounded score, assessment).
    """
    if actual < band.minimum:
        deficit = (band.minimum - actual) / band.minimum * 100 if band.minimum > 0 else 100.0
        return max(0.0, 50.0 - deficit), Assessment.UNDERSIZED

    if actual > band.maximum:
        excess = (actual - band.maximum) / band.maximum * 100 if band.maximum > 0 else 100.0
        return max(60.0, 90.0 - 0.5 * excess), Assessment.OVERSIZED

    offset = abs(actual - band.optimal)
    if band.width <= 0 or offset <= tolerance_fraction * band.optimal:
        return 100.0, Assessment.OPTIMAL
    return 100.0 - 20.0 * offset / band.width, Assessment.OPTIMAL
