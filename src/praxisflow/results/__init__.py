"""Results layer: score combination, pipeline report, comparison."""

from praxisflow.results.combiner import AggregateScore, combine, sanitize
from praxisflow.results.report import PracticeReport, analyze_practice
from praxisflow.results.serialization import to_legacy_dict
from praxisflow.results.comparison import compare_reports, score_deltas

__all__ = [
    "AggregateScore",
    "combine",
    "sanitize",
    "PracticeReport",
    "analyze_practice",
    "to_legacy_dict",
    "compare_reports",
    "score_deltas",
]
