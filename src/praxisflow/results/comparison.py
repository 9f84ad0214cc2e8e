"""What-if comparison of layout and staffing variants.

Each variant is a PracticeReport (for example the current floor plan and
a proposed one). The reports are flattened into a DataFrame with one row
per variant so they can be ranked or diffed against a baseline.

Example:
    >>> reports = {
    ...     "current": analyze_practice(current),
    ...     "lab next to exam": analyze_practice(proposed),
    ... }
    >>> frame = compare_reports(reports)
    >>> score_deltas(frame, baseline="current")
"""

from typing import Mapping

import numpy as np
import pandas as pd

from praxisflow.results.report import PracticeReport

SCORE_COLUMNS = [
    "overall_score",
    "efficiency_score",
    "room_size_score",
    "staffing_score",
    "capacity_score",
    "workflow_score",
    "connection_score",
    "harmony_score",
    "estimated_capacity",
    "wait_time_minutes",
]


def report_row(report: PracticeReport) -> dict:
    """Headline figures of one report; missing sub-scores become NaN."""
    return {
        "overall_score": report.aggregate.overall,
        "efficiency_score": report.layout.efficiency_score,
        "room_size_score": (
            report.layout.room_size_score
            if report.layout.room_size_score is not None else np.nan
        ),
        "staffing_score": (
            report.staffing.overall_score
            if report.staffing.overall_score is not None else np.nan
        ),
        "capacity_score": report.capacity.capacity_score,
        "workflow_score": report.workflows.overall_score,
        "connection_score": report.connections.workflow_score,
        "harmony_score": report.capacity.harmony_score,
        "estimated_capacity": report.capacity.estimated_capacity,
        "wait_time_minutes": report.capacity.wait_time.minutes,
        "issue_count": len(report.layout.issues),
    }


def compare_reports(reports: Mapping[str, PracticeReport]) -> pd.DataFrame:
    """One row per variant, indexed by variant name in input order.

    Args:
        reports: Variant name -> report.

    Returns:
        DataFrame with SCORE_COLUMNS plus issue_count.
    """
    rows = [report_row(report) for report in reports.values()]
    frame = pd.DataFrame(rows, index=pd.Index(list(reports.keys()), name="variant"))
    if frame.empty:
        return pd.DataFrame(columns=SCORE_COLUMNS + ["issue_count"])
    return frame


def score_deltas(frame: pd.DataFrame, baseline: str) -> pd.DataFrame:
    """Difference of every variant to the baseline row.

    Wait time is a cost, so a negative delta there is an improvement;
    every other column improves upwards.

    Raises:
        KeyError: If baseline is not a row of frame.
    """
    if baseline not in frame.index:
        raise KeyError(f"Baseline variant not found: {baseline}")
    numeric = frame.select_dtypes(include="number")
    deltas = numeric.subtract(numeric.loc[baseline], axis="columns")
    return deltas.drop(index=baseline)
