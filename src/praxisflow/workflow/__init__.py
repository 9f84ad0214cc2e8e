"""Workflow layer: friction and motion waste of declared pathways."""

from praxisflow.workflow.friction import (
    ConnectionAnalysis,
    Recommendation,
    StepAnalysis,
    WorkflowAnalysisResult,
    WorkflowFrictionAnalyzer,
    WorkflowsAnalysis,
)

__all__ = [
    "ConnectionAnalysis",
    "Recommendation",
    "StepAnalysis",
    "WorkflowAnalysisResult",
    "WorkflowFrictionAnalyzer",
    "WorkflowsAnalysis",
]
