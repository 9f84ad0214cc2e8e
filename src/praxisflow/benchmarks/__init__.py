"""Benchmark layer: bands, safe defaults, knowledge store, resolver."""

from praxisflow.benchmarks.bands import (
    BenchmarkBand,
    DistanceGuideline,
    FlowBenchmark,
    MetricValue,
    SourceCitation,
    ZoningRule,
    score_against_band,
)
from praxisflow.benchmarks.defaults import DEFAULTS_VERSION
from praxisflow.benchmarks.knowledge import (
    Artifact,
    ArtifactType,
    InMemoryKnowledgeStore,
    KnowledgeModule,
    KnowledgeStore,
)
from praxisflow.benchmarks.resolver import (
    BenchmarkResolver,
    ResolvedBenchmarks,
    StaticBenchmarks,
    reset_missing_topic_log,
)

__all__ = [
    "BenchmarkBand",
    "DistanceGuideline",
    "FlowBenchmark",
    "MetricValue",
    "SourceCitation",
    "ZoningRule",
    "score_against_band",
    "DEFAULTS_VERSION",
    "Artifact",
    "ArtifactType",
    "InMemoryKnowledgeStore",
    "KnowledgeModule",
    "KnowledgeStore",
    "BenchmarkResolver",
    "ResolvedBenchmarks",
    "StaticBenchmarks",
    "reset_missing_topic_log",
]
