"""Knowledge store interface.

The knowledge store is an external collaborator: a database of
artifacts (benchmarks, rules, checklists, ...) extracted from practice
guidance documents. Only the query interface is modelled here, plus an
in-memory implementation for callers without a database.

Example usage:
    store = InMemoryKnowledgeStore()
    store.add("layout", Artifact(
        topic="room_size_exam",
        payload={"metric": "exam room size", "min": 10, "max": 14},
        citations=(SourceCitation("Praxisplanung.docx", "Räume"),),
    ))
    resolver = BenchmarkResolver(store=store)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Tuple, runtime_checkable

from praxisflow.benchmarks.bands import SourceCitation


class ArtifactType(Enum):
    """Kinds of artifact held in the knowledge store."""
    BENCHMARK = "benchmark"
    RULE = "rule"
    FORMULA = "formula"
    CHECKLIST = "checklist"
    TEMPLATE = "template"
    PLAYBOOK = "playbook"


class KnowledgeModule(Enum):
    """Knowledge modules the resolver reads."""
    LAYOUT = "layout"
    STAFFING = "staffing"
    SCHEDULING = "scheduling"


@dataclass(frozen=True)
class Artifact:
    """A structured fact extracted from a guidance document.

    Attributes:
        topic: Short topic key, e.g. "room_size_exam" or "buffer_time".
        payload: Type-specific content. Benchmark payloads carry
            metric, unit, min, max, optimal, description, source; any
            of the numeric fields may be absent or malformed.
        citations: Passages the artifact was extracted from.
        confidence: Extraction confidence 0-1; higher ranks first.
        artifact_type: Kind of artifact.
    """
    topic: str
    payload: Dict[str, Any] = field(default_factory=dict)
    citations: Tuple[SourceCitation, ...] = ()
    confidence: float = 1.0
    artifact_type: ArtifactType = ArtifactType.BENCHMARK

    def mentions(self, *fragments: str) -> bool:
        """True if the topic, metric or condition contains any fragment."""
        haystacks = [self.topic.lower()]
        payload = self.payload if isinstance(self.payload, dict) else {}
        for key in ("metric", "condition"):
            value = payload.get(key)
            if isinstance(value, str):
                haystacks.append(value.lower())
        return any(frag in text for frag in fragments for text in haystacks)


@runtime_checkable
class KnowledgeStore(Protocol):
    """Query interface of the knowledge store.

    Implementations may block on I/O and raise KnowledgeStoreError on
    failure; results are ordered by descending confidence.
    """

    def get_artifacts(
        self,
        module: str,
        artifact_type: ArtifactType,
        topic: Optional[str] = None,
    ) -> List[Artifact]:
        ...


class InMemoryKnowledgeStore:
    """KnowledgeStore backed by a dict of module -> artifacts."""

    def __init__(self, artifacts: Optional[Dict[str, List[Artifact]]] = None):
        self._artifacts: Dict[str, List[Artifact]] = {
            module: list(items) for module, items in (artifacts or {}).items()
        }

    def add(self, module: str, artifact: Artifact) -> None:
        self._artifacts.setdefault(module, []).append(artifact)

    def get_artifacts(
        self,
        module: str,
        artifact_type: ArtifactType,
        topic: Optional[str] = None,
    ) -> List[Artifact]:
        matches = [
            a for a in self._artifacts.get(module, [])
            if a.artifact_type == artifact_type
            and (topic is None or topic.lower() in a.topic.lower())
        ]
        # sorted() is stable: equal confidence keeps insertion order
        return sorted(matches, key=lambda a: -a.confidence)
