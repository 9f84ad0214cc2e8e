"""Benchmark resolution with caching and safe-default fallback.

The resolver reads benchmark and rule artifacts from a KnowledgeStore
and merges them over the versioned defaults. Results are cached per
knowledge module ("layout", "staffing", "scheduling") for a fixed TTL.

Resolution never raises:
- no store, or nothing stored for a metric -> safe default
- store failure -> last good cached value, else safe defaults
- malformed payload field -> that field falls back to its default

Concurrent callers racing past an expired entry share one fetch: the
first caller owns an in-flight Future, the others wait on it.

Example usage:
    resolver = BenchmarkResolver(store=my_store, ttl_seconds=300)
    benchmarks = resolver.resolve()
    benchmarks.room_sizes[RoomType.EXAM].optimal
"""

import logging
import math
import threading
import time
from concurrent.futures import Future, TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from praxisflow.benchmarks import defaults
from praxisflow.benchmarks.bands import (
    BenchmarkBand, DistanceGuideline, MetricValue, SourceCitation, ZoningRule,
)
from praxisflow.benchmarks.knowledge import (
    Artifact, ArtifactType, KnowledgeModule, KnowledgeStore,
)
from praxisflow.core.config import TuningConfig
from praxisflow.core.entities import PracticeType, PracticeZone, RoomType

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300.0
KNOWLEDGE_SOURCE = "Praxis-Standards"

_missing_topics: set = set()
_missing_topics_lock = threading.Lock()


def log_missing_topic(module: str, topic: str) -> bool:
    """Warn about a missing artifact, once per module:topic per process.

    Returns:
        True if this call emitted the warning.
    """
    key = f"{module}:{topic}"
    with _missing_topics_lock:
        if key in _missing_topics:
            return False
        _missing_topics.add(key)
    logger.warning(f"Missing knowledge artifact: module={module}, topic={topic}")
    return True


def reset_missing_topic_log() -> None:
    """Forget which topics were reported (for tests)."""
    with _missing_topics_lock:
        _missing_topics.clear()


# Fragments matched against artifact topic / metric to find a room type
ROOM_TOPIC_FRAGMENTS = {
    RoomType.RECEPTION: ("reception", "empfang"),
    RoomType.WAITING: ("waiting", "warte"),
    RoomType.EXAM: ("exam", "treatment", "behandlung"),
    RoomType.LAB: ("lab",),
    RoomType.OFFICE: ("office", "buero"),
    RoomType.STERILIZATION: ("steril",),
    RoomType.STORAGE: ("storage", "lager"),
    RoomType.TOILET: ("toilet", "wc"),
    RoomType.KITCHEN: ("kitchen", "kueche"),
    RoomType.CHANGING: ("changing", "umkleide"),
    RoomType.XRAY: ("xray", "x-ray", "roentgen"),
}

STAFFING_TOPIC_FRAGMENTS = {
    defaults.CLINICAL_ASSISTANT_RATIO: ("mfa", "zfa", "assist", "clinical"),
    defaults.FRONTDESK_RATIO: ("frontdesk", "reception", "empfang"),
    defaults.SUPPORT_TOTAL_RATIO: ("support", "personal"),
    defaults.EXAM_ROOM_RATIO: ("exam_room", "behandlungsr", "rooms_per"),
}

DISTANCE_TOPIC_FRAGMENTS = ("distance", "entfernung", "laufweg")
ZONING_TOPIC_FRAGMENTS = ("zoning", "zone", "bereich")
BUFFER_TOPIC_FRAGMENTS = ("buffer", "puffer")
WAIT_TOPIC_FRAGMENTS = ("wartezeit", "wait")

# Payload keys for distance guidelines in both spellings
DISTANCE_PAYLOAD_KEYS = {
    "reception_waiting": ("reception_waiting", "receptionToWaiting"),
    "waiting_exam": ("waiting_exam", "waitingToExam"),
    "exam_lab": ("exam_lab", "examToLab"),
    "exam_exam": ("exam_exam", "examToExam"),
}


# Payload keys for zoning rules in both spellings
ZONING_PAYLOAD_KEYS = {
    PracticeZone.ON_STAGE: ("on_stage", "onStage"),
    PracticeZone.OFF_STAGE: ("off_stage", "offStage"),
    PracticeZone.CLINICAL: ("clinical",),
}


def _number(payload: Any, *keys: str) -> Optional[float]:
    """First finite non-negative number under any of the keys."""
    if not isinstance(payload, dict):
        return None
    for key in keys:
        value = payload.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            continue
        if math.isfinite(value) and value >= 0:
            return float(value)
    return None


def _first_mentioning(artifacts: List[Artifact], fragments: Tuple[str, ...]) -> Optional[Artifact]:
    for artifact in artifacts:
        if artifact.mentions(*fragments):
            return artifact
    return None


def _source_for(artifact: Artifact, fallback: str) -> str:
    payload_source = artifact.payload.get("source") if isinstance(artifact.payload, dict) else None
    if isinstance(payload_source, str) and payload_source.strip():
        return payload_source
    if artifact.citations:
        return KNOWLEDGE_SOURCE
    return fallback


def merge_band(
    artifact: Optional[Artifact],
    default: BenchmarkBand,
    module: str,
    topic: str,
) -> BenchmarkBand:
    """Overlay a benchmark artifact's min/max/optimal on a default band.

    Each numeric field falls back independently. A merged band that breaks
    min <= optimal <= max reverts to the default entirely. Only an artifact
    with citations marks the band as knowledge-derived.
    """
    if artifact is None:
        log_missing_topic(module, topic)
        return default

    payload = artifact.payload
    minimum = _number(payload, "min")
    maximum = _number(payload, "max")
    optimal = _number(payload, "optimal")
    if minimum is None and maximum is None and optimal is None:
        log_missing_topic(module, topic)
        return default

    merged_min = minimum if minimum is not None else default.minimum
    merged_max = maximum if maximum is not None else default.maximum
    merged_opt = optimal if optimal is not None else default.optimal
    if not merged_min <= merged_opt <= merged_max:
        logger.warning(
            f"Inconsistent knowledge band for {module}:{topic} "
            f"({merged_min}/{merged_opt}/{merged_max}), using default"
        )
        return default

    unit = payload.get("unit") if isinstance(payload, dict) else None
    return BenchmarkBand(
        minimum=merged_min,
        maximum=merged_max,
        optimal=merged_opt,
        source=_source_for(artifact, default.source),
        citations=tuple(artifact.citations),
        from_knowledge=bool(artifact.citations),
        unit=unit if isinstance(unit, str) and unit else default.unit,
    )


def _merge_metric(
    artifact: Optional[Artifact],
    default: MetricValue,
    keys: Tuple[str, ...],
    module: str,
    topic: str,
) -> MetricValue:
    if artifact is not None:
        value = _number(artifact.payload, *keys)
        if value is not None:
            return MetricValue(
                value=value,
                unit=default.unit,
                source=_source_for(artifact, default.source),
                citations=tuple(artifact.citations),
                from_knowledge=bool(artifact.citations),
            )
    log_missing_topic(module, topic)
    return default


def _merge_guideline(
    payload: Any,
    default: DistanceGuideline,
    citations: Tuple[SourceCitation, ...],
    source: str,
) -> DistanceGuideline:
    maximum = _number(payload, "maxMeters", "max_meters", "max")
    optimal = _number(payload, "optimal")
    if maximum is None and optimal is None:
        return default
    merged_max = maximum if maximum is not None else default.maximum
    merged_opt = optimal if optimal is not None else default.optimal
    if merged_opt > merged_max:
        return default
    return DistanceGuideline(
        maximum=merged_max,
        optimal=merged_opt,
        source=source,
        citations=citations,
        from_knowledge=bool(citations),
    )


def _zone_entry(payload: Any, zone: PracticeZone) -> Any:
    if not isinstance(payload, dict):
        return None
    return next((payload[k] for k in ZONING_PAYLOAD_KEYS[zone] if k in payload), None)


def _merge_zoning(entry: Any, default: ZoningRule, citations: Tuple[SourceCitation, ...]) -> ZoningRule:
    """Zones from a rule entry; the whole default if zones are missing or malformed."""
    if not isinstance(entry, dict):
        return default
    zones = entry.get("zones")
    if not isinstance(zones, list) or not zones:
        return default
    if not all(isinstance(z, str) and z.strip() for z in zones):
        return default
    description = entry.get("description")
    return ZoningRule(
        zones=tuple(zones),
        description=description if isinstance(description, str) else default.description,
        citations=citations,
        from_knowledge=bool(citations),
    )


def _default_zoning() -> Mapping[PracticeZone, ZoningRule]:
    return MappingProxyType(defaults.default_zoning_rules())


@dataclass(frozen=True)
class LayoutSection:
    room_sizes: Mapping[RoomType, BenchmarkBand]
    distance_guidelines: Mapping[str, DistanceGuideline]
    layout_rules: Tuple[Artifact, ...] = ()
    zoning_rules: Mapping[PracticeZone, ZoningRule] = field(default_factory=_default_zoning)


@dataclass(frozen=True)
class StaffingSection:
    bands: Mapping[PracticeType, Mapping[str, BenchmarkBand]]


@dataclass(frozen=True)
class SchedulingSection:
    service_times: Mapping[str, BenchmarkBand]
    buffer_minutes: MetricValue
    max_wait_minutes: MetricValue


def default_layout_section() -> LayoutSection:
    return LayoutSection(
        room_sizes=MappingProxyType(defaults.default_room_sizes()),
        distance_guidelines=MappingProxyType(defaults.default_distance_guidelines()),
    )


def default_staffing_section() -> StaffingSection:
    return StaffingSection(bands=MappingProxyType({
        practice_type: MappingProxyType(defaults.default_staffing(practice_type))
        for practice_type in PracticeType
    }))


def default_scheduling_section() -> SchedulingSection:
    return SchedulingSection(
        service_times=MappingProxyType(defaults.default_service_times()),
        buffer_minutes=defaults.default_buffer_minutes(),
        max_wait_minutes=defaults.default_max_wait_minutes(),
    )


def build_layout_section(store: KnowledgeStore) -> LayoutSection:
    """Fetch and merge room sizes, distance guidelines and layout rules."""
    module = KnowledgeModule.LAYOUT.value
    benchmarks = store.get_artifacts(module, ArtifactType.BENCHMARK)
    rules = store.get_artifacts(module, ArtifactType.RULE)

    room_sizes = {}
    for room_type, band in defaults.default_room_sizes().items():
        artifact = _first_mentioning(benchmarks, ROOM_TOPIC_FRAGMENTS[room_type])
        room_sizes[room_type] = merge_band(artifact, band, module, f"room_size_{room_type.value}")

    guidelines = defaults.default_distance_guidelines()
    distance_rule = _first_mentioning(rules, DISTANCE_TOPIC_FRAGMENTS)
    if distance_rule is None:
        log_missing_topic(module, "distance_guidelines")
    else:
        citations = tuple(distance_rule.citations)
        payload = distance_rule.payload if isinstance(distance_rule.payload, dict) else {}
        for key, default in list(guidelines.items()):
            entry = next(
                (payload[k] for k in DISTANCE_PAYLOAD_KEYS[key] if isinstance(payload.get(k), dict)),
                None,
            )
            guidelines[key] = _merge_guideline(
                entry, default, citations, _source_for(distance_rule, default.source)
            )

    zoning = defaults.default_zoning_rules()
    zoning_rule = next(
        (r for r in rules if r.mentions(*ZONING_TOPIC_FRAGMENTS)
         and any(_zone_entry(r.payload, zone) is not None for zone in PracticeZone)),
        None,
    )
    if zoning_rule is None:
        log_missing_topic(module, "zoning_rules")
    else:
        for zone, default in list(zoning.items()):
            zoning[zone] = _merge_zoning(
                _zone_entry(zoning_rule.payload, zone), default, tuple(zoning_rule.citations)
            )

    return LayoutSection(
        room_sizes=MappingProxyType(room_sizes),
        distance_guidelines=MappingProxyType(guidelines),
        layout_rules=tuple(rules),
        zoning_rules=MappingProxyType(zoning),
    )


def build_staffing_section(store: KnowledgeStore) -> StaffingSection:
    """Fetch and merge staffing ratio bands for every practice type."""
    module = KnowledgeModule.STAFFING.value
    artifacts = store.get_artifacts(module, ArtifactType.BENCHMARK)

    bands = {}
    for practice_type in PracticeType:
        applicable = [
            a for a in artifacts
            if not isinstance(a.payload, dict)
            or a.payload.get("practice_type") in (None, practice_type.value)
        ]
        merged = {}
        for key, band in defaults.default_staffing(practice_type).items():
            artifact = _first_mentioning(applicable, STAFFING_TOPIC_FRAGMENTS[key])
            merged[key] = merge_band(artifact, band, module, key)
        bands[practice_type] = MappingProxyType(merged)
    return StaffingSection(bands=MappingProxyType(bands))


def build_scheduling_section(store: KnowledgeStore) -> SchedulingSection:
    """Fetch and merge service times, buffer and maximum wait."""
    module = KnowledgeModule.SCHEDULING.value
    artifacts = store.get_artifacts(module, ArtifactType.BENCHMARK)

    service_times = {}
    for service, band in defaults.default_service_times().items():
        artifact = _first_mentioning(artifacts, (service,))
        service_times[service] = merge_band(artifact, band, module, f"service_time_{service}")

    buffer_minutes = _merge_metric(
        _first_mentioning(artifacts, BUFFER_TOPIC_FRAGMENTS),
        defaults.default_buffer_minutes(), ("optimal", "min"), module, "buffer_minutes",
    )
    max_wait = _merge_metric(
        _first_mentioning(artifacts, WAIT_TOPIC_FRAGMENTS),
        defaults.default_max_wait_minutes(), ("max", "optimal"), module, "max_wait_minutes",
    )
    return SchedulingSection(
        service_times=MappingProxyType(service_times),
        buffer_minutes=buffer_minutes,
        max_wait_minutes=max_wait,
    )


SECTION_BUILDERS: Dict[str, Callable[[KnowledgeStore], Any]] = {
    KnowledgeModule.LAYOUT.value: build_layout_section,
    KnowledgeModule.STAFFING.value: build_staffing_section,
    KnowledgeModule.SCHEDULING.value: build_scheduling_section,
}

SECTION_DEFAULTS: Dict[str, Callable[[], Any]] = {
    KnowledgeModule.LAYOUT.value: default_layout_section,
    KnowledgeModule.STAFFING.value: default_staffing_section,
    KnowledgeModule.SCHEDULING.value: default_scheduling_section,
}


@dataclass(frozen=True)
class ResolvedBenchmarks:
    """Immutable snapshot of every benchmark the scorers need."""
    room_sizes: Mapping[RoomType, BenchmarkBand]
    staffing: Mapping[PracticeType, Mapping[str, BenchmarkBand]]
    service_times: Mapping[str, BenchmarkBand]
    buffer_minutes: MetricValue
    max_wait_minutes: MetricValue
    distance_guidelines: Mapping[str, DistanceGuideline]
    layout_rules: Tuple[Artifact, ...] = ()
    zoning_rules: Mapping[PracticeZone, ZoningRule] = field(default_factory=_default_zoning)
    version: str = defaults.DEFAULTS_VERSION

    @classmethod
    def from_sections(
        cls,
        layout: LayoutSection,
        staffing: StaffingSection,
        scheduling: SchedulingSection,
    ) -> "ResolvedBenchmarks":
        return cls(
            room_sizes=layout.room_sizes,
            staffing=staffing.bands,
            service_times=scheduling.service_times,
            buffer_minutes=scheduling.buffer_minutes,
            max_wait_minutes=scheduling.max_wait_minutes,
            distance_guidelines=layout.distance_guidelines,
            layout_rules=layout.layout_rules,
            zoning_rules=layout.zoning_rules,
        )

    def staffing_for(self, practice_type: PracticeType) -> Mapping[str, BenchmarkBand]:
        return self.staffing[practice_type]

    def zone_for(self, room_type: RoomType) -> Optional[PracticeZone]:
        """First zone listing the room type, None if no zone does."""
        for zone, rule in self.zoning_rules.items():
            if room_type.value in rule.zones:
                return zone
        return None

    @property
    def scheduling_from_knowledge(self) -> bool:
        """True if any service time or the buffer came from knowledge."""
        return (
            any(b.from_knowledge for b in self.service_times.values())
            or self.buffer_minutes.from_knowledge
        )

    @property
    def from_knowledge(self) -> bool:
        """True if any resolved value came from the knowledge store."""
        return (
            any(b.from_knowledge for b in self.room_sizes.values())
            or any(b.from_knowledge for bands in self.staffing.values() for b in bands.values())
            or any(g.from_knowledge for g in self.distance_guidelines.values())
            or any(z.from_knowledge for z in self.zoning_rules.values())
            or self.scheduling_from_knowledge
            or self.max_wait_minutes.from_knowledge
            or any(r.citations for r in self.layout_rules)
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "from_knowledge": self.from_knowledge,
            "room_sizes": {t.value: b.to_dict() for t, b in self.room_sizes.items()},
            "staffing": {
                p.value: {k: b.to_dict() for k, b in bands.items()}
                for p, bands in self.staffing.items()
            },
            "service_times": {k: b.to_dict() for k, b in self.service_times.items()},
            "buffer_minutes": self.buffer_minutes.to_dict(),
            "max_wait_minutes": self.max_wait_minutes.to_dict(),
            "distance_guidelines": {k: g.to_dict() for k, g in self.distance_guidelines.items()},
            "zoning_rules": {z.value: r.to_dict() for z, r in self.zoning_rules.items()},
        }


class StaticBenchmarks:
    """Benchmark source that always serves the safe defaults."""

    _snapshot: Optional[ResolvedBenchmarks] = None

    @classmethod
    def defaults(cls) -> ResolvedBenchmarks:
        if cls._snapshot is None:
            cls._snapshot = ResolvedBenchmarks.from_sections(
                default_layout_section(),
                default_staffing_section(),
                default_scheduling_section(),
            )
        return cls._snapshot

    def resolve(self) -> ResolvedBenchmarks:
        return self.defaults()


@dataclass
class _CacheEntry:
    value: Any
    expires_at: float


class BenchmarkResolver:
    """Resolves benchmarks from a knowledge store with a TTL cache.

    Args:
        store: Knowledge store; None serves defaults only.
        clock: Monotonic clock in seconds (injectable for tests).
        ttl_seconds: Cache lifetime per module.
        fetch_timeout: Seconds a caller waits for another caller's
            in-flight fetch; None waits indefinitely.
    """

    def __init__(
        self,
        store: Optional[KnowledgeStore] = None,
        clock: Callable[[], float] = time.monotonic,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        fetch_timeout: Optional[float] = None,
    ):
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must be non-negative")
        self.store = store
        self.ttl_seconds = ttl_seconds
        self.fetch_timeout = fetch_timeout
        self._clock = clock
        self._lock = threading.Lock()
        self._cache: Dict[str, _CacheEntry] = {}
        self._inflight: Dict[str, Future] = {}

    @classmethod
    def from_config(
        cls,
        config: TuningConfig,
        store: Optional[KnowledgeStore] = None,
        clock: Callable[[], float] = time.monotonic,
        fetch_timeout: Optional[float] = None,
    ) -> "BenchmarkResolver":
        """Resolver whose cache lifetime is config.cache_ttl_seconds."""
        return cls(
            store=store,
            clock=clock,
            ttl_seconds=config.cache_ttl_seconds,
            fetch_timeout=fetch_timeout,
        )

    def resolve(self) -> ResolvedBenchmarks:
        """Current benchmark snapshot. Never raises."""
        return ResolvedBenchmarks.from_sections(
            self._section(KnowledgeModule.LAYOUT.value),
            self._section(KnowledgeModule.STAFFING.value),
            self._section(KnowledgeModule.SCHEDULING.value),
        )

    def clear_cache(self) -> None:
        """Drop all cached sections; the next resolve() refetches."""
        with self._lock:
            self._cache.clear()

    def _section(self, module: str) -> Any:
        with self._lock:
            entry = self._cache.get(module)
            if entry is not None and self._clock() < entry.expires_at:
                return entry.value
            future = self._inflight.get(module)
            owner = future is None
            if owner:
                future = Future()
                self._inflight[module] = future

        if not owner:
            try:
                return future.result(timeout=self.fetch_timeout)
            except FutureTimeoutError:
                logger.warning(f"Timed out waiting for {module} benchmarks, serving fallback")
                return entry.value if entry is not None else SECTION_DEFAULTS[module]()

        try:
            value = self._refresh(module, entry)
        except BaseException as e:
            future.set_exception(e)
            raise
        else:
            future.set_result(value)
            return value
        finally:
            with self._lock:
                self._inflight.pop(module, None)

    def _refresh(self, module: str, stale: Optional[_CacheEntry]) -> Any:
        if self.store is None:
            value = SECTION_DEFAULTS[module]()
            self._store_entry(module, value)
            return value

        try:
            value = SECTION_BUILDERS[module](self.store)
        except Exception as e:
            # Expiry is left as is so the next call retries
            logger.warning(f"Knowledge store fetch failed for {module}: {e}")
            if stale is not None:
                return stale.value
            return SECTION_DEFAULTS[module]()

        self._store_entry(module, value)
        logger.debug(f"Refreshed {module} benchmarks from knowledge store")
        return value

    def _store_entry(self, module: str, value: Any) -> None:
        with self._lock:
            self._cache[module] = _CacheEntry(value, self._clock() + self.ttl_seconds)
