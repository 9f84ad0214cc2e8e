"""Tunable scoring constants.

Every threshold, weight and penalty used by the scorers lives on
TuningConfig. The defaults reproduce the production scoring; a practice
group can override any subset from a YAML or JSON file.

Example usage:
    from praxisflow.core.config import load_tuning_config

    config = load_tuning_config(Path("config/tuning.yaml"))
    report = analyze_practice(facility, config=config)
"""

import json
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

import yaml

from praxisflow.core.errors import ConfigError

CONFIG_ENV_VAR = "PRAXISFLOW_CONFIG"


def _default_circulation_bonuses() -> dict[str, list[float]]:
    # pair -> [bonus within optimal, bonus within max, penalty beyond max]
    return {
        "reception_waiting": [15.0, 10.0, -5.0],
        "waiting_exam": [15.0, 8.0, -5.0],
        "exam_lab": [12.0, 6.0, -3.0],
    }


@dataclass
class TuningConfig:
    """Scoring constants.

    Several of these values were chosen empirically and have no documented
    derivation; they are kept overridable rather than re-derived.

    Attributes:
        floor_penalty: Metres added per floor of difference between rooms.
        short_threshold: Upper bound (inclusive) of the short distance band.
        medium_threshold: Upper bound (inclusive) of the medium distance band.
        band_weight_short: Cost multiplier for short connections.
        band_weight_medium: Cost multiplier for medium connections.
        band_weight_long: Cost multiplier for long connections.
        optimal_tolerance: Fraction of the optimal value within which a
            measurement scores 100.
        layout_base_score: Starting point of the layout efficiency score.
        circulation_bonuses: Per room pair bonus/penalty triple.
        missing_reception_penalty: Subtracted when no reception exists.
        missing_waiting_penalty: Subtracted when no waiting room exists.
        missing_exam_penalty: Subtracted when no exam room exists.
        privacy_distance: Reception-waiting distance (m) below which a
            privacy risk is reported.
        weight_efficiency: Aggregate weight of the layout efficiency score.
        weight_room_size: Aggregate weight of the mean room size score.
        weight_staffing: Aggregate weight of the staffing score.
        weight_capacity: Aggregate weight of the capacity score.
        floor_change_multiplier: Friction multiplier for floor changes.
        optimal_total_distance: Workflow distance (m) before waste accrues.
        total_distance_factor: Waste points per excess metre.
        total_distance_cap: Maximum waste points from total distance.
        optimal_average_step: Average step distance (m) before waste accrues.
        average_step_factor: Waste points per excess metre of average step.
        average_step_cap: Maximum waste points from average step.
        backtrack_penalty: Waste points per backtracking step.
        penalty_per_point: Connection cost divisor for the workflow score.
        empty_connections_score: Workflow score when nothing is drawn.
        no_provider_room_factor: Share of room capacity usable without
            providers.
        default_throughput_per_hour: Patients per provider hour when no
            scheduling knowledge is available.
        experience_factor: Capacity change per experience level above 3.
        quality_min: Lower clamp of the staff quality multiplier.
        quality_max: Upper clamp of the staff quality multiplier.
        efficiency_wait_factor: Wait increase at layout score 0.
        stress_wait_factor: Wait increase per 100 stress points above 50.
        staff_wait_min: Lower clamp of the experience wait factor.
        staff_wait_max: Upper clamp of the experience wait factor.
        wait_min_minutes: Lower clamp of the projected wait.
        wait_max_minutes: Upper clamp of the projected wait.
        cache_ttl_seconds: Benchmark cache lifetime (BenchmarkResolver.from_config).
    """

    floor_penalty: float = 15.0
    short_threshold: float = 3.0
    medium_threshold: float = 8.0
    band_weight_short: float = 1.0
    band_weight_medium: float = 1.5
    band_weight_long: float = 2.0

    optimal_tolerance: float = 0.15
    layout_base_score: float = 50.0
    circulation_bonuses: dict[str, list[float]] = field(
        default_factory=_default_circulation_bonuses
    )
    missing_reception_penalty: float = 15.0
    missing_waiting_penalty: float = 10.0
    missing_exam_penalty: float = 20.0
    privacy_distance: float = 1.5

    weight_efficiency: float = 0.35
    weight_room_size: float = 0.25
    weight_staffing: float = 0.25
    weight_capacity: float = 0.15

    floor_change_multiplier: float = 1.5
    optimal_total_distance: float = 20.0
    total_distance_factor: float = 2.0
    total_distance_cap: float = 50.0
    optimal_average_step: float = 4.0
    average_step_factor: float = 5.0
    average_step_cap: float = 30.0
    backtrack_penalty: float = 5.0
    penalty_per_point: float = 2.0
    empty_connections_score: int = 70

    no_provider_room_factor: float = 0.6
    default_throughput_per_hour: float = 3.0
    experience_factor: float = 0.1
    quality_min: float = 0.6
    quality_max: float = 1.2

    efficiency_wait_factor: float = 0.5
    stress_wait_factor: float = 0.3
    staff_wait_min: float = 0.8
    staff_wait_max: float = 1.2
    wait_min_minutes: int = 5
    wait_max_minutes: int = 60

    cache_ttl_seconds: float = 300.0

    def __post_init__(self):
        if self.floor_penalty < 0:
            raise ValueError("floor_penalty must be non-negative")
        if not 0 <= self.short_threshold <= self.medium_threshold:
            raise ValueError("short_threshold must be between 0 and medium_threshold")
        if not 0 <= self.optimal_tolerance < 1:
            raise ValueError("optimal_tolerance must be in [0, 1)")
        if self.quality_min > self.quality_max:
            raise ValueError("quality_min must not exceed quality_max")
        if self.staff_wait_min > self.staff_wait_max:
            raise ValueError("staff_wait_min must not exceed staff_wait_max")
        if self.wait_min_minutes > self.wait_max_minutes:
            raise ValueError("wait_min_minutes must not exceed wait_max_minutes")
        if self.penalty_per_point <= 0:
            raise ValueError("penalty_per_point must be positive")
        if self.cache_ttl_seconds < 0:
            raise ValueError("cache_ttl_seconds must be non-negative")
        weights = self.aggregate_weights()
        if any(w < 0 for w in weights.values()) or sum(weights.values()) <= 0:
            raise ValueError("aggregate weights must be non-negative with a positive sum")
        for pair, triple in self.circulation_bonuses.items():
            if len(triple) != 3:
                raise ValueError(f"circulation_bonuses[{pair}] needs three values")

    def aggregate_weights(self) -> dict[str, float]:
        """Weights for the overall score, keyed by component."""
        return {
            "efficiency": self.weight_efficiency,
            "room_size": self.weight_room_size,
            "staffing": self.weight_staffing,
            "capacity": self.weight_capacity,
        }

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "TuningConfig":
        """Build a config from a (partial) override mapping.

        Raises:
            ConfigError: On unknown keys or invalid values.
        """
        data = data or {}
        if not isinstance(data, dict):
            raise ConfigError("Tuning config must be a mapping")
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown tuning keys: {', '.join(unknown)}")
        overrides = dict(data)
        if "circulation_bonuses" in overrides:
            merged = _default_circulation_bonuses()
            merged.update(overrides["circulation_bonuses"] or {})
            overrides["circulation_bonuses"] = merged
        try:
            return cls(**overrides)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid tuning config: {e}") from e


def get_default_config_path() -> Optional[Path]:
    """Path from the PRAXISFLOW_CONFIG environment variable, if set."""
    if env_path := os.environ.get(CONFIG_ENV_VAR):
        return Path(env_path)
    return None


def load_tuning_config(config_path: Optional[Path] = None) -> TuningConfig:
    """Load tuning overrides from a YAML or JSON file.

    Args:
        config_path: Path to configuration file (.yaml, .yml, or .json).
            Falls back to PRAXISFLOW_CONFIG; defaults when neither is set.

    Returns:
        TuningConfig with the file's overrides applied.

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigError: If the format is unsupported or the content invalid
    """
    if config_path is None:
        config_path = get_default_config_path()
        if config_path is None:
            return TuningConfig()
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        if config_path.suffix in (".yaml", ".yml"):
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Malformed YAML in {config_path}: {e}") from e
        elif config_path.suffix == ".json":
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigError(f"Malformed JSON in {config_path}: {e}") from e
        else:
            raise ConfigError(
                f"Unsupported config format: {config_path.suffix}. "
                "Use .yaml, .yml, or .json"
            )

    return TuningConfig.from_dict(data)


def save_tuning_config(config: TuningConfig, config_path: Path) -> None:
    """Save a tuning configuration to YAML or JSON.

    Raises:
        ConfigError: If file format is not supported
    """
    config_path = Path(config_path)
    if config_path.suffix not in (".yaml", ".yml", ".json"):
        raise ConfigError(
            f"Unsupported config format: {config_path.suffix}. "
            "Use .yaml, .yml, or .json"
        )

    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w") as f:
        if config_path.suffix == ".json":
            json.dump(config.to_dict(), f, indent=2)
        else:
            yaml.safe_dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)
