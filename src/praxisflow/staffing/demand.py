"""Staffing demand: recommended FTE per role for a practice.

Where ratios.py scores the roster a practice has, this module works out
the roster it needs. The calculation is a fixed rule set over the
practice structure (treatment chairs, providers, prophylaxis chairs)
and the daily patient volume. It is a pure function: the same input
always gives the same output, and malformed numbers (negative, NaN,
infinite) are read as zero rather than raised.

Pipeline:
    derived values -> base FTE -> buffered FTE -> rounded FTE
    -> ratios, traffic-light flags, headcount hint, coverage

The assistant total is chairside plus sterilisation. Totals add the
assistant total, never chairside and sterilisation on top of it.

Example usage:
    demand = compute_staffing_demand(
        StaffingDemandInput(providers_fte=2.0, chairs_simultaneous=2, patients_per_day=36)
    )
    demand.rounded.assistant_total   # 3.3
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from praxisflow.core.entities import FlagSeverity
from praxisflow.staffing.roles import StaffClassification

logger = logging.getLogger(__name__)

DEMAND_RULES_VERSION = "1.2.0"

# Chairside assistants per chair: traffic-light boundaries
CHAIRSIDE_RED_BELOW = 1.20
CHAIRSIDE_YELLOW_BELOW = 1.45
CHAIRSIDE_GREEN_UP_TO = 1.80
CHAIRSIDE_YELLOW_UP_TO = 2.00

FRONTDESK_MIN_FTE = 0.50
FRONTDESK_HIGH_VOLUME_FTE = 0.80
HIGH_VOLUME_PATIENTS = 35


@dataclass
class DemandConfig:
    """Buffers and rounding for the demand calculation.

    Defaults are the practice-management rules of thumb; adjust to
    local contracts and absence rates.
    """

    # === BUFFERS ===
    # Absence cover on top of the base demand

    clinical_buffer: float = 0.12
    # Chairside, sterilisation and prophylaxis

    admin_buffer: float = 0.08
    # Front desk and practice management

    # === ROUNDING ===

    rounding_step_fte: float = 0.10
    # Every role is rounded up to a multiple of this step

    # === ESTIMATES ===
    # Used when the input leaves a figure open

    default_patients_per_chair: float = 18.0
    avg_contract_fraction: float = 0.80
    # Mean FTE per head, for the headcount hint


@dataclass
class StaffingDemandInput:
    """Practice structure the demand is computed from.

    Attributes:
        providers_fte: Dentist or physician FTE.
        chairs_simultaneous: Chairs run at the same time. Estimated from
            treatment_rooms and providers_fte when None.
        treatment_rooms: Treatment rooms; 0 or None means unknown.
        prophylaxis_chairs: Dedicated prophylaxis chairs.
        patients_per_day: Daily volume. Estimated from the chairs when
            None.
        complexity_level: -1 (simple) to 2 (high); other values are
            clamped and rounded.
    """
    providers_fte: float
    chairs_simultaneous: Optional[float] = None
    treatment_rooms: Optional[float] = None
    prophylaxis_chairs: float = 0
    patients_per_day: Optional[float] = None
    complexity_level: float = 0


@dataclass
class CurrentFte:
    """FTE the practice employs today, per role. None means not known."""
    chairside: Optional[float] = None
    steri: Optional[float] = None
    assistant_total: Optional[float] = None
    prophy: Optional[float] = None
    frontdesk: Optional[float] = None
    management: Optional[float] = None
    total: Optional[float] = None


@dataclass
class DerivedValues:
    """Intermediate figures.

    Attributes:
        chairs: Effective simultaneous chairs.
        patients_per_day: Daily patients used.
        patients_per_chair: Patients per chair per day.
        turnover_index: 0 at 14 patients per chair, 1 at 22 or more.
        complexity_bonus: 0.05 per complexity level.
        support_factor: Extra chairside share, 0.15 to 0.40.
        warnings: Notes on every estimated figure.
    """
    chairs: float
    patients_per_day: float
    patients_per_chair: float
    turnover_index: float
    complexity_bonus: float
    support_factor: float
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chairs": self.chairs,
            "patients_per_day": self.patients_per_day,
            "patients_per_chair": self.patients_per_chair,
            "turnover_index": self.turnover_index,
            "complexity_bonus": self.complexity_bonus,
            "support_factor": self.support_factor,
            "warnings": list(self.warnings),
        }


@dataclass
class FteByRole:
    """FTE for every role."""
    chairside: float = 0.0
    steri: float = 0.0
    assistant_total: float = 0.0
    prophy: float = 0.0
    frontdesk: float = 0.0
    management: float = 0.0
    total: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chairside": self.chairside,
            "steri": self.steri,
            "assistant_total": self.assistant_total,
            "prophy": self.prophy,
            "frontdesk": self.frontdesk,
            "management": self.management,
            "total": self.total,
        }


ROLE_FIELDS = ("chairside", "steri", "assistant_total", "prophy", "frontdesk", "management", "total")


@dataclass
class DemandFlag:
    """Traffic-light finding on the recommended roster."""
    id: str
    severity: FlagSeverity
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "severity": self.severity.value, "message": self.message}


@dataclass
class StaffingDemand:
    """Recommended roster for one practice.

    `base` is the rule output, `buffered` adds absence cover and
    `rounded` is what a rota would use.
    """
    derived: DerivedValues
    base: FteByRole
    buffered: FteByRole
    rounded: FteByRole
    chairside_per_chair: float
    assistants_per_chair: float
    frontdesk_per_provider_fte: float
    flags: List[DemandFlag]
    headcount: Dict[str, int]
    coverage: Optional[Dict[str, float]] = None
    is_practice_active: bool = False
    rules_version: str = DEMAND_RULES_VERSION

    @property
    def total_from_rounded_parts(self) -> float:
        """Sum of the rounded roles without double counting assistants."""
        r = self.rounded
        return round(r.assistant_total + r.prophy + r.frontdesk + r.management, 2)

    @property
    def worst_severity(self) -> Optional[FlagSeverity]:
        for severity in (FlagSeverity.RED, FlagSeverity.YELLOW, FlagSeverity.GREEN):
            if any(f.severity == severity for f in self.flags):
                return severity
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rules_version": self.rules_version,
            "derived": self.derived.to_dict(),
            "base_fte": self.base.to_dict(),
            "buffered_fte": self.buffered.to_dict(),
            "rounded_fte": self.rounded.to_dict(),
            "total_from_rounded_parts": self.total_from_rounded_parts,
            "ratios": {
                "chairside_per_chair": self.chairside_per_chair,
                "assistants_per_chair": self.assistants_per_chair,
                "frontdesk_per_provider_fte": self.frontdesk_per_provider_fte,
            },
            "flags": [f.to_dict() for f in self.flags],
            "headcount": dict(self.headcount),
            "coverage": dict(self.coverage) if self.coverage is not None else None,
            "is_practice_active": self.is_practice_active,
        }


def _safe_number(value: Any, allow_negative: bool = False) -> float:
    """Finite number or 0; negatives become 0 unless allowed."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    if not math.isfinite(value):
        return 0.0
    if value < 0 and not allow_negative:
        return 0.0
    return float(value)


def _is_given(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def ceil_to_step(value: float, step: float) -> float:
    """Round up to a multiple of step; a non-positive step leaves value as is."""
    if step <= 0 or not math.isfinite(step):
        return value
    # round() first so 2.2 / 0.1 = 22.000000000000004 stays 22 steps
    return math.ceil(round(value / step, 9)) * step


def normalize_complexity(level: Any) -> int:
    level = _safe_number(level, allow_negative=True)
    if level <= -1:
        return -1
    if level >= 2:
        return 2
    return _round_half_up(level)


def derive_values(inputs: StaffingDemandInput, config: DemandConfig) -> DerivedValues:
    """Effective chairs, volume and the turnover-driven factors."""
    warnings = []
    providers = _safe_number(inputs.providers_fte)

    if _is_given(inputs.chairs_simultaneous):
        chairs = max(0, _round_half_up(inputs.chairs_simultaneous))
    elif _is_given(inputs.treatment_rooms) and inputs.treatment_rooms > 0:
        rooms = _round_half_up(inputs.treatment_rooms)
        if providers > 0:
            providers_rounded = max(1, _round_half_up(providers))
            chairs = min(rooms, providers_rounded)
            warnings.append(
                f"Simultaneous chairs estimated: {chairs} "
                f"(min of {rooms} rooms and {providers_rounded} providers)"
            )
        else:
            # No provider means no chair in use, whatever the room count
            chairs = 0
            warnings.append(f"No active providers: {rooms} treatment rooms ignored")
    elif providers > 0:
        chairs = max(1, _round_half_up(providers))
        warnings.append(f"Simultaneous chairs estimated from provider FTE: {chairs}")
    else:
        chairs = 0

    per_chair = _safe_number(config.default_patients_per_chair)
    if _is_given(inputs.patients_per_day):
        patients = max(0.0, float(inputs.patients_per_day))
    else:
        patients = chairs * per_chair
        if chairs > 0:
            warnings.append(
                f"Patients per day estimated: {patients:g} ({chairs} chairs x {per_chair:g})"
            )

    patients_per_chair = patients / chairs if chairs > 0 else 0.0
    turnover = _clamp((patients_per_chair - 14) / 8, 0, 1)
    complexity_bonus = 0.05 * normalize_complexity(inputs.complexity_level)
    support_factor = 0.15 + 0.25 * turnover

    return DerivedValues(
        chairs=round(float(chairs), 4),
        patients_per_day=round(patients, 4),
        patients_per_chair=round(patients_per_chair, 4),
        turnover_index=round(turnover, 4),
        complexity_bonus=round(complexity_bonus, 4),
        support_factor=round(support_factor, 4),
        warnings=warnings,
    )


def base_fte(inputs: StaffingDemandInput, derived: DerivedValues) -> FteByRole:
    """Demand per role before buffers."""
    providers = _safe_number(inputs.providers_fte)
    prophylaxis_chairs = _safe_number(inputs.prophylaxis_chairs)
    complexity = normalize_complexity(inputs.complexity_level)
    chairs = derived.chairs
    patients = derived.patients_per_day

    chairside = chairs * (1.0 + derived.support_factor + derived.complexity_bonus)
    steri = chairs * 0.12 + patients * 0.003 + prophylaxis_chairs * 0.05
    assistant_total = chairside + steri
    prophy = prophylaxis_chairs * (0.90 + 0.05 * complexity)

    # Only a practice with nothing at all gets no front desk
    inactive = providers == 0 and chairs == 0 and patients == 0 and prophylaxis_chairs == 0
    if inactive:
        frontdesk = 0.0
    else:
        frontdesk = 0.50 + 0.25 * max(0.0, providers - 1.0) + 0.01 * max(0.0, patients - 20)

    core = assistant_total + prophy + frontdesk
    if core < 10:
        management = 0.0
    elif core < 15:
        management = 0.5
    else:
        management = 1.0

    return FteByRole(
        chairside=round(chairside, 4),
        steri=round(steri, 4),
        assistant_total=round(assistant_total, 4),
        prophy=round(prophy, 4),
        frontdesk=round(frontdesk, 4),
        management=round(management, 4),
        total=round(core + management, 4),
    )


def buffered_fte(base: FteByRole, clinical_buffer: float, admin_buffer: float) -> FteByRole:
    clinical = 1 + clinical_buffer
    admin = 1 + admin_buffer
    assistant_total = base.assistant_total * clinical
    prophy = base.prophy * clinical
    frontdesk = base.frontdesk * admin
    management = base.management * admin
    return FteByRole(
        chairside=round(base.chairside * clinical, 4),
        steri=round(base.steri * clinical, 4),
        assistant_total=round(assistant_total, 4),
        prophy=round(prophy, 4),
        frontdesk=round(frontdesk, 4),
        management=round(management, 4),
        total=round(assistant_total + prophy + frontdesk + management, 4),
    )


def rounded_fte(buffered: FteByRole, step: float) -> FteByRole:
    return FteByRole(**{
        name: round(ceil_to_step(getattr(buffered, name), step), 2)
        for name in ROLE_FIELDS
    })


def _chairside_flag(per_chair: float) -> DemandFlag:
    if per_chair < CHAIRSIDE_RED_BELOW:
        return DemandFlag(
            "UNDERSTAFFED_CHAIRSIDE_RED", FlagSeverity.RED,
            f"Chairside assistance critically low: {per_chair:.2f} FTE per chair "
            f"(at least {CHAIRSIDE_RED_BELOW:.2f} recommended)",
        )
    if per_chair < CHAIRSIDE_YELLOW_BELOW:
        return DemandFlag(
            "UNDERSTAFFED_CHAIRSIDE_YELLOW", FlagSeverity.YELLOW,
            f"Chairside assistance slightly low: {per_chair:.2f} FTE per chair "
            f"(target {CHAIRSIDE_YELLOW_BELOW:.2f}-{CHAIRSIDE_GREEN_UP_TO:.2f})",
        )
    if per_chair <= CHAIRSIDE_GREEN_UP_TO:
        return DemandFlag(
            "TARGET_CHAIRSIDE_GREEN", FlagSeverity.GREEN,
            f"Chairside assistance on target: {per_chair:.2f} FTE per chair",
        )
    if per_chair <= CHAIRSIDE_YELLOW_UP_TO:
        return DemandFlag(
            "OVERSTAFFED_CHAIRSIDE_YELLOW", FlagSeverity.YELLOW,
            f"Chairside assistance slightly high: {per_chair:.2f} FTE per chair "
            f"(target {CHAIRSIDE_YELLOW_BELOW:.2f}-{CHAIRSIDE_GREEN_UP_TO:.2f})",
        )
    return DemandFlag(
        "OVERSTAFFED_CHAIRSIDE_RED", FlagSeverity.RED,
        f"Chairside assistance clearly high: {per_chair:.2f} FTE per chair "
        f"(at most {CHAIRSIDE_YELLOW_UP_TO:.2f} recommended)",
    )


def demand_flags(
    chairside_per_chair: float,
    rounded: FteByRole,
    derived: DerivedValues,
    providers_fte: float,
) -> List[DemandFlag]:
    flags = []
    if derived.chairs > 0:
        flags.append(_chairside_flag(chairside_per_chair))

    patients = derived.patients_per_day
    if (providers_fte > 0 or patients > 0) and rounded.frontdesk < FRONTDESK_MIN_FTE:
        flags.append(DemandFlag(
            "FRONTDESK_TOO_LOW_RED", FlagSeverity.RED,
            f"Front desk understaffed: {rounded.frontdesk:.2f} FTE "
            f"(at least {FRONTDESK_MIN_FTE:.2f} recommended)",
        ))
    elif patients >= HIGH_VOLUME_PATIENTS and rounded.frontdesk < FRONTDESK_HIGH_VOLUME_FTE:
        flags.append(DemandFlag(
            "FRONTDESK_LOW_FOR_VOLUME_YELLOW", FlagSeverity.YELLOW,
            f"Front desk tight for {patients:g} patients per day: {rounded.frontdesk:.2f} FTE "
            f"({FRONTDESK_HIGH_VOLUME_FTE:.2f} recommended)",
        ))
    return flags


def headcount_hint(rounded: FteByRole, avg_contract_fraction: float) -> Dict[str, int]:
    """Heads per role at the average contract size."""
    fraction = avg_contract_fraction if avg_contract_fraction > 0 else DemandConfig.avg_contract_fraction
    return {
        name: math.ceil(round(getattr(rounded, name) / fraction, 9))
        for name in ROLE_FIELDS
    }


def coverage_ratios(rounded: FteByRole, current: Optional[CurrentFte]) -> Optional[Dict[str, float]]:
    """Current over recommended FTE for every role both sides know."""
    if current is None:
        return None
    coverage = {}
    for name in ROLE_FIELDS:
        actual = getattr(current, name)
        needed = getattr(rounded, name)
        if actual is not None and needed > 0:
            coverage[name] = round(_safe_number(actual) / needed, 2)
    return coverage or None


def compute_staffing_demand(
    inputs: StaffingDemandInput,
    current: Optional[CurrentFte] = None,
    config: Optional[DemandConfig] = None,
) -> StaffingDemand:
    """Recommended FTE per role.

    Args:
        inputs: Practice structure and volume.
        current: Today's FTE per role, for coverage ratios.
        config: Buffers and rounding; defaults if None.

    Returns:
        StaffingDemand. Never raises on malformed numbers.
    """
    config = config or DemandConfig()
    clinical_buffer = _safe_number(config.clinical_buffer)
    admin_buffer = _safe_number(config.admin_buffer)
    step = _safe_number(config.rounding_step_fte)
    providers = _safe_number(inputs.providers_fte)

    derived = derive_values(inputs, config)
    base = base_fte(inputs, derived)
    buffered = buffered_fte(base, clinical_buffer, admin_buffer)
    rounded = rounded_fte(buffered, step)

    chairs = derived.chairs
    chairside_per_chair = round(rounded.chairside / chairs, 2) if chairs > 0 else 0.0
    assistants_per_chair = round(rounded.assistant_total / chairs, 2) if chairs > 0 else 0.0
    frontdesk_per_provider = round(rounded.frontdesk / providers, 2) if providers > 0 else 0.0

    active = (
        providers > 0 or chairs > 0 or derived.patients_per_day > 0
        or _safe_number(inputs.prophylaxis_chairs) > 0
    )

    demand = StaffingDemand(
        derived=derived,
        base=base,
        buffered=buffered,
        rounded=rounded,
        chairside_per_chair=chairside_per_chair,
        assistants_per_chair=assistants_per_chair,
        frontdesk_per_provider_fte=frontdesk_per_provider,
        flags=demand_flags(chairside_per_chair, rounded, derived, providers),
        headcount=headcount_hint(rounded, _safe_number(config.avg_contract_fraction)),
        coverage=coverage_ratios(rounded, current),
        is_practice_active=active,
    )
    logger.debug(
        f"Staffing demand: total={demand.total_from_rounded_parts} FTE, "
        f"flags={[f.id for f in demand.flags]}"
    )
    return demand


def demand_for_practice(
    classification: StaffClassification,
    treatment_rooms: int,
    patients_per_day: int,
    config: Optional[DemandConfig] = None,
) -> StaffingDemand:
    """Demand for a classified roster, with coverage of today's assistants.

    Exam rooms stand in for treatment rooms and a zero volume is read as
    unknown, so the volume is estimated from the chairs.
    """
    inputs = StaffingDemandInput(
        providers_fte=classification.providers_fte,
        treatment_rooms=treatment_rooms,
        patients_per_day=patients_per_day if patients_per_day > 0 else None,
    )
    current = CurrentFte(
        assistant_total=classification.clinical_assistants_fte,
        frontdesk=classification.frontdesk_fte,
    )
    return compute_staffing_demand(inputs, current, config)
