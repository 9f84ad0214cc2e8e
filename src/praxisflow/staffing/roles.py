"""Staff role classification.

Free-text job titles ("Zahnärztin", "ZFA (Prophylaxe)", "Empfang") are
normalised and mapped onto a RoleCategory. The mapping is a fixed,
ordered rule list:

    excluded -> provider -> clinical_assistant -> frontdesk -> unknown

Management titles go first because they often contain provider-like
fragments ("Praxisinhaber") and must not count as clinical capacity.

Example usage:
    from praxisflow.staffing.roles import classify_staff_for_ratios

    result = classify_staff_for_ratios(facility.staff)
    result.providers_count, result.support_total_fte
"""

import re
import unicodedata
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Dict, FrozenSet, Iterable, List, Optional, Pattern, Tuple

from praxisflow.core.entities import RoleCategory
from praxisflow.core.facility import StaffMember

_TRANSLITERATIONS = (("ä", "ae"), ("ö", "oe"), ("ü", "ue"), ("ß", "ss"))
_PUNCTUATION = re.compile(r"[(),.;:!?\"']")
_SEPARATORS = re.compile(r"[\s\-–—/\\]+")
_DISALLOWED = re.compile(r"[^a-z0-9_]")
_REPEATED_UNDERSCORE = re.compile(r"_+")


def normalize_role(value: object) -> str:
    """Normalise a raw role string for comparison.

    Composes decomposed input (NFC) first so an "a" followed by a
    combining diaeresis transliterates like "ä". Then lower-cases,
    transliterates umlauts and eszett to digraphs, folds other accented
    letters to ASCII, removes punctuation and joins words with single
    underscores. The result only contains [a-z0-9_].

    Non-string input normalises to the empty string.
    """
    if not isinstance(value, str):
        return ""
    text = unicodedata.normalize("NFC", value).strip().lower()
    for src, dst in _TRANSLITERATIONS:
        text = text.replace(src, dst)
    text = unicodedata.normalize("NFKD", text)
    text = "".join(c for c in text if not unicodedata.combining(c))
    text = _PUNCTUATION.sub("", text)
    text = _SEPARATORS.sub("_", text)
    text = _DISALLOWED.sub("", text)
    text = _REPEATED_UNDERSCORE.sub("_", text)
    return text.strip("_")


@dataclass(frozen=True)
class RoleRule:
    """Matching rule for one category.

    Attributes:
        exact: Normalised titles that match outright.
        patterns: Fragments tried in order when no exact title matched.
        negatives: Near-miss fragments; a title hitting any of them is
            never matched by `patterns` (exact matches still apply).
    """
    exact: FrozenSet[str]
    patterns: Tuple[Pattern[str], ...]
    negatives: Tuple[Pattern[str], ...] = ()

    def matches(self, normalized: str) -> bool:
        if normalized in self.exact:
            return True
        if any(n.search(normalized) for n in self.negatives):
            return False
        return any(p.search(normalized) for p in self.patterns)


def _rule(exact: Iterable[str], patterns: Iterable[str], negatives: Iterable[str] = ()) -> RoleRule:
    return RoleRule(
        exact=frozenset(exact),
        patterns=tuple(re.compile(p) for p in patterns),
        negatives=tuple(re.compile(n) for n in negatives),
    )


EXCLUDED_RULE = _rule(
    exact=[
        "practice_manager", "praxismanager", "praxismanagerin",
        "manager", "managerin", "admin", "administrator",
        "geschaeftsfuehrer", "geschaeftsfuehrerin",
        "inhaber", "inhaberin",      # owner who does not treat
        "buchhaltung", "verwaltung",
    ],
    patterns=[
        r"manager", r"admin", r"geschaeftsfuehr", r"buchhalt", r"verwalt",
        r"^(praxis)?inhaber",
    ],
    # Scheduling desk titles contain "verwaltung" but are frontdesk
    negatives=[r"^terminverwalt"],
)

PROVIDER_RULE = _rule(
    exact=[
        "dentist", "doctor", "zahnarzt", "zahnarztin", "arzt", "aerztin",
        "behandler", "behandlerin", "zahnarzt_inhaber", "zahnarztinhaber",
        "dr", "dr_med", "dr_med_dent",
    ],
    patterns=[
        r"zahnarzt", r"zahnaerzt", r"dentist", r"behandler",
        r"^arzt", r"^aerztin?$", r"fach(arzt|aerzt)", r"^doctor$", r"^dr$",
    ],
    # Compound titles sharing the "arzt" stem that are not providers
    negatives=[r"arzthelfer", r"arztsekretaer", r"arztpraxis"],
)

CLINICAL_ASSISTANT_RULE = _rule(
    exact=[
        "zfa", "dh", "mfa",
        "sterilization_assistant", "sterilisationsassistent", "sterilisationsassistentin",
        "assistant", "nurse", "dental_assistant", "medical_assistant",
        "assistenz", "assistentin", "prophylaxe", "prophylaxeassistentin",
        "zfa_prophylaxe", "zfaprophylaxe", "hygienist", "dentalhygienist",
        "dental_hygienist", "zahnmedizinische_fachangestellte",
    ],
    patterns=[
        r"zfa", r"mfa", r"assist", r"hygien", r"prophy", r"steril", r"^dh$",
        r"helfer",
    ],
)

FRONTDESK_RULE = _rule(
    exact=[
        "empfang", "rezeption", "anmeldung",
        "receptionist", "frontdesk", "front_desk", "reception",
        "empfangsmitarbeiter", "empfangsmitarbeiterin",
        "rezeptionist", "rezeptionistin",
        "anmeldekraft", "terminverwaltung",
    ],
    patterns=[
        r"empfang", r"rezept", r"anmeld", r"front", r"^reception", r"termin",
        r"sekretaer",
    ],
)

# Evaluation order is part of the contract; see validate_rules()
CLASSIFICATION_RULES: Tuple[Tuple[RoleCategory, RoleRule], ...] = (
    (RoleCategory.EXCLUDED, EXCLUDED_RULE),
    (RoleCategory.PROVIDER, PROVIDER_RULE),
    (RoleCategory.CLINICAL_ASSISTANT, CLINICAL_ASSISTANT_RULE),
    (RoleCategory.FRONTDESK, FRONTDESK_RULE),
)

RULE_ORDER = (
    RoleCategory.EXCLUDED,
    RoleCategory.PROVIDER,
    RoleCategory.CLINICAL_ASSISTANT,
    RoleCategory.FRONTDESK,
)


def validate_rules(rules: Tuple[Tuple[RoleCategory, RoleRule], ...] = CLASSIFICATION_RULES) -> None:
    """Check the rule table.

    Raises:
        ValueError: If the category order differs from RULE_ORDER or a rule
            holds an exact title that is not in normalised form.
    """
    order = tuple(category for category, _ in rules)
    if order != RULE_ORDER:
        raise ValueError(
            f"Role rules out of order: {[c.value for c in order]}, "
            f"expected {[c.value for c in RULE_ORDER]}"
        )
    for category, rule in rules:
        for title in rule.exact:
            if normalize_role(title) != title:
                raise ValueError(f"{category.value} exact title not normalised: {title!r}")


validate_rules()


@lru_cache(maxsize=4096)
def classify_role(normalized: str) -> RoleCategory:
    """Map a normalised role onto its category.

    Total: empty or unmatched roles are UNKNOWN.
    """
    if not normalized:
        return RoleCategory.UNKNOWN
    for category, rule in CLASSIFICATION_RULES:
        if rule.matches(normalized):
            return category
    return RoleCategory.UNKNOWN


def classify_raw_role(raw_role: object) -> RoleCategory:
    """Normalise then classify a raw role string."""
    return classify_role(normalize_role(raw_role))


def _fte(member: StaffMember) -> float:
    return member.fte if member.fte is not None else 1.0


@dataclass
class StaffClassification:
    """Staff partitioned by role category.

    The diagnostic fields (`role_histogram`, `unknown_roles`) hold
    normalised role strings only, never staff identifiers.
    """
    providers: List[StaffMember] = field(default_factory=list)
    clinical_assistants: List[StaffMember] = field(default_factory=list)
    frontdesk: List[StaffMember] = field(default_factory=list)
    excluded: List[StaffMember] = field(default_factory=list)
    unknown: List[StaffMember] = field(default_factory=list)
    role_histogram: Dict[str, int] = field(default_factory=dict)
    unknown_roles: List[str] = field(default_factory=list)

    @property
    def providers_count(self) -> int:
        return len(self.providers)

    @property
    def clinical_assistants_count(self) -> int:
        return len(self.clinical_assistants)

    @property
    def frontdesk_count(self) -> int:
        return len(self.frontdesk)

    @property
    def excluded_count(self) -> int:
        return len(self.excluded)

    @property
    def unknown_count(self) -> int:
        return len(self.unknown)

    @property
    def support_total_count(self) -> int:
        return self.clinical_assistants_count + self.frontdesk_count

    @property
    def providers_fte(self) -> float:
        return sum(_fte(s) for s in self.providers)

    @property
    def clinical_assistants_fte(self) -> float:
        return sum(_fte(s) for s in self.clinical_assistants)

    @property
    def frontdesk_fte(self) -> float:
        return sum(_fte(s) for s in self.frontdesk)

    @property
    def support_total_fte(self) -> float:
        return self.clinical_assistants_fte + self.frontdesk_fte

    @property
    def total_count(self) -> int:
        return (
            self.providers_count + self.clinical_assistants_count
            + self.frontdesk_count + self.excluded_count + self.unknown_count
        )

    def members(self, category: RoleCategory) -> List[StaffMember]:
        """Staff list for one category."""
        return {
            RoleCategory.PROVIDER: self.providers,
            RoleCategory.CLINICAL_ASSISTANT: self.clinical_assistants,
            RoleCategory.FRONTDESK: self.frontdesk,
            RoleCategory.EXCLUDED: self.excluded,
            RoleCategory.UNKNOWN: self.unknown,
        }[category]

    def debug(self) -> dict:
        """PII-free diagnostic payload (counts, FTE sums, role strings)."""
        return {
            "providers_count": self.providers_count,
            "clinical_assistants_count": self.clinical_assistants_count,
            "frontdesk_count": self.frontdesk_count,
            "support_total_count": self.support_total_count,
            "excluded_count": self.excluded_count,
            "unknown_count": self.unknown_count,
            "providers_fte": round(self.providers_fte, 2),
            "clinical_assistants_fte": round(self.clinical_assistants_fte, 2),
            "frontdesk_fte": round(self.frontdesk_fte, 2),
            "support_total_fte": round(self.support_total_fte, 2),
            "role_histogram": dict(sorted(self.role_histogram.items())),
            "unknown_roles": list(self.unknown_roles),
        }


def classify_staff_for_ratios(staff: Optional[Iterable[StaffMember]]) -> StaffClassification:
    """Partition a roster into role categories.

    Never raises for bad roles: a missing, non-string or unrecognised
    title lands in `unknown`.

    Args:
        staff: Staff roster (may be empty or None).

    Returns:
        StaffClassification with per-category lists and diagnostics.
    """
    result = StaffClassification()
    unknown_roles = set()

    for member in staff or ():
        normalized = normalize_role(member.raw_role)
        category = classify_role(normalized)

        if normalized:
            result.role_histogram[normalized] = result.role_histogram.get(normalized, 0) + 1
        if category == RoleCategory.UNKNOWN and normalized:
            unknown_roles.add(normalized)

        result.members(category).append(member)

    result.unknown_roles = sorted(unknown_roles)
    return result
