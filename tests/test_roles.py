"""Tests for staff role normalisation and classification."""

import unicodedata

import pytest

from praxisflow.core.entities import RoleCategory
from praxisflow.staffing.roles import (
    CLASSIFICATION_RULES,
    RULE_ORDER,
    classify_raw_role,
    classify_role,
    classify_staff_for_ratios,
    normalize_role,
    validate_rules,
)

from conftest import make_staff


class TestNormalizeRole:
    """Tests for normalize_role()."""

    @pytest.mark.parametrize("raw,expected", [
        ("Zahnärztin", "zahnaerztin"),
        ("  ZFA (Prophylaxe) ", "zfa_prophylaxe"),
        ("Empfang / Rezeption", "empfang_rezeption"),
        ("Dr. med. dent.", "dr_med_dent"),
        ("Praxis-Managerin", "praxis_managerin"),
        ("Straße", "strasse"),
        ("Hygiéniste", "hygieniste"),
        ("a--b__c", "a_b_c"),
    ])
    def test_examples(self, raw, expected):
        """Umlauts, punctuation and separators are normalised."""
        assert normalize_role(raw) == expected

    @pytest.mark.parametrize("raw", [None, 42, "", "   ", "---", ["zfa"]])
    def test_empty_or_non_string(self, raw):
        """Non-strings and blank strings normalise to empty."""
        assert normalize_role(raw) == ""

    @pytest.mark.parametrize("raw", [
        "Zahnärztin", "ZFA (Prophylaxe)", "Empfang / Rezeption", "Dr. med.", "Hygiéniste",
    ])
    def test_idempotent(self, raw):
        """normalize(normalize(x)) == normalize(x)."""
        once = normalize_role(raw)
        assert normalize_role(once) == once

    @pytest.mark.parametrize("raw", [
        "Zahnärztin", "Geschäftsführerin", "Ärztlicher Leiter", "Bürokraft", "Röntgenassistentin",
    ])
    def test_decomposed_input(self, raw):
        """Decomposed (NFD) titles normalise like their composed form."""
        decomposed = unicodedata.normalize("NFD", raw)
        assert decomposed != raw
        assert normalize_role(decomposed) == normalize_role(raw)


class TestClassifyRole:
    """Tests for the ordered rule table."""

    @pytest.mark.parametrize("raw,expected", [
        # Providers
        ("Zahnarzt", RoleCategory.PROVIDER),
        ("Zahnärztin", RoleCategory.PROVIDER),
        ("ZAHNÄRZTIN", RoleCategory.PROVIDER),
        ("Dr. med.", RoleCategory.PROVIDER),
        ("Dentist", RoleCategory.PROVIDER),
        ("Fachärztin", RoleCategory.PROVIDER),
        ("Behandler", RoleCategory.PROVIDER),
        ("Zahnarzt Inhaber", RoleCategory.PROVIDER),
        # Clinical assistants
        ("ZFA", RoleCategory.CLINICAL_ASSISTANT),
        ("MFA", RoleCategory.CLINICAL_ASSISTANT),
        ("Prophylaxe-Assistentin", RoleCategory.CLINICAL_ASSISTANT),
        ("Dentalhygienikerin", RoleCategory.CLINICAL_ASSISTANT),
        ("Sterilisationsassistent", RoleCategory.CLINICAL_ASSISTANT),
        # Front desk
        ("Empfang", RoleCategory.FRONTDESK),
        ("Rezeptionistin", RoleCategory.FRONTDESK),
        ("Front Desk", RoleCategory.FRONTDESK),
        ("Anmeldung", RoleCategory.FRONTDESK),
        # Excluded
        ("Praxismanagerin", RoleCategory.EXCLUDED),
        ("Praxisinhaber", RoleCategory.EXCLUDED),
        ("Geschäftsführer", RoleCategory.EXCLUDED),
        ("Buchhaltung", RoleCategory.EXCLUDED),
        # Unknown
        ("Hausmeister", RoleCategory.UNKNOWN),
        ("", RoleCategory.UNKNOWN),
        (None, RoleCategory.UNKNOWN),
    ])
    def test_corpus(self, raw, expected):
        """Every corpus title maps to its expected category."""
        assert classify_raw_role(raw) == expected

    @pytest.mark.parametrize("raw,expected", [
        ("Arzthelferin", RoleCategory.CLINICAL_ASSISTANT),
        ("Zahnarzthelferin", RoleCategory.CLINICAL_ASSISTANT),
        ("Arztsekretärin", RoleCategory.FRONTDESK),
        ("Arztpraxis", RoleCategory.UNKNOWN),
        ("Terminverwaltung", RoleCategory.FRONTDESK),
    ])
    def test_near_miss_titles(self, raw, expected):
        """Compound words sharing the provider stem are not providers."""
        assert classify_raw_role(raw) == expected

    def test_diacritic_variants_agree(self):
        """Spelling variants of the same title share a category."""
        variants = ["Zahnärztin", "Zahnaerztin", "zahnärztin.", "ZAHNÄRZTIN"]
        categories = {classify_raw_role(v) for v in variants}
        assert categories == {RoleCategory.PROVIDER}

    @pytest.mark.parametrize("raw,expected", [
        ("Geschäftsführerin", RoleCategory.EXCLUDED),
        ("Zahnärztin", RoleCategory.PROVIDER),
    ])
    def test_decomposed_titles_classify_alike(self, raw, expected):
        """A title typed in decomposed form lands in the same category."""
        decomposed = unicodedata.normalize("NFD", raw)
        assert classify_raw_role(raw) == expected
        assert classify_raw_role(decomposed) == expected

    def test_decomposed_umlaut_does_not_change_category(self):
        """Composed and decomposed umlauts give one category, not two."""
        raw = "Ärztlicher Leiter"
        assert classify_raw_role(unicodedata.normalize("NFD", raw)) == classify_raw_role(raw)

    def test_deterministic(self):
        """Repeated calls return the same category."""
        results = [classify_role("zfa_prophylaxe") for _ in range(5)]
        assert results == [RoleCategory.CLINICAL_ASSISTANT] * 5

    def test_excluded_wins_over_provider(self):
        """Owner titles are excluded even with provider-like fragments."""
        assert classify_role("praxisinhaber") == RoleCategory.EXCLUDED


class TestRuleTable:
    """Tests for rule table validation."""

    def test_order_is_fixed(self):
        """Rule order is excluded, provider, clinical, frontdesk."""
        assert tuple(c for c, _ in CLASSIFICATION_RULES) == RULE_ORDER
        assert RULE_ORDER == (
            RoleCategory.EXCLUDED,
            RoleCategory.PROVIDER,
            RoleCategory.CLINICAL_ASSISTANT,
            RoleCategory.FRONTDESK,
        )

    def test_validate_rejects_reordered(self):
        """A reordered table fails validation."""
        reordered = (CLASSIFICATION_RULES[1], CLASSIFICATION_RULES[0]) + CLASSIFICATION_RULES[2:]
        with pytest.raises(ValueError, match="out of order"):
            validate_rules(reordered)

    def test_validate_accepts_shipped_table(self):
        """The shipped table is valid."""
        validate_rules()


class TestClassifyStaffForRatios:
    """Tests for classify_staff_for_ratios()."""

    @pytest.fixture
    def roster(self):
        return [
            make_staff("Zahnarzt", "p1"),
            make_staff("Zahnärztin", "p2", fte=0.5),
            make_staff("ZFA", "c1"),
            make_staff("ZFA", "c2", fte=0.75),
            make_staff("Empfang", "f1"),
            make_staff("Praxismanagerin", "x1"),
            make_staff("Hausmeister", "u1"),
            make_staff("Gärtner", "u2"),
            make_staff(None, "u3"),
        ]

    def test_partition_invariant(self, roster):
        """Category counts add up to the roster size."""
        result = classify_staff_for_ratios(roster)

        assert result.providers_count == 2
        assert result.clinical_assistants_count == 2
        assert result.frontdesk_count == 1
        assert result.excluded_count == 1
        assert result.unknown_count == 3
        assert result.total_count == len(roster)
        assert result.support_total_count == (
            result.clinical_assistants_count + result.frontdesk_count
        )

    def test_fte_sums(self, roster):
        """FTE is summed per category."""
        result = classify_staff_for_ratios(roster)

        assert result.providers_fte == pytest.approx(1.5)
        assert result.clinical_assistants_fte == pytest.approx(1.75)
        assert result.support_total_fte == pytest.approx(2.75)

    def test_none_fte_counts_as_full_time(self):
        """A member without FTE counts as 1.0."""
        result = classify_staff_for_ratios([make_staff("ZFA", fte=None)])
        assert result.clinical_assistants_fte == 1.0

    def test_diagnostics_hold_no_ids(self, roster):
        """Histogram and unknown list contain role strings only."""
        result = classify_staff_for_ratios(roster)
        debug = result.debug()

        assert debug["role_histogram"]["zfa"] == 2
        assert debug["unknown_roles"] == ["gaertner", "hausmeister"]
        serialized = repr(debug)
        for member in roster:
            assert f"'{member.id}'" not in serialized

    def test_empty_roster(self):
        """Empty and None rosters give an empty classification."""
        for staff in ([], None):
            result = classify_staff_for_ratios(staff)
            assert result.total_count == 0
            assert result.unknown_roles == []
