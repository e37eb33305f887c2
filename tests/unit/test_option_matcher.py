"""Unit tests for listbox option matching."""

import pytest

from option_matcher import first_number, match_option, normalize, normalize_loose


class TestNormalizers:
    """Tests for the text normalizers."""

    def test_normalize_trims(self) -> None:
        assert normalize("  Cheque \n") == "Cheque"

    def test_normalize_none(self) -> None:
        assert normalize(None) == ""

    def test_normalize_loose_drops_whitespace_and_case(self) -> None:
        assert normalize_loose(" Fully  Built\t") == "fullybuilt"

    @pytest.mark.parametrize(
        "text,expected",
        [("20%", "20"), ("Level 20", "20"), ("30 %", "30"), ("2023-24", "2023"), ("None", None)],
    )
    def test_first_number(self, text, expected) -> None:
        assert first_number(text) == expected


class TestMatchOption:
    """Tests for the matching tiers."""

    def test_exact_match_wins_over_earlier_contains(self) -> None:
        """An exact option is picked even when a containing option comes first."""
        match = match_option(["Level 20 Plus", "Level 20"], "Level 20")
        assert match.index == 1
        assert match.tier == "exact"

    def test_exact_match_is_trimmed(self) -> None:
        match = match_option(["  Cash ", "  Cheque  "], "Cheque ")
        assert match.index == 1
        assert match.text == "Cheque"
        assert match.tier == "exact"

    def test_exact_match_wins_over_numeric(self) -> None:
        match = match_option(["20 Plus", "20%"], "20%", numeric=True)
        assert match.text == "20%"
        assert match.tier == "exact"

    def test_contains(self) -> None:
        match = match_option(["TATA", "FORD INDIA"], "FORD")
        assert match.index == 1
        assert match.tier == "contains"

    def test_contains_is_case_sensitive(self) -> None:
        """Case differences fall through to the loose tier."""
        match = match_option(["Fully Built"], "fully built")
        assert match.tier == "loose"

    def test_loose_ignores_whitespace(self) -> None:
        match = match_option(["Chassis", "Fully  Built"], "FullyBuilt")
        assert match.index == 1
        assert match.tier == "loose"

    def test_numeric_picks_level_option(self) -> None:
        """'20%' matches 'Level 20' only through the digit run."""
        match = match_option(["10%", "Level 20", "30 %"], "20%", numeric=True)
        assert match.text == "Level 20"
        assert match.tier == "numeric"

    def test_numeric_plain_number(self) -> None:
        match = match_option(["10%", "Level 20", "30 %"], "20", numeric=True)
        assert match.text == "Level 20"

    def test_numeric_disabled(self) -> None:
        assert match_option(["10%", "Level 20", "30 %"], "20%") is None

    def test_numeric_needs_digits_in_target(self) -> None:
        assert match_option(["10%", "Level 20"], "twenty", numeric=True) is None

    def test_numeric_no_digit_match(self) -> None:
        assert match_option(["10%", "Level 20", "30 %"], "55%", numeric=True) is None

    def test_blank_target_matches_nothing(self) -> None:
        assert match_option(["A", "B"], "   ") is None

    def test_no_options(self) -> None:
        assert match_option([], "FORD") is None
