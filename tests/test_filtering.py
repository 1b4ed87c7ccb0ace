"""Tests for release dates, set filters, field normalizers and print status."""

from datetime import date

import pytest

from carddex.filtering import (
    SetFilterOptions,
    add_months,
    clean_text,
    cutoff_date,
    derive_print_status,
    normalize_rarity,
    normalize_release_date,
    normalize_types,
    parse_price,
    parse_release_date,
    passes_age_filter,
    passes_min_set_number,
    print_status_cutoffs,
    resolve_is_in_print,
    set_number,
    subtract_months,
)
from carddex.models.catalog import PrintStatus

TODAY = date(2026, 10, 18)


class TestParseReleaseDate:
    def test_iso_date(self) -> None:
        """Parses YYYY-MM-DD."""
        assert parse_release_date("2023-03-31") == date(2023, 3, 31)

    def test_slash_date(self) -> None:
        """Parses the pokemontcg.io YYYY/MM/DD form."""
        assert parse_release_date("1999/01/09") == date(1999, 1, 9)

    def test_iso_timestamp(self) -> None:
        """Parses full ISO timestamps, including a Z suffix."""
        assert parse_release_date("2024-02-16T00:00:00Z") == date(2024, 2, 16)

    @pytest.mark.parametrize("value", [None, "", "not-a-date", "2023-13-45"])
    def test_unparseable(self, value: str | None) -> None:
        """Garbage yields None."""
        assert parse_release_date(value) is None


class TestNormalizeReleaseDate:
    def test_converts_to_iso(self) -> None:
        """Slash dates come out ISO."""
        assert normalize_release_date("2023/03/31", "1999-01-01") == "2023-03-31"

    def test_empty_uses_default(self) -> None:
        """Missing dates fall back to the provider default."""
        assert normalize_release_date(None, "1993-08-05") == "1993-08-05"
        assert normalize_release_date("  ", "1993-08-05") == "1993-08-05"

    def test_unparseable_kept(self) -> None:
        """Unparseable values pass through unchanged."""
        assert normalize_release_date("TBA", "1999-01-01") == "TBA"


class TestMonthArithmetic:
    def test_subtract_keeps_day(self) -> None:
        """Day of month is kept when it exists."""
        assert subtract_months(date(2026, 10, 18), 6) == date(2026, 4, 18)

    def test_subtract_crosses_year(self) -> None:
        """Month arithmetic wraps the year."""
        assert subtract_months(date(2026, 1, 15), 13) == date(2024, 12, 15)

    def test_subtract_rolls_overflow_forward(self) -> None:
        """31 March minus one month is 3 March, not 28 February."""
        assert subtract_months(date(2023, 3, 31), 1) == date(2023, 3, 3)

    def test_subtract_rolls_leap_year(self) -> None:
        """In a leap year the overflow is one day shorter."""
        assert subtract_months(date(2024, 3, 31), 1) == date(2024, 3, 2)

    def test_add_months(self) -> None:
        assert add_months(date(2022, 7, 22), 12) == date(2023, 7, 22)


class TestCutoffDate:
    @pytest.mark.parametrize("months", [None, 0, -3])
    def test_disabled(self, months: int | None) -> None:
        """None, zero and negative ages disable the filter."""
        assert cutoff_date(months, TODAY) is None

    def test_months_back(self) -> None:
        assert cutoff_date(12, TODAY) == date(2025, 10, 18)

    def test_options_cutoff(self) -> None:
        """SetFilterOptions delegates to cutoff_date."""
        assert SetFilterOptions(max_age_months=12).cutoff(TODAY) == date(2025, 10, 18)
        assert SetFilterOptions().cutoff(TODAY) is None


class TestAgeFilter:
    def test_recent_set_passes(self) -> None:
        """A set from six months ago passes a 12 month filter."""
        cutoff = cutoff_date(12, TODAY)
        released = subtract_months(TODAY, 6).isoformat()
        assert passes_age_filter(released, cutoff) is True

    def test_old_set_excluded(self) -> None:
        """A set from thirteen months ago fails a 12 month filter."""
        cutoff = cutoff_date(12, TODAY)
        released = subtract_months(TODAY, 13).isoformat()
        assert passes_age_filter(released, cutoff) is False

    def test_unparseable_date_passes(self) -> None:
        """Sets with bad dates are never filtered out."""
        assert passes_age_filter("not-a-date", cutoff_date(12, TODAY)) is True

    def test_cutoff_day_inclusive(self) -> None:
        """A set released on the cutoff date passes."""
        cutoff = cutoff_date(12, TODAY)
        assert passes_age_filter(cutoff.isoformat(), cutoff) is True

    def test_no_cutoff(self) -> None:
        assert passes_age_filter("1999-01-09", None) is True


class TestSetNumber:
    @pytest.mark.parametrize(
        ("code", "expected"),
        [("OP05", 5), ("BT12", 12), ("FB01", 1), ("ST", None), ("P", None)],
    )
    def test_numeric_suffix(self, code: str, expected: int | None) -> None:
        assert set_number(code) == expected

    def test_min_set_number(self) -> None:
        """Sets numbered below the threshold are excluded."""
        assert passes_min_set_number("OP05", 5) is True
        assert passes_min_set_number("OP04", 5) is False

    def test_unnumbered_sets_pass(self) -> None:
        """Codes without a numeric suffix are never excluded."""
        assert passes_min_set_number("P", 5) is True

    def test_no_threshold(self) -> None:
        assert passes_min_set_number("OP01", None) is True


class TestFieldNormalizers:
    def test_clean_text(self) -> None:
        assert clean_text("  Pikachu ") == "Pikachu"
        assert clean_text("   ") is None
        assert clean_text(None) is None

    def test_normalize_types_dedupes_in_order(self) -> None:
        """Blanks are dropped and the first occurrence wins."""
        assert normalize_types(["Fire", " ", "Water", "Fire", None]) == ["Fire", "Water"]

    def test_normalize_types_empty(self) -> None:
        assert normalize_types(None) == []

    def test_normalize_rarity(self) -> None:
        assert normalize_rarity("Rare  Holo ") == "Rare Holo"
        assert normalize_rarity("") is None

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(1.25, 1.25), ("0.50", 0.5), (3, 3.0), ("", None), ("n/a", None), (None, None)],
    )
    def test_parse_price(self, value: object, expected: float | None) -> None:
        assert parse_price(value) == expected

    def test_parse_price_rejects_negative_and_nan(self) -> None:
        assert parse_price("-1") is None
        assert parse_price(float("nan")) is None
        assert parse_price(True) is None


class TestPrintStatus:
    def test_cutoffs(self) -> None:
        """Default windows are 24 and 60 months."""
        assert print_status_cutoffs(24, 60, TODAY) == (date(2024, 10, 18), date(2021, 10, 18))

    def test_derive(self) -> None:
        """Sets are classified by which window their release falls in."""
        oop, vintage = print_status_cutoffs(24, 60, TODAY)

        assert derive_print_status("2026-01-01", oop, vintage) is PrintStatus.CURRENT
        assert derive_print_status("2023-01-01", oop, vintage) is PrintStatus.OUT_OF_PRINT
        assert derive_print_status("2015-01-01", oop, vintage) is PrintStatus.VINTAGE

    def test_derive_unparseable(self) -> None:
        oop, vintage = print_status_cutoffs(24, 60, TODAY)
        assert derive_print_status("TBA", oop, vintage) is None

    def test_resolve_is_in_print(self) -> None:
        """Explicit flag wins, otherwise current and limited are in print."""
        assert resolve_is_in_print(PrintStatus.LIMITED) is True
        assert resolve_is_in_print(PrintStatus.VINTAGE) is False
        assert resolve_is_in_print(PrintStatus.CURRENT, False) is False
