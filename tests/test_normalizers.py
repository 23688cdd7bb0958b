"""Tests for the field normalizers and display formatters."""

import pytest

from autotrader.scraper.normalizers import (
    ad_id_from_url,
    clean_text,
    format_mileage,
    format_price,
    normalize_status,
    parse_mileage,
    parse_price,
    to_int,
)


class TestParsePrice:
    def test_currency_and_thousands_separator(self) -> None:
        assert parse_price("$24,995") == 24995

    def test_empty_string_is_absent(self) -> None:
        assert parse_price("") is None

    def test_none_is_absent(self) -> None:
        assert parse_price(None) is None

    def test_text_without_digits_is_absent(self) -> None:
        assert parse_price("Call for price") is None

    def test_first_run_of_digits_wins(self) -> None:
        assert parse_price("$18,500 + tax (13%)") == 18500

    def test_adjacent_prices_are_not_joined(self) -> None:
        assert parse_price("$24,995 $26,500") == 24995

    def test_million_with_several_groups(self) -> None:
        assert parse_price("$1,234,567") == 1234567

    def test_non_breaking_space_grouping(self) -> None:
        assert parse_price("24\u00a0995 $") == 24995

    def test_numeric_input(self) -> None:
        assert parse_price(15999) == 15999


class TestParseMileage:
    def test_unit_suffix(self) -> None:
        assert parse_mileage("112,340 km") == 112340

    def test_space_grouped_thousands(self) -> None:
        assert parse_mileage("112 340 km") == 112340

    def test_absent(self) -> None:
        assert parse_mileage("N/A") is None


@pytest.mark.parametrize(
    "value, expected",
    [("2019", 2019), (7.9, 7), (5, 5), (True, None), (float("nan"), None), ({"a": 1}, None), ("", None)],
)
def test_to_int(value, expected) -> None:
    assert to_int(value) == expected


def test_clean_text_collapses_whitespace() -> None:
    assert clean_text("  2019   Honda\n Civic ") == "2019 Honda Civic"
    assert clean_text("   ") is None
    assert clean_text(None) is None


def test_display_formatters() -> None:
    assert format_price(24995) == "$24,995"
    assert format_mileage(112340) == "112,340 km"
    assert format_price(None) is None
    assert format_mileage(None) is None


@pytest.mark.parametrize(
    "value, expected",
    [
        ("New", "New"),
        ("https://schema.org/NewCondition", "New"),
        ("USED", "Used"),
        ("https://schema.org/UsedCondition", "Used"),
        ("Certified Pre-Owned", "Used"),
        ("Used - like new", "Used"),
        ("Active", None),
        (None, None),
    ],
)
def test_normalize_status(value, expected) -> None:
    assert normalize_status(value) == expected


def test_ad_id_from_url() -> None:
    url = "https://www.autotrader.ca/a/honda/civic/toronto/ontario/5_12345_20240101/?showcpo=ShowCpo"
    assert ad_id_from_url(url) == "5_12345_20240101"
    assert ad_id_from_url("https://www.autotrader.ca/cars/honda/") is None
    assert ad_id_from_url(None) is None
