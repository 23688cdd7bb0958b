"""Tests for the merge engine."""

from autotrader.scraper.merge import is_empty, merge_extractions
from autotrader.scraper.types import PartialExtraction

URL = "https://www.autotrader.ca/a/honda/civic/toronto/ontario/5_1_20240101/"


def _partial(source: str, priority: int, **values) -> PartialExtraction:
    return PartialExtraction(source=source, priority=priority, values=values)


def test_is_empty() -> None:
    assert is_empty(None)
    assert is_empty("  ")
    assert is_empty([])
    assert not is_empty(False)
    assert not is_empty(0)
    assert not is_empty("Honda")


def test_higher_priority_wins_regardless_of_input_order() -> None:
    record = merge_extractions(
        [
            _partial("dom", 3, make="HONDA", price=25000),
            _partial("structured_model", 1, make="Honda"),
            _partial("linked_data", 2, make="Honda Canada", model="Civic"),
        ],
        URL,
    )
    assert record.make == "Honda"
    assert record.model == "Civic"
    assert record.price == 25000
    assert record.url == URL


def test_blank_values_fall_through() -> None:
    record = merge_extractions(
        [_partial("structured_model", 1, model="  ", trim=""), _partial("dom", 3, model="Civic", trim="EX")],
        URL,
    )
    assert record.model == "Civic"
    assert record.trim == "EX"


def test_false_is_kept() -> None:
    record = merge_extractions(
        [_partial("structured_model", 1, make="Honda", is_private_seller=False), _partial("dom", 3, is_private_seller=True)],
        URL,
    )
    assert record.is_private_seller is False


def test_lists_are_unioned_in_priority_order() -> None:
    record = merge_extractions(
        [
            _partial("dom", 3, make="Honda", images=["c.jpg", "a.jpg"], features=["Sunroof"]),
            _partial("structured_model", 1, images=["a.jpg", "b.jpg"], features=[]),
        ],
        URL,
    )
    assert record.images == ["a.jpg", "b.jpg", "c.jpg"]
    assert record.features == ["Sunroof"]


def test_display_strings_backfilled() -> None:
    record = merge_extractions([_partial("linked_data", 2, price=24995, mileage=112340)], URL)
    assert record.price_formatted == "$24,995"
    assert record.mileage_formatted == "112,340 km"


def test_extractor_display_string_kept() -> None:
    record = merge_extractions([_partial("dom", 3, price=24995, price_formatted="$24,995 +HST")], URL)
    assert record.price_formatted == "$24,995 +HST"


def test_absent_list_fields_are_empty_lists() -> None:
    record = merge_extractions([_partial("dom", 3, make="Honda")], URL)
    assert record.images == []
    assert record.features == []
    assert record.vin is None


def test_record_without_anchor_is_rejected() -> None:
    partials = [_partial("dom", 3, images=["a.jpg"], city="Toronto"), None]
    assert merge_extractions(partials, URL) is None


def test_no_partials() -> None:
    assert merge_extractions([None, None], URL) is None
