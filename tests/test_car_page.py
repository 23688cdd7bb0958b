"""Tests for the heuristic DOM extractor."""

from autotrader.scraper.page import ParsedPage
from autotrader.scraper.parsers.car_page import CarPageParser

from .helpers import detail_url

URL = detail_url(3)

DETAIL_HTML = """<!DOCTYPE html>
<html><body>
  <h1>2018 Toyota RAV4 LE AWD</h1>
  <div class="hero-price">$21,500</div>
  <div class="hero-mileage">84,000 km</div>
  <div class="dealer-location">Ottawa, ON</div>
  <div class="dealer-name">Capital Toyota</div>
  <dl>
    <dt>Transmission:</dt><dd>Automatic</dd>
    <dt>Drivetrain</dt><dd>AWD</dd>
    <dt>Status</dt><dd>Used</dd>
    <dt>Doors</dt><dd>4 doors</dd>
  </dl>
  <table><tr><th>VIN</th><td>2T3BFREV0JW000001</td></tr></table>
  <div class="spec-row"><span class="spec-label">Fuel Type</span><span class="spec-value">Gasoline</span></div>
  <div class="vehicle-description">One owner, no accidents.</div>
  <div class="gallery">
    <img src="https://images.autotrader.ca/1.jpg?size=large">
    <img data-src="/photos/2.jpg">
    <img src="/static/logo.png">
    <img src="https://images.autotrader.ca/1.jpg">
  </div>
  <ul class="features"><li>Heated Seats</li><li>Backup Camera</li><li>Heated Seats</li></ul>
</body></html>
"""


def _extract(html: str) -> dict:
    return CarPageParser().run(ParsedPage.from_html(URL, html)).values


def test_full_detail_page() -> None:
    values = _extract(DETAIL_HTML)

    assert values["ad_id"] == "5_1003_20240101"
    assert (values["year"], values["make"], values["model"], values["trim"]) == (2018, "Toyota", "RAV4", "LE AWD")
    assert values["price"] == 21500
    assert values["price_formatted"] == "$21,500"
    assert values["mileage"] == 84000
    assert values["mileage_formatted"] == "84,000 km"
    assert values["city"] == "Ottawa"
    assert values["province"] == "ON"
    assert values["seller_name"] == "Capital Toyota"
    assert values["transmission"] == "Automatic"
    assert values["drivetrain"] == "AWD"
    assert values["doors"] == 4
    assert values["vin"] == "2T3BFREV0JW000001"
    assert values["fuel_type"] == "Gasoline"
    assert values["vehicle_status"] == "Used"
    assert values["description"] == "One owner, no accidents."
    assert values["images"] == ["https://images.autotrader.ca/1.jpg", "https://www.autotrader.ca/photos/2.jpg"]
    assert values["features"] == ["Heated Seats", "Backup Camera"]
    assert "is_private_seller" not in values


def test_price_with_currency_preferred() -> None:
    html = """<html><body>
      <div class="price-amount">Starting at</div>
      <div class="price-container">$9,999</div>
    </body></html>"""
    values = _extract(html)
    assert values["price"] == 9999
    assert values["price_formatted"] == "$9,999"


def test_mileage_from_spec_table() -> None:
    html = "<html><body><table><tr><td>Kilometres</td><td>56,000 km</td></tr></table></body></html>"
    assert _extract(html)["mileage"] == 56000


def test_private_seller_flag() -> None:
    html = '<html><body><div class="private-seller-badge">Private seller</div></body></html>'
    assert _extract(html)["is_private_seller"] is True


def test_empty_page_still_returns_partial() -> None:
    partial = CarPageParser().run(ParsedPage.from_html(URL, "<html><body><p>Sold</p></body></html>"))
    assert partial is not None
    assert partial.source == "dom"
    assert partial.priority == 3
    assert "make" not in partial.values
    assert "price" not in partial.values
    assert partial.values["images"] == []


def test_struck_through_original_price_ignored() -> None:
    html = '<html><body><div class="hero-price">$24,995 <s>$26,500</s></div></body></html>'
    values = _extract(html)
    assert values["price"] == 24995
