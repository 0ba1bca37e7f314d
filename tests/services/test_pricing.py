import math

import pytest

from services import pricing


FULL_PRICES = {
    "tcgplayer": {"market": 1.25, "low": 0.9, "mid": 1.1, "high": 3.0, "listings": 40},
    "cardmarket": {"averagePrice": 0.8, "lowPrice": 0.5, "listings": 120},
    "yuyutei": {"price": 150},
}


def test_lowest_price_spans_all_sources_without_conversion():
    assert pricing.lowest_price(FULL_PRICES) == 0.5


def test_lowest_price_counts_yen_as_raw_number():
    prices = {"yuyutei": {"price": 0.3}, "tcgplayer": {"market": 2.0}}
    assert pricing.lowest_price(prices) == 0.3


@pytest.mark.parametrize("value", [None, {}, [], "junk", 42, {"ebay": {"price": 1}}])
def test_lowest_price_sentinel_when_nothing_known(value):
    assert pricing.lowest_price(value) == 0.0


def test_lowest_price_ignores_listings_and_garbage_fields():
    prices = {
        "tcgplayer": {"market": "n/a", "listings": 1},
        "cardmarket": {"averagePrice": True, "lowPrice": float("nan")},
        "yuyutei": {"price": "1,200"},
    }
    assert pricing.lowest_price(prices) == 1200.0


def test_listings_count_sums_reporting_sources():
    assert pricing.listings_count(FULL_PRICES) == 160
    assert pricing.listings_count({"yuyutei": {"price": 100}}) == 0
    assert pricing.listings_count(None) == 0


def test_parse_prices_builds_typed_records():
    records = pricing.parse_prices(FULL_PRICES)
    assert isinstance(records["tcgplayer"], pricing.TcgplayerPrice)
    assert isinstance(records["cardmarket"], pricing.CardmarketPrice)
    assert isinstance(records["yuyutei"], pricing.YuyuteiPrice)
    assert records["cardmarket"].average_price == 0.8
    assert records["tcgplayer"].currency == "USD"


def test_jpy_conversion_uses_fixed_rates():
    assert pricing.jpy_to_usd(1000) == 6.7
    assert pricing.jpy_to_eur(1000) == 6.2
    assert pricing.convert_jpy(None, 0.5) is None
    assert pricing.convert_jpy("abc", 0.5) is None


def test_price_comparison_rows_in_source_order():
    rows = pricing.price_comparison(FULL_PRICES)
    assert [row["source"] for row in rows] == ["tcgplayer", "cardmarket", "yuyutei"]

    tcg, cm, yyt = rows
    assert tcg["usd"] == 1.25 and tcg["listings"] == 40
    assert cm["eur"] == 0.8 and cm["usd"] is None
    assert yyt["jpy"] == 150
    assert yyt["usd"] == round(150 * pricing.DEFAULT_JPY_TO_USD, 2)
    assert yyt["eur"] == round(150 * pricing.DEFAULT_JPY_TO_EUR, 2)


def test_price_comparison_fallbacks():
    rows = pricing.price_comparison(
        {"tcgplayer": {"mid": 2.5}, "cardmarket": {"lowPrice": 1.75}}
    )
    assert rows[0]["usd"] == 2.5
    assert rows[1]["eur"] == 1.75


def test_price_summary_and_label():
    summary = pricing.price_summary(FULL_PRICES)
    assert summary == {"lowest": 0.5, "listings": 160, "sources": ["tcgplayer", "cardmarket", "yuyutei"]}
    assert pricing.format_price_text(None) == "0.00"
    assert pricing.format_price_text({"tcgplayer": {"low": 0.449}}) == "0.45"


def test_helpers_never_raise_on_hostile_input():
    weird = {"tcgplayer": "string", "cardmarket": None, "yuyutei": {"price": math.inf}}
    assert pricing.lowest_price(weird) == 0.0
    assert pricing.price_comparison(weird) == [
        {
            "source": "yuyutei",
            "label": "Yuyu-tei",
            "currency": "JPY",
            "usd": None,
            "eur": None,
            "jpy": None,
            "listings": None,
        }
    ]
