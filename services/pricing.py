"""Shared pricing helpers for iCollect routes, views and CLI commands.

A card's ``prices`` column holds one loosely-shaped sub-record per
marketplace::

    {
        "tcgplayer":  {"market": 1.2, "low": 0.9, "mid": 1.1, "high": 3.0, "listings": 40},
        "cardmarket": {"averagePrice": 0.8, "lowPrice": 0.5, "listings": 120},
        "yuyutei":    {"price": 150},
    }

`parse_prices` turns that blob into one typed record per source. Every
aggregate below dispatches on those record types, so adding a marketplace
means adding a record class and a branch in `_price_fields`/`_listings`.

All public functions accept anything (including ``None``) and never raise.
USD and EUR figures are compared as raw numbers in `lowest_price`; only the
display helpers convert JPY, using fixed rates.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union

__all__ = [
    "SOURCE_TCGPLAYER",
    "SOURCE_CARDMARKET",
    "SOURCE_YUYUTEI",
    "PRICE_SOURCES",
    "DEFAULT_JPY_TO_USD",
    "DEFAULT_JPY_TO_EUR",
    "TcgplayerPrice",
    "CardmarketPrice",
    "YuyuteiPrice",
    "parse_prices",
    "lowest_price",
    "listings_count",
    "convert_jpy",
    "jpy_to_usd",
    "jpy_to_eur",
    "price_comparison",
    "price_summary",
    "format_price_text",
]

SOURCE_TCGPLAYER = "tcgplayer"
SOURCE_CARDMARKET = "cardmarket"
SOURCE_YUYUTEI = "yuyutei"
PRICE_SOURCES: tuple[str, ...] = (SOURCE_TCGPLAYER, SOURCE_CARDMARKET, SOURCE_YUYUTEI)

# Approximate display rates; not a live FX lookup.
DEFAULT_JPY_TO_USD = 0.0067
DEFAULT_JPY_TO_EUR = 0.0062


@dataclass(frozen=True, slots=True)
class TcgplayerPrice:
    market: Optional[float] = None
    low: Optional[float] = None
    mid: Optional[float] = None
    high: Optional[float] = None
    listings: Optional[int] = None
    currency: str = "USD"


@dataclass(frozen=True, slots=True)
class CardmarketPrice:
    average_price: Optional[float] = None
    low_price: Optional[float] = None
    listings: Optional[int] = None
    currency: str = "EUR"


@dataclass(frozen=True, slots=True)
class YuyuteiPrice:
    price: Optional[float] = None
    currency: str = "JPY"


PriceRecord = Union[TcgplayerPrice, CardmarketPrice, YuyuteiPrice]


def _number(value: Any) -> Optional[float]:
    """Coerce JSON scalars to float; bools, blanks, NaN and junk become None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        num = float(value)
    elif isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return None
        try:
            num = float(text)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(num) or math.isinf(num):
        return None
    return num


def _count(value: Any) -> Optional[int]:
    num = _number(value)
    if num is None:
        return None
    return int(num)


def parse_prices(prices: Any) -> Dict[str, PriceRecord]:
    """Return ``{source: record}`` for every recognised marketplace sub-record."""
    if not isinstance(prices, Mapping):
        return {}
    records: Dict[str, PriceRecord] = {}

    raw = prices.get(SOURCE_TCGPLAYER)
    if isinstance(raw, Mapping):
        records[SOURCE_TCGPLAYER] = TcgplayerPrice(
            market=_number(raw.get("market")),
            low=_number(raw.get("low")),
            mid=_number(raw.get("mid")),
            high=_number(raw.get("high")),
            listings=_count(raw.get("listings")),
        )

    raw = prices.get(SOURCE_CARDMARKET)
    if isinstance(raw, Mapping):
        records[SOURCE_CARDMARKET] = CardmarketPrice(
            average_price=_number(raw.get("averagePrice")),
            low_price=_number(raw.get("lowPrice")),
            listings=_count(raw.get("listings")),
        )

    raw = prices.get(SOURCE_YUYUTEI)
    if isinstance(raw, Mapping):
        records[SOURCE_YUYUTEI] = YuyuteiPrice(price=_number(raw.get("price")))

    return records


def _price_fields(record: PriceRecord) -> tuple[Optional[float], ...]:
    if isinstance(record, TcgplayerPrice):
        return (record.market, record.low, record.mid, record.high)
    if isinstance(record, CardmarketPrice):
        return (record.average_price, record.low_price)
    if isinstance(record, YuyuteiPrice):
        return (record.price,)
    raise TypeError(f"unhandled price record {type(record).__name__}")


def _listings(record: PriceRecord) -> int:
    if isinstance(record, (TcgplayerPrice, CardmarketPrice)):
        return record.listings or 0
    if isinstance(record, YuyuteiPrice):
        return 0
    raise TypeError(f"unhandled price record {type(record).__name__}")


def lowest_price(prices: Any) -> float:
    """Minimum of every numeric price field across all sources, or 0.0 when none."""
    values = [
        value
        for record in parse_prices(prices).values()
        for value in _price_fields(record)
        if value is not None
    ]
    if not values:
        return 0.0
    return min(values)


def listings_count(prices: Any) -> int:
    """Total listings across the sources that report them."""
    return sum(_listings(record) for record in parse_prices(prices).values())


def convert_jpy(amount: Any, rate: float) -> Optional[float]:
    """Multiply a JPY amount by a fixed rate, rounded to cents."""
    num = _number(amount)
    if num is None:
        return None
    return round(num * rate, 2)


def jpy_to_usd(amount: Any, rate: float = DEFAULT_JPY_TO_USD) -> Optional[float]:
    return convert_jpy(amount, rate)


def jpy_to_eur(amount: Any, rate: float = DEFAULT_JPY_TO_EUR) -> Optional[float]:
    return convert_jpy(amount, rate)


def _first(*values: Optional[float]) -> Optional[float]:
    for value in values:
        if value:
            return value
    return None


def price_comparison(
    prices: Any,
    *,
    usd_rate: float = DEFAULT_JPY_TO_USD,
    eur_rate: float = DEFAULT_JPY_TO_EUR,
) -> list[Dict[str, Any]]:
    """Rows for the per-marketplace comparison table, in fixed source order."""
    records = parse_prices(prices)
    rows: list[Dict[str, Any]] = []
    for source in PRICE_SOURCES:
        record = records.get(source)
        if record is None:
            continue
        if isinstance(record, TcgplayerPrice):
            rows.append({
                "source": source,
                "label": "TCGplayer",
                "currency": record.currency,
                "usd": _first(record.market, record.mid),
                "eur": None,
                "jpy": None,
                "listings": record.listings,
            })
        elif isinstance(record, CardmarketPrice):
            rows.append({
                "source": source,
                "label": "Cardmarket",
                "currency": record.currency,
                "usd": None,
                "eur": _first(record.average_price, record.low_price),
                "jpy": None,
                "listings": record.listings,
            })
        elif isinstance(record, YuyuteiPrice):
            rows.append({
                "source": source,
                "label": "Yuyu-tei",
                "currency": record.currency,
                "usd": convert_jpy(record.price, usd_rate),
                "eur": convert_jpy(record.price, eur_rate),
                "jpy": record.price,
                "listings": None,
            })
    return rows


def price_summary(prices: Any) -> Dict[str, Any]:
    """Compact aggregate embedded in card list payloads."""
    records = parse_prices(prices)
    return {
        "lowest": round(lowest_price(prices), 2),
        "listings": listings_count(prices),
        "sources": [source for source in PRICE_SOURCES if source in records],
    }


def format_price_text(prices: Any) -> str:
    """Tile label such as ``$0.45``; ``0.00`` when nothing is known."""
    return f"{lowest_price(prices):.2f}"
