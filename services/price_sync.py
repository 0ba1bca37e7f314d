"""Refresh card marketplace prices from an external price feed.

The feed is queried per card number at ``{PRICE_FEED_URL}/v1/prices/<card_number>``
and is expected to answer ``{"status": "ok", "prices": {...}}`` with the
same per-marketplace shape stored on ``Card.prices``. Failures are logged
and reported per card; they never abort the refresh.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import quote

import requests
from flask import current_app

from extensions import db
from models import Card, Pack
from utils.time import utcnow

from .pricing import PRICE_SOURCES, _number

logger = logging.getLogger(__name__)

# Feed field -> stored field, per marketplace
_FIELD_MAP = {
    "tcgplayer": {
        "market": "market",
        "market_price": "market",
        "low": "low",
        "low_price": "low",
        "mid": "mid",
        "mid_price": "mid",
        "high": "high",
        "high_price": "high",
        "listings": "listings",
    },
    "cardmarket": {
        "averagePrice": "averagePrice",
        "average_price": "averagePrice",
        "avg": "averagePrice",
        "lowPrice": "lowPrice",
        "low_price": "lowPrice",
        "low": "lowPrice",
        "listings": "listings",
    },
    "yuyutei": {
        "price": "price",
        "price_jpy": "price",
    },
}


@dataclass
class RefreshReport:
    updated: int = 0
    unchanged: int = 0
    failed: List[str] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return {"updated": self.updated, "unchanged": self.unchanged, "failed": list(self.failed)}


def normalize_feed_prices(raw: Any) -> Dict[str, Dict[str, Any]]:
    """Keep recognised marketplaces and fields; drop everything non-numeric."""
    if not isinstance(raw, Mapping):
        return {}
    out: Dict[str, Dict[str, Any]] = {}
    for source in PRICE_SOURCES:
        block = raw.get(source)
        if not isinstance(block, Mapping):
            continue
        mapped: Dict[str, Any] = {}
        for key, value in block.items():
            target = _FIELD_MAP[source].get(key)
            if target is None or target in mapped:
                continue
            number = _number(value)
            if number is None:
                continue
            mapped[target] = int(number) if target == "listings" else number
        if mapped:
            out[source] = mapped
    return out


def fetch_card_prices(card_number: str) -> Optional[Dict[str, Dict[str, Any]]]:
    """Return normalized prices for one card, or None when the feed has none."""
    base_url = (current_app.config.get("PRICE_FEED_URL") or "").rstrip("/")
    if not base_url or not card_number:
        return None
    response = requests.get(
        f"{base_url}/v1/prices/{quote(card_number, safe='')}",
        timeout=current_app.config.get("PRICE_FEED_TIMEOUT", 20),
        headers={"User-Agent": current_app.config.get("PRICE_FEED_UA", "iCollect/1.0")},
    )
    if response.status_code == 404:
        return None
    if response.status_code != 200:
        raise requests.HTTPError(f"price feed returned HTTP {response.status_code}")
    payload = response.json()
    if not isinstance(payload, Mapping) or payload.get("status") != "ok":
        return None
    return normalize_feed_prices(payload.get("prices"))


def refresh_prices(set_code: Optional[str] = None) -> RefreshReport:
    """Fetch and store prices for every card (or one pack's cards)."""
    if not current_app.config.get("PRICE_FEED_URL"):
        raise RuntimeError("PRICE_FEED_URL is not configured")

    query = Card.query.order_by(Card.set_code, Card.set_position)
    if set_code:
        query = query.join(Pack).filter(Pack.set_code == set_code.upper())

    report = RefreshReport()
    for card in query.all():
        try:
            prices = fetch_card_prices(card.card_number)
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Price refresh failed for %s: %s", card.card_number, exc)
            report.failed.append(card.card_number)
            continue
        if not prices or prices == (card.prices or {}):
            report.unchanged += 1
            continue
        card.prices = prices
        card.prices_updated = utcnow()
        report.updated += 1

    db.session.commit()
    logger.info("Price refresh finished: %s", report.as_dict())
    return report


__all__ = ["RefreshReport", "fetch_card_prices", "normalize_feed_prices", "refresh_prices"]
