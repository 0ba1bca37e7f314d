"""Deck list bookkeeping: zones and the per-card copy limit."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from sqlalchemy import func

from extensions import db
from models import MAX_COPIES_PER_CARD, Card, Deck, DeckCard
from models.choices import DECK_ZONES
from utils.db import get_or_400
from utils.errors import ValidationError
from utils.input_validation import require_positive_integer, sanitize_string

logger = logging.getLogger(__name__)

DEFAULT_ZONE = "MAIN"


def parse_zone(value: Any, *, default: Optional[str] = DEFAULT_ZONE) -> Optional[str]:
    if value in (None, ""):
        return default
    zone = sanitize_string(value, 16).upper()
    if zone not in DECK_ZONES:
        raise ValidationError("zone must be MAIN, EXTRA, or SIDE", field="zone")
    return zone


def copies_in_deck(deck_id: int, card_id: int) -> int:
    """Copies of one card across every zone of a deck."""
    total = (
        db.session.query(func.coalesce(func.sum(DeckCard.quantity), 0))
        .filter(DeckCard.deck_id == deck_id, DeckCard.card_id == card_id)
        .scalar()
    )
    return int(total or 0)


def add_card(deck: Deck, payload: Mapping[str, Any]) -> Tuple[DeckCard, bool]:
    """Add copies of a card to a zone, enforcing the copy limit across zones.

    Returns ``(row, created)``. The caller commits.
    """
    card = get_or_400(Card, payload.get("card_id", payload.get("cardId")), label="Card")
    quantity = require_positive_integer(payload.get("quantity"), "quantity", default=1)
    zone = parse_zone(payload.get("zone"))

    if copies_in_deck(deck.id, card.id) + quantity > MAX_COPIES_PER_CARD:
        raise ValidationError(
            f"Cannot have more than {MAX_COPIES_PER_CARD} copies of a card in a deck",
            field="quantity",
        )

    existing = DeckCard.query.filter_by(deck_id=deck.id, card_id=card.id, zone=zone).first()
    if existing is not None:
        existing.quantity += quantity
        return existing, False

    entry = DeckCard(deck_id=deck.id, card_id=card.id, zone=zone, quantity=quantity)
    db.session.add(entry)
    db.session.flush()
    logger.info("Deck %s: added %sx card %s to %s", deck.id, quantity, card.id, zone)
    return entry, True


def remove_card(deck: Deck, card_id: int, *, zone: Any = None, quantity: Any = None) -> int:
    """Remove copies of a card, optionally limited to one zone.

    Without ``quantity`` every matching row is deleted; otherwise matching
    rows are drained in zone order and deleted when they reach zero.
    Returns the number of copies removed.
    """
    zone_name = parse_zone(zone, default=None)
    query = DeckCard.query.filter_by(deck_id=deck.id, card_id=card_id)
    if zone_name:
        query = query.filter_by(zone=zone_name)
    rows = sorted(query.all(), key=lambda row: DECK_ZONES.index(row.zone))
    if not rows:
        return 0

    if quantity in (None, ""):
        removed = sum(row.quantity for row in rows)
        for row in rows:
            db.session.delete(row)
        return removed

    remaining = require_positive_integer(quantity, "quantity")
    removed = 0
    for row in rows:
        if remaining <= 0:
            break
        take = min(remaining, row.quantity)
        if take == row.quantity:
            db.session.delete(row)
        else:
            row.quantity -= take
        removed += take
        remaining -= take
    return removed


def group_by_zone(entries: List[DeckCard]) -> Dict[str, List[DeckCard]]:
    grouped: Dict[str, List[DeckCard]] = {zone.lower(): [] for zone in DECK_ZONES}
    for entry in entries:
        grouped.setdefault(entry.zone.lower(), []).append(entry)
    return grouped


__all__ = ["DEFAULT_ZONE", "add_card", "copies_in_deck", "group_by_zone", "parse_zone", "remove_card"]
