"""Quantity bookkeeping for collection rows."""
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Tuple

from extensions import db
from models import Card, Collection, CollectionCard
from models.choices import CONDITIONS, LANGUAGES
from utils.db import get_or_400
from utils.input_validation import (
    optional_choice,
    optional_string,
    parse_bool,
    parse_decimal,
    require_positive_integer,
)

logger = logging.getLogger(__name__)

DEFAULT_CONDITION = "NEAR_MINT"
DEFAULT_LANGUAGE = "EN"


def add_card(collection: Collection, payload: Mapping[str, Any]) -> Tuple[CollectionCard, bool]:
    """Merge ``quantity`` copies into ``collection``.

    Rows are keyed by (card, condition, language, first edition); a matching
    row has its quantity incremented, otherwise a new row is created.
    Returns ``(row, created)``. The caller commits.
    """
    card = get_or_400(Card, payload.get("card_id", payload.get("cardId")), label="Card")
    quantity = require_positive_integer(payload.get("quantity"), "quantity", default=1)
    condition = optional_choice(payload.get("condition"), CONDITIONS, "condition") or DEFAULT_CONDITION
    language = optional_choice(payload.get("language"), LANGUAGES, "language") or DEFAULT_LANGUAGE
    first_edition = parse_bool(payload.get("is_first_edition", payload.get("isFirstEdition")), False)

    existing: Optional[CollectionCard] = CollectionCard.query.filter_by(
        collection_id=collection.id,
        card_id=card.id,
        condition=condition,
        language=language,
        is_first_edition=first_edition,
    ).first()
    if existing is not None:
        existing.quantity += quantity
        logger.info(
            "Collection %s: card %s quantity -> %s", collection.id, card.id, existing.quantity
        )
        return existing, False

    entry = CollectionCard(
        collection_id=collection.id,
        card_id=card.id,
        quantity=quantity,
        condition=condition,
        language=language,
        is_first_edition=first_edition,
        purchase_price=parse_decimal(payload.get("purchase_price", payload.get("purchasePrice")), "purchase_price"),
        purchase_currency=optional_string(payload.get("purchase_currency", payload.get("purchaseCurrency")), 8),
        notes=optional_string(payload.get("notes"), 2000),
    )
    db.session.add(entry)
    db.session.flush()
    return entry, True


def remove_card(collection: Collection, card_id: int, quantity: Any = None) -> int:
    """Decrement or delete the collection rows for ``card_id``.

    Without ``quantity`` every row for the card is removed. With it, rows are
    drained newest first; a row whose quantity would reach zero is deleted.
    Returns the number of copies removed (0 when the card was not present).
    """
    rows = (
        CollectionCard.query.filter_by(collection_id=collection.id, card_id=card_id)
        .order_by(CollectionCard.added_at.desc(), CollectionCard.id.desc())
        .all()
    )
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
        if remaining >= row.quantity:
            remaining -= row.quantity
            removed += row.quantity
            db.session.delete(row)
        else:
            row.quantity -= remaining
            removed += remaining
            remaining = 0
    return removed


__all__ = ["add_card", "remove_card", "DEFAULT_CONDITION", "DEFAULT_LANGUAGE"]
