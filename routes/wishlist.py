"""Wishlist endpoints."""

from __future__ import annotations

from flask import jsonify
from flask_login import current_user
from sqlalchemy.orm import joinedload

from extensions import db
from models import Card, WishlistItem
from services.authz import user_required
from services.pricing import PRICE_SOURCES
from utils.db import get_or_400
from utils.errors import ConflictError, NotFoundError, ValidationError
from utils.input_validation import parse_bool, parse_decimal

from .base import api, first_of, json_body
from .serializers import serialize_wishlist_item


def _apply_alert(item: WishlistItem, data: dict) -> None:
    enabled = first_of(data, "price_alert_enabled", "priceAlertEnabled")
    if enabled is not None:
        item.price_alert_enabled = parse_bool(enabled, False)
    threshold_key = next((k for k in ("price_alert_threshold", "priceAlertThreshold") if k in data), None)
    if threshold_key:
        threshold = parse_decimal(data[threshold_key], "price_alert_threshold")
        if threshold is not None and threshold < 0:
            raise ValidationError("price_alert_threshold must not be negative", field="price_alert_threshold")
        item.price_alert_threshold = threshold
    source_key = next((k for k in ("price_alert_source", "priceAlertSource") if k in data), None)
    if source_key:
        source = data[source_key]
        if source in (None, ""):
            item.price_alert_source = None
        elif str(source).lower() in PRICE_SOURCES:
            item.price_alert_source = str(source).lower()
        else:
            raise ValidationError(
                f"price_alert_source must be one of {', '.join(PRICE_SOURCES)}", field="price_alert_source"
            )


def _owned_item(card_id: int) -> WishlistItem:
    item = WishlistItem.query.filter_by(user_id=current_user.id, card_id=card_id).first()
    if item is None:
        raise NotFoundError("Card not in wishlist")
    return item


@api.get("/wishlist")
@user_required
def list_wishlist():
    items = (
        WishlistItem.query.filter_by(user_id=current_user.id)
        .options(joinedload(WishlistItem.card).joinedload(Card.pack))
        .order_by(WishlistItem.added_at.desc(), WishlistItem.id.desc())
        .all()
    )
    return jsonify({"wishlist": [serialize_wishlist_item(item) for item in items]})


@api.post("/wishlist")
@user_required
def add_to_wishlist():
    data = json_body()
    card_id = first_of(data, "card_id", "cardId")
    if card_id in (None, ""):
        raise ValidationError("card_id is required", field="card_id")
    card = get_or_400(Card, card_id, label="Card")
    if WishlistItem.query.filter_by(user_id=current_user.id, card_id=card.id).first():
        raise ConflictError("Card already in wishlist")

    item = WishlistItem(user_id=current_user.id, card_id=card.id)
    _apply_alert(item, data)
    db.session.add(item)
    db.session.commit()
    return jsonify({"message": "Card added to wishlist", "item": serialize_wishlist_item(item)}), 201


@api.put("/wishlist/<int:card_id>")
@user_required
def update_wishlist_item(card_id: int):
    item = _owned_item(card_id)
    _apply_alert(item, json_body())
    db.session.commit()
    return jsonify({"message": "Wishlist item updated", "item": serialize_wishlist_item(item)})


@api.delete("/wishlist/<int:card_id>")
@user_required
def remove_from_wishlist(card_id: int):
    item = _owned_item(card_id)
    db.session.delete(item)
    db.session.commit()
    return jsonify({"message": "Card removed from wishlist"})
