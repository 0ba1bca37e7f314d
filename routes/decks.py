"""Per-user deck endpoints."""

from __future__ import annotations

from flask import jsonify, request
from flask_login import current_user
from sqlalchemy import func
from sqlalchemy.orm import joinedload

from extensions import db
from models import Card, Deck, DeckCard
from services import decks as deck_service
from services.authz import user_required
from utils.db import get_or_404
from utils.errors import ConflictError, NotFoundError, ValidationError
from utils.input_validation import optional_string, parse_bool, sanitize_string

from .base import api, first_of, json_body
from .serializers import serialize_deck, serialize_deck_card


def _load(deck_id: int, *, allow_public: bool = False) -> Deck:
    deck = get_or_404(Deck, deck_id, label="Deck")
    if deck.user_id == current_user.id or (allow_public and deck.is_public):
        return deck
    raise NotFoundError("Deck not found")


def _name_taken(name: str, *, exclude_id: int | None = None) -> bool:
    query = Deck.query.filter(Deck.user_id == current_user.id, Deck.name == name)
    if exclude_id is not None:
        query = query.filter(Deck.id != exclude_id)
    return db.session.query(query.exists()).scalar()


@api.get("/decks")
@user_required
def list_decks():
    decks = Deck.query.filter_by(user_id=current_user.id).order_by(Deck.updated_at.desc(), Deck.id.desc()).all()
    counts = dict(
        db.session.query(DeckCard.deck_id, func.coalesce(func.sum(DeckCard.quantity), 0))
        .filter(DeckCard.deck_id.in_([d.id for d in decks] or [0]))
        .group_by(DeckCard.deck_id)
        .all()
    )
    return jsonify({"decks": [serialize_deck(d, card_count=int(counts.get(d.id, 0))) for d in decks]})


@api.post("/decks")
@user_required
def create_deck():
    data = json_body()
    name = sanitize_string(data.get("name"), 120)
    if not name:
        raise ValidationError("Deck name is required", field="name")
    if _name_taken(name):
        raise ConflictError("Deck with this name already exists")
    deck = Deck(
        user_id=current_user.id,
        name=name,
        description=optional_string(data.get("description"), 2000),
        format=optional_string(data.get("format"), 64),
        is_public=parse_bool(first_of(data, "is_public", "isPublic"), False),
    )
    db.session.add(deck)
    db.session.commit()
    return jsonify({"message": "Deck created", "deck": serialize_deck(deck)}), 201


@api.get("/decks/<int:deck_id>")
@user_required
def get_deck(deck_id: int):
    deck = _load(deck_id, allow_public=True)
    entries = (
        DeckCard.query.filter_by(deck_id=deck.id)
        .options(joinedload(DeckCard.card).joinedload(Card.pack))
        .order_by(DeckCard.id)
        .all()
    )
    grouped = deck_service.group_by_zone(entries)
    data = serialize_deck(deck, card_count=sum(e.quantity for e in entries))
    data["cards"] = {zone: [serialize_deck_card(e) for e in rows] for zone, rows in grouped.items()}
    return jsonify({"deck": data})


@api.put("/decks/<int:deck_id>")
@user_required
def update_deck(deck_id: int):
    deck = _load(deck_id)
    data = json_body()
    if "name" in data:
        name = sanitize_string(data.get("name"), 120)
        if not name:
            raise ValidationError("Deck name is required", field="name")
        if name != deck.name and _name_taken(name, exclude_id=deck.id):
            raise ConflictError("Deck with this name already exists")
        deck.name = name
    if "description" in data:
        deck.description = optional_string(data.get("description"), 2000)
    if "format" in data:
        deck.format = optional_string(data.get("format"), 64)
    is_public = first_of(data, "is_public", "isPublic")
    if is_public is not None:
        deck.is_public = parse_bool(is_public, deck.is_public)
    db.session.commit()
    return jsonify({"message": "Deck updated", "deck": serialize_deck(deck)})


@api.delete("/decks/<int:deck_id>")
@user_required
def delete_deck(deck_id: int):
    deck = _load(deck_id)
    db.session.delete(deck)
    db.session.commit()
    return jsonify({"message": "Deck deleted"})


@api.post("/decks/<int:deck_id>/cards")
@user_required
def add_deck_card(deck_id: int):
    deck = _load(deck_id)
    entry, created = deck_service.add_card(deck, json_body())
    db.session.commit()
    payload = {"deckCard": serialize_deck_card(entry)}
    if created:
        payload["message"] = "Card added to deck"
        return jsonify(payload), 201
    payload["message"] = "Card quantity updated"
    return jsonify(payload)


@api.delete("/decks/<int:deck_id>/cards/<int:card_id>")
@user_required
def remove_deck_card(deck_id: int, card_id: int):
    deck = _load(deck_id)
    removed = deck_service.remove_card(
        deck, card_id, zone=request.args.get("zone"), quantity=request.args.get("quantity")
    )
    if not removed:
        raise NotFoundError("Card not found in deck")
    db.session.commit()
    return jsonify({"message": "Card removed from deck", "removed": removed})
