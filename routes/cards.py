"""Public card catalog endpoints."""

from __future__ import annotations

from flask import jsonify, request
from sqlalchemy.orm import joinedload

from models import Card
from services.card_query import CardQuery, quick_search
from utils.db import get_or_404

from .base import api
from .serializers import serialize_card, serialize_card_summary


@api.get("/cards")
def list_cards():
    query = CardQuery.from_args(request.args)
    cards, total = query.run()
    return jsonify({
        "cards": [serialize_card(card) for card in cards],
        "total": total,
        "limit": query.limit,
        "offset": query.offset,
        "sort": query.sort,
    })


@api.get("/cards/search")
def search_cards():
    cards = quick_search(request.args.get("q"), request.args.get("limit"))
    return jsonify({"cards": [serialize_card_summary(card) for card in cards]})


@api.get("/cards/<int:card_id>")
def get_card(card_id: int):
    card = get_or_404(Card, card_id, label="Card", options=[joinedload(Card.pack)])
    return jsonify({"card": serialize_card(card, detail=True)})
