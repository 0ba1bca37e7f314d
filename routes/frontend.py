"""Server-rendered browse pages backed by the same card query as the API."""

from __future__ import annotations

from flask import abort, current_app, render_template, request, url_for
from sqlalchemy.orm import joinedload

from extensions import db
from models import Card
from models.choices import ATTRIBUTES, BAN_STATUSES, CARD_TYPES, FRAME_COLORS, LANGUAGES, RARITIES
from services.card_query import SORT_OPTIONS, CardQuery
from utils.errors import ValidationError
from viewmodels.card_vm import card_detail, card_tile

from .base import views


@views.route("/")
def card_grid():
    error = None
    try:
        query = CardQuery.from_args(request.args)
    except ValidationError as exc:
        error = exc.message
        query = CardQuery()
    cards, total = query.run()

    active = query.as_args()
    prev_url = next_url = None
    if query.offset > 0:
        prev_url = url_for("views.card_grid", **active, offset=max(0, query.offset - query.limit), limit=query.limit)
    if query.offset + query.limit < total:
        next_url = url_for("views.card_grid", **active, offset=query.offset + query.limit, limit=query.limit)

    return render_template(
        "cards/grid.html",
        tiles=[card_tile(card) for card in cards],
        total=total,
        query=query,
        error=error,
        prev_url=prev_url,
        next_url=next_url,
        choices={
            "card_type": CARD_TYPES,
            "frame_color": FRAME_COLORS,
            "attribute": ATTRIBUTES,
            "rarity": RARITIES,
            "ban_status": BAN_STATUSES,
            "language": LANGUAGES,
        },
        sort_options=SORT_OPTIONS,
    )


@views.route("/cards/<int:card_id>")
def card_page(card_id: int):
    card = db.session.get(Card, card_id, options=[joinedload(Card.pack)])
    if card is None:
        abort(404)
    vm = card_detail(
        card,
        usd_rate=current_app.config["JPY_TO_USD_RATE"],
        eur_rate=current_app.config["JPY_TO_EUR_RATE"],
    )
    return render_template("cards/detail.html", card=vm)
