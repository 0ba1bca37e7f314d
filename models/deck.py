from __future__ import annotations

from extensions import db
from utils.time import utcnow

from .choices import DECK_ZONES, sql_in

MAX_COPIES_PER_CARD = 3


class Deck(db.Model):
    __tablename__ = "decks"
    __table_args__ = (
        db.UniqueConstraint("user_id", "name", name="uq_decks_user_name"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    description = db.Column(db.Text, nullable=True)
    format = db.Column(db.String(64), nullable=True)
    is_public = db.Column(db.Boolean, nullable=False, default=False, server_default=db.false())
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow, index=True)

    user = db.relationship("User", back_populates="decks")
    cards = db.relationship(
        "DeckCard",
        back_populates="deck",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="DeckCard.id",
    )


class DeckCard(db.Model):
    __tablename__ = "deck_cards"
    __table_args__ = (
        db.UniqueConstraint("deck_id", "card_id", "zone", name="uq_deck_cards_zone"),
        db.CheckConstraint(f"zone in ({sql_in(DECK_ZONES)})", name="deck_card_zone"),
        db.CheckConstraint("quantity > 0", name="deck_card_quantity"),
    )

    id = db.Column(db.Integer, primary_key=True)
    deck_id = db.Column(db.Integer, db.ForeignKey("decks.id", ondelete="CASCADE"), nullable=False, index=True)
    card_id = db.Column(db.Integer, db.ForeignKey("cards.id"), nullable=False, index=True)
    zone = db.Column(db.String(8), nullable=False, default="MAIN")
    quantity = db.Column(db.Integer, nullable=False, default=1)
    added_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    deck = db.relationship("Deck", back_populates="cards")
    card = db.relationship("Card")
