from __future__ import annotations

from extensions import db
from utils.time import utcnow

from .choices import CONDITIONS, LANGUAGES, sql_in


class Collection(db.Model):
    __tablename__ = "collections"
    __table_args__ = (
        db.UniqueConstraint("user_id", "name", name="uq_collections_user_name"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    description = db.Column(db.Text, nullable=True)
    is_public = db.Column(db.Boolean, nullable=False, default=False, server_default=db.false())
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow, index=True)

    user = db.relationship("User", back_populates="collections")
    cards = db.relationship(
        "CollectionCard",
        back_populates="collection",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="CollectionCard.added_at.desc()",
    )


class CollectionCard(db.Model):
    """One owned printing; (collection, card, condition, language, edition) is the merge key."""

    __tablename__ = "collection_cards"
    __table_args__ = (
        db.UniqueConstraint(
            "collection_id",
            "card_id",
            "condition",
            "language",
            "is_first_edition",
            name="uq_collection_cards_variant",
        ),
        db.CheckConstraint(f"condition in ({sql_in(CONDITIONS)})", name="collection_card_condition"),
        db.CheckConstraint(f"language in ({sql_in(LANGUAGES)})", name="collection_card_language"),
        db.CheckConstraint("quantity > 0", name="collection_card_quantity"),
    )

    id = db.Column(db.Integer, primary_key=True)
    collection_id = db.Column(
        db.Integer, db.ForeignKey("collections.id", ondelete="CASCADE"), nullable=False, index=True
    )
    card_id = db.Column(db.Integer, db.ForeignKey("cards.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    condition = db.Column(db.String(24), nullable=False, default="NEAR_MINT")
    language = db.Column(db.String(8), nullable=False, default="EN")
    is_first_edition = db.Column(db.Boolean, nullable=False, default=False, server_default=db.false())
    purchase_price = db.Column(db.Numeric(10, 2), nullable=True)
    purchase_currency = db.Column(db.String(8), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    added_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)

    collection = db.relationship("Collection", back_populates="cards")
    card = db.relationship("Card")
