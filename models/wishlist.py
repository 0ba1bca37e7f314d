# models/wishlist.py
from __future__ import annotations

from extensions import db
from utils.time import utcnow


class WishlistItem(db.Model):
    __tablename__ = "wishlist_items"
    __table_args__ = (
        db.UniqueConstraint("user_id", "card_id", name="uq_wishlist_items_user_card"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    card_id = db.Column(db.Integer, db.ForeignKey("cards.id"), nullable=False, index=True)

    # Optional alert: notify when the chosen source drops to/below the threshold
    price_alert_enabled = db.Column(db.Boolean, nullable=False, default=False, server_default=db.false())
    price_alert_threshold = db.Column(db.Numeric(10, 2), nullable=True)
    price_alert_source = db.Column(db.String(32), nullable=True)

    added_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", back_populates="wishlist_items")
    card = db.relationship("Card")
