from __future__ import annotations

from extensions import db
from utils.time import utcnow

from .choices import BAN_STATUSES, CARD_TYPES, FRAME_COLORS, LANGUAGES, sql_in


class Card(db.Model):
    __tablename__ = "cards"
    __table_args__ = (
        db.CheckConstraint(f"card_type in ({sql_in(CARD_TYPES)})", name="card_card_type"),
        db.CheckConstraint(f"frame_color in ({sql_in(FRAME_COLORS)})", name="card_frame_color"),
        db.CheckConstraint(f"language in ({sql_in(LANGUAGES)})", name="card_language"),
        db.CheckConstraint(f"ban_status in ({sql_in(BAN_STATUSES)})", name="card_ban_status"),
        db.Index("ix_cards_set_code_set_position", "set_code", "set_position"),
    )

    id = db.Column(db.Integer, primary_key=True)
    # Natural key used for idempotent imports
    card_number = db.Column(db.String(32), unique=True, nullable=False, index=True)
    set_code = db.Column(db.String(32), nullable=False, index=True)
    set_position = db.Column(db.String(16), nullable=False, default="001")
    konami_id = db.Column(db.String(32), nullable=True)

    name = db.Column(db.String(255), nullable=False, index=True)
    name_jp = db.Column(db.String(255), nullable=True)
    name_cn = db.Column(db.String(255), nullable=True)
    name_kor = db.Column(db.String(255), nullable=True)
    language = db.Column(db.String(8), nullable=False, default="EN", server_default="EN", index=True)

    # Game taxonomy
    card_type = db.Column(db.String(16), nullable=False, index=True)
    frame_color = db.Column(db.String(16), nullable=False, index=True)
    attribute = db.Column(db.String(16), nullable=True, index=True)
    monster_type = db.Column(db.String(64), nullable=True)
    monster_abilities = db.Column(db.JSON, nullable=False, default=list)
    level = db.Column(db.Integer, nullable=True)
    rank = db.Column(db.Integer, nullable=True)
    link_rating = db.Column(db.Integer, nullable=True)
    link_arrows = db.Column(db.JSON, nullable=False, default=list)
    pendulum_scale = db.Column(db.Integer, nullable=True)
    atk = db.Column(db.String(8), nullable=True)
    def_ = db.Column("def", db.String(8), nullable=True)
    spell_type = db.Column(db.String(16), nullable=True)
    trap_type = db.Column(db.String(16), nullable=True)
    card_text = db.Column(db.Text, nullable=True)
    pendulum_effect = db.Column(db.Text, nullable=True)
    rarity = db.Column(db.String(32), nullable=False, default="COMMON", server_default="COMMON", index=True)

    image_url = db.Column(db.String(512), nullable=True)
    image_url_small = db.Column(db.String(512), nullable=True)
    image_url_high = db.Column(db.String(512), nullable=True)
    image_blurhash = db.Column(db.String(128), nullable=True)

    tcg_legal = db.Column(db.Boolean, nullable=False, default=True, server_default=db.true())
    ocg_legal = db.Column(db.Boolean, nullable=False, default=True, server_default=db.true())
    ban_status = db.Column(db.String(16), nullable=False, default="UNLIMITED", server_default="UNLIMITED", index=True)

    # {"tcgplayer": {...}, "cardmarket": {...}, "yuyutei": {...}}; see services.pricing
    prices = db.Column(db.JSON, nullable=True)
    prices_updated = db.Column(db.DateTime, nullable=True)

    pack_id = db.Column(db.Integer, db.ForeignKey("packs.id"), nullable=False, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    pack = db.relationship("Pack", back_populates="cards")

    def __repr__(self) -> str:
        return f"<Card {self.card_number} {self.name!r}>"
