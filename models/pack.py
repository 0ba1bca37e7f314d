from __future__ import annotations

from extensions import db
from utils.time import utcnow

from .choices import LANGUAGES, SET_TYPES, sql_in


class Pack(db.Model):
    __tablename__ = "packs"
    __table_args__ = (
        db.CheckConstraint(f"language in ({sql_in(LANGUAGES)})", name="pack_language"),
        db.CheckConstraint(f"set_type in ({sql_in(SET_TYPES)})", name="pack_set_type"),
    )

    id = db.Column(db.Integer, primary_key=True)
    set_code = db.Column(db.String(32), unique=True, nullable=False, index=True)
    title = db.Column(db.String(255), nullable=False)
    title_jp = db.Column(db.String(255), nullable=True)
    title_cn = db.Column(db.String(255), nullable=True)
    title_kor = db.Column(db.String(255), nullable=True)
    language = db.Column(db.String(8), nullable=False, default="EN", server_default="EN")
    release_date = db.Column(db.Date, nullable=True, index=True)
    set_type = db.Column(db.String(32), nullable=False, default="BOOSTER", server_default="BOOSTER")
    # Denormalized; adjusted on card create/delete/import, see `flask packs reconcile`.
    total_cards = db.Column(db.Integer, nullable=False, default=0, server_default="0")
    cover_image = db.Column(db.String(512), nullable=True)
    cover_image_small = db.Column(db.String(512), nullable=True)
    cover_blurhash = db.Column(db.String(128), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    cards = db.relationship("Card", back_populates="pack", lazy="dynamic")

    def __repr__(self) -> str:
        return f"<Pack {self.set_code}>"
