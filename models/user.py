from __future__ import annotations

from werkzeug.security import check_password_hash, generate_password_hash

from extensions import db
from utils.time import utcnow


class User(db.Model):
    __tablename__ = "users"
    __table_args__ = (
        db.CheckConstraint("role in ('ADMIN','USER')", name="user_role"),
    )

    ROLE_ADMIN = "ADMIN"
    ROLE_USER = "USER"
    ROLES = (ROLE_ADMIN, ROLE_USER)

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(16), nullable=False, default=ROLE_USER, server_default=ROLE_USER)
    is_active = db.Column(db.Boolean, nullable=False, default=True, server_default=db.true())
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    last_login_at = db.Column(db.DateTime, nullable=True)

    collections = db.relationship(
        "Collection", back_populates="user", lazy="dynamic", passive_deletes=True
    )
    decks = db.relationship(
        "Deck", back_populates="user", lazy="dynamic", passive_deletes=True
    )
    wishlist_items = db.relationship(
        "WishlistItem", back_populates="user", lazy="dynamic", passive_deletes=True
    )
    audit_logs = db.relationship("AuditLog", back_populates="user", lazy="dynamic", passive_deletes=True)

    @property
    def is_admin(self) -> bool:
        return self.role == self.ROLE_ADMIN

    # Password helpers -----------------------------------------------------
    def set_password(self, raw_password: str) -> None:
        self.password_hash = generate_password_hash(raw_password)

    def check_password(self, raw_password: str | None) -> bool:
        if not raw_password or not self.password_hash:
            return False
        return check_password_hash(self.password_hash, raw_password)

    def __repr__(self) -> str:
        return f"<User {self.username} ({self.role})>"


class AuditLog(db.Model):
    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    action = db.Column(db.String(120), nullable=False)
    details = db.Column(db.JSON, nullable=True)
    ip_address = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)

    user = db.relationship("User", back_populates="audit_logs")
