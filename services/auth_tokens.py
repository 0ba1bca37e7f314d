"""Signed, stateless session tokens.

Tokens are itsdangerous timed signatures over the identity claims
``{id, username, email, role}``. Verification never touches the database:
the decoded claims become the request identity.
"""
from __future__ import annotations

from dataclasses import dataclass

from flask import current_app
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from utils.errors import AuthenticationError

DEFAULT_TOKEN_SALT = "icollect-session"
DEFAULT_TOKEN_MAX_AGE = 7 * 24 * 60 * 60


class TokenExpired(AuthenticationError):
    def __init__(self) -> None:
        super().__init__("Token expired")


class TokenInvalid(AuthenticationError):
    def __init__(self) -> None:
        super().__init__("Invalid token")


@dataclass(frozen=True, slots=True)
class Identity:
    """Verified claims attached to the request as ``current_user``."""

    id: int
    username: str
    email: str
    role: str

    # Flask-Login user protocol
    is_authenticated = True
    is_active = True
    is_anonymous = False

    def get_id(self) -> str:
        return str(self.id)

    @property
    def is_admin(self) -> bool:
        return self.role == "ADMIN"

    def claims(self) -> dict:
        return {"id": self.id, "username": self.username, "email": self.email, "role": self.role}


def _serializer() -> URLSafeTimedSerializer:
    secret = current_app.secret_key or current_app.config.get("SECRET_KEY") or "dev"
    salt = current_app.config.get("TOKEN_SALT", DEFAULT_TOKEN_SALT)
    return URLSafeTimedSerializer(secret, salt=salt)


def issue_token(user) -> str:
    """Sign the identity claims for ``user`` (a User row or an Identity)."""
    claims = {
        "id": int(user.id),
        "username": user.username,
        "email": user.email,
        "role": user.role,
    }
    return _serializer().dumps(claims)


def verify_token(token: str) -> Identity:
    """Decode a token, raising TokenExpired or TokenInvalid."""
    max_age = current_app.config.get("TOKEN_MAX_AGE_SECONDS", DEFAULT_TOKEN_MAX_AGE)
    try:
        payload = _serializer().loads(token, max_age=max_age)
    except SignatureExpired:
        raise TokenExpired()
    except BadSignature:
        raise TokenInvalid()

    if not isinstance(payload, dict):
        raise TokenInvalid()
    try:
        return Identity(
            id=int(payload["id"]),
            username=str(payload["username"]),
            email=str(payload["email"]),
            role=str(payload["role"]),
        )
    except (KeyError, TypeError, ValueError):
        raise TokenInvalid()


__all__ = ["Identity", "TokenExpired", "TokenInvalid", "issue_token", "verify_token"]
