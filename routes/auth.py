"""Registration, login and profile endpoints."""

from __future__ import annotations

from flask import current_app, jsonify
from flask_login import current_user
from sqlalchemy import or_

from extensions import db, limiter
from models import User
from services.audit import record_audit_event
from services.auth_tokens import issue_token
from services.authz import user_required
from services.stats import user_counts
from utils.db import get_or_404
from utils.errors import AuthenticationError, ConflictError, PermissionDenied, ValidationError
from utils.input_validation import sanitize_string, validate_email
from utils.time import utcnow

from .base import api, first_of, json_body
from .serializers import serialize_user

MAX_USERNAME_LENGTH = 80


def _auth_limit() -> str:
    return current_app.config.get("RATELIMIT_AUTH", "10 per minute")


def _password_field(data, *keys: str, field: str) -> str:
    value = first_of(data, *keys)
    if value is None or value == "":
        return ""
    if not isinstance(value, str):
        raise ValidationError("Password must be a string", field=field)
    return value


def _check_password_length(password: str, field: str = "password") -> None:
    minimum = current_app.config.get("MIN_PASSWORD_LENGTH", 6)
    if len(password) < minimum:
        raise ValidationError(f"Password must be at least {minimum} characters", field=field)


@api.post("/auth/register")
@limiter.limit(_auth_limit)
def register():
    data = json_body()
    username = sanitize_string(data.get("username"), MAX_USERNAME_LENGTH)
    email = sanitize_string(data.get("email"), 254)
    password = _password_field(data, "password", field="password")
    if not username or not email or not password:
        raise ValidationError("Username, email, and password are required")
    if not validate_email(email):
        raise ValidationError("Invalid email address", field="email")
    _check_password_length(password)

    if User.query.filter(or_(User.username == username, User.email == email)).first():
        raise ConflictError("Username or email already exists")

    user = User(username=username, email=email, role=User.ROLE_USER, is_active=True)
    user.set_password(password)
    db.session.add(user)
    db.session.flush()
    record_audit_event("register", {"username": username}, user_id=user.id)
    db.session.commit()
    current_app.logger.info("Registered user %s", username)

    return jsonify({
        "message": "User registered successfully",
        "user": serialize_user(user),
        "token": issue_token(user),
    }), 201


@api.post("/auth/login")
@limiter.limit(_auth_limit)
def login():
    data = json_body()
    identifier = sanitize_string(first_of(data, "username", "email", "identifier"), 254)
    password = _password_field(data, "password", field="password")
    if not identifier or not password:
        raise ValidationError("Username and password are required")

    user = User.query.filter(or_(User.username == identifier, User.email == identifier)).first()
    if user is None or not user.check_password(password):
        current_app.logger.info("Failed login for %r", identifier)
        raise AuthenticationError("Invalid credentials")
    if not user.is_active:
        raise PermissionDenied("Account is disabled")

    user.last_login_at = utcnow()
    record_audit_event("login", {"username": user.username}, user_id=user.id)
    db.session.commit()

    return jsonify({
        "message": "Login successful",
        "user": serialize_user(user),
        "token": issue_token(user),
    })


@api.get("/auth/me")
@user_required
def me():
    user = get_or_404(User, current_user.id, label="User")
    data = serialize_user(user, include_status=True)
    data["counts"] = user_counts(user.id)
    return jsonify({"user": data})


@api.put("/auth/me")
@user_required
def update_me():
    user = get_or_404(User, current_user.id, label="User")
    data = json_body()

    email = data.get("email")
    if email is not None:
        email = sanitize_string(email, 254)
        if not validate_email(email):
            raise ValidationError("Invalid email address", field="email")
        if email != user.email:
            if User.query.filter(User.email == email, User.id != user.id).first():
                raise ConflictError("Email already in use")
            user.email = email

    new_password = _password_field(data, "newPassword", "new_password", field="newPassword")
    if new_password:
        current_password = _password_field(data, "currentPassword", "current_password", field="currentPassword")
        if not current_password:
            raise ValidationError("Current password is required", field="currentPassword")
        if not user.check_password(current_password):
            raise AuthenticationError("Current password is incorrect")
        _check_password_length(new_password, "newPassword")
        user.set_password(new_password)
        record_audit_event("password_change", {"username": user.username}, user_id=user.id)

    db.session.commit()
    return jsonify({
        "message": "Profile updated successfully",
        "user": serialize_user(user, include_status=True),
        # Token claims carry the email.
        "token": issue_token(user),
    })
