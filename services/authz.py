"""Authentication wiring and authorization guards for iCollect.

Identity verification runs in the Flask-Login request loader: the bearer
token is decoded into an immutable `Identity` that becomes ``current_user``.
When that fails the reason is kept on ``g`` so the unauthorized handler can
answer with a specific 401 message.

Guards compose in a fixed order: `roles_required` always applies
`login_required` (identity) before it checks role membership.
"""
from __future__ import annotations

from functools import wraps
from typing import Callable

from flask import g, jsonify
from flask_login import current_user, login_required

from extensions import login_manager
from models import User
from utils.errors import AuthenticationError, PermissionDenied

from .auth_tokens import verify_token

MSG_NO_HEADER = "No authorization header provided"
MSG_NO_TOKEN = "No token provided"
MSG_NOT_AUTHENTICATED = "Not authenticated"


def extract_bearer_token(req) -> str:
    """Return the bearer token or raise AuthenticationError with the reason."""
    auth_header = req.headers.get("Authorization")
    if not auth_header:
        raise AuthenticationError(MSG_NO_HEADER)
    parts = auth_header.split(" ", 1)
    token = parts[1].strip() if len(parts) == 2 else ""
    if not token:
        raise AuthenticationError(MSG_NO_TOKEN)
    return token


def configure_login_manager(app) -> None:
    """Bind Flask-Login in stateless bearer-token mode."""
    login_manager.init_app(app)
    login_manager.session_protection = None

    @login_manager.request_loader
    def _load_identity_from_request(req):
        g.pop("auth_failure", None)
        try:
            return verify_token(extract_bearer_token(req))
        except AuthenticationError as exc:
            g.auth_failure = exc.message
            return None

    @login_manager.unauthorized_handler
    def _unauthorized():
        message = g.get("auth_failure") or MSG_NOT_AUTHENTICATED
        return jsonify({"error": message}), 401


def roles_required(*roles: str) -> Callable:
    """Require an authenticated identity whose role is one of ``roles``."""
    allowed = set(roles)
    label = "Admin access required" if allowed == {User.ROLE_ADMIN} else "User access required"

    def decorator(view: Callable) -> Callable:
        @wraps(view)
        def wrapped(*args, **kwargs):
            if current_user.role not in allowed:
                raise PermissionDenied(label)
            return view(*args, **kwargs)

        return login_required(wrapped)

    return decorator


admin_required = roles_required(User.ROLE_ADMIN)
user_required = roles_required(User.ROLE_ADMIN, User.ROLE_USER)


__all__ = [
    "admin_required",
    "configure_login_manager",
    "extract_bearer_token",
    "roles_required",
    "user_required",
]
