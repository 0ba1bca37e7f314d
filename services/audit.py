"""Audit trail for account and catalog changes."""
from __future__ import annotations

from typing import Any, Dict, Optional

from flask import current_app, has_request_context, request
from flask_login import current_user
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from models import AuditLog


def _acting_user_id() -> Optional[int]:
    if not has_request_context() or not getattr(current_user, "is_authenticated", False):
        return None
    try:
        return int(current_user.get_id())
    except (TypeError, ValueError):
        return None


def _client_fields() -> Dict[str, Optional[str]]:
    if not has_request_context():
        return {"ip_address": None, "user_agent": None}
    forwarded = request.headers.get("X-Forwarded-For", "")
    return {
        "ip_address": forwarded.split(",")[0].strip() or request.remote_addr,
        "user_agent": (request.headers.get("User-Agent") or "")[:255],
    }


def record_audit_event(action: str, details: Optional[Dict[str, Any]] = None, *, user_id: Optional[int] = None) -> None:
    """Add an AuditLog row to the current transaction.

    Only flushes; the caller's commit persists the entry together with the
    change it describes. `user_id` defaults to the authenticated identity.
    """
    entry = AuditLog(
        user_id=user_id if user_id is not None else _acting_user_id(),
        action=action,
        details=details or {},
        **_client_fields(),
    )
    try:
        db.session.add(entry)
        db.session.flush()
    except SQLAlchemyError:
        current_app.logger.exception("Failed to record audit event: action=%s", action)
