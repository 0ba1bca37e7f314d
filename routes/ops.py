"""Operational endpoints: health probe and API index."""

from __future__ import annotations

from flask import current_app, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from utils.time import isoformat, utcnow

from .base import api, views

SERVICE_NAME = "iCollect"
API_VERSION = "1.0.0"


@views.route("/health", methods=["GET"])
def health():
    """Liveness plus a database round-trip."""
    database = "ok"
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        current_app.logger.warning("Health check database probe failed: %s", exc)
        db.session.rollback()
        database = "error"
    status = 200 if database == "ok" else 503
    return jsonify(
        status="ok" if status == 200 else "degraded",
        service=SERVICE_NAME,
        database=database,
        timestamp=isoformat(utcnow()),
    ), status


@api.get("")
@api.get("/")
def api_index():
    return jsonify({
        "name": f"{SERVICE_NAME} API",
        "version": API_VERSION,
        "endpoints": {
            "auth": "/api/auth",
            "cards": "/api/cards",
            "packs": "/api/packs",
            "collections": "/api/collections",
            "decks": "/api/decks",
            "wishlist": "/api/wishlist",
            "admin": "/api/admin",
        },
    })
