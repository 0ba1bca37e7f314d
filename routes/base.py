"""Shared blueprints and request helpers for iCollect routes."""

from __future__ import annotations

from typing import Any, Dict, Tuple

from flask import Blueprint, current_app, request

from services.card_query import clamp_limit, clamp_offset
from utils.errors import ValidationError

views = Blueprint("views", __name__)
api = Blueprint("api", __name__, url_prefix="/api")


def json_body() -> Dict[str, Any]:
    """The request JSON object; anything else is a 400."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def page_args(*, default: int | None = None, maximum: int | None = None) -> Tuple[int, int]:
    """``(limit, offset)`` from the query string, clamped."""
    cfg = current_app.config
    limit = clamp_limit(
        request.args.get("limit"),
        default=default or cfg.get("CARDS_DEFAULT_PAGE_SIZE", 50),
        maximum=maximum or cfg.get("CARDS_MAX_PAGE_SIZE", 100),
    )
    return limit, clamp_offset(request.args.get("offset"))


def first_of(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """First present key among snake_case/camelCase spellings."""
    for key in keys:
        if key in data:
            return data[key]
    return default


__all__ = ["api", "views", "first_of", "json_body", "page_args"]
