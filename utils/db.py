"""Database helpers for route handlers."""

from __future__ import annotations

from typing import Any, Iterable, TypeVar

from flask import current_app, has_app_context
from werkzeug.routing import IntegerConverter

from extensions import db

from .errors import NotFoundError, ValidationError
from .input_validation import MAX_DB_INT

T = TypeVar("T")


class RowIdConverter(IntegerConverter):
    """`<int:...>` URL segment capped at the largest storable row id."""

    def __init__(self, map, *args, **kwargs):
        kwargs.setdefault("max", MAX_DB_INT)
        super().__init__(map, *args, **kwargs)


def get_or_404(model: type[T], ident: Any, *, label: str | None = None, options: Iterable[object] | None = None) -> T:
    """Load a row by primary key or raise NotFoundError ("<Label> not found")."""
    label = label or getattr(model, "__name__", "Resource")
    try:
        ident = int(ident)
    except (TypeError, ValueError, OverflowError):
        if has_app_context():
            current_app.logger.warning("Invalid id for %s: %r", label, ident)
        raise NotFoundError(f"{label} not found")
    if not 0 < ident <= MAX_DB_INT:
        raise NotFoundError(f"{label} not found")
    load_options = list(options) if options else None
    instance = db.session.get(model, ident, options=load_options)
    if instance is None:
        raise NotFoundError(f"{label} not found")
    return instance


def get_or_400(model: type[T], ident: Any, *, label: str | None = None) -> T:
    """Like get_or_404 but for ids referenced from a request body."""
    try:
        return get_or_404(model, ident, label=label)
    except NotFoundError as exc:
        raise ValidationError(exc.message) from exc
