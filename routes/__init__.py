"""Aggregate blueprints for iCollect routes."""

from __future__ import annotations

from .base import api, views

# Register route modules (import order not critical but keeps sections grouped)
from . import (
    admin,          # noqa: F401
    auth,           # noqa: F401
    cards,          # noqa: F401
    collections,    # noqa: F401
    decks,          # noqa: F401
    frontend,       # noqa: F401
    ops,            # noqa: F401
    packs,          # noqa: F401
    wishlist,       # noqa: F401
)

__all__ = ["api", "views"]
