"""SQLAlchemy models package for iCollect.
Re-exports the shared `db` instance to avoid import loops and provides
convenient names for the model classes.

Usage:
    from models import db, Card, Pack, Collection, Deck, WishlistItem
"""
from __future__ import annotations

from extensions import db  # shared SQLAlchemy() instance

# Import models only after db exists to avoid circular imports
from .user import User, AuditLog  # type: ignore F401
from .pack import Pack  # type: ignore F401
from .card import Card  # type: ignore F401
from .collection import Collection, CollectionCard  # type: ignore F401
from .deck import Deck, DeckCard, MAX_COPIES_PER_CARD  # type: ignore F401
from .wishlist import WishlistItem  # type: ignore F401

__all__ = [
    "db",
    "User",
    "AuditLog",
    "Pack",
    "Card",
    "Collection",
    "CollectionCard",
    "Deck",
    "DeckCard",
    "MAX_COPIES_PER_CARD",
    "WishlistItem",
]
