# services/stats.py
from sqlalchemy import func

from extensions import db
from models import Card, Collection, CollectionCard, Deck, Pack, User, WishlistItem

RECENT_LIMIT = 5


def catalog_counts() -> dict:
    """Row counts shown on the admin dashboard."""
    return {
        "users": db.session.query(func.count(User.id)).scalar() or 0,
        "active_users": db.session.query(func.count(User.id)).filter(User.is_active.is_(True)).scalar() or 0,
        "packs": db.session.query(func.count(Pack.id)).scalar() or 0,
        "cards": db.session.query(func.count(Card.id)).scalar() or 0,
        "collections": db.session.query(func.count(Collection.id)).scalar() or 0,
        "decks": db.session.query(func.count(Deck.id)).scalar() or 0,
        "wishlist_items": db.session.query(func.count(WishlistItem.id)).scalar() or 0,
        "owned_copies": int(db.session.query(func.coalesce(func.sum(CollectionCard.quantity), 0)).scalar() or 0),
    }


def recent_users(limit: int = RECENT_LIMIT):
    return User.query.order_by(User.created_at.desc(), User.id.desc()).limit(limit).all()


def recent_packs(limit: int = RECENT_LIMIT):
    return Pack.query.order_by(Pack.created_at.desc(), Pack.id.desc()).limit(limit).all()


def user_counts(user_id: int) -> dict:
    """Per-user totals for the profile endpoint."""
    return {
        "collections": Collection.query.filter_by(user_id=user_id).count(),
        "decks": Deck.query.filter_by(user_id=user_id).count(),
        "wishlist": WishlistItem.query.filter_by(user_id=user_id).count(),
    }


def pack_card_counts(pack_ids) -> dict:
    """Live child-row counts keyed by pack id."""
    ids = [pid for pid in pack_ids if pid]
    if not ids:
        return {}
    rows = (
        db.session.query(Card.pack_id, func.count(Card.id))
        .filter(Card.pack_id.in_(ids))
        .group_by(Card.pack_id)
        .all()
    )
    return {pack_id: int(count) for pack_id, count in rows}
