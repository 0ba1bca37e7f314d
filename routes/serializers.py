"""JSON shapes shared by the API blueprints."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional

from flask import current_app

from models import Card, Collection, CollectionCard, Deck, DeckCard, Pack, User, WishlistItem
from services.pricing import price_comparison, price_summary
from utils.time import isoformat


def _money(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


def serialize_user(user: User, *, include_status: bool = False) -> Dict[str, Any]:
    data = {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "role": user.role,
    }
    if include_status:
        data.update(
            is_active=bool(user.is_active),
            created_at=isoformat(user.created_at),
            updated_at=isoformat(user.updated_at),
        )
    return data


def serialize_pack(pack: Pack, *, card_count: Optional[int] = None) -> Dict[str, Any]:
    data = {
        "id": pack.id,
        "set_code": pack.set_code,
        "title": pack.title,
        "title_jp": pack.title_jp,
        "title_cn": pack.title_cn,
        "title_kor": pack.title_kor,
        "language": pack.language,
        "release_date": pack.release_date.isoformat() if pack.release_date else None,
        "set_type": pack.set_type,
        "total_cards": pack.total_cards,
        "cover_image": pack.cover_image,
        "cover_image_small": pack.cover_image_small,
        "cover_blurhash": pack.cover_blurhash,
        "created_at": isoformat(pack.created_at),
        "updated_at": isoformat(pack.updated_at),
    }
    if card_count is not None:
        data["card_count"] = card_count
    return data


def pack_ref(pack: Optional[Pack]) -> Optional[Dict[str, Any]]:
    if pack is None:
        return None
    return {"id": pack.id, "title": pack.title, "set_code": pack.set_code}


def serialize_card_summary(card: Card) -> Dict[str, Any]:
    """Lightweight card shape for search results and join rows."""
    return {
        "id": card.id,
        "card_number": card.card_number,
        "name": card.name,
        "card_type": card.card_type,
        "frame_color": card.frame_color,
        "rarity": card.rarity,
        "image_url_small": card.image_url_small,
        "pack": pack_ref(card.pack),
    }


def serialize_card(card: Card, *, detail: bool = False) -> Dict[str, Any]:
    data = {
        "id": card.id,
        "card_number": card.card_number,
        "set_code": card.set_code,
        "set_position": card.set_position,
        "konami_id": card.konami_id,
        "name": card.name,
        "name_jp": card.name_jp,
        "name_cn": card.name_cn,
        "name_kor": card.name_kor,
        "language": card.language,
        "card_type": card.card_type,
        "frame_color": card.frame_color,
        "attribute": card.attribute,
        "monster_type": card.monster_type,
        "monster_abilities": list(card.monster_abilities or []),
        "level": card.level,
        "rank": card.rank,
        "link_rating": card.link_rating,
        "link_arrows": list(card.link_arrows or []),
        "pendulum_scale": card.pendulum_scale,
        "atk": card.atk,
        "def": card.def_,
        "spell_type": card.spell_type,
        "trap_type": card.trap_type,
        "card_text": card.card_text,
        "pendulum_effect": card.pendulum_effect,
        "rarity": card.rarity,
        "image_url": card.image_url,
        "image_url_small": card.image_url_small,
        "image_url_high": card.image_url_high,
        "image_blurhash": card.image_blurhash,
        "tcg_legal": bool(card.tcg_legal),
        "ocg_legal": bool(card.ocg_legal),
        "ban_status": card.ban_status,
        "prices": card.prices,
        "prices_updated": isoformat(card.prices_updated),
        "price_summary": price_summary(card.prices),
        "pack_id": card.pack_id,
        "pack": pack_ref(card.pack),
        "created_at": isoformat(card.created_at),
        "updated_at": isoformat(card.updated_at),
    }
    if detail:
        if card.pack is not None:
            data["pack"]["release_date"] = card.pack.release_date.isoformat() if card.pack.release_date else None
        data["price_comparison"] = price_comparison(
            card.prices,
            usd_rate=current_app.config["JPY_TO_USD_RATE"],
            eur_rate=current_app.config["JPY_TO_EUR_RATE"],
        )
    return data


def serialize_collection(collection: Collection, *, card_count: Optional[int] = None) -> Dict[str, Any]:
    data = {
        "id": collection.id,
        "user_id": collection.user_id,
        "name": collection.name,
        "description": collection.description,
        "is_public": bool(collection.is_public),
        "created_at": isoformat(collection.created_at),
        "updated_at": isoformat(collection.updated_at),
    }
    if card_count is not None:
        data["card_count"] = card_count
    return data


def serialize_collection_card(entry: CollectionCard) -> Dict[str, Any]:
    card = entry.card
    card_data = serialize_card_summary(card) if card is not None else None
    if card_data is not None:
        card_data["prices"] = card.prices
        card_data["price_summary"] = price_summary(card.prices)
    return {
        "id": entry.id,
        "collection_id": entry.collection_id,
        "card_id": entry.card_id,
        "quantity": entry.quantity,
        "condition": entry.condition,
        "language": entry.language,
        "is_first_edition": bool(entry.is_first_edition),
        "purchase_price": _money(entry.purchase_price),
        "purchase_currency": entry.purchase_currency,
        "notes": entry.notes,
        "added_at": isoformat(entry.added_at),
        "card": card_data,
    }


def serialize_deck(deck: Deck, *, card_count: Optional[int] = None) -> Dict[str, Any]:
    data = {
        "id": deck.id,
        "user_id": deck.user_id,
        "name": deck.name,
        "description": deck.description,
        "format": deck.format,
        "is_public": bool(deck.is_public),
        "created_at": isoformat(deck.created_at),
        "updated_at": isoformat(deck.updated_at),
    }
    if card_count is not None:
        data["card_count"] = card_count
    return data


def serialize_deck_card(entry: DeckCard) -> Dict[str, Any]:
    card = entry.card
    card_data = None
    if card is not None:
        card_data = serialize_card_summary(card)
        card_data.update(
            attribute=card.attribute,
            level=card.level,
            rank=card.rank,
            link_rating=card.link_rating,
            atk=card.atk,
            **{"def": card.def_},
        )
    return {
        "id": entry.id,
        "deck_id": entry.deck_id,
        "card_id": entry.card_id,
        "zone": entry.zone,
        "quantity": entry.quantity,
        "card": card_data,
    }


def serialize_wishlist_item(item: WishlistItem) -> Dict[str, Any]:
    card = item.card
    card_data = None
    if card is not None:
        card_data = serialize_card_summary(card)
        card_data.update(
            prices=card.prices,
            prices_updated=isoformat(card.prices_updated),
            price_summary=price_summary(card.prices),
        )
    return {
        "id": item.id,
        "user_id": item.user_id,
        "card_id": item.card_id,
        "price_alert_enabled": bool(item.price_alert_enabled),
        "price_alert_threshold": _money(item.price_alert_threshold),
        "price_alert_source": item.price_alert_source,
        "added_at": isoformat(item.added_at),
        "card": card_data,
    }
