"""Pack and card writes shared by the admin API, the importer and the CLI."""
from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from sqlalchemy import case, func

from extensions import db
from models import Card, CollectionCard, DeckCard, Pack, WishlistItem
from models.choices import (
    ATTRIBUTES,
    BAN_STATUSES,
    CARD_TYPES,
    FRAME_COLORS,
    LANGUAGES,
    RARITIES,
    SET_TYPES,
    SPELL_TYPES,
    TRAP_TYPES,
)
from utils.errors import ConflictError, ValidationError
from utils.input_validation import (
    optional_choice,
    optional_string,
    parse_bool,
    parse_date,
    require_choice,
    sanitize_string,
)

logger = logging.getLogger(__name__)

CARD_REQUIRED_FIELDS = ("card_number", "name", "card_type", "frame_color", "pack_id")

# camelCase aliases accepted on input
_ALIASES = {
    "cardNumber": "card_number",
    "setCode": "set_code",
    "setPosition": "set_position",
    "konamiId": "konami_id",
    "nameJp": "name_jp",
    "nameCn": "name_cn",
    "nameKor": "name_kor",
    "cardType": "card_type",
    "frameColor": "frame_color",
    "monsterType": "monster_type",
    "monsterAbilities": "monster_abilities",
    "linkRating": "link_rating",
    "linkArrows": "link_arrows",
    "pendulumScale": "pendulum_scale",
    "spellType": "spell_type",
    "trapType": "trap_type",
    "cardText": "card_text",
    "pendulumEffect": "pendulum_effect",
    "imageUrl": "image_url",
    "imageUrlSmall": "image_url_small",
    "imageUrlHigh": "image_url_high",
    "imageBlurhash": "image_blurhash",
    "tcgLegal": "tcg_legal",
    "ocgLegal": "ocg_legal",
    "banStatus": "ban_status",
    "packId": "pack_id",
    "titleJp": "title_jp",
    "titleCn": "title_cn",
    "titleKor": "title_kor",
    "releaseDate": "release_date",
    "setType": "set_type",
    "coverImage": "cover_image",
    "coverImageSmall": "cover_image_small",
    "coverBlurhash": "cover_blurhash",
}

_CARD_TEXT_FIELDS = {
    "konami_id": 32,
    "name_jp": 255,
    "name_cn": 255,
    "name_kor": 255,
    "monster_type": 64,
    "atk": 8,
    "def": 8,
    "card_text": 10000,
    "pendulum_effect": 10000,
    "image_url": 512,
    "image_url_small": 512,
    "image_url_high": 512,
    "image_blurhash": 128,
}
_CARD_INT_FIELDS = ("level", "rank", "link_rating", "pendulum_scale")


def normalize_keys(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Fold camelCase aliases into snake_case keys; explicit snake_case wins."""
    out: Dict[str, Any] = {}
    for key, value in payload.items():
        target = _ALIASES.get(key, key)
        if target in out and key != target:
            continue
        out[target] = value
    return out


def derive_set_position(card_number: str) -> str:
    """``LOB-EN001`` -> ``EN001``; numbers without a dash fall back to ``001``."""
    if "-" in card_number:
        tail = card_number.rsplit("-", 1)[1].strip()
        if tail:
            return tail
    return "001"


def _optional_int(value: Any, field: str) -> Optional[int]:
    if value in (None, ""):
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer", field=field)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer", field=field)


def _string_list(value: Any, field: str) -> list:
    if value in (None, ""):
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.replace(";", ",").split(",") if part.strip()]
    if isinstance(value, (list, tuple)):
        return [sanitize_string(item, 64) for item in value if item not in (None, "")]
    raise ValidationError(f"{field} must be a list", field=field)


def missing_card_fields(data: Mapping[str, Any]) -> list:
    return [name for name in CARD_REQUIRED_FIELDS if data.get(name) in (None, "")]


def apply_card_fields(card: Card, data: Mapping[str, Any], *, partial: bool) -> None:
    """Validate and copy card attributes from a normalized payload."""
    if "name" in data or not partial:
        name = sanitize_string(data.get("name"), 255)
        if not name:
            raise ValidationError("name is required", field="name")
        card.name = name
    if "card_type" in data or not partial:
        card.card_type = require_choice(data.get("card_type"), CARD_TYPES, "card_type")
    if "frame_color" in data or not partial:
        card.frame_color = require_choice(data.get("frame_color"), FRAME_COLORS, "frame_color")
    if "language" in data or not partial:
        card.language = optional_choice(data.get("language"), LANGUAGES, "language") or "EN"
    if "rarity" in data or not partial:
        card.rarity = optional_choice(data.get("rarity"), RARITIES, "rarity") or "COMMON"
    if "ban_status" in data or not partial:
        card.ban_status = optional_choice(data.get("ban_status"), BAN_STATUSES, "ban_status") or "UNLIMITED"
    if "attribute" in data:
        card.attribute = optional_choice(data.get("attribute"), ATTRIBUTES, "attribute")
    if "spell_type" in data:
        card.spell_type = optional_choice(data.get("spell_type"), SPELL_TYPES, "spell_type")
    if "trap_type" in data:
        card.trap_type = optional_choice(data.get("trap_type"), TRAP_TYPES, "trap_type")
    if "set_position" in data and data.get("set_position") not in (None, ""):
        card.set_position = sanitize_string(data["set_position"], 16)

    for field, max_length in _CARD_TEXT_FIELDS.items():
        if field in data:
            value = optional_string(data[field], max_length)
            setattr(card, "def_" if field == "def" else field, value)
    for field in _CARD_INT_FIELDS:
        if field in data:
            setattr(card, field, _optional_int(data[field], field))
    for field in ("monster_abilities", "link_arrows"):
        if field in data or not partial:
            setattr(card, field, _string_list(data.get(field), field))
    for field in ("tcg_legal", "ocg_legal"):
        if field in data or not partial:
            setattr(card, field, parse_bool(data.get(field), True))
    if "prices" in data:
        prices = data["prices"]
        if prices is not None and not isinstance(prices, Mapping):
            raise ValidationError("prices must be an object", field="prices")
        card.prices = dict(prices) if prices is not None else None


def build_card(data: Mapping[str, Any], pack: Pack) -> Card:
    """Construct (not persist) a card for ``pack`` from a normalized payload."""
    card_number = sanitize_string(data.get("card_number"), 32)
    if not card_number:
        raise ValidationError("card_number is required", field="card_number")
    card = Card(card_number=card_number, pack_id=pack.id)
    card.set_code = optional_string(data.get("set_code"), 32) or pack.set_code
    card.set_position = derive_set_position(card_number)
    apply_card_fields(card, data, partial=False)
    return card


def card_number_taken(card_number: str, *, exclude_id: Optional[int] = None) -> bool:
    query = Card.query.filter(Card.card_number == card_number)
    if exclude_id is not None:
        query = query.filter(Card.id != exclude_id)
    return db.session.query(query.exists()).scalar()


def adjust_pack_total(pack_id: Optional[int], delta: int) -> None:
    if not pack_id or not delta:
        return
    new_total = case((Pack.total_cards + delta < 0, 0), else_=Pack.total_cards + delta)
    Pack.query.filter(Pack.id == pack_id).update(
        {Pack.total_cards: new_total},
        synchronize_session="fetch",
    )


def card_references(card_id: int) -> int:
    """Collection, deck and wishlist rows pointing at a card."""
    return (
        CollectionCard.query.filter_by(card_id=card_id).count()
        + DeckCard.query.filter_by(card_id=card_id).count()
        + WishlistItem.query.filter_by(card_id=card_id).count()
    )


def delete_card(card: Card) -> None:
    """Delete a card and decrement its pack counter; the caller commits."""
    if card_references(card.id):
        raise ConflictError("Card is referenced by collections, decks or wishlists")
    pack_id = card.pack_id
    db.session.delete(card)
    db.session.flush()
    adjust_pack_total(pack_id, -1)


def apply_pack_fields(pack: Pack, data: Mapping[str, Any], *, partial: bool) -> None:
    if "set_code" in data or not partial:
        set_code = sanitize_string(data.get("set_code"), 32).upper()
        if not set_code:
            raise ValidationError("set_code is required", field="set_code")
        pack.set_code = set_code
    if "title" in data or not partial:
        title = sanitize_string(data.get("title"), 255)
        if not title:
            raise ValidationError("title is required", field="title")
        pack.title = title
    if "language" in data or not partial:
        pack.language = optional_choice(data.get("language"), LANGUAGES, "language") or "EN"
    if "set_type" in data or not partial:
        pack.set_type = optional_choice(data.get("set_type"), SET_TYPES, "set_type") or "BOOSTER"
    if "release_date" in data:
        pack.release_date = parse_date(data.get("release_date"), "release_date")
    for field in ("title_jp", "title_cn", "title_kor"):
        if field in data:
            setattr(pack, field, optional_string(data[field], 255))
    for field in ("cover_image", "cover_image_small"):
        if field in data:
            setattr(pack, field, optional_string(data[field], 512))
    if "cover_blurhash" in data:
        pack.cover_blurhash = optional_string(data["cover_blurhash"], 128)


def set_code_taken(set_code: str, *, exclude_id: Optional[int] = None) -> bool:
    query = Pack.query.filter(Pack.set_code == set_code)
    if exclude_id is not None:
        query = query.filter(Pack.id != exclude_id)
    return db.session.query(query.exists()).scalar()


def reconcile_pack_totals() -> Dict[str, int]:
    """Recompute every pack's ``total_cards`` from its child rows."""
    counts = dict(
        db.session.query(Card.pack_id, func.count(Card.id)).group_by(Card.pack_id).all()
    )
    changed: Dict[str, int] = {}
    for pack in Pack.query.order_by(Pack.id).all():
        actual = int(counts.get(pack.id, 0))
        if pack.total_cards != actual:
            logger.info("Pack %s total_cards %s -> %s", pack.set_code, pack.total_cards, actual)
            changed[pack.set_code] = actual
            pack.total_cards = actual
    return changed
