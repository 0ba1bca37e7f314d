"""Card listing/search query shared by the API and the rendered grid."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Tuple

from flask import current_app, has_app_context
from sqlalchemy import case, or_
from sqlalchemy.orm import joinedload

from extensions import db
from models import Card
from models.choices import (
    ATTRIBUTES,
    BAN_STATUSES,
    CARD_TYPES,
    FRAME_COLORS,
    LANGUAGES,
    RARITIES,
    RARITY_RANK,
)
from services.pricing import lowest_price
from utils.errors import ValidationError
from utils.input_validation import (
    MAX_DB_INT,
    optional_choice,
    optional_string,
    parse_int,
    sanitize_sql_like_pattern,
)

logger = logging.getLogger(__name__)

SORT_SET_RELEASE = "set_release"
SORT_NAME = "name"
SORT_RARITY = "rarity"
SORT_PRICE = "price"
SORT_OPTIONS = (SORT_SET_RELEASE, SORT_NAME, SORT_RARITY, SORT_PRICE)

DEFAULT_LIMIT = 50
MAX_LIMIT = 100
QUICK_SEARCH_MIN_CHARS = 2
QUICK_SEARCH_MAX = 50


def _config(key: str, default: int) -> int:
    if has_app_context():
        return int(current_app.config.get(key, default))
    return default


def clamp_limit(raw: Any, *, default: int, maximum: int) -> int:
    limit = parse_int(raw, default) if raw not in (None, "") else default
    return max(1, min(limit, maximum))


def clamp_offset(raw: Any) -> int:
    return min(max(0, parse_int(raw, 0)), MAX_DB_INT)


def _rarity_rank():
    return case(RARITY_RANK, value=Card.rarity, else_=0)


@dataclass
class CardQuery:
    search: Optional[str] = None
    card_type: Optional[str] = None
    frame_color: Optional[str] = None
    attribute: Optional[str] = None
    rarity: Optional[str] = None
    ban_status: Optional[str] = None
    language: Optional[str] = None
    pack_id: Optional[int] = None
    set_code: Optional[str] = None
    sort: str = SORT_SET_RELEASE
    limit: int = DEFAULT_LIMIT
    offset: int = 0

    @classmethod
    def from_args(cls, args: Mapping[str, Any]) -> "CardQuery":
        """Build a validated query from request args (or any mapping)."""
        pack_id = None
        raw_pack = args.get("pack_id")
        if raw_pack not in (None, ""):
            pack_id = parse_int(raw_pack, 0)
            if not 0 < pack_id <= MAX_DB_INT:
                raise ValidationError("pack_id must be a positive integer", field="pack_id")

        sort = (optional_string(args.get("sort"), 32) or SORT_SET_RELEASE).lower()
        if sort not in SORT_OPTIONS:
            raise ValidationError(f"sort must be one of {', '.join(SORT_OPTIONS)}", field="sort")

        set_code = optional_string(args.get("set_code"), 32)
        return cls(
            search=optional_string(args.get("search"), 200),
            card_type=optional_choice(args.get("card_type"), CARD_TYPES, "card_type"),
            frame_color=optional_choice(args.get("frame_color"), FRAME_COLORS, "frame_color"),
            attribute=optional_choice(args.get("attribute"), ATTRIBUTES, "attribute"),
            rarity=optional_choice(args.get("rarity"), RARITIES, "rarity"),
            ban_status=optional_choice(args.get("ban_status"), BAN_STATUSES, "ban_status"),
            language=optional_choice(args.get("language"), LANGUAGES, "language"),
            pack_id=pack_id,
            set_code=set_code.upper() if set_code else None,
            sort=sort,
            limit=clamp_limit(
                args.get("limit"),
                default=_config("CARDS_DEFAULT_PAGE_SIZE", DEFAULT_LIMIT),
                maximum=_config("CARDS_MAX_PAGE_SIZE", MAX_LIMIT),
            ),
            offset=clamp_offset(args.get("offset")),
        )

    def filtered(self):
        query = Card.query.options(joinedload(Card.pack))
        if self.search:
            pattern = f"%{sanitize_sql_like_pattern(self.search)}%"
            query = query.filter(
                or_(
                    Card.name.ilike(pattern, escape="\\"),
                    Card.card_number.ilike(pattern, escape="\\"),
                    Card.card_text.ilike(pattern, escape="\\"),
                )
            )
        if self.card_type:
            query = query.filter(Card.card_type == self.card_type)
        if self.frame_color:
            query = query.filter(Card.frame_color == self.frame_color)
        if self.attribute:
            query = query.filter(Card.attribute == self.attribute)
        if self.rarity:
            query = query.filter(Card.rarity == self.rarity)
        if self.ban_status:
            query = query.filter(Card.ban_status == self.ban_status)
        if self.language:
            query = query.filter(Card.language == self.language)
        if self.pack_id:
            query = query.filter(Card.pack_id == self.pack_id)
        if self.set_code:
            query = query.filter(Card.set_code == self.set_code)
        return query

    def _ordered(self, query):
        if self.sort == SORT_NAME:
            return query.order_by(Card.name.asc(), Card.id.asc())
        if self.sort == SORT_RARITY:
            return query.order_by(_rarity_rank().asc(), Card.set_code.asc(), Card.set_position.asc(), Card.id.asc())
        return query.order_by(Card.set_code.asc(), Card.set_position.asc(), Card.id.asc())

    def run(self) -> Tuple[List[Card], int]:
        """Return one page of cards plus the unpaginated match count."""
        query = self.filtered()
        total = query.order_by(None).count()

        if self.sort == SORT_PRICE:
            # Prices live in a JSON blob, so this ordering happens in Python.
            rows = self._ordered(query).all()
            rows.sort(key=lambda card: lowest_price(card.prices), reverse=True)
            return rows[self.offset:self.offset + self.limit], total

        cards = self._ordered(query).offset(self.offset).limit(self.limit).all()
        return cards, total

    def as_args(self) -> dict:
        """Echo the active filters back (used by the grid page links)."""
        fields = (
            "search", "card_type", "frame_color", "attribute", "rarity",
            "ban_status", "language", "pack_id", "set_code",
        )
        out = {name: getattr(self, name) for name in fields if getattr(self, name) not in (None, "")}
        out["sort"] = self.sort
        return out


def quick_search(q: Any, limit: Any = None) -> List[Card]:
    """Name/card_number lookup for type-ahead boxes."""
    text = optional_string(q, 200)
    if not text or len(text) < QUICK_SEARCH_MIN_CHARS:
        raise ValidationError(
            f"Search query must be at least {QUICK_SEARCH_MIN_CHARS} characters", field="q"
        )
    maximum = _config("SEARCH_MAX_RESULTS", QUICK_SEARCH_MAX)
    size = clamp_limit(limit, default=maximum, maximum=maximum)
    pattern = f"%{sanitize_sql_like_pattern(text)}%"
    logger.debug("Quick card search q=%r limit=%s", text, size)
    return (
        db.session.query(Card)
        .options(joinedload(Card.pack))
        .filter(
            or_(
                Card.name.ilike(pattern, escape="\\"),
                Card.card_number.ilike(pattern, escape="\\"),
            )
        )
        .order_by(Card.name.asc(), Card.id.asc())
        .limit(size)
        .all()
    )


__all__ = ["CardQuery", "SORT_OPTIONS", "clamp_limit", "clamp_offset", "quick_search"]
