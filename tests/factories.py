"""Factory helpers for quickly seeding the test database."""
from __future__ import annotations

import itertools
from datetime import date
from typing import Optional

from extensions import db
from models import Card, Pack

_pack_counter = itertools.count(1)
_card_counter = itertools.count(1)


def create_pack(
    *,
    set_code: Optional[str] = None,
    title: Optional[str] = None,
    language: str = "EN",
    set_type: str = "BOOSTER",
    release_date: Optional[date] = None,
) -> Pack:
    number = _next_value(_pack_counter)
    pack = Pack(
        set_code=set_code or f"TST{number}",
        title=title or f"Test Pack {number}",
        language=language,
        set_type=set_type,
        release_date=release_date,
        total_cards=0,
    )
    db.session.add(pack)
    db.session.flush()
    return pack


def create_card(
    *,
    pack: Optional[Pack] = None,
    name: Optional[str] = None,
    card_number: Optional[str] = None,
    card_type: str = "MONSTER",
    frame_color: str = "NORMAL",
    rarity: str = "COMMON",
    attribute: Optional[str] = None,
    card_text: Optional[str] = None,
    prices: Optional[dict] = None,
) -> Card:
    home = pack or create_pack()
    number = _next_value(_card_counter)
    card_number = card_number or f"{home.set_code}-EN{number:03d}"
    card = Card(
        card_number=card_number,
        set_code=home.set_code,
        set_position=card_number.rsplit("-", 1)[-1],
        name=name or f"Card {number}",
        card_type=card_type,
        frame_color=frame_color,
        rarity=rarity,
        attribute=attribute,
        card_text=card_text,
        prices=prices,
        pack_id=home.id,
    )
    db.session.add(card)
    home.total_cards = (home.total_cards or 0) + 1
    db.session.flush()
    return card


def _next_value(counter: itertools.count) -> int:
    return next(counter)
