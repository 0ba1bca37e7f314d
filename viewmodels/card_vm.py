"""Card view models for template rendering."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from models import Card
from services.pricing import format_price_text, listings_count, price_comparison


@dataclass(slots=True)
class PackRefVM:
    id: Optional[int]
    title: Optional[str]
    set_code: Optional[str]


@dataclass(slots=True)
class CardTileVM:
    id: int
    name: str
    card_number: str
    rarity: Optional[str]
    frame_color: Optional[str]
    image_small: Optional[str]
    pack: Optional[PackRefVM]
    price_text: str
    listings: int

    @property
    def rarity_label(self) -> str:
        return (self.rarity or "").replace("_", " ").title()

    @property
    def frame_class(self) -> str:
        return f"frame-{(self.frame_color or 'normal').lower()}"


@dataclass(slots=True)
class PriceRowVM:
    label: str
    currency: str
    usd: Optional[float]
    eur: Optional[float]
    jpy: Optional[float]
    listings: Optional[int]


@dataclass(slots=True)
class CardDetailVM:
    id: int
    name: str
    card_number: str
    card_type: str
    frame_color: str
    rarity: Optional[str]
    attribute: Optional[str]
    monster_type: Optional[str]
    level_label: Optional[str]
    atk: Optional[str]
    def_: Optional[str]
    card_text: Optional[str]
    pendulum_effect: Optional[str]
    image: Optional[str]
    ban_status: str
    pack: Optional[PackRefVM]
    price_text: str
    prices_updated: Optional[str]
    price_rows: list[PriceRowVM] = field(default_factory=list)
    abilities: list[str] = field(default_factory=list)


def _pack_ref(card: Card) -> Optional[PackRefVM]:
    if card.pack is None:
        return None
    return PackRefVM(id=card.pack.id, title=card.pack.title, set_code=card.pack.set_code)


def _level_label(card: Card) -> Optional[str]:
    if card.link_rating is not None:
        return f"LINK-{card.link_rating}"
    if card.rank is not None:
        return f"Rank {card.rank}"
    if card.level is not None:
        return f"Level {card.level}"
    return None


def card_tile(card: Card) -> CardTileVM:
    return CardTileVM(
        id=card.id,
        name=card.name,
        card_number=card.card_number,
        rarity=card.rarity,
        frame_color=card.frame_color,
        image_small=card.image_url_small or card.image_url,
        pack=_pack_ref(card),
        price_text=format_price_text(card.prices),
        listings=listings_count(card.prices),
    )


def card_detail(card: Card, *, usd_rate: float, eur_rate: float) -> CardDetailVM:
    rows: list[Any] = price_comparison(card.prices, usd_rate=usd_rate, eur_rate=eur_rate)
    return CardDetailVM(
        id=card.id,
        name=card.name,
        card_number=card.card_number,
        card_type=card.card_type,
        frame_color=card.frame_color,
        rarity=card.rarity,
        attribute=card.attribute,
        monster_type=card.monster_type,
        level_label=_level_label(card),
        atk=card.atk,
        def_=card.def_,
        card_text=card.card_text,
        pendulum_effect=card.pendulum_effect,
        image=card.image_url_high or card.image_url,
        ban_status=card.ban_status,
        pack=_pack_ref(card),
        price_text=format_price_text(card.prices),
        prices_updated=card.prices_updated.strftime("%Y-%m-%d %H:%M") if card.prices_updated else None,
        price_rows=[
            PriceRowVM(
                label=row["label"],
                currency=row["currency"],
                usd=row["usd"],
                eur=row["eur"],
                jpy=row["jpy"],
                listings=row["listings"],
            )
            for row in rows
        ],
        abilities=list(card.monster_abilities or []),
    )


__all__ = ["CardDetailVM", "CardTileVM", "PackRefVM", "PriceRowVM", "card_detail", "card_tile"]
