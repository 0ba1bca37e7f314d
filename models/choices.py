"""Enumerated column values shared by models, validation and query filters."""

from __future__ import annotations

LANGUAGES = ("EN", "JP", "CN", "KOR")

SET_TYPES = (
    "BOOSTER",
    "STRUCTURE_DECK",
    "STARTER_DECK",
    "SPECIAL_EDITION",
    "TIN",
    "PROMO",
    "DUELIST_PACK",
    "LEGENDARY_COLLECTION",
)

CARD_TYPES = ("MONSTER", "SPELL", "TRAP")

FRAME_COLORS = (
    "NORMAL",
    "EFFECT",
    "RITUAL",
    "FUSION",
    "SYNCHRO",
    "XYZ",
    "PENDULUM",
    "LINK",
    "TOKEN",
    "SPELL",
    "TRAP",
)

ATTRIBUTES = ("DARK", "LIGHT", "EARTH", "WATER", "FIRE", "WIND", "DIVINE")

SPELL_TYPES = ("NORMAL", "CONTINUOUS", "EQUIP", "QUICK_PLAY", "FIELD", "RITUAL")

TRAP_TYPES = ("NORMAL", "CONTINUOUS", "COUNTER")

RARITIES = (
    "COMMON",
    "RARE",
    "SUPER_RARE",
    "ULTRA_RARE",
    "SECRET_RARE",
    "ULTIMATE_RARE",
    "GHOST_RARE",
    "STARLIGHT_RARE",
    "PRISMATIC_SECRET_RARE",
    "GOLD_RARE",
    "PLATINUM_RARE",
    "COLLECTORS_RARE",
    "QUARTER_CENTURY_SECRET",
)

# Sort rank for the "rarity" ordering; rarities missing here rank 0 (first).
RARITY_RANK = {
    "COMMON": 1,
    "UNCOMMON": 2,
    "RARE": 3,
    "SUPER_RARE": 4,
    "ULTRA_RARE": 5,
    "SECRET_RARE": 6,
    "ULTIMATE_RARE": 7,
    "GHOST_RARE": 8,
    "PRISMATIC_SECRET_RARE": 9,
    "STARFOIL_RARE": 10,
}

BAN_STATUSES = ("UNLIMITED", "SEMI_LIMITED", "LIMITED", "FORBIDDEN")

CONDITIONS = (
    "MINT",
    "NEAR_MINT",
    "LIGHTLY_PLAYED",
    "MODERATELY_PLAYED",
    "HEAVILY_PLAYED",
    "DAMAGED",
)

DECK_ZONES = ("MAIN", "EXTRA", "SIDE")


def sql_in(values: tuple[str, ...]) -> str:
    """Render a tuple as a SQL IN list for CheckConstraint text."""
    return ",".join(f"'{value}'" for value in values)
