from __future__ import annotations

from datetime import date

from extensions import db
from models import Pack, User

DEFAULT_ACCOUNTS = [
    {"username": "admin", "email": "admin@tcgapp.local", "password": "admin", "role": User.ROLE_ADMIN},
    {"username": "user001", "email": "user001@tcgapp.local", "password": "user001", "role": User.ROLE_USER},
]

SAMPLE_PACKS = [
    {
        "set_code": "LOB",
        "title": "Legend of Blue Eyes White Dragon",
        "title_jp": "青眼の白龍伝説",
        "language": "EN",
        "release_date": date(2002, 3, 8),
        "set_type": "BOOSTER",
    },
]


def seed_defaults() -> dict:
    """Create the default accounts and sample pack when missing.

    Existing rows are left untouched, so running it twice is harmless.
    Returns the usernames/set codes that were created.
    """
    created = {"users": [], "packs": []}

    for account in DEFAULT_ACCOUNTS:
        if User.query.filter_by(username=account["username"]).first():
            continue
        user = User(username=account["username"], email=account["email"], role=account["role"], is_active=True)
        user.set_password(account["password"])
        db.session.add(user)
        created["users"].append(account["username"])

    for fields in SAMPLE_PACKS:
        if Pack.query.filter_by(set_code=fields["set_code"]).first():
            continue
        # total_cards tracks real child rows; the pack starts empty.
        db.session.add(Pack(total_cards=0, **fields))
        created["packs"].append(fields["set_code"])

    db.session.commit()
    return created
