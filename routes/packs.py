"""Public pack endpoints."""

from __future__ import annotations

from flask import jsonify, request
from sqlalchemy import or_

from models import Pack
from models.choices import LANGUAGES, SET_TYPES
from services.stats import pack_card_counts
from utils.db import get_or_404
from utils.input_validation import optional_choice, optional_string, sanitize_sql_like_pattern

from .base import api, page_args
from .serializers import serialize_pack


@api.get("/packs")
def list_packs():
    limit, offset = page_args()
    query = Pack.query
    language = optional_choice(request.args.get("language"), LANGUAGES, "language")
    if language:
        query = query.filter(Pack.language == language)
    set_type = optional_choice(request.args.get("set_type"), SET_TYPES, "set_type")
    if set_type:
        query = query.filter(Pack.set_type == set_type)
    search = optional_string(request.args.get("search"), 200)
    if search:
        pattern = f"%{sanitize_sql_like_pattern(search)}%"
        query = query.filter(
            or_(Pack.title.ilike(pattern, escape="\\"), Pack.set_code.ilike(pattern, escape="\\"))
        )

    total = query.count()
    packs = (
        query.order_by(Pack.release_date.desc().nullslast(), Pack.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    counts = pack_card_counts([pack.id for pack in packs])
    return jsonify({
        "packs": [serialize_pack(pack, card_count=counts.get(pack.id, 0)) for pack in packs],
        "total": total,
        "limit": limit,
        "offset": offset,
    })


@api.get("/packs/<int:pack_id>")
def get_pack(pack_id: int):
    pack = get_or_404(Pack, pack_id, label="Pack")
    counts = pack_card_counts([pack.id])
    return jsonify({"pack": serialize_pack(pack, card_count=counts.get(pack.id, 0))})
