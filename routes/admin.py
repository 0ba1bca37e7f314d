"""Administrative endpoints: dashboard, accounts, and catalog maintenance."""

from __future__ import annotations

from flask import current_app, jsonify, request
from flask_login import current_user
from sqlalchemy import or_
from sqlalchemy.orm import joinedload

from extensions import db
from models import Card, Pack, User
from services import catalog
from services.audit import record_audit_event
from services.authz import admin_required
from services.card_import import import_cards, rows_from_upload
from services.stats import catalog_counts, pack_card_counts, recent_packs, recent_users
from utils.db import get_or_400, get_or_404
from utils.errors import ConflictError, ValidationError
from utils.input_validation import (
    optional_choice,
    optional_string,
    parse_bool,
    sanitize_sql_like_pattern,
)

from .base import api, first_of, json_body, page_args
from .serializers import serialize_card, serialize_pack, serialize_user


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------

@api.get("/admin/dashboard")
@admin_required
def admin_dashboard():
    return jsonify({
        "stats": catalog_counts(),
        "recent_users": [serialize_user(u, include_status=True) for u in recent_users()],
        "recent_packs": [serialize_pack(p) for p in recent_packs()],
    })


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

def _other_admins(user: User) -> int:
    return User.query.filter(User.role == User.ROLE_ADMIN, User.id != user.id).count()


@api.get("/admin/users")
@admin_required
def admin_list_users():
    limit, offset = page_args()
    query = User.query
    search = optional_string(request.args.get("search"), 200)
    if search:
        pattern = f"%{sanitize_sql_like_pattern(search)}%"
        query = query.filter(
            or_(User.username.ilike(pattern, escape="\\"), User.email.ilike(pattern, escape="\\"))
        )
    role = optional_choice(request.args.get("role"), User.ROLES, "role")
    if role:
        query = query.filter(User.role == role)
    total = query.count()
    users = query.order_by(User.created_at.desc(), User.id.desc()).offset(offset).limit(limit).all()
    return jsonify({
        "users": [serialize_user(u, include_status=True) for u in users],
        "total": total,
        "limit": limit,
        "offset": offset,
    })


@api.put("/admin/users/<int:user_id>/role")
@admin_required
def admin_set_role(user_id: int):
    user = get_or_404(User, user_id, label="User")
    if user.id == current_user.id:
        raise ValidationError("Cannot change your own role")
    role = optional_choice(json_body().get("role"), User.ROLES, "role")
    if role is None:
        raise ValidationError("role must be one of ADMIN, USER", field="role")
    if user.role == User.ROLE_ADMIN and role != User.ROLE_ADMIN and _other_admins(user) == 0:
        raise ValidationError("Cannot demote the last administrator")
    previous = user.role
    user.role = role
    record_audit_event("admin_set_role", {"target_id": user.id, "from": previous, "to": role})
    db.session.commit()
    return jsonify({"message": "User role updated", "user": serialize_user(user, include_status=True)})


@api.put("/admin/users/<int:user_id>/status")
@admin_required
def admin_set_status(user_id: int):
    user = get_or_404(User, user_id, label="User")
    data = json_body()
    raw = first_of(data, "is_active", "isActive")
    if not isinstance(raw, bool):
        raise ValidationError("is_active must be a boolean", field="is_active")
    if user.id == current_user.id and not raw:
        raise ValidationError("Cannot deactivate your own account")
    user.is_active = raw
    record_audit_event("admin_set_status", {"target_id": user.id, "is_active": raw})
    db.session.commit()
    message = "User activated" if raw else "User deactivated"
    return jsonify({"message": message, "user": serialize_user(user, include_status=True)})


@api.delete("/admin/users/<int:user_id>")
@admin_required
def admin_delete_user(user_id: int):
    user = get_or_404(User, user_id, label="User")
    if user.id == current_user.id:
        raise ValidationError("Cannot delete your own account")
    if user.is_admin and _other_admins(user) == 0:
        raise ValidationError("Cannot delete the last administrator")
    details = {"target_id": user.id, "username": user.username, "email": user.email}
    db.session.delete(user)
    record_audit_event("admin_delete_user", details)
    db.session.commit()
    current_app.logger.info("Admin %s deleted user %s", current_user.username, details["username"])
    return jsonify({"message": "User deleted"})


# ---------------------------------------------------------------------------
# Packs
# ---------------------------------------------------------------------------

@api.post("/admin/packs")
@admin_required
def admin_create_pack():
    data = catalog.normalize_keys(json_body())
    pack = Pack()
    catalog.apply_pack_fields(pack, data, partial=False)
    if catalog.set_code_taken(pack.set_code):
        raise ConflictError("Pack with this set code already exists")
    pack.total_cards = 0
    db.session.add(pack)
    record_audit_event("admin_create_pack", {"set_code": pack.set_code})
    db.session.commit()
    return jsonify({"message": "Pack created", "pack": serialize_pack(pack, card_count=0)}), 201


@api.put("/admin/packs/<int:pack_id>")
@admin_required
def admin_update_pack(pack_id: int):
    pack = get_or_404(Pack, pack_id, label="Pack")
    data = catalog.normalize_keys(json_body())
    catalog.apply_pack_fields(pack, data, partial=True)
    if "set_code" in data and catalog.set_code_taken(pack.set_code, exclude_id=pack.id):
        raise ConflictError("Pack with this set code already exists")
    db.session.commit()
    counts = pack_card_counts([pack.id])
    return jsonify({"message": "Pack updated", "pack": serialize_pack(pack, card_count=counts.get(pack.id, 0))})


@api.delete("/admin/packs/<int:pack_id>")
@admin_required
def admin_delete_pack(pack_id: int):
    pack = get_or_404(Pack, pack_id, label="Pack")
    card_count = pack.cards.count()
    if card_count:
        raise ValidationError(f"Cannot delete pack with {card_count} cards. Delete cards first.")
    record_audit_event("admin_delete_pack", {"set_code": pack.set_code})
    db.session.delete(pack)
    db.session.commit()
    return jsonify({"message": "Pack deleted"})


# ---------------------------------------------------------------------------
# Cards
# ---------------------------------------------------------------------------

@api.post("/admin/cards")
@admin_required
def admin_create_card():
    data = catalog.normalize_keys(json_body())
    missing = catalog.missing_card_fields(data)
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    pack = get_or_400(Pack, data.get("pack_id"), label="Pack")
    card = catalog.build_card(data, pack)
    if catalog.card_number_taken(card.card_number):
        raise ConflictError("Card with this card number already exists")

    db.session.add(card)
    db.session.flush()
    catalog.adjust_pack_total(pack.id, 1)
    record_audit_event("admin_create_card", {"card_number": card.card_number, "pack": pack.set_code})
    db.session.commit()
    card = get_or_404(Card, card.id, label="Card", options=[joinedload(Card.pack)])
    return jsonify({"message": "Card created", "card": serialize_card(card)}), 201


@api.put("/admin/cards/<int:card_id>")
@admin_required
def admin_update_card(card_id: int):
    card = get_or_404(Card, card_id, label="Card")
    data = catalog.normalize_keys(json_body())

    if "card_number" in data:
        card_number = optional_string(data.get("card_number"), 32)
        if not card_number:
            raise ValidationError("card_number is required", field="card_number")
        if card_number != card.card_number and catalog.card_number_taken(card_number, exclude_id=card.id):
            raise ConflictError("Card with this card number already exists")
        card.card_number = card_number
    if "pack_id" in data and data.get("pack_id") != card.pack_id:
        pack = get_or_400(Pack, data.get("pack_id"), label="Pack")
        if pack.id != card.pack_id:
            catalog.adjust_pack_total(card.pack_id, -1)
            catalog.adjust_pack_total(pack.id, 1)
            card.pack_id = pack.id
    if "set_code" in data:
        card.set_code = optional_string(data.get("set_code"), 32) or card.set_code
    catalog.apply_card_fields(card, data, partial=True)
    db.session.commit()
    card = get_or_404(Card, card.id, label="Card", options=[joinedload(Card.pack)])
    return jsonify({"message": "Card updated", "card": serialize_card(card)})


@api.delete("/admin/cards/<int:card_id>")
@admin_required
def admin_delete_card(card_id: int):
    card = get_or_404(Card, card_id, label="Card")
    details = {"card_number": card.card_number, "pack_id": card.pack_id}
    catalog.delete_card(card)
    record_audit_event("admin_delete_card", details)
    db.session.commit()
    return jsonify({"message": "Card deleted"})


@api.post("/admin/cards/bulk-import")
@admin_required
def admin_bulk_import():
    upload = request.files.get("file")
    if upload is not None and upload.filename:
        pack_id = request.form.get("pack_id") or request.form.get("packId")
        rows = rows_from_upload(upload.filename, upload.read())
    else:
        data = json_body()
        pack_id = first_of(data, "pack_id", "packId")
        rows = data.get("cards")
        if not isinstance(rows, list) or not rows:
            raise ValidationError("cards must be a non-empty list", field="cards")
    if pack_id in (None, ""):
        raise ValidationError("pack_id is required", field="pack_id")
    pack = get_or_400(Pack, pack_id, label="Pack")

    record_audit_event("admin_bulk_import", {"pack": pack.set_code, "rows": len(rows)})
    report = import_cards(pack, rows)
    verbose = parse_bool(request.args.get("details"), True)
    payload = report.to_dict() if verbose else report.summary()
    return jsonify({"message": "Bulk import completed", "results": payload})
