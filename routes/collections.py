"""Per-user collection endpoints."""

from __future__ import annotations

from flask import jsonify, request
from flask_login import current_user
from sqlalchemy import func
from sqlalchemy.orm import joinedload, selectinload

from extensions import db
from models import Card, Collection, CollectionCard
from services import collections as collection_service
from services.authz import user_required
from utils.db import get_or_404
from utils.errors import ConflictError, NotFoundError, ValidationError
from utils.input_validation import optional_string, parse_bool, sanitize_string

from .base import api, first_of, json_body
from .serializers import serialize_collection, serialize_collection_card


def _load(collection_id: int, *, allow_public: bool = False) -> Collection:
    collection = get_or_404(Collection, collection_id, label="Collection")
    if collection.user_id == current_user.id:
        return collection
    if allow_public and collection.is_public:
        return collection
    raise NotFoundError("Collection not found")


def _name_taken(name: str, *, exclude_id: int | None = None) -> bool:
    query = Collection.query.filter(Collection.user_id == current_user.id, Collection.name == name)
    if exclude_id is not None:
        query = query.filter(Collection.id != exclude_id)
    return db.session.query(query.exists()).scalar()


@api.get("/collections")
@user_required
def list_collections():
    collections = (
        Collection.query.filter_by(user_id=current_user.id)
        .order_by(Collection.updated_at.desc(), Collection.id.desc())
        .all()
    )
    counts = dict(
        db.session.query(CollectionCard.collection_id, func.coalesce(func.sum(CollectionCard.quantity), 0))
        .filter(CollectionCard.collection_id.in_([c.id for c in collections] or [0]))
        .group_by(CollectionCard.collection_id)
        .all()
    )
    return jsonify({
        "collections": [serialize_collection(c, card_count=int(counts.get(c.id, 0))) for c in collections]
    })


@api.post("/collections")
@user_required
def create_collection():
    data = json_body()
    name = sanitize_string(data.get("name"), 120)
    if not name:
        raise ValidationError("Collection name is required", field="name")
    if _name_taken(name):
        raise ConflictError("Collection with this name already exists")

    collection = Collection(
        user_id=current_user.id,
        name=name,
        description=optional_string(data.get("description"), 2000),
        is_public=parse_bool(first_of(data, "is_public", "isPublic"), False),
    )
    db.session.add(collection)
    db.session.commit()
    return jsonify({"message": "Collection created", "collection": serialize_collection(collection)}), 201


@api.get("/collections/<int:collection_id>")
@user_required
def get_collection(collection_id: int):
    collection = _load(collection_id, allow_public=True)
    entries = (
        CollectionCard.query.filter_by(collection_id=collection.id)
        .options(joinedload(CollectionCard.card).joinedload(Card.pack))
        .order_by(CollectionCard.added_at.desc(), CollectionCard.id.desc())
        .all()
    )
    data = serialize_collection(collection, card_count=sum(e.quantity for e in entries))
    data["cards"] = [serialize_collection_card(entry) for entry in entries]
    return jsonify({"collection": data})


@api.put("/collections/<int:collection_id>")
@user_required
def update_collection(collection_id: int):
    collection = _load(collection_id)
    data = json_body()
    if "name" in data:
        name = sanitize_string(data.get("name"), 120)
        if not name:
            raise ValidationError("Collection name is required", field="name")
        if name != collection.name and _name_taken(name, exclude_id=collection.id):
            raise ConflictError("Collection with this name already exists")
        collection.name = name
    if "description" in data:
        collection.description = optional_string(data.get("description"), 2000)
    is_public = first_of(data, "is_public", "isPublic")
    if is_public is not None:
        collection.is_public = parse_bool(is_public, collection.is_public)
    db.session.commit()
    return jsonify({"message": "Collection updated", "collection": serialize_collection(collection)})


@api.delete("/collections/<int:collection_id>")
@user_required
def delete_collection(collection_id: int):
    collection = _load(collection_id)
    db.session.delete(collection)
    db.session.commit()
    return jsonify({"message": "Collection deleted"})


@api.post("/collections/<int:collection_id>/cards")
@user_required
def add_collection_card(collection_id: int):
    collection = _load(collection_id)
    entry, created = collection_service.add_card(collection, json_body())
    db.session.commit()
    entry = db.session.get(
        CollectionCard, entry.id, options=[selectinload(CollectionCard.card).joinedload(Card.pack)]
    )
    if created:
        return jsonify({"message": "Card added to collection", "collection": serialize_collection_card(entry)}), 201
    return jsonify({"message": "Card quantity updated", "collection": serialize_collection_card(entry)})


@api.delete("/collections/<int:collection_id>/cards/<int:card_id>")
@user_required
def remove_collection_card(collection_id: int, card_id: int):
    collection = _load(collection_id)
    removed = collection_service.remove_card(collection, card_id, request.args.get("quantity"))
    if not removed:
        raise NotFoundError("Card not found in collection")
    db.session.commit()
    return jsonify({"message": "Card removed from collection", "removed": removed})
