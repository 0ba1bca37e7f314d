import pytest

from extensions import db
from models import CollectionCard

from tests.factories import create_card


@pytest.fixture
def blue_eyes(db_session):
    card = create_card(card_number="LOB-EN001", name="Blue-Eyes White Dragon")
    db.session.commit()
    return card


def _create_collection(client, headers, name="Binder", **extra):
    resp = client.post("/api/collections", json={"name": name, **extra}, headers=headers)
    assert resp.status_code == 201
    return resp.get_json()["collection"]


def test_collection_crud(client, regular_user, auth_headers):
    headers = auth_headers(regular_user)
    created = _create_collection(client, headers, description="Main binder")
    assert created["is_public"] is False

    dup = client.post("/api/collections", json={"name": "Binder"}, headers=headers)
    assert dup.status_code == 409
    assert dup.get_json()["error"] == "Collection with this name already exists"

    missing = client.post("/api/collections", json={"name": "  "}, headers=headers)
    assert missing.status_code == 400
    assert missing.get_json()["error"] == "Collection name is required"

    listed = client.get("/api/collections", headers=headers).get_json()["collections"]
    assert [c["name"] for c in listed] == ["Binder"]
    assert listed[0]["card_count"] == 0

    updated = client.put(
        f"/api/collections/{created['id']}", json={"name": "Trade Binder", "isPublic": True}, headers=headers
    )
    assert updated.status_code == 200
    assert updated.get_json()["collection"]["name"] == "Trade Binder"
    assert updated.get_json()["collection"]["is_public"] is True

    deleted = client.delete(f"/api/collections/{created['id']}", headers=headers)
    assert deleted.status_code == 200
    assert client.get(f"/api/collections/{created['id']}", headers=headers).status_code == 404


def test_collections_require_auth(client):
    resp = client.get("/api/collections")
    assert resp.status_code == 401


def test_other_users_private_collection_is_hidden(client, create_user, auth_headers):
    owner, _ = create_user(username="owner")
    other, _ = create_user(username="other")
    private = _create_collection(client, auth_headers(owner), name="Secret")
    public = _create_collection(client, auth_headers(owner), name="Showcase", is_public=True)

    hidden = client.get(f"/api/collections/{private['id']}", headers=auth_headers(other))
    assert hidden.status_code == 404
    assert hidden.get_json()["error"] == "Collection not found"

    visible = client.get(f"/api/collections/{public['id']}", headers=auth_headers(other))
    assert visible.status_code == 200

    edit = client.put(f"/api/collections/{public['id']}", json={"name": "Mine"}, headers=auth_headers(other))
    assert edit.status_code == 404


def test_adding_same_card_merges_quantity(client, regular_user, auth_headers, blue_eyes):
    headers = auth_headers(regular_user)
    collection = _create_collection(client, headers)
    url = f"/api/collections/{collection['id']}/cards"

    first = client.post(url, json={"card_id": blue_eyes.id, "quantity": 2}, headers=headers)
    assert first.status_code == 201
    assert first.get_json()["message"] == "Card added to collection"
    row = first.get_json()["collection"]
    assert row["condition"] == "NEAR_MINT"
    assert row["language"] == "EN"
    assert row["is_first_edition"] is False

    second = client.post(url, json={"cardId": blue_eyes.id}, headers=headers)
    assert second.status_code == 200
    assert second.get_json()["message"] == "Card quantity updated"
    assert second.get_json()["collection"]["quantity"] == 3

    other_condition = client.post(
        url, json={"card_id": blue_eyes.id, "condition": "lightly_played", "isFirstEdition": True}, headers=headers
    )
    assert other_condition.status_code == 201

    detail = client.get(f"/api/collections/{collection['id']}", headers=headers).get_json()["collection"]
    assert detail["card_count"] == 4
    assert len(detail["cards"]) == 2


def test_add_card_validation(client, regular_user, auth_headers, blue_eyes):
    headers = auth_headers(regular_user)
    collection = _create_collection(client, headers)
    url = f"/api/collections/{collection['id']}/cards"

    unknown = client.post(url, json={"card_id": 9999}, headers=headers)
    assert unknown.status_code == 400
    assert unknown.get_json()["error"] == "Card not found"

    zero = client.post(url, json={"card_id": blue_eyes.id, "quantity": 0}, headers=headers)
    assert zero.status_code == 400

    fractional = client.post(url, json={"card_id": blue_eyes.id, "quantity": 2.7}, headers=headers)
    assert fractional.status_code == 400
    huge_id = client.post(url, json={"card_id": 10**20}, headers=headers)
    assert huge_id.status_code == 400

    bad_condition = client.post(url, json={"card_id": blue_eyes.id, "condition": "MINTY"}, headers=headers)
    assert bad_condition.status_code == 400


def test_remove_card_partial_then_all(client, regular_user, auth_headers, blue_eyes):
    headers = auth_headers(regular_user)
    collection = _create_collection(client, headers)
    url = f"/api/collections/{collection['id']}/cards"
    client.post(url, json={"card_id": blue_eyes.id, "quantity": 3}, headers=headers)

    partial = client.delete(f"{url}/{blue_eyes.id}?quantity=2", headers=headers)
    assert partial.status_code == 200
    assert partial.get_json()["removed"] == 2
    assert CollectionCard.query.filter_by(card_id=blue_eyes.id).one().quantity == 1

    rest = client.delete(f"{url}/{blue_eyes.id}", headers=headers)
    assert rest.status_code == 200
    assert CollectionCard.query.filter_by(card_id=blue_eyes.id).count() == 0

    gone = client.delete(f"{url}/{blue_eyes.id}", headers=headers)
    assert gone.status_code == 404
    assert gone.get_json()["error"] == "Card not found in collection"


def test_deleting_collection_removes_rows(client, regular_user, auth_headers, blue_eyes):
    headers = auth_headers(regular_user)
    collection = _create_collection(client, headers)
    client.post(f"/api/collections/{collection['id']}/cards", json={"card_id": blue_eyes.id}, headers=headers)

    client.delete(f"/api/collections/{collection['id']}", headers=headers)
    assert CollectionCard.query.count() == 0
