import io

import pytest

from extensions import db
from models import AuditLog, Card, Pack, User

from tests.factories import create_card, create_pack


@pytest.fixture
def admin_headers(admin_user, auth_headers):
    return auth_headers(admin_user)


def _reload(model, ident):
    db.session.expire_all()
    return db.session.get(model, ident)


def test_admin_routes_reject_regular_users(client, regular_user, auth_headers):
    resp = client.get("/api/admin/dashboard", headers=auth_headers(regular_user))
    assert resp.status_code == 403
    assert resp.get_json()["error"] == "Admin access required"
    assert client.get("/api/admin/dashboard").status_code == 401


def test_dashboard_counts(client, admin_headers, regular_user):
    pack = create_pack(set_code="LOB")
    create_card(pack=pack)
    db.session.commit()

    body = client.get("/api/admin/dashboard", headers=admin_headers).get_json()
    assert body["stats"]["users"] == 2
    assert body["stats"]["packs"] == 1
    assert body["stats"]["cards"] == 1
    assert {u["username"] for u in body["recent_users"]} == {"admin", "user001"}
    assert body["recent_packs"][0]["set_code"] == "LOB"


def test_list_users_search_and_role_filter(client, admin_headers, regular_user):
    resp = client.get("/api/admin/users?search=user0", headers=admin_headers)
    assert [u["username"] for u in resp.get_json()["users"]] == ["user001"]

    admins = client.get("/api/admin/users?role=admin", headers=admin_headers).get_json()
    assert admins["total"] == 1
    assert admins["users"][0]["role"] == "ADMIN"


def test_change_role_and_self_guard(client, admin_user, admin_headers, regular_user):
    promoted = client.put(
        f"/api/admin/users/{regular_user.id}/role", json={"role": "ADMIN"}, headers=admin_headers
    )
    assert promoted.status_code == 200
    assert promoted.get_json()["message"] == "User role updated"
    assert _reload(User, regular_user.id).role == "ADMIN"

    own = client.put(f"/api/admin/users/{admin_user.id}/role", json={"role": "USER"}, headers=admin_headers)
    assert own.status_code == 400
    assert own.get_json()["error"] == "Cannot change your own role"

    bad = client.put(f"/api/admin/users/{regular_user.id}/role", json={"role": "OWNER"}, headers=admin_headers)
    assert bad.status_code == 400

    assert AuditLog.query.filter_by(action="admin_set_role").count() == 1


def test_status_toggle(client, admin_user, admin_headers, regular_user):
    resp = client.put(
        f"/api/admin/users/{regular_user.id}/status", json={"isActive": False}, headers=admin_headers
    )
    assert resp.get_json()["message"] == "User deactivated"
    assert _reload(User, regular_user.id).is_active is False

    login = client.post("/api/auth/login", json={"username": "user001", "password": "password123"})
    assert login.status_code == 403

    not_bool = client.put(
        f"/api/admin/users/{regular_user.id}/status", json={"is_active": "yes"}, headers=admin_headers
    )
    assert not_bool.status_code == 400

    own = client.put(f"/api/admin/users/{admin_user.id}/status", json={"is_active": False}, headers=admin_headers)
    assert own.status_code == 400
    assert own.get_json()["error"] == "Cannot deactivate your own account"


def test_delete_user(client, admin_user, admin_headers, regular_user):
    own = client.delete(f"/api/admin/users/{admin_user.id}", headers=admin_headers)
    assert own.status_code == 400
    assert own.get_json()["error"] == "Cannot delete your own account"

    resp = client.delete(f"/api/admin/users/{regular_user.id}", headers=admin_headers)
    assert resp.status_code == 200
    assert _reload(User, regular_user.id) is None
    assert client.delete(f"/api/admin/users/{regular_user.id}", headers=admin_headers).status_code == 404


def test_pack_lifecycle(client, admin_headers):
    created = client.post(
        "/api/admin/packs",
        json={"setCode": "lob", "title": "Legend of Blue Eyes White Dragon", "releaseDate": "2002-03-08"},
        headers=admin_headers,
    )
    assert created.status_code == 201
    pack = created.get_json()["pack"]
    assert pack["set_code"] == "LOB"
    assert pack["language"] == "EN"
    assert pack["set_type"] == "BOOSTER"
    assert pack["total_cards"] == 0

    dup = client.post("/api/admin/packs", json={"set_code": "LOB", "title": "Again"}, headers=admin_headers)
    assert dup.status_code == 409

    updated = client.put(f"/api/admin/packs/{pack['id']}", json={"title_jp": "青眼の白龍伝説"}, headers=admin_headers)
    assert updated.get_json()["pack"]["title_jp"] == "青眼の白龍伝説"

    assert client.delete(f"/api/admin/packs/{pack['id']}", headers=admin_headers).status_code == 200


def test_pack_with_cards_cannot_be_deleted(client, admin_headers):
    pack = create_pack(set_code="MRD")
    create_card(pack=pack)
    create_card(pack=pack)
    db.session.commit()

    resp = client.delete(f"/api/admin/packs/{pack.id}", headers=admin_headers)
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Cannot delete pack with 2 cards. Delete cards first."


def test_create_card_defaults_and_counter(client, admin_headers):
    pack = create_pack(set_code="LOB")
    db.session.commit()

    missing = client.post("/api/admin/cards", json={"name": "Blue-Eyes"}, headers=admin_headers)
    assert missing.status_code == 400
    assert missing.get_json()["error"].startswith("Missing required fields: card_number")

    payload = {
        "cardNumber": "LOB-EN001",
        "name": "Blue-Eyes White Dragon",
        "cardType": "MONSTER",
        "frameColor": "NORMAL",
        "packId": pack.id,
        "atk": "3000",
        "def": "2500",
        "level": 8,
    }
    created = client.post("/api/admin/cards", json=payload, headers=admin_headers)
    assert created.status_code == 201
    card = created.get_json()["card"]
    assert card["set_code"] == "LOB"
    assert card["set_position"] == "EN001"
    assert card["rarity"] == "COMMON"
    assert card["ban_status"] == "UNLIMITED"
    assert card["tcg_legal"] is True
    assert card["def"] == "2500"
    assert _reload(Pack, pack.id).total_cards == 1

    dup = client.post("/api/admin/cards", json=payload, headers=admin_headers)
    assert dup.status_code == 409
    assert dup.get_json()["error"] == "Card with this card number already exists"

    no_pack = client.post("/api/admin/cards", json={**payload, "cardNumber": "LOB-EN002", "packId": 999},
                          headers=admin_headers)
    assert no_pack.status_code == 400
    assert no_pack.get_json()["error"] == "Pack not found"


def test_update_card_moves_between_packs(client, admin_headers):
    lob = create_pack(set_code="LOB")
    mrd = create_pack(set_code="MRD")
    card = create_card(pack=lob, card_number="LOB-EN001")
    db.session.commit()

    resp = client.put(
        f"/api/admin/cards/{card.id}", json={"pack_id": mrd.id, "rarity": "super_rare"}, headers=admin_headers
    )
    assert resp.status_code == 200
    assert resp.get_json()["card"]["pack"]["set_code"] == "MRD"
    assert resp.get_json()["card"]["rarity"] == "SUPER_RARE"
    assert _reload(Pack, lob.id).total_cards == 0
    assert _reload(Pack, mrd.id).total_cards == 1


def test_delete_card_decrements_and_respects_references(client, admin_headers, regular_user, auth_headers):
    pack = create_pack(set_code="LOB")
    kept = create_card(pack=pack)
    dropped = create_card(pack=pack)
    db.session.commit()

    client.post("/api/wishlist", json={"card_id": kept.id}, headers=auth_headers(regular_user))
    blocked = client.delete(f"/api/admin/cards/{kept.id}", headers=admin_headers)
    assert blocked.status_code == 409

    resp = client.delete(f"/api/admin/cards/{dropped.id}", headers=admin_headers)
    assert resp.status_code == 200
    assert _reload(Card, dropped.id) is None
    assert _reload(Pack, pack.id).total_cards == 1


def test_bulk_import_json(client, admin_headers):
    pack = create_pack(set_code="LOB")
    create_card(pack=pack, card_number="LOB-EN001")
    db.session.commit()

    resp = client.post(
        "/api/admin/cards/bulk-import",
        json={
            "packId": pack.id,
            "cards": [
                {"card_number": "LOB-EN001", "name": "dup", "card_type": "MONSTER", "frame_color": "NORMAL"},
                {"card_number": "LOB-EN002", "name": "Hitotsu-Me Giant", "card_type": "MONSTER",
                 "frame_color": "NORMAL"},
                {"card_number": "LOB-EN003", "name": "Broken", "card_type": "MONSTER", "frame_color": "PURPLE"},
            ],
        },
        headers=admin_headers,
    )
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["message"] == "Bulk import completed"
    assert body["results"]["created"] == 1
    assert body["results"]["skipped"] == 1
    assert body["results"]["errors"] == 1
    assert len(body["results"]["results"]) == 3
    assert _reload(Pack, pack.id).total_cards == 2


def test_bulk_import_csv_upload_summary_only(client, admin_headers):
    pack = create_pack(set_code="SDY")
    db.session.commit()
    csv_text = "Card Number,Name,Card Type,Frame Color\nSDY-006,Dark Magician,MONSTER,NORMAL\n"

    resp = client.post(
        "/api/admin/cards/bulk-import?details=0",
        data={"pack_id": str(pack.id), "file": (io.BytesIO(csv_text.encode("utf-8")), "sdy.csv")},
        content_type="multipart/form-data",
        headers=admin_headers,
    )
    assert resp.status_code == 200
    assert resp.get_json()["results"] == {"created": 1, "skipped": 0, "errors": 0}


def test_bulk_import_requires_cards(client, admin_headers):
    pack = create_pack()
    db.session.commit()
    resp = client.post("/api/admin/cards/bulk-import", json={"pack_id": pack.id, "cards": []}, headers=admin_headers)
    assert resp.status_code == 400


def test_catalog_entries_created_by_admin_are_searchable(client, admin_headers):
    pack = client.post(
        "/api/admin/packs",
        json={"setCode": "LOB", "title": "Legend of Blue Eyes White Dragon"},
        headers=admin_headers,
    ).get_json()["pack"]
    created = client.post(
        "/api/admin/cards",
        json={
            "cardNumber": "LOB-EN001",
            "name": "Blue-Eyes White Dragon",
            "cardType": "MONSTER",
            "frameColor": "NORMAL",
            "packId": pack["id"],
        },
        headers=admin_headers,
    )
    assert created.status_code == 201

    body = client.get("/api/cards?search=Blue-Eyes").get_json()
    assert body["total"] == 1
    assert [card["card_number"] for card in body["cards"]] == ["LOB-EN001"]
    assert body["cards"][0]["pack"] == {
        "id": pack["id"],
        "title": "Legend of Blue Eyes White Dragon",
        "set_code": "LOB",
    }
