import pytest

from extensions import db
from models import DeckCard

from tests.factories import create_card


@pytest.fixture
def cards(db_session):
    dark_magician = create_card(card_number="SDY-006", name="Dark Magician", attribute="DARK")
    polymerization = create_card(
        card_number="SDY-028", name="Polymerization", card_type="SPELL", frame_color="SPELL"
    )
    db.session.commit()
    return dark_magician, polymerization


def _create_deck(client, headers, name="Yugi Starter"):
    resp = client.post("/api/decks", json={"name": name, "format": "Advanced"}, headers=headers)
    assert resp.status_code == 201
    return resp.get_json()["deck"]


def test_deck_crud(client, regular_user, auth_headers):
    headers = auth_headers(regular_user)
    deck = _create_deck(client, headers)
    assert deck["format"] == "Advanced"

    assert client.post("/api/decks", json={"name": "Yugi Starter"}, headers=headers).status_code == 409
    assert client.post("/api/decks", json={}, headers=headers).status_code == 400

    renamed = client.put(f"/api/decks/{deck['id']}", json={"name": "Spellcasters"}, headers=headers)
    assert renamed.get_json()["deck"]["name"] == "Spellcasters"

    listed = client.get("/api/decks", headers=headers).get_json()["decks"]
    assert [d["name"] for d in listed] == ["Spellcasters"]

    assert client.delete(f"/api/decks/{deck['id']}", headers=headers).status_code == 200
    assert client.get(f"/api/decks/{deck['id']}", headers=headers).status_code == 404


def test_copy_limit_counts_every_zone(client, regular_user, auth_headers, cards):
    dark_magician, _ = cards
    headers = auth_headers(regular_user)
    deck = _create_deck(client, headers)
    url = f"/api/decks/{deck['id']}/cards"

    first = client.post(url, json={"card_id": dark_magician.id, "quantity": 2}, headers=headers)
    assert first.status_code == 201
    assert first.get_json()["message"] == "Card added to deck"
    assert first.get_json()["deckCard"]["zone"] == "MAIN"

    side = client.post(url, json={"card_id": dark_magician.id, "zone": "side"}, headers=headers)
    assert side.status_code == 201
    assert side.get_json()["deckCard"]["zone"] == "SIDE"

    fourth = client.post(url, json={"card_id": dark_magician.id, "zone": "MAIN"}, headers=headers)
    assert fourth.status_code == 400
    assert fourth.get_json()["error"] == "Cannot have more than 3 copies of a card in a deck"

    total = sum(row.quantity for row in DeckCard.query.filter_by(card_id=dark_magician.id))
    assert total == 3


def test_fourth_single_copy_in_main_is_rejected(client, regular_user, auth_headers, cards):
    dark_magician, _ = cards
    headers = auth_headers(regular_user)
    deck = _create_deck(client, headers)
    url = f"/api/decks/{deck['id']}/cards"

    for _ in range(3):
        resp = client.post(url, json={"card_id": dark_magician.id, "quantity": 1}, headers=headers)
        assert resp.status_code in (200, 201)

    fourth = client.post(url, json={"card_id": dark_magician.id, "quantity": 1}, headers=headers)
    assert fourth.status_code == 400
    assert fourth.get_json()["error"] == "Cannot have more than 3 copies of a card in a deck"
    rows = DeckCard.query.filter_by(card_id=dark_magician.id).all()
    assert [(row.zone, row.quantity) for row in rows] == [("MAIN", 3)]


def test_adding_to_same_zone_merges(client, regular_user, auth_headers, cards):
    _, polymerization = cards
    headers = auth_headers(regular_user)
    deck = _create_deck(client, headers)
    url = f"/api/decks/{deck['id']}/cards"

    client.post(url, json={"card_id": polymerization.id}, headers=headers)
    again = client.post(url, json={"cardId": polymerization.id}, headers=headers)
    assert again.status_code == 200
    assert again.get_json()["message"] == "Card quantity updated"
    assert again.get_json()["deckCard"]["quantity"] == 2


def test_invalid_zone_and_unknown_card(client, regular_user, auth_headers, cards):
    dark_magician, _ = cards
    headers = auth_headers(regular_user)
    deck = _create_deck(client, headers)
    url = f"/api/decks/{deck['id']}/cards"

    bad_zone = client.post(url, json={"card_id": dark_magician.id, "zone": "GRAVEYARD"}, headers=headers)
    assert bad_zone.status_code == 400
    assert bad_zone.get_json()["error"] == "zone must be MAIN, EXTRA, or SIDE"

    unknown = client.post(url, json={"card_id": 4242}, headers=headers)
    assert unknown.status_code == 400
    assert unknown.get_json()["error"] == "Card not found"


def test_deck_detail_groups_by_zone(client, regular_user, auth_headers, cards):
    dark_magician, polymerization = cards
    headers = auth_headers(regular_user)
    deck = _create_deck(client, headers)
    url = f"/api/decks/{deck['id']}/cards"
    client.post(url, json={"card_id": dark_magician.id, "quantity": 3}, headers=headers)
    client.post(url, json={"card_id": polymerization.id, "zone": "SIDE"}, headers=headers)

    detail = client.get(f"/api/decks/{deck['id']}", headers=headers).get_json()["deck"]
    assert detail["card_count"] == 4
    assert [c["card"]["name"] for c in detail["cards"]["main"]] == ["Dark Magician"]
    assert detail["cards"]["extra"] == []
    assert [c["card"]["name"] for c in detail["cards"]["side"]] == ["Polymerization"]


def test_remove_deck_card_by_zone_and_quantity(client, regular_user, auth_headers, cards):
    dark_magician, _ = cards
    headers = auth_headers(regular_user)
    deck = _create_deck(client, headers)
    url = f"/api/decks/{deck['id']}/cards"
    client.post(url, json={"card_id": dark_magician.id, "quantity": 2}, headers=headers)
    client.post(url, json={"card_id": dark_magician.id, "zone": "SIDE"}, headers=headers)

    side = client.delete(f"{url}/{dark_magician.id}?zone=SIDE", headers=headers)
    assert side.get_json()["removed"] == 1

    one = client.delete(f"{url}/{dark_magician.id}?quantity=1", headers=headers)
    assert one.get_json()["removed"] == 1
    assert DeckCard.query.filter_by(card_id=dark_magician.id).one().quantity == 1

    assert client.delete(f"{url}/{dark_magician.id}", headers=headers).status_code == 200
    missing = client.delete(f"{url}/{dark_magician.id}", headers=headers)
    assert missing.status_code == 404
    assert missing.get_json()["error"] == "Card not found in deck"


def test_private_deck_hidden_from_other_users(client, create_user, auth_headers):
    owner, _ = create_user(username="yugi")
    other, _ = create_user(username="kaiba")
    deck = _create_deck(client, auth_headers(owner))
    resp = client.get(f"/api/decks/{deck['id']}", headers=auth_headers(other))
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "Deck not found"
