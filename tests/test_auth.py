import time

from extensions import db
from models import AuditLog, User
from services.auth_tokens import Identity, issue_token


def _register(client, **overrides):
    payload = {"username": "kaiba", "email": "kaiba@example.com", "password": "blueeyes"}
    payload.update(overrides)
    return client.post("/api/auth/register", json=payload)


def test_register_returns_user_and_token(client):
    resp = _register(client)
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["message"] == "User registered successfully"
    assert body["user"]["username"] == "kaiba"
    assert body["user"]["role"] == "USER"
    assert "password_hash" not in body["user"]
    assert body["token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert me.status_code == 200
    assert me.get_json()["user"]["email"] == "kaiba@example.com"

    stored = User.query.filter_by(username="kaiba").one()
    assert stored.password_hash != "blueeyes"
    assert AuditLog.query.filter_by(action="register", user_id=stored.id).count() == 1


def test_register_requires_all_fields(client):
    resp = _register(client, email="")
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Username, email, and password are required"


def test_register_rejects_short_password_and_bad_email(client):
    assert _register(client, password="abc").status_code == 400
    assert _register(client, email="not-an-email").status_code == 400


def test_register_duplicate_username_or_email(client):
    assert _register(client).status_code == 201
    dup_name = _register(client, email="other@example.com")
    dup_email = _register(client, username="seto")
    assert dup_name.status_code == 409
    assert dup_email.status_code == 409
    assert dup_name.get_json()["error"] == "Username or email already exists"


def test_login_by_username_or_email(client, create_user):
    user, password = create_user(username="yugi")
    for identifier in ("yugi", "yugi@example.com"):
        resp = client.post("/api/auth/login", json={"username": identifier, "password": password})
        assert resp.status_code == 200
        assert resp.get_json()["user"]["id"] == user.id
    db.session.expire_all()
    assert db.session.get(User, user.id).last_login_at is not None


def test_login_wrong_password_and_unknown_user(client, create_user):
    create_user(username="joey")
    wrong = client.post("/api/auth/login", json={"username": "joey", "password": "nope"})
    unknown = client.post("/api/auth/login", json={"username": "ghost", "password": "nope"})
    assert wrong.status_code == 401
    assert unknown.status_code == 401
    assert wrong.get_json() == {"error": "Invalid credentials"}


def test_login_disabled_account(client, create_user):
    user, password = create_user(username="bakura", is_active=False)
    resp = client.post("/api/auth/login", json={"username": user.username, "password": password})
    assert resp.status_code == 403
    assert resp.get_json()["error"] == "Account is disabled"


def test_protected_route_error_messages(app, client, regular_user, auth_headers):
    assert client.get("/api/auth/me").get_json()["error"] == "No authorization header provided"

    resp = client.get("/api/auth/me", headers={"Authorization": "Bearer "})
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "No token provided"

    resp = client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"})
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "Invalid token"


def test_expired_token(app, client, regular_user, auth_headers, monkeypatch):
    headers = auth_headers(regular_user)
    monkeypatch.setitem(app.config, "TOKEN_MAX_AGE_SECONDS", 1)
    real_time = time.time
    monkeypatch.setattr(time, "time", lambda: real_time() + 3600)
    resp = client.get("/api/auth/me", headers=headers)
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "Token expired"


def test_me_includes_counts(client, regular_user, auth_headers):
    resp = client.get("/api/auth/me", headers=auth_headers(regular_user))
    user = resp.get_json()["user"]
    assert user["is_active"] is True
    assert user["counts"] == {"collections": 0, "decks": 0, "wishlist": 0}


def test_update_email_and_password(client, create_user, auth_headers):
    user, password = create_user(username="mai")
    headers = auth_headers(user)

    resp = client.put(
        "/api/auth/me",
        json={"email": "mai@harpies.example", "currentPassword": password, "newPassword": "harpy-lady"},
        headers=headers,
    )
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["user"]["email"] == "mai@harpies.example"
    assert body["token"]

    old = client.post("/api/auth/login", json={"username": "mai", "password": password})
    new = client.post("/api/auth/login", json={"username": "mai", "password": "harpy-lady"})
    assert old.status_code == 401
    assert new.status_code == 200


def test_update_password_requires_current_password(client, create_user, auth_headers):
    user, _ = create_user(username="tea")
    headers = auth_headers(user)

    missing = client.put("/api/auth/me", json={"newPassword": "friendship"}, headers=headers)
    assert missing.status_code == 400

    wrong = client.put(
        "/api/auth/me",
        json={"currentPassword": "wrong", "newPassword": "friendship"},
        headers=headers,
    )
    assert wrong.status_code == 401
    assert wrong.get_json()["error"] == "Current password is incorrect"


def test_update_email_conflict(client, create_user, auth_headers):
    create_user(username="marik", email="marik@example.com")
    user, _ = create_user(username="odion")
    resp = client.put("/api/auth/me", json={"email": "marik@example.com"}, headers=auth_headers(user))
    assert resp.status_code == 409
    assert resp.get_json()["error"] == "Email already in use"


def test_non_string_passwords_are_rejected(client, create_user, auth_headers):
    user, password = create_user(username="alice")

    login = client.post("/api/auth/login", json={"username": "alice", "password": 12345678})
    assert login.status_code == 400
    assert login.get_json()["error"] == "Password must be a string"

    headers = auth_headers(user)
    new_not_str = client.put("/api/auth/me", json={"currentPassword": password, "newPassword": 87654321},
                             headers=headers)
    assert new_not_str.status_code == 400
    current_not_str = client.put("/api/auth/me", json={"currentPassword": ["x"], "newPassword": "friendship"},
                                 headers=headers)
    assert current_not_str.status_code == 400

    assert _register(client, password={"plain": "text"}).status_code == 400


def test_each_request_resolves_its_own_token(client, create_user, auth_headers):
    yugi, _ = create_user(username="yugi")
    joey, _ = create_user(username="joey")

    first = client.get("/api/auth/me", headers=auth_headers(yugi))
    second = client.get("/api/auth/me", headers=auth_headers(joey))
    assert first.get_json()["user"]["username"] == "yugi"
    assert second.get_json()["user"]["username"] == "joey"

    assert client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"}).status_code == 401
    again = client.get("/api/auth/me", headers={"Authorization": "Bearer "})
    assert again.get_json()["error"] == "No token provided"
    assert client.get("/api/auth/me", headers=auth_headers(yugi)).status_code == 200


def test_unknown_role_is_forbidden_on_user_routes(app, client, regular_user):
    with app.app_context():
        token = issue_token(
            Identity(id=regular_user.id, username="user001", email="user001@example.com", role="GUEST")
        )
    headers = {"Authorization": f"Bearer {token}"}

    for path in ("/api/auth/me", "/api/collections", "/api/decks", "/api/wishlist"):
        resp = client.get(path, headers=headers)
        assert resp.status_code == 403, path
        assert resp.get_json()["error"] == "User access required"
