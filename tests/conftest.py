import os
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

import pytest
from flask import g, has_app_context
from flask.testing import FlaskClient

# Isolate all tests to a throwaway instance + SQLite database
TEST_INSTANCE_DIR = ROOT_DIR / ".pytest-instance"
TEST_INSTANCE_DIR.mkdir(parents=True, exist_ok=True)
TEST_DB_PATH = TEST_INSTANCE_DIR / "test.sqlite"
os.environ["FLASK_ENV"] = "development"
os.environ["INSTANCE_DIR"] = str(TEST_INSTANCE_DIR)
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH.as_posix()}"
os.environ["ENABLE_TALISMAN"] = "0"
os.environ["RATELIMIT_ENABLED"] = "0"
os.environ.pop("PRICE_FEED_URL", None)

import app as icollect_app  # noqa: E402  pylint:disable=wrong-import-position
from extensions import db  # noqa: E402
from models import User  # noqa: E402
from services.auth_tokens import issue_token  # noqa: E402

create_app = icollect_app.create_app


class FreshIdentityClient(FlaskClient):
    """Test client whose requests never see a previous request's identity.

    Requests reuse the app context held by `db_session`, so the values
    Flask-Login and the request loader leave on `g` are dropped first.
    """

    def open(self, *args, **kwargs):
        if has_app_context():
            for key in ("_login_user", "auth_failure"):
                g.pop(key, None)
        return super().open(*args, **kwargs)


@pytest.fixture(scope="session")
def app():
    flask_app = create_app()
    flask_app.test_client_class = FreshIdentityClient
    flask_app.config.update(
        TESTING=True,
        SERVER_NAME="localhost",
        SQLALCHEMY_SESSION_OPTIONS={"expire_on_commit": False},
    )
    with flask_app.app_context():
        db.session.configure(expire_on_commit=False)
    return flask_app


@pytest.fixture
def db_session(app):
    with app.app_context():
        db.session.remove()
        db.engine.dispose()
        if TEST_DB_PATH.exists():
            TEST_DB_PATH.unlink()
        for suffix in ("-wal", "-shm"):
            sidecar = TEST_DB_PATH.with_name(TEST_DB_PATH.name + suffix)
            if sidecar.exists():
                sidecar.unlink()
        db.create_all()
        yield db
        db.session.remove()
        db.engine.dispose()
        db.drop_all()


@pytest.fixture
def client(app, db_session):  # noqa: ARG001 - keeps DB initialised for request tests
    return app.test_client()


@pytest.fixture
def create_user(db_session):
    def _create_user(
        *,
        username: str = "user",
        email: str | None = None,
        password: str = "password123",
        role: str = User.ROLE_USER,
        is_active: bool = True,
    ) -> tuple[User, str]:
        user = User(
            username=username,
            email=email or f"{username}@example.com",
            role=role,
            is_active=is_active,
        )
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user, password

    return _create_user


@pytest.fixture
def auth_headers(app):
    def _auth_headers(user: User) -> dict:
        with app.app_context():
            token = issue_token(user)
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers


@pytest.fixture
def admin_user(create_user):
    user, _ = create_user(username="admin", role=User.ROLE_ADMIN)
    return user


@pytest.fixture
def regular_user(create_user):
    user, _ = create_user(username="user001")
    return user
