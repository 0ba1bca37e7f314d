"""Extension singletons for iCollect.

Models, services and routes import `db`, `limiter` and `login_manager` from
here; `create_app` binds each one with `init_app`.
"""
from __future__ import annotations

from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_login import LoginManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import MetaData

# Stable names for constraints/indexes so Alembic migrations are predictable
NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=NAMING_CONVENTION)

# Core extensions (initialized in app factory)
db: SQLAlchemy = SQLAlchemy(metadata=metadata)
migrate: Migrate = Migrate()
limiter: Limiter = Limiter(key_func=get_remote_address)
login_manager: LoginManager = LoginManager()

__all__ = ["db", "migrate", "limiter", "login_manager", "NAMING_CONVENTION", "metadata"]
