"""Flask application factory, CLI entry points, and database bootstrap."""

import json
import logging
from logging.handlers import RotatingFileHandler
import os
import sqlite3
import uuid
from pathlib import Path

import click
from flask import Flask, g, has_request_context, request
from flask_compress import Compress
from flask_talisman import Talisman
from sqlalchemy import event
from sqlalchemy.engine import Engine

from dotenv import load_dotenv; load_dotenv()

from config import Config, INSTANCE_DIR as CONFIG_INSTANCE_DIR
from extensions import db, migrate, limiter
from services.authz import configure_login_manager
from utils.db import RowIdConverter
from utils.error_handlers import register_error_handlers


class RequestIdFilter(logging.Filter):
    """Inject request-scoped metadata into log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if has_request_context():
            record.request_id = getattr(g, "request_id", "n/a")
            record.path = request.path
            record.method = request.method
        else:
            record.request_id = getattr(record, "request_id", "startup")
            record.path = getattr(record, "path", "")
            record.method = getattr(record, "method", "")
        return True


class JsonRequestFormatter(logging.Formatter):
    """Simple JSON formatter for logfmt-friendly ingestion."""

    def format(self, record: logging.LogRecord) -> str:
        base = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", "n/a"),
            "path": getattr(record, "path", ""),
            "method": getattr(record, "method", ""),
        }
        if record.exc_info:
            base["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(base, ensure_ascii=False)


def _configure_logging(app: Flask) -> None:
    """Configure structured logging with request IDs."""
    level = logging.DEBUG if app.debug else logging.INFO
    stream_handler = logging.StreamHandler()
    stream_handler.addFilter(RequestIdFilter())
    stream_handler.setFormatter(JsonRequestFormatter())
    stream_handler.setLevel(level)

    handlers = [stream_handler]

    try:
        logs_dir = Path(app.instance_path) / "logs"
        logs_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            logs_dir / "app.log",
            maxBytes=5 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.addFilter(RequestIdFilter())
        file_handler.setFormatter(JsonRequestFormatter())
        file_handler.setLevel(logging.INFO)
        handlers.append(file_handler)
    except OSError as exc:
        app.logger.warning("Falling back to stream-only logging (file handler unavailable): %s", exc)

    app.logger.handlers = handlers
    app.logger.setLevel(level)
    # Service modules log through their own module loggers.
    for name in ("services", "werkzeug"):
        logger = logging.getLogger(name)
        logger.handlers = handlers
        logger.setLevel(level)
        logger.propagate = False


def _register_cli(app: Flask) -> None:
    from models import Pack, User
    from services.card_import import import_cards, rows_from_upload
    from services.catalog import reconcile_pack_totals
    from services.price_sync import refresh_prices
    from seeds.seed_data import seed_defaults

    @app.cli.command("seed")
    def seed_cmd():
        """Create the default admin/user accounts and the sample pack."""
        created = seed_defaults()
        click.echo(f"Users created: {', '.join(created['users']) or 'none'}")
        click.echo(f"Packs created: {', '.join(created['packs']) or 'none'}")

    @app.cli.group("users")
    def users_cli():
        """Manage iCollect user accounts."""

    @users_cli.command("create")
    @click.argument("username")
    @click.argument("email")
    @click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
    @click.option("--admin/--no-admin", default=False, help="Grant the ADMIN role")
    def create_user(username, email, password, admin):
        username_clean = username.strip()
        email_clean = email.strip()
        if not username_clean or not email_clean:
            raise click.ClickException("Username and email are required.")
        if User.query.filter((User.username == username_clean) | (User.email == email_clean)).first():
            raise click.ClickException("Username or email already exists.")
        minimum = app.config.get("MIN_PASSWORD_LENGTH", 6)
        if len(password) < minimum:
            raise click.ClickException(f"Password must be at least {minimum} characters.")
        user = User(
            username=username_clean,
            email=email_clean,
            role=User.ROLE_ADMIN if admin else User.ROLE_USER,
            is_active=True,
        )
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        click.echo(f"Created user {username_clean} ({user.role}).")

    def _user_or_fail(username: str) -> User:
        user = User.query.filter_by(username=username.strip()).first()
        if not user:
            raise click.ClickException(f"User {username} not found.")
        return user

    @users_cli.command("set-role")
    @click.argument("username")
    @click.argument("role", type=click.Choice(User.ROLES, case_sensitive=False))
    def set_user_role(username, role):
        user = _user_or_fail(username)
        user.role = role.upper()
        db.session.commit()
        click.echo(f"{user.username} is now {user.role}.")

    @users_cli.command("set-active")
    @click.argument("username")
    @click.argument("active", type=bool)
    def set_user_active(username, active):
        user = _user_or_fail(username)
        user.is_active = active
        db.session.commit()
        click.echo(f"{user.username} active={user.is_active}.")

    @app.cli.group("cards")
    def cards_cli():
        """Catalog card maintenance."""

    @cards_cli.command("import")
    @click.argument("filepath", type=click.Path(exists=True, dir_okay=False))
    @click.option("--pack", "set_code", required=True, help="Set code of the target pack")
    def import_cards_cmd(filepath, set_code):
        """Import a .csv or .json card file into a pack."""
        pack = Pack.query.filter_by(set_code=set_code.upper()).first()
        if pack is None:
            raise click.ClickException(f"Pack {set_code} not found.")
        with open(filepath, "rb") as handle:
            rows = rows_from_upload(os.path.basename(filepath), handle.read())
        report = import_cards(pack, rows)
        for row in report.results:
            if row.status == "error":
                click.echo(f"  row {row.index} ({row.card_number or '?'}): {row.message}", err=True)
        summary = report.summary()
        click.echo(
            f"Created {summary['created']}, skipped {summary['skipped']}, errors {summary['errors']}."
        )

    @app.cli.group("packs")
    def packs_cli():
        """Pack maintenance."""

    @packs_cli.command("reconcile")
    def reconcile_packs():
        """Recompute total_cards for every pack from its cards."""
        changed = reconcile_pack_totals()
        db.session.commit()
        if not changed:
            click.echo("All pack totals already match.")
            return
        for set_code, total in sorted(changed.items()):
            click.echo(f"{set_code}: total_cards -> {total}")

    @app.cli.group("prices")
    def prices_cli():
        """Marketplace price maintenance."""

    @prices_cli.command("refresh")
    @click.option("--pack", "set_code", default=None, help="Only refresh one pack (set code)")
    def refresh_prices_cmd(set_code):
        """Pull prices from PRICE_FEED_URL and store them on cards."""
        try:
            report = refresh_prices(set_code)
        except RuntimeError as exc:
            raise click.ClickException(str(exc))
        click.echo(
            f"Updated {report.updated}, unchanged {report.unchanged}, failed {len(report.failed)}."
        )
        for card_number in report.failed:
            click.echo(f"  failed: {card_number}", err=True)


def create_app():
    """Create, configure, and return a fully-initialised Flask app."""
    app = Flask(
        __name__,
        instance_path=str(CONFIG_INSTANCE_DIR),
        instance_relative_config=False,
    )
    app.config.from_object(Config)
    os.makedirs(app.instance_path, exist_ok=True)
    _configure_logging(app)

    # --- Core extensions ---
    db.init_app(app)
    migrate.init_app(app, db, render_as_batch=True)
    configure_login_manager(app)
    limiter.init_app(app)
    Compress(app)

    if app.config.get("ENABLE_TALISMAN", True):
        Talisman(
            app,
            content_security_policy=app.config.get("CONTENT_SECURITY_POLICY"),
            force_https=app.config.get("TALISMAN_FORCE_HTTPS", not app.debug),
            session_cookie_secure=app.config.get("SESSION_COOKIE_SECURE", True),
            session_cookie_samesite=app.config.get("SESSION_COOKIE_SAMESITE", "Lax"),
        )

    register_error_handlers(app)

    app.url_map.converters["int"] = RowIdConverter

    # Blueprints
    from routes import api, views
    app.register_blueprint(views)
    app.register_blueprint(api)

    _register_cli(app)

    @app.before_request
    def assign_request_id():
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex

    @app.after_request
    def attach_request_id(resp):
        rid = getattr(g, "request_id", None)
        if rid:
            resp.headers.setdefault("X-Request-ID", rid)
        return resp

    @app.after_request
    def security_headers(resp):
        """Attach a minimal set of security-related HTTP headers to each response."""
        resp.headers.setdefault("X-Content-Type-Options", "nosniff")
        resp.headers.setdefault("Referrer-Policy", "no-referrer-when-downgrade")
        resp.headers.setdefault("X-Frame-Options", "DENY")
        return resp

    app.logger.info("iCollect app created (db=%s)", app.config["SQLALCHEMY_DATABASE_URI"].split("://", 1)[0])
    return app


# Single SQLite PRAGMA hook (avoid duplicate listeners)
_SQLITE_PRAGMA_STATEMENTS = (
    "PRAGMA foreign_keys=ON;",
    "PRAGMA journal_mode=WAL;",
    "PRAGMA synchronous=NORMAL;",
)


@event.listens_for(Engine, "connect")
def _sqlite_pragmas(dbapi_connection, _) -> None:
    """Enforce foreign keys (and sane journaling) on every SQLite connection."""
    if not isinstance(dbapi_connection, sqlite3.Connection):
        return
    cur = dbapi_connection.cursor()
    for statement in _SQLITE_PRAGMA_STATEMENTS:
        cur.execute(statement)
    cur.close()


if __name__ == "__main__":
    _app = create_app()
    _app.run(host="127.0.0.1", port=5000, debug=True)
