"""Centralized error handlers for JSON and HTML responses."""

from __future__ import annotations

from flask import jsonify, render_template, request
from werkzeug.exceptions import HTTPException

from .errors import AppError


def _wants_json() -> bool:
    return request.path.startswith("/api") or (
        request.accept_mimetypes["application/json"] >= request.accept_mimetypes["text/html"]
    )


def register_error_handlers(app) -> None:
    """Register error handlers on the Flask app."""

    @app.errorhandler(AppError)
    def app_error(err: AppError):  # type: ignore[no-redef]
        if err.status_code >= 500:
            app.logger.error("Application error: %s", err.message)
        return jsonify(err.to_payload()), err.status_code

    @app.errorhandler(HTTPException)
    def http_error(err: HTTPException):  # type: ignore[no-redef]
        if _wants_json():
            message = "Not Found" if err.code == 404 else (err.description or err.name)
            return jsonify({"error": message}), err.code
        if err.code == 404:
            return render_template("shared/404.html", e=err), 404
        return err

    @app.errorhandler(Exception)
    def unexpected(err: Exception):  # type: ignore[no-redef]
        from extensions import db

        db.session.rollback()
        app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        if _wants_json():
            return jsonify({"error": "Internal Server Error"}), 500
        return render_template("shared/500.html", e=err), 500
