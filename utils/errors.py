"""Application error taxonomy.

Route handlers raise these; `register_error_handlers` turns them into
`{"error": message}` JSON responses with the matching status code.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class AppError(Exception):
    """Base exception for iCollect application errors."""

    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(AppError):
    """Raised when request or payload validation fails."""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, {"field": field} if field else None)
        self.field = field


class AuthenticationError(AppError):
    """Missing, malformed, or expired credentials."""

    status_code = 401


class PermissionDenied(AppError):
    """Authenticated, but not allowed to perform the action."""

    status_code = 403


class NotFoundError(AppError):
    """Raised when a requested resource cannot be located."""

    status_code = 404


class ConflictError(AppError):
    """Raised when a unique key would be duplicated."""

    status_code = 409


__all__ = [
    "AppError",
    "ValidationError",
    "AuthenticationError",
    "PermissionDenied",
    "NotFoundError",
    "ConflictError",
]
