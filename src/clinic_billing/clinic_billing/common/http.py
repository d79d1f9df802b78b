from __future__ import annotations

import logging
from typing import Any

from flask import Flask, jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from ..core.identity import Identity, parse_sector

logger = logging.getLogger(__name__)

# First match wins; ConflictError also covers its subclasses.
_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
    (PersistenceError, 500),
)


def status_for(error: DomainError) -> int:
    for cls, status in _STATUS_BY_ERROR:
        if isinstance(error, cls):
            return status
    return 400


def current_identity() -> Identity:
    """Decode the logged-in caller from the Flask session."""

    if "user_id" not in session:
        raise AuthenticationError("Please log in to continue")
    try:
        role = Role(session["role"])
    except (KeyError, ValueError):
        session.clear()
        raise AuthenticationError("Session is invalid, please log in again")
    return Identity(user_id=int(session["user_id"]), role=role, sector=parse_sector(session.get("sector")))


def json_body() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def month_args() -> tuple[Any, Any]:
    month = request.args.get("month")
    year = request.args.get("year")
    if not month or not year:
        raise ValidationError("month and year are required")
    return month, year


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        status = status_for(e)
        if status >= 500:
            logger.error("Request %s %s failed: %s", request.method, request.path, e, exc_info=True)
        return jsonify({"message": str(e)}), status

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        # Let Flask render its own HTTP errors (404 route, 405 method...)
        code = getattr(e, "code", None)
        if isinstance(code, int) and code < 500:
            return jsonify({"message": getattr(e, "description", str(e))}), code

        logger.exception("Unhandled error on %s %s", request.method, request.path)
        payload = {"message": "Internal server error"}
        if app.config.get("DEBUG"):
            payload["error"] = str(e)
        return jsonify(payload), 500
