"""
FiberTrack — Copper-to-Fiber Migration Operations
Blueprint registry and shared request helpers.
"""

import logging

from flask import abort, jsonify, request
from werkzeug.exceptions import HTTPException

from fibertrack.core.exceptions import (
    BackendUnavailableError,
    ConflictError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def paginate(items, default_limit=200, max_limit=1000):
    """Apply limit/offset pagination to a list of serialized items.

    Query params:
        limit  — max items (default 200, capped at max_limit)
        offset — starting position (default 0)

    Returns:
        (items_list, total_count)
    """
    total = len(items)
    try:
        limit = min(int(request.args.get("limit", default_limit)), max_limit)
    except (ValueError, TypeError):
        limit = default_limit
    try:
        offset = max(int(request.args.get("offset", 0)), 0)
    except (ValueError, TypeError):
        offset = 0
    return items[offset:offset + limit], total


def json_body() -> dict:
    """The request's JSON object body; 400 when missing or not an object."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        abort(400, description="Request body must be a JSON object")
    return data


def register_error_handlers(bp):
    """Map platform exceptions to JSON responses for one blueprint."""

    @bp.errorhandler(NotFoundError)
    def _handle_not_found(error: NotFoundError):
        return jsonify({"error": str(error)}), 404

    @bp.errorhandler(ValidationError)
    def _handle_validation(error: ValidationError):
        return jsonify({"error": str(error), "details": error.details}), 422

    @bp.errorhandler(ConflictError)
    def _handle_conflict(error: ConflictError):
        return jsonify({"error": str(error)}), 409

    @bp.errorhandler(BackendUnavailableError)
    def _handle_backend(error: BackendUnavailableError):
        logger.error("Backend unavailable in %s endpoint=%s: %s", bp.name, request.endpoint, error)
        return jsonify({"error": str(error)}), 503

    @bp.errorhandler(HTTPException)
    def _handle_http(error: HTTPException):
        return jsonify({"error": error.description}), error.code

    @bp.errorhandler(Exception)
    def _handle_unexpected(error: Exception):
        logger.exception("Unexpected error in %s endpoint=%s", bp.name, request.endpoint)
        return jsonify({"error": "Internal server error"}), 500

    return bp
