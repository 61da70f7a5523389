# Overview: Shared JSON error responses for the API blueprints.

from flask import current_app, jsonify

from ..errors import (
    ConflictError,
    DuplicateDocumentNumber,
    InsufficientStock,
    InventoryError,
    NotFoundError,
    ReturnExceedsOriginal,
    ValidationError,
)


def status_for(exc: InventoryError) -> int:
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, (DuplicateDocumentNumber, ConflictError)):
        return 409
    if isinstance(exc, (ValidationError, InsufficientStock, ReturnExceedsOriginal)):
        return 400
    return 400


def error_response(exc: InventoryError):
    """{"error", "code", "details"} body with the status for the error type."""
    return jsonify(exc.to_dict()), status_for(exc)


def internal_error(action: str):
    current_app.logger.exception("Failed to %s", action)
    return jsonify({"error": "Internal server error"}), 500
