# Overview: Error taxonomy shared by services and routes, plus the single kind -> HTTP status table.

"""
Every failure a caller can observe is a StorefrontError subclass with a
stable `kind`. Services raise them; routes never build error responses by
hand. register_error_handlers() renders them uniformly through ERROR_STATUS.

InternalError carries a generic message only. The underlying exception is
chained (raise ... from exc) and logged where it is caught.
"""

from __future__ import annotations

from flask import current_app, jsonify
from werkzeug.exceptions import HTTPException


class StorefrontError(Exception):
    """Base class for errors that map to an HTTP response."""
    kind = "internal_error"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"error": self.message, "kind": self.kind}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(StorefrontError):
    """Malformed input. Carries a list of {field, message} entries."""
    kind = "validation_error"

    def __init__(self, errors: list[dict] | str, message: str = "Validation failed"):
        if isinstance(errors, str):
            errors = [{"field": None, "message": errors}]
        super().__init__(message)
        self.errors = errors

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["errors"] = self.errors
        return body


class NotFoundError(StorefrontError):
    kind = "not_found"


class InsufficientStockError(StorefrontError):
    """Business-rule violation: a reservation asked for more than is on hand."""
    kind = "insufficient_stock"

    def __init__(self, product_id: int, requested: int, available: int):
        super().__init__(
            f"Not enough quantity for product id {product_id}",
            details={
                "product_id": product_id,
                "requested": requested,
                "available": available,
                "shortfall": requested - available,
            },
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class ConflictError(StorefrontError):
    """409-level conflict (e.g. duplicate email)."""
    kind = "conflict"


class UnauthorizedError(StorefrontError):
    kind = "unauthorized"


class InvalidTokenError(StorefrontError):
    kind = "invalid_token"


class ForbiddenError(StorefrontError):
    kind = "forbidden"


class InternalError(StorefrontError):
    kind = "internal_error"

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)


ERROR_STATUS = {
    ValidationError.kind: 400,
    InsufficientStockError.kind: 400,
    UnauthorizedError.kind: 401,
    InvalidTokenError.kind: 401,
    ForbiddenError.kind: 403,
    NotFoundError.kind: 404,
    ConflictError.kind: 409,
    InternalError.kind: 500,
}


def status_for(error: StorefrontError) -> int:
    return ERROR_STATUS.get(error.kind, 500)


def register_error_handlers(app) -> None:
    """Install the JSON error handlers on the Flask app."""

    @app.errorhandler(StorefrontError)
    def handle_storefront_error(error: StorefrontError):
        status = status_for(error)
        if status >= 500:
            current_app.logger.error("Request failed: %s", error.message)
        return jsonify(error.to_dict()), status

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        return jsonify({"error": error.description, "kind": "http_error"}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected(error: Exception):
        current_app.logger.exception("Unhandled error")
        return jsonify({"error": "Internal server error", "kind": InternalError.kind}), 500
