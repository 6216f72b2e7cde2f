# Overview: Flask API routes for product administration and the store-wide purchase listing.

# backend/storefront/routes/admin.py
"""
Admin routes.

Product reads only require authentication (customers browse the catalog
through them). Product writes and the full purchase listing require the
admin role.
"""
from flask import Blueprint, request, jsonify

from ..services import products_service, ledger_service
from ..validation import validate_product_payload
from ..decorators import require_auth, require_admin

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")


def _pagination_args() -> tuple[int | None, int | None]:
    return request.args.get("page", type=int), request.args.get("per_page", type=int)


@admin_bp.get("/products")
@require_auth
def list_products_route():
    """
    List active products with optional pagination.

    Query params:
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    """
    page, per_page = _pagination_args()
    return jsonify(products_service.list_products(page=page, per_page=per_page)), 200


@admin_bp.get("/products/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    return jsonify({"product": products_service.get_product(product_id)}), 200


@admin_bp.post("/products")
@require_auth
@require_admin
def create_product_route():
    payload = request.get_json(silent=True)
    patch = validate_product_payload(payload, partial=False)

    created = products_service.create_product(patch=patch)
    return jsonify({"product": created}), 201


@admin_bp.put("/products/<int:product_id>")
@require_auth
@require_admin
def update_product_route(product_id: int):
    payload = request.get_json(silent=True)
    patch = validate_product_payload(payload, partial=True)

    updated = products_service.update_product(product_id=product_id, patch=patch)
    return jsonify({"message": "Product updated successfully!", "product": updated}), 200


@admin_bp.delete("/products/<int:product_id>")
@require_auth
@require_admin
def delete_product_route(product_id: int):
    products_service.delete_product(product_id=product_id)
    return jsonify({"message": "Product deleted successfully!"}), 200


@admin_bp.get("/purchases")
@require_auth
@require_admin
def list_purchases_route():
    """Every purchase, newest first, with lines. Same pagination params as /products."""
    page, per_page = _pagination_args()
    return jsonify(ledger_service.list_purchases(page=page, per_page=per_page)), 200
