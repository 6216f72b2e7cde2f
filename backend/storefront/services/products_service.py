# backend/storefront/services/products_service.py
"""
Products Service

Administrative product management. Stock written here is replenishment:
update_product goes through the ORM with the version_id optimistic lock,
so an admin edit that raced a purchase reservation (which also bumps
version_id) fails with StaleDataError and is retried against fresh data
instead of overwriting the decrement.
"""
from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..errors import NotFoundError
from ..models import Product
from .concurrency import lock_for_update, run_with_retry
from .inventory_service import fits_sql_integer

PRODUCT_MUTABLE_FIELDS = {"batch_number", "name", "price_cents", "quantity", "entry_date"}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _get_active(product_id: int) -> Product:
    if not fits_sql_integer(product_id):
        raise NotFoundError("Product not found!", details={"product_id": product_id})
    p = (
        db.session.query(Product)
        .filter(Product.id == product_id, Product.is_active.is_(True))
        .first()
    )
    if p is None:
        raise NotFoundError("Product not found!", details={"product_id": product_id})
    return p


def list_products(page: int | None = None, per_page: int | None = None) -> dict:
    """
    Active products ordered by name, with optional pagination.

    Args:
        page: Page number (1-indexed). If None, returns all items.
        per_page: Items per page (default 20, max 100)
    """
    base_query = (
        db.session.query(Product)
        .filter(Product.is_active.is_(True))
        .order_by(Product.name.asc(), Product.id.asc())
    )

    if page is None:
        products = base_query.all()
        return {
            "items": [p.to_dict() for p in products],
            "count": len(products),
        }

    per_page = max(min(per_page or 20, 100), 1)
    page = max(page, 1)

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    offset = (page - 1) * per_page
    # Pages past the end are empty
    products = base_query.offset(offset).limit(per_page).all() if offset < total else []

    return {
        "items": [p.to_dict() for p in products],
        "count": len(products),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def get_product(product_id: int) -> dict:
    return _get_active(product_id).to_dict()


def create_product(*, patch: dict) -> dict:
    """Create product from a validated patch dict."""
    p = Product()
    apply_product_patch(p, patch)

    db.session.add(p)
    db.session.commit()

    current_app.logger.info("Product registered: id=%s name=%r quantity=%s", p.id, p.name, p.quantity)
    return p.to_dict()


def update_product(*, product_id: int, patch: dict) -> dict:
    """
    Apply a validated patch to an active product.

    Raises NotFoundError if the product does not exist or was deleted.
    """
    if not fits_sql_integer(product_id):
        raise NotFoundError("Product not found!", details={"product_id": product_id})

    def _op():
        p = lock_for_update(
            db.session.query(Product).filter(Product.id == product_id, Product.is_active.is_(True))
        ).first()
        if p is None:
            raise NotFoundError("Product not found!", details={"product_id": product_id})

        apply_product_patch(p, patch)
        db.session.commit()
        return p

    p = run_with_retry(_op)
    current_app.logger.info("Product updated: id=%s fields=%s", product_id, sorted(patch))
    return p.to_dict()


def delete_product(*, product_id: int) -> None:
    """
    Soft-delete a product.

    Purchase lines keep referencing the row; it just stops being listed
    or reservable.
    """
    def _op():
        p = _get_active(product_id)
        p.is_active = False
        db.session.commit()

    run_with_retry(_op)
    current_app.logger.info("Product deleted: id=%s", product_id)
