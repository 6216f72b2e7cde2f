# Overview: Read side of the purchase ledger; invoices and purchase history as plain dicts.

from __future__ import annotations

from ..extensions import db
from ..errors import NotFoundError
from ..models import Product, Purchase, PurchaseLine, User
from .inventory_service import fits_sql_integer
from storefront.time_utils import to_utc_z


def _lines_by_purchase(purchase_ids: list[int]) -> dict[int, list[dict]]:
    """
    One join query for all lines of the given purchases.

    Each line carries the unit price captured at sale time; the nested
    product block is the product's current record, for display only.
    """
    if not purchase_ids:
        return {}

    rows = (
        db.session.query(PurchaseLine, Product)
        .join(Product, Product.id == PurchaseLine.product_id)
        .filter(PurchaseLine.purchase_id.in_(purchase_ids))
        .order_by(PurchaseLine.purchase_id.asc(), PurchaseLine.id.asc())
        .all()
    )

    grouped: dict[int, list[dict]] = {pid: [] for pid in purchase_ids}
    for line, product in rows:
        item = line.to_dict()
        item["product"] = {
            "id": product.id,
            "name": product.name,
            "batch_number": product.batch_number,
            "current_price_cents": product.price_cents,
            "is_active": product.is_active,
        }
        grouped[line.purchase_id].append(item)
    return grouped


def _purchase_dict(purchase: Purchase, username: str, lines: list[dict]) -> dict:
    return {
        "id": purchase.id,
        "user": {"id": purchase.user_id, "username": username},
        "total_cents": purchase.total_cents,
        "created_at": to_utc_z(purchase.created_at),
        "lines": lines,
    }


def get_invoice(purchase_id: int, *, owner_id: int | None = None) -> dict:
    """
    Invoice for one purchase.

    owner_id scopes the lookup to one buyer (None = unrestricted, for admins).
    A purchase outside the scope is reported exactly like a missing one.
    """
    if not fits_sql_integer(purchase_id):
        raise NotFoundError("Purchase not found", details={"purchase_id": purchase_id})

    query = (
        db.session.query(Purchase, User.username)
        .join(User, User.id == Purchase.user_id)
        .filter(Purchase.id == purchase_id)
    )
    if owner_id is not None:
        query = query.filter(Purchase.user_id == owner_id)

    row = query.first()
    if row is None:
        raise NotFoundError("Purchase not found", details={"purchase_id": purchase_id})

    purchase, username = row
    lines = _lines_by_purchase([purchase.id])[purchase.id]
    return _purchase_dict(purchase, username, lines)


def list_purchases(
    *,
    owner_id: int | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Purchase history, newest first.

    Args:
        owner_id: restrict to one buyer (None lists every purchase)
        page: Page number (1-indexed). If None, returns all items.
        per_page: Items per page (default 20, max 100)

    Returns:
        Dict with 'items', 'count', and pagination metadata if paginated.
    """
    base_query = (
        db.session.query(Purchase, User.username)
        .join(User, User.id == Purchase.user_id)
        .order_by(Purchase.created_at.desc(), Purchase.id.desc())
    )
    if owner_id is not None:
        base_query = base_query.filter(Purchase.user_id == owner_id)

    pagination = None
    if page is None:
        rows = base_query.all()
    else:
        per_page = max(min(per_page or 20, 100), 1)
        page = max(page, 1)

        total = base_query.order_by(None).count()
        total_pages = (total + per_page - 1) // per_page if total > 0 else 1

        offset = (page - 1) * per_page
        rows = base_query.offset(offset).limit(per_page).all() if offset < total else []
        pagination = {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        }

    lines = _lines_by_purchase([p.id for p, _ in rows])
    result = {
        "items": [_purchase_dict(p, username, lines[p.id]) for p, username in rows],
        "count": len(rows),
    }
    if pagination is not None:
        result["pagination"] = pagination
    return result
