# Overview: Inventory store primitives; the atomic reserve (compare-and-decrement) used by purchases.

"""
Inventory Store

STOCK INVARIANTS (authoritative):
- products.quantity is the single source of truth for stock on hand.
- The purchase path never does read-then-write on quantity. It issues one
  conditional UPDATE ... WHERE quantity >= :requested, which the database
  evaluates and applies atomically against the latest committed row.
- Nothing in this module commits. The decrement is part of the caller's
  unit of work and becomes visible to others only when that commits.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import update

from ..extensions import db
from ..errors import InsufficientStockError, NotFoundError, ValidationError
from ..models import Product


# Signed 64-bit SQL INTEGER; drivers refuse to bind anything wider
SQL_INT_MIN = -(2 ** 63)
SQL_INT_MAX = 2 ** 63 - 1


def fits_sql_integer(value: int) -> bool:
    return SQL_INT_MIN <= value <= SQL_INT_MAX


@dataclass(frozen=True)
class Reservation:
    """Outcome of a successful try_reserve."""
    product_id: int
    quantity: int
    unit_price_cents: int
    remaining: int


def require_positive_quantity(quantity, field: str = "quantity") -> None:
    """Raise ValidationError unless quantity is a positive int (bool excluded)."""
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise ValidationError(
            [{"field": field, "message": "quantity must be a positive integer"}]
        )


def _not_found(product_id) -> NotFoundError:
    return NotFoundError(
        f"Product with id {product_id} not found",
        details={"product_id": product_id},
    )


def _raise_refusal(product_id: int, quantity: int):
    """Diagnose a reservation that decremented nothing."""
    row = (
        db.session.query(Product.quantity, Product.is_active)
        .filter(Product.id == product_id)
        .first()
    )
    if row is None or not row.is_active:
        raise _not_found(product_id)
    raise InsufficientStockError(product_id=product_id, requested=quantity, available=row.quantity)


def try_reserve(product_id: int, quantity: int) -> Reservation:
    """
    Reserve `quantity` units of a product if that many are on hand.

    On success the stock is decremented (uncommitted) and the price in effect
    at that instant is returned. The UPDATE leaves the row write-locked until
    the enclosing transaction ends, so the price read right after it cannot
    change underneath this reservation.

    Ids and quantities wider than a SQL INTEGER never reach the UPDATE: such
    an id cannot exist, and no stock counter can hold such a quantity.

    Raises:
        ValidationError: quantity is not a positive integer
        NotFoundError: no such product, or it has been deleted
        InsufficientStockError: stock < quantity (nothing is decremented)
    """
    require_positive_quantity(quantity)

    if not fits_sql_integer(product_id):
        raise _not_found(product_id)
    if not fits_sql_integer(quantity):
        _raise_refusal(product_id, quantity)

    stmt = (
        update(Product)
        .where(
            Product.id == product_id,
            Product.is_active.is_(True),
            Product.quantity >= quantity,
        )
        .values(
            quantity=Product.quantity - quantity,
            version_id=Product.version_id + 1,
        )
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)

    if result.rowcount != 1:
        _raise_refusal(product_id, quantity)

    row = (
        db.session.query(Product.price_cents, Product.quantity)
        .filter(Product.id == product_id)
        .one()
    )
    return Reservation(
        product_id=product_id,
        quantity=quantity,
        unit_price_cents=row.price_cents,
        remaining=row.quantity,
    )


def get_stock(product_id: int) -> int:
    """Current committed (or own-transaction) stock for a product."""
    if not fits_sql_integer(product_id):
        raise _not_found(product_id)
    quantity = db.session.query(Product.quantity).filter(Product.id == product_id).scalar()
    if quantity is None:
        raise _not_found(product_id)
    return int(quantity)
