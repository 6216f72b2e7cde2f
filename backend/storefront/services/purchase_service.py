# Overview: Purchase workflow; turns a validated basket into one all-or-nothing purchase.

"""
Purchase Service - the purchase unit of work

A basket [(product_id, quantity), ...] becomes one purchase header plus one
line per item, or leaves no trace at all.

ALL-OR-NOTHING:
- Header, lines and every stock decrement share a single transaction.
- Any NotFound / InsufficientStock on any item rolls the whole attempt back;
  reservations already made for earlier items are undone by the rollback,
  not by compensating writes.
- The header total is written only after every line exists, and equals the
  sum of line_total_cents.

CONCURRENCY:
- Stock is decremented with inventory_service.try_reserve (conditional
  UPDATE), so two purchases can never both take the last units.
- Items are reserved in submission order. A product listed twice reserves
  twice against the live counter, never against a pre-read snapshot.
- Lock timeouts / deadlocks / stale rows retry the whole unit of work.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..errors import InsufficientStockError, InternalError, NotFoundError, ValidationError
from ..models import Purchase, PurchaseLine
from storefront.time_utils import utcnow
from . import inventory_service
from .concurrency import begin_write_transaction, run_with_retry


@dataclass(frozen=True)
class BasketItem:
    product_id: int
    quantity: int


def _check_basket(items: list[BasketItem]) -> None:
    if not items:
        raise ValidationError([{"field": "products", "message": "Basket must contain at least one item"}])
    errors = []
    for i, item in enumerate(items):
        try:
            inventory_service.require_positive_quantity(item.quantity, field=f"products[{i}].quantity")
        except ValidationError as exc:
            errors.extend(exc.errors)
    if errors:
        raise ValidationError(errors)


def _place_purchase_locked(user_id: int, items: list[BasketItem]) -> Purchase:
    purchase = Purchase(user_id=user_id, total_cents=0, created_at=utcnow())
    db.session.add(purchase)
    db.session.flush()

    total_cents = 0
    for item in items:
        reservation = inventory_service.try_reserve(item.product_id, item.quantity)
        line_total = reservation.unit_price_cents * item.quantity
        db.session.add(PurchaseLine(
            purchase_id=purchase.id,
            product_id=item.product_id,
            quantity=item.quantity,
            unit_price_cents=reservation.unit_price_cents,
            line_total_cents=line_total,
        ))
        total_cents += line_total

    purchase.total_cents = total_cents
    return purchase


def place_purchase(user_id: int, items: list[BasketItem]) -> Purchase:
    """
    Record a purchase for `user_id`, decrementing stock for every item.

    Returns the committed Purchase.

    Raises:
        ValidationError: empty basket or non-positive quantity (no storage access)
        NotFoundError: an item references a missing/deleted product
        InsufficientStockError: an item asks for more than is on hand
        InternalError: storage failure; nothing was persisted
    """
    _check_basket(items)

    def _op():
        try:
            begin_write_transaction()
            purchase = _place_purchase_locked(user_id, items)
            db.session.commit()
            return purchase
        except Exception:
            db.session.rollback()
            raise

    try:
        purchase = run_with_retry(_op)
    except (NotFoundError, InsufficientStockError) as exc:
        current_app.logger.warning(
            "Purchase rejected for user %s: %s (%s)", user_id, exc.message, exc.kind,
        )
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Purchase failed for user %s; rolled back", user_id)
        raise InternalError("An error occurred while processing the purchase") from exc

    current_app.logger.info(
        "Purchase completed: id=%s user=%s lines=%d total_cents=%d",
        purchase.id, user_id, len(items), purchase.total_cents,
    )
    return purchase
