from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import Any

from sqlalchemy import Boolean, Date, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError
from .models import Product
from .services.inventory_service import fits_sql_integer
from .services.purchase_service import BasketItem
from storefront.time_utils import parse_iso_date


# Maximum price: 9,999,999.99 (999,999,999 cents)
MAX_PRICE_CENTS = 999_999_999

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _err(field: str | None, message: str) -> dict:
    return {"field": field, "message": message}


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


class IntegerRangeError(ValueError):
    """An integer that does not fit a SQL INTEGER column."""


def _coerce_int(key: str, value: Any) -> int:
    # bool is an int subclass; floats and "1e3"/"12.5" strings are rejected
    if isinstance(value, int) and not isinstance(value, bool):
        result = value
    elif isinstance(value, str) and re.fullmatch(r"-?\d+", value.strip()):
        result = int(value.strip())
    else:
        raise ValueError(f"{key} must be an integer")

    if not fits_sql_integer(result):
        raise IntegerRangeError(f"{key} is out of range")
    return result


def _coerce_value(col, value: Any):
    """Coerce one JSON value to the column's Python type. Raises ValueError."""
    coltype = col.type

    if isinstance(coltype, Integer):
        return _coerce_int(col.key, value)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise ValueError(f"{col.key} must be a boolean")

    if isinstance(coltype, Date):
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            try:
                parsed = parse_iso_date(value)
            except ValueError:
                parsed = None
            if parsed is not None:
                return parsed
        raise ValueError(f"{col.key} must be an ISO-8601 date")

    if isinstance(coltype, (String, Text)):
        if not isinstance(value, str):
            raise ValueError(f"{col.key} must be a string")
        return value.strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    Every problem is collected; a single ValidationError lists them all.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError([_err(None, "Invalid JSON payload")])

    errors: list[dict] = []
    required = policy.required_on_create or set()
    if not partial:
        for f in sorted(required):
            if f not in payload:
                errors.append(_err(f, f"{f} is required"))

    cols = _columns_by_key(model)
    patch: dict = {}

    for k, raw in payload.items():
        if k not in policy.writable_fields or k not in cols:
            errors.append(_err(k, f"Field not allowed: {k}"))
            continue

        col = cols[k]
        if raw is None:
            if not col.nullable:
                errors.append(_err(k, f"{k} cannot be null"))
            else:
                patch[k] = None
            continue

        try:
            val = _coerce_value(col, raw)
        except ValueError as e:
            errors.append(_err(k, str(e)))
            continue

        if isinstance(col.type, (String, Text)) and not col.nullable and val == "":
            errors.append(_err(k, f"{k} cannot be blank"))
            continue

        if isinstance(col.type, String) and col.type.length and len(val) > col.type.length:
            errors.append(_err(k, f"{k} exceeds max length {col.type.length}"))
            continue

        patch[k] = val

    if errors:
        raise ValidationError(errors)
    return patch


def enforce_rules_product(patch: dict) -> None:
    """Business rules that are not captured by SQLAlchemy metadata alone."""
    errors = []
    price = patch.get("price_cents")
    if price is not None:
        if price < 0:
            errors.append(_err("price_cents", "price_cents must be >= 0"))
        elif price > MAX_PRICE_CENTS:
            errors.append(_err("price_cents", f"price_cents cannot exceed {MAX_PRICE_CENTS}"))

    quantity = patch.get("quantity")
    if quantity is not None and quantity < 0:
        errors.append(_err("quantity", "quantity must be >= 0"))

    if errors:
        raise ValidationError(errors)


PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"batch_number", "name", "price_cents", "quantity", "entry_date"},
    required_on_create={"batch_number", "name", "price_cents", "quantity"},
)


def validate_product_payload(payload: Any, *, partial: bool) -> dict:
    """Column-driven coercion for product writes, then the product business rules."""
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=partial)
    enforce_rules_product(patch)
    return patch


def validate_basket(payload: Any) -> list[BasketItem]:
    """
    Validate a purchase request body: {"products": [{"product_id", "quantity"}, ...]}.

    The list must be non-empty, product_id an integer and quantity an
    integer >= 1. Errors are reported per element, e.g. products[1].quantity.
    """
    if not isinstance(payload, dict):
        raise ValidationError([_err(None, "Invalid JSON payload")])

    products = payload.get("products")
    if not isinstance(products, list):
        raise ValidationError([_err("products", "Products should be an array")])
    if not products:
        raise ValidationError([_err("products", "Products should not be empty")])

    errors: list[dict] = []
    items: list[BasketItem] = []
    for i, entry in enumerate(products):
        if not isinstance(entry, dict):
            errors.append(_err(f"products[{i}]", "Each product should be an object"))
            continue

        try:
            product_id = _coerce_int("product_id", entry.get("product_id"))
        except IntegerRangeError:
            errors.append(_err(f"products[{i}].product_id", "Product ID is out of range"))
            product_id = None
        except ValueError:
            errors.append(_err(f"products[{i}].product_id", "Product ID should be an integer"))
            product_id = None

        try:
            quantity = _coerce_int("quantity", entry.get("quantity"))
            if quantity < 1:
                raise ValueError
        except IntegerRangeError:
            errors.append(_err(f"products[{i}].quantity", "Quantity is out of range"))
            quantity = None
        except ValueError:
            errors.append(_err(f"products[{i}].quantity", "Quantity should be an integer greater than 0"))
            quantity = None

        if product_id is not None and quantity is not None:
            items.append(BasketItem(product_id=product_id, quantity=quantity))

    if errors:
        raise ValidationError(errors)
    return items


def validate_registration(payload: Any) -> dict:
    if not isinstance(payload, dict):
        raise ValidationError([_err(None, "Invalid JSON payload")])

    errors = []
    username = payload.get("username")
    email = payload.get("email")
    password = payload.get("password")

    if not isinstance(username, str) or not username.strip():
        errors.append(_err("username", "username is required"))
    elif len(username.strip()) > 64:
        errors.append(_err("username", "username exceeds max length 64"))
    if not isinstance(email, str) or not EMAIL_RE.match(email.strip()):
        errors.append(_err("email", "A valid email is required"))
    if not isinstance(password, str) or not password:
        errors.append(_err("password", "password is required"))

    if errors:
        raise ValidationError(errors)
    return {
        "username": username.strip(),
        "email": email.strip().lower(),
        "password": password,
    }


def validate_login(payload: Any) -> tuple[str, str]:
    if not isinstance(payload, dict):
        raise ValidationError([_err(None, "Invalid JSON payload")])

    errors = []
    email = payload.get("email")
    password = payload.get("password")
    if not isinstance(email, str) or not EMAIL_RE.match(email.strip()):
        errors.append(_err("email", "A valid email is required"))
    if not isinstance(password, str) or not password:
        errors.append(_err("password", "password is required"))

    if errors:
        raise ValidationError(errors)
    return email.strip().lower(), password
