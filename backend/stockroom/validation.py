from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from stockroom.models import Transaction
from stockroom.time_utils import parse_date_key


# Maximum price: $9,999,999.99 (999,999,999 cents)
MAX_PRICE_CENTS = 999_999_999

# Largest single cart the sale endpoint accepts
MAX_SALE_ITEMS = 200


class ValidationError(ValueError):
    """400-level input problem."""


class NotFoundError(LookupError):
    """404-level missing product or alert reference."""


class ConflictError(ValueError):
    """409-level business rule conflict."""


class DuplicateSkuError(ConflictError):
    """SKU collision on create or rename."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_int(key: str, value: Any) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return _coerce_int(col.key, value)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise ValidationError(f"{col.key} must be a boolean")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    # Default: leave as-is
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

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    for key in ("price_cents", "cost_price_cents"):
        if key in patch and patch[key] is not None:
            if patch[key] < 0:
                raise ValidationError(f"{key} must be >= 0")
            if patch[key] > MAX_PRICE_CENTS:
                raise ValidationError(f"{key} cannot exceed {MAX_PRICE_CENTS} (${MAX_PRICE_CENTS / 100:,.2f})")

    for key in ("quantity", "min_stock_level"):
        if key in patch and patch[key] is not None and patch[key] < 0:
            raise ValidationError(f"{key} must be >= 0")

    if patch.get("expiry_date"):
        try:
            parse_date_key(patch["expiry_date"])
        except ValueError:
            raise ValidationError("expiry_date must be a YYYY-MM-DD date")


def validate_stock_adjustment(payload: dict) -> int:
    """Return the integer delta of an updateStock request."""
    if not isinstance(payload, dict) or "delta" not in payload:
        raise ValidationError("delta is required")
    delta = _coerce_int("delta", payload["delta"])
    if delta == 0:
        raise ValidationError("delta must be non-zero")
    return delta


def _check_length(key: str, value: str) -> None:
    length = Transaction.__table__.c[key].type.length
    if length and len(value) > length:
        raise ValidationError(f"{key} exceeds max length {length}")


def validate_sale_payload(payload: dict) -> dict:
    """
    Shape-check a processSale request.

    Returns {"items": [{"product_id", "quantity"}...], "payment_method", "customer_id"}.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    items = payload.get("items")
    if not isinstance(items, list) or not items:
        raise ValidationError("items must be a non-empty list")
    if len(items) > MAX_SALE_ITEMS:
        raise ValidationError(f"items cannot exceed {MAX_SALE_ITEMS} lines")

    cleaned_items = []
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"items[{i}] must be an object")
        if "product_id" not in item or "quantity" not in item:
            raise ValidationError(f"items[{i}] requires product_id and quantity")
        product_id = _coerce_int(f"items[{i}].product_id", item["product_id"])
        quantity = _coerce_int(f"items[{i}].quantity", item["quantity"])
        if quantity <= 0:
            raise ValidationError(f"items[{i}].quantity must be > 0")
        cleaned_items.append({"product_id": product_id, "quantity": quantity})

    payment_method = payload.get("payment_method")
    if not isinstance(payment_method, str) or not payment_method.strip():
        raise ValidationError("payment_method is required")
    payment_method = payment_method.strip()
    _check_length("payment_method", payment_method)

    customer_id = payload.get("customer_id")
    if customer_id is not None:
        if not isinstance(customer_id, str):
            raise ValidationError("customer_id must be a string")
        customer_id = customer_id.strip() or None
        if customer_id is not None:
            _check_length("customer_id", customer_id)

    return {
        "items": cleaned_items,
        "payment_method": payment_method,
        "customer_id": customer_id,
    }
