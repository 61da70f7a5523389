from __future__ import annotations
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from sms.time_utils import parse_iso_date

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from sqlalchemy import Boolean, Integer, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError


# Maximum price: 9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999
MAX_QUANTITY = 1_000_000
MAX_DOCUMENT_NUMBER_LENGTH = 64


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
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
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    # Reject floats explicitly
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return _coerce_int(col.key, value)

    # Booleans
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        # fallback: truthiness
        return bool(value)

    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        raise ValidationError(f"{col.key} must be a datetime")

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

        # NULL handling
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
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
    if "unit_price_cents" in patch and patch["unit_price_cents"] is not None:
        _check_price("unit_price_cents", patch["unit_price_cents"])

    if "min_stock_threshold" in patch and patch["min_stock_threshold"] is not None:
        if patch["min_stock_threshold"] < 0:
            raise ValidationError("min_stock_threshold must be >= 0")


# =============================================================================
# DOCUMENT PAYLOADS
# =============================================================================

def _check_price(key: str, price: int) -> int:
    if price < 0:
        raise ValidationError(f"{key} must be >= 0")
    if price > MAX_PRICE_CENTS:
        raise ValidationError(f"{key} cannot exceed {MAX_PRICE_CENTS} ({MAX_PRICE_CENTS / 100:,.2f})")
    return price


def clean_text(value: Any, key: str, *, max_length: int | None = None) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{key} is required")
    value = str(value).strip()
    if max_length and len(value) > max_length:
        raise ValidationError(f"{key} exceeds max length {max_length}")
    return value


def clean_date(value: Any, key: str) -> date:
    try:
        parsed = parse_iso_date(value)
    except ValueError:
        raise ValidationError(f"{key} must be an ISO-8601 date (YYYY-MM-DD)")
    if parsed is None:
        raise ValidationError(f"{key} is required")
    return parsed


def clean_document_number(value: Any, key: str) -> str:
    return clean_text(value, key, max_length=MAX_DOCUMENT_NUMBER_LENGTH)


def require_text(data: Mapping, key: str, *, max_length: int | None = None) -> str:
    return clean_text(data.get(key), key, max_length=max_length)


def optional_text(data: Mapping, key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def optional_id(data: Mapping, key: str) -> int | None:
    value = data.get(key)
    if value is None or value == "":
        return None
    value = _coerce_int(key, value)
    if value <= 0:
        raise ValidationError(f"{key} must be a positive id")
    return value


def require_id(data: Mapping, key: str) -> int:
    value = optional_id(data, key)
    if value is None:
        raise ValidationError(f"{key} is required")
    return value


def require_quantity(data: Mapping, key: str = "quantity") -> int:
    if data.get(key) is None:
        raise ValidationError(f"{key} is required")
    value = _coerce_int(key, data.get(key))
    if value <= 0:
        raise ValidationError(f"{key} must be > 0")
    if value > MAX_QUANTITY:
        raise ValidationError(f"{key} cannot exceed {MAX_QUANTITY}")
    return value


def clean_cents(value: Any, key: str, default: int | None = None) -> int | None:
    if value is None or value == "":
        return default
    return _check_price(key, _coerce_int(key, value))


def optional_cents(data: Mapping, key: str, default: int | None = None) -> int | None:
    return clean_cents(data.get(key), key, default)


def require_cents(data: Mapping, key: str) -> int:
    value = optional_cents(data, key)
    if value is None:
        raise ValidationError(f"{key} is required")
    return value


def percent_to_bps(value: Any, key: str = "discount_percent") -> int:
    """
    Convert a percentage (0-100, at most two decimals) to basis points.

    Accepts int, float or numeric string; 12.5 -> 1250.
    """
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be a number")
    try:
        percent = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"{key} must be a number")
    if not percent.is_finite():
        raise ValidationError(f"{key} must be a number")
    if percent < 0 or percent > 100:
        raise ValidationError(f"{key} must be between 0 and 100")
    if percent != percent.quantize(Decimal("0.01")):
        raise ValidationError(f"{key} allows at most two decimal places")
    return int(percent * 100)


def _require_items(items: Any) -> list:
    if items is None:
        raise ValidationError("items are required")
    if isinstance(items, (str, bytes, Mapping)) or not isinstance(items, Iterable):
        raise ValidationError("items must be a list")
    items = list(items)
    if not items:
        raise ValidationError("At least one line item is required")
    return items


def _item_mapping(item: Any, index: int) -> Mapping:
    if not isinstance(item, Mapping):
        raise ValidationError(f"items[{index}] must be an object")
    return item


@dataclass(frozen=True)
class ReceiveLine:
    product_code: str
    quantity: int
    unit_price_cents: int
    description: str | None = None
    model: str | None = None
    brand: str | None = None


@dataclass(frozen=True)
class SaleLineInput:
    product_id: int
    quantity: int
    # None -> use the product's catalog price
    unit_price_cents: int | None = None


@dataclass(frozen=True)
class ReturnLineInput:
    product_id: int
    quantity: int
    # None -> use the price from the original invoice line
    unit_price_cents: int | None = None
    part_number: str | None = None
    description: str | None = None
    brand: str | None = None
    model: str | None = None
    additional_description: str | None = None


@dataclass(frozen=True)
class IssueLineInput:
    product_id: int
    quantity: int


def parse_receive_lines(items) -> list[ReceiveLine]:
    lines = []
    for i, item in enumerate(_require_items(items)):
        if isinstance(item, ReceiveLine):
            lines.append(item)
            continue
        item = _item_mapping(item, i)
        try:
            lines.append(ReceiveLine(
                product_code=require_text(item, "product_code", max_length=64),
                quantity=require_quantity(item),
                unit_price_cents=require_cents(item, "unit_price_cents"),
                description=optional_text(item, "description"),
                model=optional_text(item, "model"),
                brand=optional_text(item, "brand"),
            ))
        except ValidationError as e:
            raise ValidationError(f"items[{i}]: {e.message}")
    return lines


def parse_sale_lines(items) -> list[SaleLineInput]:
    lines = []
    for i, item in enumerate(_require_items(items)):
        if isinstance(item, SaleLineInput):
            lines.append(item)
            continue
        item = _item_mapping(item, i)
        try:
            lines.append(SaleLineInput(
                product_id=require_id(item, "product_id"),
                quantity=require_quantity(item),
                unit_price_cents=optional_cents(item, "unit_price_cents"),
            ))
        except ValidationError as e:
            raise ValidationError(f"items[{i}]: {e.message}")
    return lines


def parse_return_lines(items) -> list[ReturnLineInput]:
    lines = []
    for i, item in enumerate(_require_items(items)):
        if isinstance(item, ReturnLineInput):
            lines.append(item)
            continue
        item = _item_mapping(item, i)
        try:
            lines.append(ReturnLineInput(
                product_id=require_id(item, "product_id"),
                quantity=require_quantity(item),
                unit_price_cents=optional_cents(item, "unit_price_cents"),
                part_number=optional_text(item, "part_number"),
                description=optional_text(item, "description"),
                brand=optional_text(item, "brand"),
                model=optional_text(item, "model"),
                additional_description=optional_text(item, "additional_description"),
            ))
        except ValidationError as e:
            raise ValidationError(f"items[{i}]: {e.message}")
    return lines


def parse_issue_lines(items) -> list[IssueLineInput]:
    lines = []
    for i, item in enumerate(_require_items(items)):
        if isinstance(item, IssueLineInput):
            lines.append(item)
            continue
        item = _item_mapping(item, i)
        try:
            lines.append(IssueLineInput(
                product_id=require_id(item, "product_id"),
                quantity=require_quantity(item),
            ))
        except ValidationError as e:
            raise ValidationError(f"items[{i}]: {e.message}")
    return lines
