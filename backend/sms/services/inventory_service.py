# Overview: Product catalog operations and the stock primitives shared by every document service.

"""
SMS Stock Invariants (authoritative)

Stock model:
- Product.current_stock is the single authoritative on-hand quantity.
- It changes ONLY inside a document unit of work (GRN, sale, credit note,
  issue order); product CRUD can never write it.
- It may never go negative after a committed sale or issue order. The
  database enforces this with ck_products_stock_non_negative as well.

Sufficiency:
- Requested quantities are summed per product across all lines of one
  document BEFORE comparing with stock. Two lines of 3 against stock 5 fail.
- The comparison happens on rows read under the write lock
  (begin_write_transaction + lock_for_update), so no other writer can move
  stock between the check and the decrement.
"""

from __future__ import annotations

import logging

from flask import current_app, has_app_context
from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, InsufficientStock, ProductNotFound
from ..models import Product
from ..validation import ModelValidationPolicy, enforce_rules_product, validate_payload
from .concurrency import _session, is_unique_violation, lock_for_update, run_with_retry


logger = logging.getLogger(__name__)

# current_stock is intentionally absent: only documents move stock
PRODUCT_MUTABLE_FIELDS = {
    "product_code",
    "description",
    "model",
    "brand",
    "unit_price_cents",
    "min_stock_threshold",
}

PRODUCT_CREATE_POLICY = ModelValidationPolicy(
    writable_fields=PRODUCT_MUTABLE_FIELDS,
    required_on_create={"product_code"},
)
PRODUCT_UPDATE_POLICY = ModelValidationPolicy(writable_fields=PRODUCT_MUTABLE_FIELDS)


def default_min_stock_threshold() -> int:
    if has_app_context():
        return int(current_app.config.get("DEFAULT_MIN_STOCK_THRESHOLD", 10))
    return 10


def apply_product_patch(product: Product, patch: dict) -> None:
    for key, value in patch.items():
        if key not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(product, key, value)


# =============================================================================
# CATALOG
# =============================================================================

def list_products(*, low_stock_only: bool = False, session=None) -> list[Product]:
    session = _session(session)
    query = session.query(Product)
    if low_stock_only:
        query = query.filter(Product.current_stock < Product.min_stock_threshold)
    return query.order_by(Product.product_code.asc(), Product.id.asc()).all()


def get_product(product_id: int, *, session=None) -> Product:
    product = _session(session).get(Product, product_id)
    if product is None:
        raise ProductNotFound(f"Product {product_id} not found", details={"product_id": product_id})
    return product


def get_product_by_code(product_code: str, *, session=None) -> Product | None:
    return _session(session).query(Product).filter_by(product_code=product_code).first()


def _flush_product(session, product_code: str) -> None:
    try:
        session.flush()
    except IntegrityError as exc:
        if is_unique_violation(exc, table="products", column="product_code", constraint="uq_products_code"):
            raise ConflictError(
                f"Product code {product_code!r} already exists",
                details={"product_code": product_code},
            ) from exc
        raise


def create_product(*, payload: dict, session=None) -> Product:
    """
    Create a catalog product with zero stock.

    Raises:
        ValidationError: payload fails column or business rules
        ConflictError: product_code already exists
    """
    session = _session(session)
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_CREATE_POLICY, partial=False)
    enforce_rules_product(patch)

    def _op():
        if get_product_by_code(patch["product_code"], session=session) is not None:
            raise ConflictError(
                f"Product code {patch['product_code']!r} already exists",
                details={"product_code": patch["product_code"]},
            )
        product = Product(current_stock=0, min_stock_threshold=default_min_stock_threshold())
        apply_product_patch(product, patch)
        session.add(product)
        _flush_product(session, product.product_code)
        session.commit()
        return product

    product = run_with_retry(_op, session=session)
    logger.info("Created product %s (id=%s)", product.product_code, product.id)
    return product


def update_product(product_id: int, *, payload: dict, session=None) -> Product:
    """Patch descriptive fields, price or threshold. Stock is never touched here."""
    session = _session(session)
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_UPDATE_POLICY, partial=True)
    enforce_rules_product(patch)

    def _op():
        product = get_product(product_id, session=session)
        apply_product_patch(product, patch)
        _flush_product(session, product.product_code)
        session.commit()
        return product

    return run_with_retry(_op, session=session)


# =============================================================================
# STOCK PRIMITIVES (call inside a unit of work only)
# =============================================================================

def quantities_by_product(lines) -> dict[int, int]:
    """Sum line quantities per product_id, keeping first-seen order."""
    totals: dict[int, int] = {}
    for line in lines:
        totals[line.product_id] = totals.get(line.product_id, 0) + line.quantity
    return totals


def load_products_for_update(product_ids, *, session) -> dict[int, Product]:
    """
    Read the given products under a row lock.

    Raises ProductNotFound for the first id (in request order) that does not exist.
    """
    wanted = list(dict.fromkeys(product_ids))
    rows = lock_for_update(
        session.query(Product).filter(Product.id.in_(wanted)).order_by(Product.id.asc())
    ).all()
    products = {p.id: p for p in rows}
    for product_id in wanted:
        if product_id not in products:
            raise ProductNotFound(f"Product {product_id} not found", details={"product_id": product_id})
    return products


def check_sufficient_stock(products: dict[int, Product], requested: dict[int, int]) -> None:
    for product_id, quantity in requested.items():
        product = products[product_id]
        if product.current_stock < quantity:
            raise InsufficientStock(
                product_id=product.id,
                product_code=product.product_code,
                requested=quantity,
                available=product.current_stock,
            )


def adjust_stock(product: Product, delta: int) -> int:
    new_stock = product.current_stock + delta
    if new_stock < 0:
        raise InsufficientStock(
            product_id=product.id,
            product_code=product.product_code,
            requested=-delta,
            available=product.current_stock,
        )
    product.current_stock = new_stock
    return new_stock
