# Overview: Goods received notes (GRN); inbound stock and first-sight product creation.

"""
GRN Service

A GRN is committed in one unit of work:
1. Header insert (grn_number uniqueness is enforced by uq_grn_number)
2. Per line: upsert the product by product_code, then increment its stock
3. Line snapshot insert

No sufficiency check applies to inbound stock. Two lines with the same
product_code in one GRN both land on the same product row.
"""

from __future__ import annotations

import logging

from ..errors import DocumentNotFound, InventoryError
from ..models import GoodsReceivedNote, GrnLine, Product
from ..validation import clean_date, clean_document_number, clean_text, parse_receive_lines
from .concurrency import _session, begin_write_transaction, flush_document, lock_for_update, run_with_retry
from .inventory_service import adjust_stock, default_min_stock_threshold


logger = logging.getLogger(__name__)


def _upsert_product(session, line, threshold: int) -> Product:
    product = lock_for_update(
        session.query(Product).filter_by(product_code=line.product_code)
    ).first()
    if product is None:
        product = Product(
            product_code=line.product_code,
            description=line.description,
            model=line.model,
            brand=line.brand,
            unit_price_cents=line.unit_price_cents,
            current_stock=0,
            min_stock_threshold=threshold,
        )
        session.add(product)
        session.flush()
        return product

    # Refresh descriptive snapshot; blanks keep what the catalog already has
    if line.description is not None:
        product.description = line.description
    if line.model is not None:
        product.model = line.model
    if line.brand is not None:
        product.brand = line.brand
    return product


def receive_goods(
    *,
    grn_number: str,
    supplier_name: str,
    date_received,
    lines,
    session=None,
) -> GoodsReceivedNote:
    """
    Record a goods received note and add its quantities to stock.

    Args:
        grn_number: Business number, unique across GRNs
        supplier_name: Supplier the goods came from
        date_received: date or ISO-8601 date string
        lines: ReceiveLine objects or mappings with product_code, quantity,
            unit_price_cents and optional description/model/brand

    Raises:
        ValidationError: malformed header or lines
        DuplicateDocumentNumber: grn_number already committed
    """
    session = _session(session)
    grn_number = clean_document_number(grn_number, "grn_number")
    supplier_name = clean_text(supplier_name, "supplier_name", max_length=255)
    date_received = clean_date(date_received, "date_received")
    receive_lines = parse_receive_lines(lines)
    threshold = default_min_stock_threshold()

    def _op():
        begin_write_transaction(session)

        grn = GoodsReceivedNote(
            grn_number=grn_number,
            supplier_name=supplier_name,
            date_received=date_received,
            total_amount_cents=sum(l.quantity * l.unit_price_cents for l in receive_lines),
        )
        session.add(grn)
        flush_document(
            session,
            doc_type="GRN",
            number=grn_number,
            table="grn",
            column="grn_number",
            constraint="uq_grn_number",
        )

        for line_number, line in enumerate(receive_lines, start=1):
            product = _upsert_product(session, line, threshold)
            adjust_stock(product, line.quantity)
            session.add(GrnLine(
                grn_id=grn.id,
                line_number=line_number,
                product_id=product.id,
                product_code=product.product_code,
                product_description=line.description if line.description is not None else product.description,
                model=line.model if line.model is not None else product.model,
                brand=line.brand if line.brand is not None else product.brand,
                quantity_received=line.quantity,
                price_per_unit_cents=line.unit_price_cents,
                line_total_cents=line.quantity * line.unit_price_cents,
            ))
            # Later lines with the same code must see this row and its stock
            session.flush()

        session.commit()
        return grn

    try:
        grn = run_with_retry(_op, session=session)
    except InventoryError as exc:
        logger.warning("Rejected GRN %s: %s", grn_number, exc.message)
        raise
    logger.info("Committed GRN %s with %d line(s)", grn.grn_number, len(receive_lines))
    return grn


def get_grn(grn_id: int, *, session=None) -> GoodsReceivedNote:
    grn = _session(session).get(GoodsReceivedNote, grn_id)
    if grn is None:
        raise DocumentNotFound(f"GRN {grn_id} not found", details={"grn_id": grn_id})
    return grn
