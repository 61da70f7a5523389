# Overview: Issue orders; stock handed to a field representative without a sale.

from __future__ import annotations

import logging

from ..errors import DocumentNotFound, InventoryError, ValidationError
from ..models import IssueOrder, IssueOrderLine, User
from ..validation import clean_date, clean_document_number, parse_issue_lines
from .concurrency import _session, begin_write_transaction, flush_document, run_with_retry
from .inventory_service import (
    adjust_stock,
    check_sufficient_stock,
    load_products_for_update,
    quantities_by_product,
)


logger = logging.getLogger(__name__)


def issue_stock(
    *,
    issue_order_number: str,
    date_of_order,
    lines,
    rep_id: int | None = None,
    session=None,
) -> IssueOrder:
    """
    Commit an issue order and decrement stock.

    Same cumulative sufficiency rule as a sale. Issue orders carry no prices
    and never raise low-stock alerts.

    Raises:
        ValidationError: malformed input or unknown rep_id
        ProductNotFound: unknown product
        InsufficientStock: cumulative quantity for a product exceeds its stock
        DuplicateDocumentNumber: issue_order_number already committed
    """
    session = _session(session)
    issue_order_number = clean_document_number(issue_order_number, "issue_order_number")
    date_of_order = clean_date(date_of_order, "date_of_order")
    issue_lines = parse_issue_lines(lines)

    def _op():
        begin_write_transaction(session)

        if rep_id is not None and session.get(User, rep_id) is None:
            raise ValidationError(f"Rep {rep_id} not found", details={"rep_id": rep_id})

        products = load_products_for_update([l.product_id for l in issue_lines], session=session)
        requested = quantities_by_product(issue_lines)
        check_sufficient_stock(products, requested)

        order = IssueOrder(
            issue_order_number=issue_order_number,
            rep_id=rep_id,
            date_of_order=date_of_order,
        )
        session.add(order)
        flush_document(
            session,
            doc_type="Issue order",
            number=issue_order_number,
            table="issue_orders",
            column="issue_order_number",
            constraint="uq_issue_orders_number",
        )

        for line_number, line in enumerate(issue_lines, start=1):
            session.add(IssueOrderLine(
                issue_order_id=order.id,
                line_number=line_number,
                product_id=line.product_id,
                quantity_issued=line.quantity,
            ))

        for product_id, quantity in requested.items():
            adjust_stock(products[product_id], -quantity)

        session.commit()
        return order

    try:
        order = run_with_retry(_op, session=session)
    except InventoryError as exc:
        logger.warning("Rejected issue order %s: %s", issue_order_number, exc.message)
        raise
    logger.info("Committed issue order %s with %d line(s)", order.issue_order_number, len(issue_lines))
    return order


def get_issue_order(issue_order_id: int, *, session=None) -> IssueOrder:
    order = _session(session).get(IssueOrder, issue_order_id)
    if order is None:
        raise DocumentNotFound(
            f"Issue order {issue_order_id} not found",
            details={"issue_order_id": issue_order_id},
        )
    return order
