# Overview: Dashboard read aggregation over products, invoices and alerts.

from __future__ import annotations

from sqlalchemy import func

from ..models import Product, SalesInvoice
from .alert_service import list_active_alerts
from .concurrency import _session


def dashboard_stats(alert_limit: int | None = None, *, session=None) -> dict:
    """
    Read-only snapshot for the dashboard.

    low_stock_count uses the same rule as alerting: current_stock < threshold.
    Issue orders never raise alerts, but their effect on stock shows up here.
    """
    session = _session(session)

    total_products = session.query(func.count(Product.id)).scalar() or 0
    low_stock_count = (
        session.query(func.count(Product.id))
        .filter(Product.current_stock < Product.min_stock_threshold)
        .scalar()
        or 0
    )
    total_sales_cents = (
        session.query(func.coalesce(func.sum(SalesInvoice.total_amount_cents), 0)).scalar() or 0
    )
    alerts = list_active_alerts(alert_limit, session=session)

    return {
        "total_products": int(total_products),
        "low_stock_count": int(low_stock_count),
        "total_sales_cents": int(total_sales_cents),
        "active_alerts": [a.to_dict() for a in alerts],
    }
