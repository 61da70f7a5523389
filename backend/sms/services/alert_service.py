# Overview: Low-stock alert emission and the read path the dashboard uses.

from __future__ import annotations

from flask import current_app, has_app_context

from ..models import Alert, Product, ALERT_STATUS_ACTIVE
from .concurrency import _session


def low_stock_message(product: Product) -> str:
    label = product.description or product.product_code
    return f"Low stock alert for {label}: {product.current_stock} remaining."


def raise_low_stock_alerts(products, *, invoice_id: int | None = None, session=None) -> list[Alert]:
    """
    Add one alert per product whose stock is below its threshold.

    Callers pass each affected product once, after its stock was updated.
    Runs inside the caller's unit of work; does not commit.
    """
    session = _session(session)
    alerts = []
    for product in products:
        if product.current_stock >= product.min_stock_threshold:
            continue
        alert = Alert(
            product_id=product.id,
            invoice_id=invoice_id,
            message=low_stock_message(product),
            status=ALERT_STATUS_ACTIVE,
        )
        session.add(alert)
        alerts.append(alert)
    return alerts


def _default_limit() -> int:
    if has_app_context():
        return int(current_app.config.get("DASHBOARD_ALERT_LIMIT", 5))
    return 5


def list_active_alerts(limit: int | None = None, *, session=None) -> list[Alert]:
    """Most recent active alerts, newest first."""
    if limit is None:
        limit = _default_limit()
    return (
        _session(session).query(Alert)
        .filter(Alert.status == ALERT_STATUS_ACTIVE)
        .order_by(Alert.created_at.desc(), Alert.id.desc())
        .limit(limit)
        .all()
    )
