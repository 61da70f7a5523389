# Overview: Flask API routes for the dashboard and alert read paths.

from flask import Blueprint, current_app, jsonify, request

from ..services import alert_service, reporting_service
from .responses import internal_error


reports_bp = Blueprint("reports", __name__, url_prefix="/api")


def _limit() -> int:
    limit = request.args.get("limit", type=int)
    if limit is None or limit <= 0:
        limit = current_app.config.get("DASHBOARD_ALERT_LIMIT", 5)
    return min(limit, 100)


@reports_bp.get("/dashboard/stats")
def dashboard_stats_route():
    try:
        return jsonify(reporting_service.dashboard_stats(current_app.config.get("DASHBOARD_ALERT_LIMIT", 5)))
    except Exception:
        return internal_error("load dashboard stats")


@reports_bp.get("/alerts")
def list_alerts_route():
    """Active low-stock alerts, newest first. ?limit=N (default from config)."""
    try:
        alerts = alert_service.list_active_alerts(_limit())
        return jsonify({"items": [a.to_dict() for a in alerts], "count": len(alerts)})
    except Exception:
        return internal_error("list alerts")
