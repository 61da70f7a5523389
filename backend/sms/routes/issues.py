# Overview: Flask API routes for issue orders; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..errors import InventoryError
from ..services import issue_service
from ..validation import optional_id
from .responses import error_response, internal_error


issues_bp = Blueprint("issues", __name__, url_prefix="/api/issue-orders")


@issues_bp.post("")
def create_issue_order_route():
    """Body: issue_order_number, rep_id?, date_of_order, items[{product_id, quantity}]"""
    data = request.get_json(silent=True) or {}
    try:
        order = issue_service.issue_stock(
            issue_order_number=data.get("issue_order_number"),
            rep_id=optional_id(data, "rep_id"),
            date_of_order=data.get("date_of_order"),
            lines=data.get("items"),
        )
        return jsonify({"issue_order_id": order.id, "issue_order": order.to_dict()}), 201
    except InventoryError as e:
        return error_response(e)
    except Exception:
        return internal_error("create issue order")


@issues_bp.get("/<int:issue_order_id>")
def get_issue_order_route(issue_order_id: int):
    try:
        order = issue_service.get_issue_order(issue_order_id)
        return jsonify({"issue_order": order.to_dict()})
    except InventoryError as e:
        return error_response(e)
    except Exception:
        return internal_error("load issue order")
