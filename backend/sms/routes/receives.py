# Overview: Flask API routes for goods received notes; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..errors import InventoryError
from ..services import receive_service
from .responses import error_response, internal_error


receives_bp = Blueprint("receives", __name__, url_prefix="/api/grn")


@receives_bp.post("")
def create_grn_route():
    """
    Record a GRN and add its quantities to stock.

    Body: grn_number, supplier_name, date_received (YYYY-MM-DD),
    items[{product_code, description, model, brand, quantity, unit_price_cents}]
    """
    data = request.get_json(silent=True) or {}
    try:
        grn = receive_service.receive_goods(
            grn_number=data.get("grn_number"),
            supplier_name=data.get("supplier_name"),
            date_received=data.get("date_received"),
            lines=data.get("items"),
        )
        return jsonify({"grn_id": grn.id, "grn": grn.to_dict()}), 201
    except InventoryError as e:
        return error_response(e)
    except Exception:
        return internal_error("create GRN")


@receives_bp.get("/<int:grn_id>")
def get_grn_route(grn_id: int):
    try:
        grn = receive_service.get_grn(grn_id)
        return jsonify({"grn": grn.to_dict()})
    except InventoryError as e:
        return error_response(e)
    except Exception:
        return internal_error("load GRN")
