# Overview: Flask API routes for customers; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..errors import InventoryError
from ..services import customer_service
from .responses import error_response, internal_error


customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
def list_customers_route():
    try:
        customers = customer_service.list_customers()
        return jsonify({"items": [c.to_dict() for c in customers], "count": len(customers)})
    except Exception:
        return internal_error("list customers")


@customers_bp.post("")
def create_customer_route():
    payload = request.get_json(silent=True) or {}
    try:
        customer = customer_service.create_customer(payload=payload)
        return jsonify({"customer": customer.to_dict()}), 201
    except InventoryError as e:
        return error_response(e)
    except Exception:
        return internal_error("create customer")


@customers_bp.get("/<int:customer_id>")
def get_customer_route(customer_id: int):
    try:
        customer = customer_service.get_customer(customer_id)
        return jsonify({"customer": customer.to_dict()})
    except InventoryError as e:
        return error_response(e)
    except Exception:
        return internal_error("load customer")


@customers_bp.put("/<int:customer_id>")
def update_customer_route(customer_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        customer = customer_service.update_customer(customer_id, payload=payload)
        return jsonify({"customer": customer.to_dict()})
    except InventoryError as e:
        return error_response(e)
    except Exception:
        return internal_error("update customer")


@customers_bp.delete("/<int:customer_id>")
def delete_customer_route(customer_id: int):
    """409 while any invoice or credit note still references the customer."""
    try:
        customer_service.delete_customer(customer_id)
        return jsonify({"deleted": True, "id": customer_id})
    except InventoryError as e:
        return error_response(e)
    except Exception:
        return internal_error("delete customer")
