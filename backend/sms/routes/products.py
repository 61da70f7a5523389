# Overview: Flask API routes for the product catalog; parses input and returns JSON responses.

"""
Product catalog routes.

current_stock is read-only here: it is not in the writable field allowlist,
so a payload carrying it is rejected with 400. Only documents move stock.
"""
from flask import Blueprint, jsonify, request

from ..errors import InventoryError
from ..services import inventory_service
from .responses import error_response, internal_error


products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _flag(value: str | None) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


@products_bp.get("")
def list_products():
    """
    Query params:
    - low_stock: true -> only products below their threshold
    """
    try:
        products = inventory_service.list_products(low_stock_only=_flag(request.args.get("low_stock")))
        return jsonify({"items": [p.to_dict() for p in products], "count": len(products)})
    except Exception:
        return internal_error("list products")


@products_bp.post("")
def create_product_route():
    payload = request.get_json(silent=True) or {}
    try:
        product = inventory_service.create_product(payload=payload)
        return jsonify({"product": product.to_dict()}), 201
    except InventoryError as e:
        return error_response(e)
    except Exception:
        return internal_error("create product")


@products_bp.get("/<int:product_id>")
def get_product_route(product_id: int):
    try:
        product = inventory_service.get_product(product_id)
        return jsonify({"product": product.to_dict()})
    except InventoryError as e:
        return error_response(e)
    except Exception:
        return internal_error("load product")


@products_bp.put("/<int:product_id>")
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        product = inventory_service.update_product(product_id, payload=payload)
        return jsonify({"product": product.to_dict()})
    except InventoryError as e:
        return error_response(e)
    except Exception:
        return internal_error("update product")
