# Overview: Flask API routes for staff users (reps for issue orders).

from flask import Blueprint, jsonify, request

from ..errors import InventoryError
from ..services import user_service
from .responses import error_response, internal_error


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
def list_users_route():
    """?role=Rep filters to field representatives."""
    try:
        users = user_service.list_users(role=request.args.get("role") or None)
        return jsonify({"items": [u.to_dict() for u in users], "count": len(users)})
    except InventoryError as e:
        return error_response(e)
    except Exception:
        return internal_error("list users")
