# Overview: Flask API routes for credit notes (customer returns); parses input and returns JSON responses.

from flask import Blueprint, Response, jsonify, request

from ..errors import InventoryError
from ..services import rendering_service, return_service
from ..validation import optional_id, require_id
from .responses import error_response, internal_error


returns_bp = Blueprint("returns", __name__, url_prefix="/api/credit-notes")


@returns_bp.post("")
def create_credit_note_route():
    """
    Commit a credit note against an existing invoice.

    Body: credit_note_number, invoice_id, customer_id?, date_of_return,
    remarks, discount_percent, items[{product_id, part_number, description,
    brand, model, additional_description, quantity, unit_price_cents?}]

    Returns 400 with code RETURN_EXCEEDS_ORIGINAL when a product would be
    returned beyond what the invoice sold (earlier credit notes included).
    """
    data = request.get_json(silent=True) or {}
    try:
        note = return_service.create_return(
            credit_note_number=data.get("credit_note_number"),
            invoice_id=require_id(data, "invoice_id"),
            customer_id=optional_id(data, "customer_id"),
            date_of_return=data.get("date_of_return"),
            remarks=data.get("remarks"),
            discount_percent=data.get("discount_percent", 0),
            lines=data.get("items"),
        )
        record = return_service.credit_note_record(return_service.get_credit_note(note.id))
        return jsonify({"credit_note_id": note.id, "credit_note": record}), 201
    except InventoryError as e:
        return error_response(e)
    except Exception:
        return internal_error("create credit note")


@returns_bp.get("/<int:credit_note_id>")
def get_credit_note_route(credit_note_id: int):
    try:
        note = return_service.get_credit_note(credit_note_id)
        return jsonify(return_service.credit_note_record(note))
    except InventoryError as e:
        return error_response(e)
    except Exception:
        return internal_error("load credit note")


@returns_bp.get("/<int:credit_note_id>/pdf")
def credit_note_pdf_route(credit_note_id: int):
    try:
        record = return_service.credit_note_record(return_service.get_credit_note(credit_note_id))
        pdf = rendering_service.render_credit_note_pdf(record)
    except InventoryError as e:
        return error_response(e)
    except Exception:
        return internal_error("render credit note PDF")

    return Response(
        pdf,
        mimetype="application/pdf",
        headers={
            "Content-Disposition": f'inline; filename="credit-note-{record["credit_note_number"]}.pdf"'
        },
    )
