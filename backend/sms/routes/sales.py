# Overview: Flask API routes for sales invoices; parses input and returns JSON responses.

from flask import Blueprint, Response, jsonify, request

from ..errors import InventoryError
from ..services import rendering_service, sales_service
from ..validation import optional_id
from .responses import error_response, internal_error


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("")
def create_sale_route():
    """
    Commit a sales invoice.

    Body: invoice_number, customer_id?, customer_name, date_of_sale,
    discount_cents, items[{product_id, quantity, unit_price_cents?}]

    Returns 400 with code INSUFFICIENT_STOCK when any product would go negative;
    nothing is written in that case.
    """
    data = request.get_json(silent=True) or {}
    try:
        invoice = sales_service.create_sale(
            invoice_number=data.get("invoice_number"),
            customer_id=optional_id(data, "customer_id"),
            customer_name=data.get("customer_name"),
            date_of_sale=data.get("date_of_sale"),
            discount_cents=data.get("discount_cents", 0),
            lines=data.get("items"),
        )
        record = sales_service.invoice_record(sales_service.get_invoice(invoice.id))
        return jsonify({"invoice_id": invoice.id, "invoice": record}), 201
    except InventoryError as e:
        return error_response(e)
    except Exception:
        return internal_error("create sale")


@sales_bp.get("/invoices/<string:invoice_number>")
def get_invoice_by_number_route(invoice_number: str):
    try:
        invoice = sales_service.get_invoice_by_number(invoice_number)
        return jsonify(sales_service.invoice_record(invoice))
    except InventoryError as e:
        return error_response(e)
    except Exception:
        return internal_error("load invoice")


@sales_bp.get("/invoices/<int:invoice_id>/pdf")
def invoice_pdf_route(invoice_id: int):
    try:
        record = sales_service.invoice_record(sales_service.get_invoice(invoice_id))
        pdf = rendering_service.render_invoice_pdf(record)
    except InventoryError as e:
        return error_response(e)
    except Exception:
        return internal_error("render invoice PDF")

    return Response(
        pdf,
        mimetype="application/pdf",
        headers={"Content-Disposition": f'inline; filename="invoice-{record["invoice_number"]}.pdf"'},
    )
