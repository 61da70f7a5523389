from __future__ import annotations

from ..extensions import db
from sms.time_utils import to_utc_z, to_iso_date


class SalesInvoice(db.Model):
    """
    Sales invoice document.

    total_amount_cents = sum(line_total_cents) - discount_cents, fixed at commit.
    customer_name is a snapshot so the invoice survives customer edits.
    """
    __tablename__ = "sales_invoices"
    __table_args__ = (
        db.UniqueConstraint("invoice_number", name="uq_sales_invoices_number"),
        db.Index("ix_sales_invoices_date", "date_of_sale"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    invoice_number = db.Column(db.String(64), nullable=False)

    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)
    customer_name = db.Column(db.String(255), nullable=False)

    date_of_sale = db.Column(db.Date, nullable=False)
    discount_cents = db.Column(db.Integer, nullable=False, default=0)
    total_amount_cents = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    customer = db.relationship("Customer", backref=db.backref("invoices", lazy=True))
    lines = db.relationship(
        "SalesInvoiceLine",
        backref="invoice",
        lazy=True,
        order_by="SalesInvoiceLine.line_number",
        cascade="all, delete-orphan",
    )

    @property
    def subtotal_cents(self) -> int:
        return sum(line.line_total_cents for line in self.lines)

    def to_dict(self, include_lines: bool = True) -> dict:
        data = {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "date_of_sale": to_iso_date(self.date_of_sale),
            "discount_cents": self.discount_cents,
            "total_amount_cents": self.total_amount_cents,
            "created_at": to_utc_z(self.created_at),
        }
        if include_lines:
            data["lines"] = [line.to_dict() for line in self.lines]
        return data


class SalesInvoiceLine(db.Model):
    """Individual line items on a sales invoice."""
    __tablename__ = "sales_invoice_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("sales_invoices.id"), nullable=False, index=True)
    line_number = db.Column(db.Integer, nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity_sold = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    line_total_cents = db.Column(db.Integer, nullable=False)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "invoice_id": self.invoice_id,
            "line_number": self.line_number,
            "product_id": self.product_id,
            "quantity_sold": self.quantity_sold,
            "unit_price_cents": self.unit_price_cents,
            "line_total_cents": self.line_total_cents,
        }


class CreditNote(db.Model):
    """
    Customer return against one original invoice.

    Returned quantities are bounded per product by what the invoice sold minus
    what earlier credit notes already returned.
    """
    __tablename__ = "credit_notes"
    __table_args__ = (
        db.UniqueConstraint("credit_note_number", name="uq_credit_notes_number"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    credit_note_number = db.Column(db.String(64), nullable=False)

    invoice_id = db.Column(db.Integer, db.ForeignKey("sales_invoices.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)

    date_of_return = db.Column(db.Date, nullable=False)
    remarks = db.Column(db.Text, nullable=True)

    total_bill_value_cents = db.Column(db.Integer, nullable=False)
    discount_bps = db.Column(db.Integer, nullable=False, default=0)
    discount_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    grand_total_cents = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    invoice = db.relationship("SalesInvoice", backref=db.backref("credit_notes", lazy=True))
    customer = db.relationship("Customer", backref=db.backref("credit_notes", lazy=True))
    lines = db.relationship(
        "CreditNoteLine",
        backref="credit_note",
        lazy=True,
        order_by="CreditNoteLine.line_number",
        cascade="all, delete-orphan",
    )

    @property
    def discount_percent(self) -> float:
        return self.discount_bps / 100

    def to_dict(self, include_lines: bool = True) -> dict:
        data = {
            "id": self.id,
            "credit_note_number": self.credit_note_number,
            "invoice_id": self.invoice_id,
            "invoice_number": self.invoice.invoice_number if self.invoice else None,
            "customer_id": self.customer_id,
            "date_of_return": to_iso_date(self.date_of_return),
            "remarks": self.remarks,
            "total_bill_value_cents": self.total_bill_value_cents,
            "discount_percent": self.discount_percent,
            "discount_amount_cents": self.discount_amount_cents,
            "grand_total_cents": self.grand_total_cents,
            "created_at": to_utc_z(self.created_at),
        }
        if include_lines:
            data["lines"] = [line.to_dict() for line in self.lines]
        return data


class CreditNoteLine(db.Model):
    __tablename__ = "credit_note_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    credit_note_id = db.Column(db.Integer, db.ForeignKey("credit_notes.id"), nullable=False, index=True)
    line_number = db.Column(db.Integer, nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    # Links back to the invoice line being reversed
    invoice_line_id = db.Column(db.Integer, db.ForeignKey("sales_invoice_items.id"), nullable=True, index=True)

    part_number = db.Column(db.String(64), nullable=True)
    description = db.Column(db.Text, nullable=True)
    brand = db.Column(db.String(128), nullable=True)
    model = db.Column(db.String(128), nullable=True)
    additional_description = db.Column(db.Text, nullable=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    line_total_cents = db.Column(db.Integer, nullable=False)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "credit_note_id": self.credit_note_id,
            "line_number": self.line_number,
            "product_id": self.product_id,
            "invoice_line_id": self.invoice_line_id,
            "part_number": self.part_number,
            "description": self.description,
            "brand": self.brand,
            "model": self.model,
            "additional_description": self.additional_description,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "line_total_cents": self.line_total_cents,
        }
