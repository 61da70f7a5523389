from __future__ import annotations

from ..extensions import db
from sms.time_utils import to_utc_z, to_iso_date


class GoodsReceivedNote(db.Model):
    """
    Goods received from a supplier (GRN).

    IMMUTABLE: committed together with its lines and stock increments in one
    transaction; never edited afterwards.
    """
    __tablename__ = "grn"
    __table_args__ = (
        db.UniqueConstraint("grn_number", name="uq_grn_number"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    grn_number = db.Column(db.String(64), nullable=False)
    supplier_name = db.Column(db.String(255), nullable=False)
    date_received = db.Column(db.Date, nullable=False)
    total_amount_cents = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    lines = db.relationship(
        "GrnLine",
        backref="grn",
        lazy=True,
        order_by="GrnLine.line_number",
        cascade="all, delete-orphan",
    )

    def to_dict(self, include_lines: bool = True) -> dict:
        data = {
            "id": self.id,
            "grn_number": self.grn_number,
            "supplier_name": self.supplier_name,
            "date_received": to_iso_date(self.date_received),
            "total_amount_cents": self.total_amount_cents,
            "created_at": to_utc_z(self.created_at),
        }
        if include_lines:
            data["lines"] = [line.to_dict() for line in self.lines]
        return data


class GrnLine(db.Model):
    """Received line; product_code/description/model/brand are snapshots."""
    __tablename__ = "grn_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    grn_id = db.Column(db.Integer, db.ForeignKey("grn.id"), nullable=False, index=True)
    line_number = db.Column(db.Integer, nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    product_code = db.Column(db.String(64), nullable=False)
    product_description = db.Column(db.Text, nullable=True)
    model = db.Column(db.String(128), nullable=True)
    brand = db.Column(db.String(128), nullable=True)

    quantity_received = db.Column(db.Integer, nullable=False)
    price_per_unit_cents = db.Column(db.Integer, nullable=False)
    line_total_cents = db.Column(db.Integer, nullable=False)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "grn_id": self.grn_id,
            "line_number": self.line_number,
            "product_id": self.product_id,
            "product_code": self.product_code,
            "product_description": self.product_description,
            "model": self.model,
            "brand": self.brand,
            "quantity_received": self.quantity_received,
            "price_per_unit_cents": self.price_per_unit_cents,
            "line_total_cents": self.line_total_cents,
        }


class IssueOrder(db.Model):
    """
    Internal stock transfer to a field representative.

    Decrements stock like a sale, without pricing and without alerts.
    """
    __tablename__ = "issue_orders"
    __table_args__ = (
        db.UniqueConstraint("issue_order_number", name="uq_issue_orders_number"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    issue_order_number = db.Column(db.String(64), nullable=False)
    rep_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    date_of_order = db.Column(db.Date, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    rep = db.relationship("User")
    lines = db.relationship(
        "IssueOrderLine",
        backref="issue_order",
        lazy=True,
        order_by="IssueOrderLine.line_number",
        cascade="all, delete-orphan",
    )

    def to_dict(self, include_lines: bool = True) -> dict:
        data = {
            "id": self.id,
            "issue_order_number": self.issue_order_number,
            "rep_id": self.rep_id,
            "rep_name": self.rep.name if self.rep else None,
            "date_of_order": to_iso_date(self.date_of_order),
            "created_at": to_utc_z(self.created_at),
        }
        if include_lines:
            data["lines"] = [line.to_dict() for line in self.lines]
        return data


class IssueOrderLine(db.Model):
    __tablename__ = "issue_order_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    issue_order_id = db.Column(db.Integer, db.ForeignKey("issue_orders.id"), nullable=False, index=True)
    line_number = db.Column(db.Integer, nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    quantity_issued = db.Column(db.Integer, nullable=False)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "issue_order_id": self.issue_order_id,
            "line_number": self.line_number,
            "product_id": self.product_id,
            "product_code": self.product.product_code if self.product else None,
            "quantity_issued": self.quantity_issued,
        }
