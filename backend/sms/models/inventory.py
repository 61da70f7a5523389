from __future__ import annotations

from ..extensions import db
from sms.time_utils import to_utc_z


ALERT_STATUS_ACTIVE = "active"


class Product(db.Model):
    """
    Product master data and the authoritative stock level.

    STOCK DESIGN DECISION:
    Product.current_stock is a mutable quantity, changed ONLY by committed
    documents (GRN, sales invoice, credit note, issue order). Catalog edits
    never touch it.

    - product_code is the business key, unique across the catalog
    - document lines reference products by surrogate id once created, so
      description/brand edits never break history
    - version_id is an optimistic lock: a concurrent stock update surfaces as
      StaleDataError at flush and the unit of work is retried
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("product_code", name="uq_products_code"),
        db.CheckConstraint("current_stock >= 0", name="ck_products_stock_non_negative"),
        db.Index("ix_products_low_stock", "current_stock", "min_stock_threshold"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    product_code = db.Column(db.String(64), nullable=False)
    description = db.Column(db.Text, nullable=True)
    model = db.Column(db.String(128), nullable=True)
    brand = db.Column(db.String(128), nullable=True)

    # Authoritative storage in cents (frontend may only format for display)
    unit_price_cents = db.Column(db.Integer, nullable=False, default=0)

    current_stock = db.Column(db.Integer, nullable=False, default=0)
    min_stock_threshold = db.Column(db.Integer, nullable=False, default=10)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    @property
    def is_low_stock(self) -> bool:
        return self.current_stock < self.min_stock_threshold

    def __repr__(self) -> str:
        return f"<Product id={self.id} code={self.product_code!r} stock={self.current_stock}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_code": self.product_code,
            "description": self.description,
            "model": self.model,
            "brand": self.brand,
            "unit_price_cents": self.unit_price_cents,
            "current_stock": self.current_stock,
            "min_stock_threshold": self.min_stock_threshold,
            "is_low_stock": self.is_low_stock,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Alert(db.Model):
    """
    Low-stock notice raised when a sale leaves a product below its threshold.

    Append-only from the engine's point of view; the UI only reads them.
    """
    __tablename__ = "alerts"
    __table_args__ = (
        db.Index("ix_alerts_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    message = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(16), nullable=False, default=ALERT_STATUS_ACTIVE)

    # Sales invoice whose commit raised the alert
    invoice_id = db.Column(db.Integer, db.ForeignKey("sales_invoices.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    product = db.relationship("Product", backref=db.backref("alerts", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "invoice_id": self.invoice_id,
            "message": self.message,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
        }
