from __future__ import annotations

from ..extensions import db
from sms.time_utils import to_utc_z


class Customer(db.Model):
    """
    Customer master data.

    Referenced by invoices and credit notes; the engine never mutates it.
    Invoices keep their own customer_name snapshot.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_name", "customer_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    customer_name = db.Column(db.String(255), nullable=False)
    company_name = db.Column(db.String(255), nullable=True)
    address = db.Column(db.Text, nullable=True)
    contact_number = db.Column(db.String(32), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_name": self.customer_name,
            "company_name": self.company_name,
            "address": self.address,
            "contact_number": self.contact_number,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
