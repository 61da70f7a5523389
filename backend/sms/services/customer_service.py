# Overview: Customer master data CRUD.

from __future__ import annotations

from ..errors import ConflictError, CustomerNotFound
from ..models import CreditNote, Customer, SalesInvoice
from ..validation import ModelValidationPolicy, validate_payload
from .concurrency import _session, run_with_retry


CUSTOMER_MUTABLE_FIELDS = {"customer_name", "company_name", "address", "contact_number"}

CUSTOMER_CREATE_POLICY = ModelValidationPolicy(
    writable_fields=CUSTOMER_MUTABLE_FIELDS,
    required_on_create={"customer_name"},
)
CUSTOMER_UPDATE_POLICY = ModelValidationPolicy(writable_fields=CUSTOMER_MUTABLE_FIELDS)


def list_customers(*, session=None) -> list[Customer]:
    return (
        _session(session).query(Customer)
        .order_by(Customer.customer_name.asc(), Customer.id.asc())
        .all()
    )


def get_customer(customer_id: int, *, session=None) -> Customer:
    customer = _session(session).get(Customer, customer_id)
    if customer is None:
        raise CustomerNotFound(f"Customer {customer_id} not found", details={"customer_id": customer_id})
    return customer


def create_customer(*, payload: dict, session=None) -> Customer:
    session = _session(session)
    patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_CREATE_POLICY, partial=False)

    def _op():
        customer = Customer(**patch)
        session.add(customer)
        session.commit()
        return customer

    return run_with_retry(_op, session=session)


def update_customer(customer_id: int, *, payload: dict, session=None) -> Customer:
    session = _session(session)
    patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_UPDATE_POLICY, partial=True)

    def _op():
        customer = get_customer(customer_id, session=session)
        for key, value in patch.items():
            setattr(customer, key, value)
        session.commit()
        return customer

    return run_with_retry(_op, session=session)


def delete_customer(customer_id: int, *, session=None) -> None:
    """
    Hard delete; refused while any invoice or credit note references the row.

    Raises:
        CustomerNotFound: unknown id
        ConflictError: customer is referenced by a document
    """
    session = _session(session)

    def _op():
        customer = get_customer(customer_id, session=session)
        invoices = session.query(SalesInvoice.id).filter(SalesInvoice.customer_id == customer_id).count()
        notes = session.query(CreditNote.id).filter(CreditNote.customer_id == customer_id).count()
        if invoices or notes:
            raise ConflictError(
                "Customer is referenced by existing documents and cannot be deleted",
                details={"customer_id": customer_id, "invoices": invoices, "credit_notes": notes},
            )
        session.delete(customer)
        session.commit()

    run_with_retry(_op, session=session)
